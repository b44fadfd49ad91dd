# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""flyspec — fluent, null-safe composition of SQLAlchemy query predicates.

Example::

    from flyspec import Spec

    stmt = (
        Spec.of(Book)
        .like("title", search)
        .gte("published", since)
        .join("author", lambda a: a.eq("country", country))
        .to_select()
    )
"""

from flyspec.config.properties import SpecProperties
from flyspec.core.config import Config, config_properties
from flyspec.data import (
    JoinType,
    Root,
    RootJoin,
    Spec,
    SpecJoin,
    Specification,
    SpecificationExecutor,
)
from flyspec.kernel.exceptions import (
    DataAccessException,
    FlySpecException,
    InvalidPathException,
    NonUniqueResultException,
    NotComparableException,
    SpecificationException,
    UnsupportedJoinException,
)

__version__ = "0.1.0"

__all__ = [
    "Config",
    "DataAccessException",
    "FlySpecException",
    "InvalidPathException",
    "JoinType",
    "NonUniqueResultException",
    "NotComparableException",
    "Root",
    "RootJoin",
    "Spec",
    "SpecJoin",
    "SpecProperties",
    "Specification",
    "SpecificationException",
    "SpecificationExecutor",
    "UnsupportedJoinException",
    "config_properties",
]

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
"""Specification builder configuration properties."""

from __future__ import annotations

from dataclasses import dataclass

from flyspec.core.config import config_properties


@config_properties(prefix="flyspec.spec")
@dataclass(frozen=True)
class SpecProperties:
    """Configuration for the specification builders (flyspec.spec.*).

    Attributes:
        ignore_case: Lower-case both sides of ``like``/``starts_with``/``ends_with``.
        escape_wildcards: Treat ``%`` and ``_`` in pattern values as literals.
        distinct_joins: Select DISTINCT rows whenever a join-scoped predicate is used.
    """

    ignore_case: bool = True
    escape_wildcards: bool = False
    distinct_joins: bool = False

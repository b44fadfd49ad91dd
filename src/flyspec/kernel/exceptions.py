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
"""Exception hierarchy for flyspec.

All library errors inherit from FlySpecException so callers can handle
every flyspec failure in one place, or catch a specific subclass.

Categories:
- SpecificationException: a specification could not be evaluated against a query
- DataAccessException: the executor failed while running a specification query
"""

from __future__ import annotations


# =============================================================================
# Base Exception
# =============================================================================


class FlySpecException(Exception):
    """Base exception for all flyspec errors.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. "SPEC_INVALID_PATH").
        context: Arbitrary key-value pairs for error context and debugging.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.context: dict = context if context is not None else {}


# =============================================================================
# Specification Exceptions
# =============================================================================


class SpecificationException(FlySpecException):
    """A specification could not be turned into a SQL predicate."""


class InvalidPathException(SpecificationException, ValueError):
    """Field name is blank or does not resolve to a mapped attribute."""


class NotComparableException(SpecificationException, TypeError):
    """A range predicate was applied to an attribute that is not orderable."""


class UnsupportedJoinException(SpecificationException):
    """The requested join cannot be expressed for this relationship."""


# =============================================================================
# Data Access Exceptions
# =============================================================================


class DataAccessException(FlySpecException):
    """Failure while executing a specification query."""


class NonUniqueResultException(DataAccessException):
    """A single-result lookup matched more than one row."""

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
"""Tests for the flyspec exception hierarchy."""

from flyspec.kernel.exceptions import (
    DataAccessException,
    FlySpecException,
    InvalidPathException,
    NonUniqueResultException,
    NotComparableException,
    SpecificationException,
    UnsupportedJoinException,
)


class TestFlySpecException:
    def test_basic_creation(self):
        exc = FlySpecException("something went wrong")
        assert str(exc) == "something went wrong"
        assert exc.code is None
        assert exc.context == {}

    def test_with_code_and_context(self):
        exc = FlySpecException("bad path", code="SPEC_INVALID_PATH", context={"path": "a..b"})
        assert exc.code == "SPEC_INVALID_PATH"
        assert exc.context["path"] == "a..b"

    def test_context_not_shared(self):
        exc = FlySpecException("a")
        exc.context["key"] = "value"
        assert FlySpecException("b").context == {}


class TestExceptionHierarchy:
    def test_specification_errors(self):
        for cls in (InvalidPathException, NotComparableException, UnsupportedJoinException):
            assert issubclass(cls, SpecificationException)
            assert issubclass(cls, FlySpecException)

    def test_invalid_path_is_value_error(self):
        assert issubclass(InvalidPathException, ValueError)

    def test_not_comparable_is_type_error(self):
        assert issubclass(NotComparableException, TypeError)

    def test_non_unique_is_data_access(self):
        assert issubclass(NonUniqueResultException, DataAccessException)
        assert not issubclass(DataAccessException, SpecificationException)

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
"""Tests for SpecProperties binding."""

from __future__ import annotations

import pytest

from flyspec.config.properties import SpecProperties
from flyspec.core.config import Config


class TestSpecProperties:
    def test_defaults(self):
        props = Config({}).bind(SpecProperties)
        assert props == SpecProperties(ignore_case=True, escape_wildcards=False, distinct_joins=False)

    def test_bind_from_config(self):
        config = Config({"flyspec": {"spec": {"ignore_case": False, "distinct_joins": True}}})
        props = config.bind(SpecProperties)
        assert props.ignore_case is False
        assert props.distinct_joins is True
        assert props.escape_wildcards is False

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("FLYSPEC_SPEC_ESCAPE_WILDCARDS", "true")
        assert Config({}).bind(SpecProperties).escape_wildcards is True

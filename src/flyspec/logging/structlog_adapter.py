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
"""StructlogAdapter — LoggingPort implementation backed by structlog.

Reads the ``flyspec.logging`` section::

    flyspec:
      logging:
        format: console        # or "json"
        sql: false             # echo SQLAlchemy statements at INFO
        level:
          root: INFO
          flyspec.data: DEBUG  # per-logger overrides
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from flyspec.core.config import Config

_SQL_LOGGER = "sqlalchemy.engine"


class StructlogAdapter:
    """Default logging adapter backed by structlog."""

    def __init__(self) -> None:
        self._root_level: str = "INFO"
        self._format: str = "console"
        self._module_levels: dict[str, str] = {}
        self._echo_sql: bool = False

    def configure(self, config: Config) -> None:
        """Configure structlog and stdlib logging from ``flyspec.logging``."""
        levels = dict(config.get_section("flyspec.logging.level"))
        if levels:
            self._root_level = str(levels.pop("root", "INFO")).upper()
            self._module_levels = {k: str(v).upper() for k, v in levels.items()}
        else:
            self._root_level = str(config.get("flyspec.logging.level", "INFO")).upper()
            self._module_levels = {}
        self._format = str(config.get("flyspec.logging.format", "console")).lower()
        echo = config.get("flyspec.logging.sql", False)
        self._echo_sql = echo.lower() in ("true", "1", "yes") if isinstance(echo, str) else bool(echo)

        self._setup_structlog()
        for module, module_level in self._module_levels.items():
            self.set_level(module, module_level)
        if self._echo_sql:
            self.set_level(_SQL_LOGGER, "INFO")

    def get_logger(self, name: str) -> Any:
        """Get a structlog BoundLogger by name."""
        return structlog.get_logger(name)

    def set_level(self, name: str, level: str) -> None:
        """Set the log level for a specific stdlib logger."""
        logging.getLogger(name).setLevel(getattr(logging, level.upper(), logging.INFO))

    def _setup_structlog(self) -> None:
        log_level = getattr(logging, self._root_level, logging.INFO)

        processors: list[structlog.types.Processor] = [
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
        ]
        if self._format == "json":
            processors.append(structlog.processors.JSONRenderer())
        else:
            processors.append(structlog.dev.ConsoleRenderer())

        structlog.configure(
            processors=processors,
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )

        logging.basicConfig(
            format="%(message)s",
            stream=sys.stdout,
            level=log_level,
            force=True,
        )

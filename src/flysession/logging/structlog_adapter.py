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
"""StructlogAdapter — renders session log events with structlog."""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from flysession.core.config import Config

RENDERERS = ("console", "json", "logfmt")


class StructlogAdapter:
    """:class:`LoggingPort` implementation backed by structlog and stdlib logging.

    Configuration keys::

        logging:
          format: json            # console (default), json or logfmt
          level:
            root: INFO
            flysession.session: WARNING

    ``request_id``, bound by ``RequestContextFilter``, is merged into every
    event logged while a request is handled.
    """

    def __init__(self) -> None:
        self._root_level = "INFO"
        self._format = "console"
        self._module_levels: dict[str, str] = {}

    def configure(self, config: Config) -> None:
        levels = {name: str(level).upper() for name, level in config.get_section("logging.level").items()}
        self._root_level = levels.pop("root", "INFO")
        self._module_levels = levels

        fmt = str(config.get("logging.format", "console")).lower()
        self._format = fmt if fmt in RENDERERS else "console"

        logging.basicConfig(
            format="%(message)s",
            stream=sys.stdout,
            level=_level_number(self._root_level),
            force=True,
        )
        structlog.configure(
            processors=self._processors(),
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )
        for name, level in self._module_levels.items():
            self.set_level(name, level)

    def get_logger(self, name: str) -> Any:
        return structlog.get_logger(name)

    def set_level(self, name: str, level: str) -> None:
        """Set the level of stdlib logger *name*; unknown level names mean INFO."""
        logging.getLogger(name).setLevel(_level_number(level))

    def _processors(self) -> list[structlog.types.Processor]:
        processors: list[structlog.types.Processor] = [
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
        ]
        if self._format == "json":
            processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
        elif self._format == "logfmt":
            processors += [structlog.processors.format_exc_info, structlog.processors.LogfmtRenderer()]
        else:
            processors.append(structlog.dev.ConsoleRenderer())
        return processors


def _level_number(level: str) -> int:
    value = logging.getLevelName(level.upper())
    return value if isinstance(value, int) else logging.INFO

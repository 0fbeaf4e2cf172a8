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
"""StructlogAdapter — default LoggingPort implementation using structlog.

Dispatch binds ``trigger_handler`` and ``trigger_context`` into structlog's
context variables, so every line logged from inside a handler method carries
them once ``merge_contextvars`` is in the processor chain.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

from triggerfly.core.config import Config

_RENDERERS: dict[str, Any] = {
    "console": lambda: structlog.dev.ConsoleRenderer(colors=False),
    "json": lambda: structlog.processors.JSONRenderer(sort_keys=True),
    "logfmt": lambda: structlog.processors.LogfmtRenderer(),
}


class StructlogAdapter:
    """Logging adapter backed by structlog over the stdlib ``logging`` tree."""

    def __init__(self) -> None:
        self._root_level: str = "INFO"
        self._format: str = "console"
        self._module_levels: dict[str, str] = {}

    def configure(self, config: Config) -> None:
        """Read ``triggerfly.logging`` and install the structlog pipeline.

        ``level.root`` sets the root level, any other key under ``level``
        names a logger. ``format`` is one of ``console``, ``json``, ``logfmt``.
        """
        levels = {k: str(v).upper() for k, v in config.get_section("triggerfly.logging.level").items()}
        self._root_level = levels.pop("root", "INFO")
        self._module_levels = levels

        fmt = str(config.get("triggerfly.logging.format", "console")).lower()
        if fmt not in _RENDERERS:
            raise ValueError(f"Unknown log format '{fmt}', expected one of {sorted(_RENDERERS)}")
        self._format = fmt

        structlog.configure(
            processors=self._processors(),
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=True,
        )
        logging.basicConfig(
            format="%(message)s",
            stream=sys.stdout,
            level=self._level(self._root_level),
            force=True,
        )
        for name, level in self._module_levels.items():
            self.set_level(name, level)

    def get_logger(self, name: str) -> Any:
        return structlog.get_logger(name)

    def set_level(self, name: str, level: str) -> None:
        """Set the level of one stdlib logger; unknown level names fall back to INFO."""
        logging.getLogger(name).setLevel(self._level(level))

    def _processors(self) -> list[structlog.types.Processor]:
        return [
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            _RENDERERS[self._format](),
        ]

    @staticmethod
    def _level(name: str) -> int:
        return getattr(logging, name.upper(), logging.INFO)

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
"""Layered ``triggerfly.*`` settings: bundled defaults, a YAML/TOML file, then env vars."""

from __future__ import annotations

import importlib.resources
import os
import tomllib
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar, cast

import yaml  # type: ignore[import-untyped]
from pydantic import BaseModel, ValidationError

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)

ENV_PREFIX = "TRIGGERFLY_"

_PREFIX_ATTR = "__triggerfly_config_prefix__"


def config_properties(prefix: str) -> Callable[[type[T]], type[T]]:
    """Mark a Pydantic model as bound to the settings under *prefix*.

    Usage:
        @config_properties(prefix="triggerfly.trigger")
        class TriggerProperties(BaseModel):
            default_max_loop_count: int = Field(default=5, ge=-1)
    """

    def decorator(cls: type[T]) -> type[T]:
        setattr(cls, _PREFIX_ATTR, prefix)
        return cls

    return decorator


def env_key(key: str) -> str:
    """Name of the environment variable that overrides *key*.

    ``triggerfly.trigger.id_field`` maps to ``TRIGGERFLY_TRIGGER_ID_FIELD``.
    """
    name = key.removeprefix("triggerfly.")
    return ENV_PREFIX + name.upper().replace(".", "_").replace("-", "_")


def _read(path: Path) -> dict[str, Any]:
    if path.suffix == ".toml":
        return tomllib.loads(path.read_text()) or {}
    return yaml.safe_load(path.read_text()) or {}


def _bundled_defaults() -> dict[str, Any]:
    resource = importlib.resources.files("triggerfly.resources").joinpath("triggerfly-defaults.yaml")
    return yaml.safe_load(resource.read_text()) or {}


def _merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in overlay.items():
        current = merged.get(key)
        merged[key] = _merge(current, value) if isinstance(current, dict) and isinstance(value, dict) else value
    return merged


class Config:
    """Nested settings read with dot-notation keys.

    An environment variable named by :func:`env_key` wins over the stored
    value, so ``TRIGGERFLY_TRIGGER_DEFAULT_MAX_LOOP_COUNT=10`` raises the loop
    limit without touching the file.
    """

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = data or {}

    @classmethod
    def defaults(cls) -> Config:
        """Only the settings bundled in ``triggerfly-defaults.yaml``."""
        return cls(_bundled_defaults())

    @classmethod
    def from_file(cls, path: str | Path, load_defaults: bool = True) -> Config:
        """Overlay the YAML or TOML file at *path* on the bundled defaults.

        A missing file leaves the defaults in place.
        """
        path = Path(path)
        data = _bundled_defaults() if load_defaults else {}
        if path.exists():
            data = _merge(data, _read(path))
        return cls(data)

    def _lookup(self, key: str) -> Any:
        node: Any = self._data
        for part in key.split("."):
            if not isinstance(node, dict):
                return None
            node = node.get(part)
        return node

    def get(self, key: str, default: Any = None) -> Any:
        override = os.environ.get(env_key(key))
        if override is not None:
            return override
        value = self._lookup(key)
        return default if value is None else value

    def get_section(self, prefix: str) -> dict[str, Any]:
        section = self._lookup(prefix)
        return dict(section) if isinstance(section, dict) else {}

    def bind(self, model: type[M]) -> M:
        """Validate the section under *model*'s ``@config_properties`` prefix.

        Each field may be overridden from the environment. Raises
        ``ValueError`` when the model is undecorated or validation fails.
        """
        prefix = getattr(model, _PREFIX_ATTR, None)
        if prefix is None:
            raise ValueError(f"{model.__name__} is not decorated with @config_properties")

        values = self.get_section(prefix)
        for name in model.model_fields:
            value = self.get(f"{prefix}.{name}")
            if value is not None:
                values[name] = value
        try:
            return cast(M, model.model_validate(values))
        except ValidationError as exc:
            raise ValueError(
                f"Configuration validation failed for '{model.__name__}' (prefix='{prefix}'):\n{exc}"
            ) from exc

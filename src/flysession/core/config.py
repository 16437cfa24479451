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
"""Session configuration: YAML/TOML files, environment overrides, dataclass binding.

Lookup order for a dotted key such as ``session.store``:

1. the environment variable named by :func:`env_key_for` (``SESSION_STORE``)
2. the loaded file or dict
3. the default passed by the caller, or the dataclass default when binding

String values may reference other values as ``${session.cookie_name}``,
environment variables as ``${SESSION_SECRET}``, with an optional fallback
after a colon: ``${SESSION_SECRET:dev-secret}``.
"""

from __future__ import annotations

import dataclasses
import os
import re
import tomllib
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any, TypeVar, get_type_hints

import yaml  # type: ignore[import-untyped]

T = TypeVar("T")

_PREFIX_ATTR = "__flysession_config_prefix__"
_PLACEHOLDER = re.compile(r"\$\{([^}]+)\}")
_MAX_PLACEHOLDER_DEPTH = 10
_MISSING = object()


def config_properties(prefix: str) -> Callable[[type[T]], type[T]]:
    """Class decorator binding a dataclass to the keys under *prefix*.

    ::

        @config_properties(prefix="session")
        @dataclass
        class SessionProperties:
            store: str | None = None
    """

    def decorator(cls: type[T]) -> type[T]:
        setattr(cls, _PREFIX_ATTR, prefix)
        return cls

    return decorator


def env_key_for(key: str) -> str:
    """Return the environment variable that overrides *key*.

    ``session.cookie_name`` maps to ``SESSION_COOKIE_NAME``.
    """
    return re.sub(r"[.\-]", "_", key).upper()


def _lookup(data: Mapping[str, Any], key: str) -> Any:
    """Walk *data* along the dotted *key*; ``_MISSING`` when a segment is absent."""
    node: Any = data
    for segment in key.split("."):
        if not isinstance(node, Mapping) or node.get(segment) is None:
            return _MISSING
        node = node[segment]
    return node


def _merge(base: Mapping[str, Any], overlay: Mapping[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in overlay.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = _merge(current, value)
        else:
            merged[key] = value
    return merged


def _read_file(path: Path) -> dict[str, Any]:
    if path.suffix == ".toml":
        return tomllib.loads(path.read_text(encoding="utf-8"))
    return yaml.safe_load(path.read_text(encoding="utf-8")) or {}


class Config:
    """Read-only view over nested configuration data."""

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = data or {}
        self._sources: list[str] = []

    @classmethod
    def from_file(cls, path: str | Path, active_profiles: list[str] | None = None) -> Config:
        """Load *path* and, for each active profile, the overlay beside it.

        For ``session.yaml`` and profile ``dev`` the overlay is
        ``session-dev.yaml``. A missing base file yields an empty config,
        which still honours environment overrides.
        """
        path = Path(path)
        config = cls()
        if not path.exists():
            return config

        config._data = _read_file(path)
        config._sources.append(str(path))
        for profile in active_profiles or []:
            overlay = path.with_name(f"{path.stem}-{profile}{path.suffix}")
            if overlay.exists():
                config._data = _merge(config._data, _read_file(overlay))
                config._sources.append(f"{overlay} (profile: {profile})")
        return config

    @property
    def loaded_sources(self) -> list[str]:
        """Files merged into this config, base file first."""
        return list(self._sources)

    def to_dict(self) -> dict[str, Any]:
        return dict(self._data)

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value for the dotted *key*, or *default*.

        Raises:
            ValueError: If a ``${...}`` placeholder in the value cannot be
                resolved or references itself.
        """
        env_value = os.environ.get(env_key_for(key))
        if env_value is not None:
            return env_value

        value = _lookup(self._data, key)
        if value is _MISSING:
            return default
        if isinstance(value, str):
            return self._expand(value, 0)
        return value

    def get_section(self, prefix: str) -> dict[str, Any]:
        """Return the mapping under *prefix*, or ``{}``."""
        section = _lookup(self._data, prefix)
        return dict(section) if isinstance(section, Mapping) else {}

    def bind(self, config_cls: type[T]) -> T:
        """Instantiate a :func:`config_properties` dataclass from this config.

        Each field is read with :meth:`get`, so an environment variable
        overrides a single field without touching the others. Strings are
        converted to ``int``, ``float`` or ``bool`` fields.
        """
        prefix = getattr(config_cls, _PREFIX_ATTR, None)
        if prefix is None:
            raise ValueError(f"{config_cls.__name__} is not decorated with @config_properties")

        hints = get_type_hints(config_cls)
        values: dict[str, Any] = {}
        for field in dataclasses.fields(config_cls):  # type: ignore[arg-type]
            raw = self.get(f"{prefix}.{field.name}", _MISSING)
            if raw is not _MISSING:
                values[field.name] = _coerce(raw, hints.get(field.name))
        return config_cls(**values)

    def _expand(self, value: str, depth: int) -> str:
        if "${" not in value:
            return value
        if depth > _MAX_PLACEHOLDER_DEPTH:
            raise ValueError(f"Placeholders in '{value}' nest too deeply; check for a circular reference")

        def substitute(match: re.Match[str]) -> str:
            name, has_fallback, fallback = match.group(1).partition(":")
            env_value = os.environ.get(name)
            if env_value is not None:
                return env_value
            referenced = _lookup(self._data, name)
            if referenced is not _MISSING:
                return self._expand(str(referenced), depth + 1)
            if has_fallback:
                return fallback
            raise ValueError(f"Cannot resolve placeholder '${{{match.group(1)}}}'")

        return _PLACEHOLDER.sub(substitute, value)


def _coerce(value: Any, expected: Any) -> Any:
    """Convert an environment or placeholder string to the field's scalar type."""
    if not isinstance(value, str):
        return value
    if expected in (bool, bool | None):
        return value.strip().lower() in ("true", "1", "yes", "on")
    if expected in (int, int | None):
        return int(value)
    if expected in (float, float | None):
        return float(value)
    return value

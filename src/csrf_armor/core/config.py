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
"""Layered configuration with YAML/TOML files, env vars, and model binding."""

from __future__ import annotations

import importlib.resources
import os
import re
import tomllib
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

import yaml  # type: ignore[import-untyped]
from pydantic import BaseModel, ValidationError

from csrf_armor.kernel.exceptions import ConfigurationException

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)

_PLACEHOLDER_RE = re.compile(r"\$\{([^}]+)\}")

_CONFIG_PROPERTIES_ATTR = "__csrf_config_prefix__"

ENV_PREFIX = "CSRF_"


def config_properties(prefix: str) -> Callable[[type[T]], type[T]]:
    """Mark a Pydantic model as bindable to a configuration prefix.

    Usage:
        @config_properties(prefix="csrf.cookie")
        class CookieSettings(BaseModel):
            name: str = "csrf-token"
    """

    def decorator(cls: type[T]) -> type[T]:
        setattr(cls, _CONFIG_PROPERTIES_ATTR, prefix)
        return cls

    return decorator


class Config:
    """Hierarchical configuration with dot-notation access and env var overrides.

    Priority (highest wins):
    1. Environment variables (``CSRF_SECTION_KEY`` format, via :meth:`get`)
    2. Configuration dict / YAML / TOML file values
    3. Bundled defaults (``csrf-defaults.yaml``)
    """

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = data or {}
        self._loaded_sources: list[str] = []

    @property
    def loaded_sources(self) -> list[str]:
        """List of config file paths that were loaded, in merge order."""
        return list(self._loaded_sources)

    def to_dict(self) -> dict[str, Any]:
        """Return a shallow copy of the raw configuration data."""
        return dict(self._data)

    @classmethod
    def from_defaults(cls) -> Config:
        """Configuration holding only the bundled defaults."""
        instance = cls(cls._load_defaults())
        instance._loaded_sources = ["csrf-defaults.yaml (defaults)"]
        return instance

    @classmethod
    def from_file(
        cls,
        path: str | Path,
        active_profiles: list[str] | None = None,
        load_defaults: bool = True,
    ) -> Config:
        """Load configuration from a YAML or TOML file.

        Profile overlays named ``<stem>-<profile><suffix>`` next to *path* are
        merged on top, in the order given.
        """
        path = Path(path)
        data: dict[str, Any] = {}
        sources: list[str] = []

        if load_defaults:
            data = cls._load_defaults()
            sources.append("csrf-defaults.yaml (defaults)")

        if path.exists():
            data = cls._deep_merge(data, cls._load_config_data(path))
            sources.append(str(path))

            for profile in active_profiles or []:
                profile_path = path.parent / f"{path.stem}-{profile}{path.suffix}"
                if profile_path.exists():
                    data = cls._deep_merge(data, cls._load_config_data(profile_path))
                    sources.append(f"{profile_path} (profile: {profile})")

        instance = cls(data)
        instance._loaded_sources = sources
        return instance

    def merged(self, overrides: dict[str, Any]) -> Config:
        """Return a new Config with *overrides* deep-merged over this one."""
        instance = Config(self._deep_merge(self._data, overrides))
        instance._loaded_sources = [*self._loaded_sources, "overrides"]
        return instance

    @staticmethod
    def _load_config_data(path: Path) -> dict[str, Any]:
        """Load config data from a YAML or TOML file."""
        if path.suffix == ".toml":
            with open(path, "rb") as f:
                return tomllib.load(f) or {}
        with open(path) as f:
            return yaml.safe_load(f) or {}

    @staticmethod
    def _load_defaults() -> dict[str, Any]:
        """Load built-in defaults from csrf_armor.resources."""
        defaults_file = importlib.resources.files("csrf_armor.resources").joinpath("csrf-defaults.yaml")
        with importlib.resources.as_file(defaults_file) as p, open(p) as f:
            return yaml.safe_load(f) or {}

    @staticmethod
    def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
        """Recursively merge override into base, with override values winning."""
        merged = dict(base)
        for key, value in override.items():
            if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
                merged[key] = Config._deep_merge(merged[key], value)
            else:
                merged[key] = value
        return merged

    def _lookup(self, key: str) -> Any:
        """Walk the raw data along a dot-separated *key*; ``None`` if absent."""
        current: Any = self._data
        for part in key.split("."):
            if not isinstance(current, dict):
                return None
            current = current.get(part)
            if current is None:
                return None
        return current

    @staticmethod
    def env_key(key: str) -> str:
        """``csrf.token.expiry`` -> ``CSRF_TOKEN_EXPIRY``."""
        name = key.removeprefix("csrf.").upper().replace(".", "_").replace("-", "_")
        return ENV_PREFIX + name

    def get(self, key: str, default: Any = None) -> Any:
        """Get a value by dot-notation key, checking env vars first.

        String values containing ``${...}`` placeholders are resolved:
        ``${ENV_VAR}`` from the environment, ``${config.key}`` from other
        config values, and ``${key:default}`` falls back to *default*.
        """
        env_val = os.environ.get(self.env_key(key))
        if env_val is not None:
            return env_val

        value = self._lookup(key)
        if value is None:
            return default
        return self._resolve_tree(value)

    def _resolve_placeholders(self, value: str, _depth: int = 0) -> str:
        if _depth > 10:
            raise ConfigurationException(
                f"Max recursion depth exceeded resolving placeholders in '{value}'. Check for circular references.",
                code="CONFIG_PLACEHOLDER",
            )

        def _replace(match: re.Match[str]) -> str:
            inner = match.group(1)
            ref_key, has_default, default_val = inner.partition(":")

            env_val = os.environ.get(ref_key)
            if env_val is not None:
                return env_val

            referenced = self._lookup(ref_key)
            if referenced is not None:
                resolved = str(referenced)
                if "${" in resolved:
                    resolved = self._resolve_placeholders(resolved, _depth + 1)
                return resolved

            if has_default:
                return default_val

            raise ConfigurationException(
                f"Cannot resolve placeholder '${{{inner}}}': not found in environment or config",
                code="CONFIG_PLACEHOLDER",
            )

        return _PLACEHOLDER_RE.sub(_replace, value)

    def _resolve_tree(self, value: Any) -> Any:
        if isinstance(value, dict):
            return {k: self._resolve_tree(v) for k, v in value.items()}
        if isinstance(value, list):
            return [self._resolve_tree(v) for v in value]
        if isinstance(value, str) and "${" in value:
            return self._resolve_placeholders(value)
        return value

    def resolved(self) -> Config:
        """Return a copy whose string values have every placeholder expanded.

        Values merged into the copy afterwards are kept literal by
        ``bind(..., resolve_placeholders=False)``.
        """
        instance = Config(self._resolve_tree(self._data))
        instance._loaded_sources = list(self._loaded_sources)
        return instance

    def get_section(self, prefix: str, resolve_placeholders: bool = True) -> dict[str, Any]:
        """Get all values under a prefix, with placeholders resolved."""
        section = self._lookup(prefix)
        if not isinstance(section, dict):
            return {}
        return self._resolve_tree(section) if resolve_placeholders else dict(section)

    def bind(self, model_cls: type[M], *, resolve_placeholders: bool = True) -> M:
        """Validate the section named by *model_cls*'s ``@config_properties`` prefix.

        With ``resolve_placeholders=False`` the section is validated as stored,
        so ``${...}`` sequences in values reach the model untouched.

        Raises:
            ConfigurationException: If the class is not decorated or the
                section fails validation.
        """
        prefix = getattr(model_cls, _CONFIG_PROPERTIES_ATTR, None)
        if prefix is None:
            raise ConfigurationException(
                f"{model_cls.__name__} is not decorated with @config_properties",
                code="CONFIG_BINDING",
            )

        try:
            return model_cls.model_validate(self.get_section(prefix, resolve_placeholders))
        except ValidationError as exc:
            raise ConfigurationException(
                f"Configuration validation failed for '{model_cls.__name__}' (prefix='{prefix}'):\n{exc}",
                code="CONFIG_VALIDATION",
                context={"prefix": prefix},
            ) from exc

# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Configuration models and loading helpers for the gerritfmt service.

Configuration is layered: model defaults, then an optional TOML document
(either top-level keys or a ``[gerritfmt]`` table, with ``$VAR``/``${VAR}``
references expanded from the environment), then ``GERRITFMT_*`` environment
overrides. The result is validated once at startup and passed down explicitly.
"""

from __future__ import annotations

import os
import re
import sys
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Final

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .constants import CHECKER_SCHEME, DEFAULT_POLL_DELAY, DEFAULT_USER_AGENT, ENV_PREFIX, MAX_MESSAGE_LENGTH
from .errors import ConfigError

CONFIG_SECTION: Final[str] = "gerritfmt"
_ENV_VAR_PATTERN: Final[re.Pattern[str]] = re.compile(r"\$(\w+)|\$\{([^}]+)\}")


def default_search_path() -> list[Path]:
    """Return the directory of the running program.

    Formatter binaries deployed next to the service entry point are found
    without touching ``PATH``.
    """

    program = sys.argv[0] if sys.argv and sys.argv[0] else sys.executable
    return [Path(program).resolve().parent]


class GerritConfig(BaseModel):
    """Connection settings for the review server."""

    model_config = ConfigDict(validate_assignment=True)

    url: str = "http://localhost:8080/"
    auth_file: Path | None = None
    user_agent: str = DEFAULT_USER_AGENT
    debug: bool = False
    timeout: float = Field(default=30.0, gt=0)

    @field_validator("url")
    @classmethod
    def _require_scheme(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            raise ValueError(f"gerrit url must start with http:// or https://, got {value!r}")
        return value


class ToolConfig(BaseModel):
    """Locations of the external formatter binaries."""

    model_config = ConfigDict(validate_assignment=True)

    search_path: list[Path] = Field(default_factory=default_search_path)
    gofmt: str = "gofmt"
    buildifier: str = "buildifier"
    java: str = "java"
    google_java_format_jar: str = "google-java-format.jar"
    timeout: float | None = Field(default=300.0, gt=0)

    def lookup_path(self, env: Mapping[str, str] | None = None) -> str:
        """Return the search directories followed by ``PATH`` as one string."""

        environ = os.environ if env is None else env
        parts = [str(entry) for entry in self.search_path]
        inherited = environ.get("PATH", "")
        if inherited:
            parts.append(inherited)
        return os.pathsep.join(parts)


class CheckerConfig(BaseModel):
    """Top-level configuration for the checker service."""

    model_config = ConfigDict(validate_assignment=True)

    scheme: str = CHECKER_SCHEME
    poll_delay: float = Field(default=DEFAULT_POLL_DELAY, ge=0)
    message_limit: int = Field(default=MAX_MESSAGE_LENGTH, ge=16)
    gerrit: GerritConfig = Field(default_factory=GerritConfig)
    tools: ToolConfig = Field(default_factory=ToolConfig)

    @field_validator("scheme")
    @classmethod
    def _validate_scheme(cls, value: str) -> str:
        if not value or ":" in value:
            raise ValueError("scheme must be non-empty and must not contain ':'")
        return value


_ENV_OVERRIDES: Final[dict[str, tuple[str, ...]]] = {
    "URL": ("gerrit", "url"),
    "AUTH_FILE": ("gerrit", "auth_file"),
    "USER_AGENT": ("gerrit", "user_agent"),
    "DEBUG": ("gerrit", "debug"),
    "POLL_DELAY": ("poll_delay",),
    "SCHEME": ("scheme",),
    "MESSAGE_LIMIT": ("message_limit",),
    "TOOL_TIMEOUT": ("tools", "timeout"),
}


def load_config(
    path: Path | None = None,
    *,
    env: Mapping[str, str] | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> CheckerConfig:
    """Build a :class:`CheckerConfig` from defaults, a TOML file and the environment.

    Args:
        path: Optional TOML document. A missing explicit path is an error.
        env: Environment used for expansion and overrides; defaults to ``os.environ``.
        overrides: Final mapping merged on top of everything else, typically
            from command-line options. ``None`` values are ignored.

    Returns:
        CheckerConfig: Validated configuration.

    Raises:
        ConfigError: If the document cannot be read or fails validation.
    """

    environ = os.environ if env is None else env
    data: dict[str, Any] = {}
    if path is not None:
        data = _expand_env(_read_document(path), environ)
    data = _deep_merge(data, _env_overrides(environ))
    if overrides:
        data = _deep_merge(data, {key: value for key, value in overrides.items() if value is not None})
    try:
        return CheckerConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"invalid configuration: {exc}") from exc


def _read_document(path: Path) -> dict[str, Any]:
    if not path.is_file():
        raise ConfigError(f"configuration file not found: {path}")
    try:
        with path.open("rb") as handle:
            document = tomllib.load(handle)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ConfigError(f"cannot read configuration {path}: {exc}") from exc
    section = document.get(CONFIG_SECTION)
    if section is None:
        return dict(document)
    if not isinstance(section, Mapping):
        raise ConfigError(f"[{CONFIG_SECTION}] in {path} must be a table")
    return dict(section)


def _env_overrides(env: Mapping[str, str]) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for suffix, keys in _ENV_OVERRIDES.items():
        value = env.get(f"{ENV_PREFIX}{suffix}")
        if value is None or value == "":
            continue
        cursor = result
        for key in keys[:-1]:
            cursor = cursor.setdefault(key, {})
        cursor[keys[-1]] = value
    search_path = env.get(f"{ENV_PREFIX}SEARCH_PATH")
    if search_path:
        result.setdefault("tools", {})["search_path"] = [entry for entry in search_path.split(os.pathsep) if entry]
    return result


def _deep_merge(base: Mapping[str, Any], update: Mapping[str, Any]) -> dict[str, Any]:
    merged: dict[str, Any] = dict(base)
    for key, value in update.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = _deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def _expand_env(data: Mapping[str, Any], env: Mapping[str, str]) -> dict[str, Any]:
    return {key: _expand_env_value(value, env) for key, value in data.items()}


def _expand_env_value(value: Any, env: Mapping[str, str]) -> Any:
    if isinstance(value, str):
        return _expand_env_string(value, env)
    if isinstance(value, Mapping):
        return {k: _expand_env_value(v, env) for k, v in value.items()}
    if isinstance(value, list):
        return [_expand_env_value(v, env) for v in value]
    return value


def _expand_env_string(value: str, env: Mapping[str, str]) -> str:
    def _replace(match: re.Match[str]) -> str:
        key = match.group(1) or match.group(2)
        if key is None:
            return match.group(0)
        return env.get(key, match.group(0))

    return _ENV_VAR_PATTERN.sub(_replace, value)


__all__ = [
    "CONFIG_SECTION",
    "CheckerConfig",
    "GerritConfig",
    "ToolConfig",
    "default_search_path",
    "load_config",
]

# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Shared services behind the CLI commands."""

from __future__ import annotations

import os
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from ..config import CheckerConfig, GerritConfig, load_config
from ..errors import ConfigError
from ..executor import collect_complaints
from ..formatters.dispatch import format_request
from ..formatters.registry import FormatterRegistry
from ..gerrit.client import GerritServer
from ..interfaces import ReviewServer
from ..models import FormatRequest, RevisionFile, RevisionFileSet, SourceFile


def build_overrides(
    *,
    url: str | None = None,
    auth_file: Path | None = None,
    debug: bool = False,
    delay: float | None = None,
) -> dict[str, Any]:
    """Translate command-line flags into a configuration override mapping.

    Unset flags are left out so they never mask values from the file or the
    environment.
    """

    gerrit: dict[str, Any] = {}
    if url is not None:
        gerrit["url"] = url
    if auth_file is not None:
        gerrit["auth_file"] = auth_file
    if debug:
        gerrit["debug"] = True
    overrides: dict[str, Any] = {}
    if gerrit:
        overrides["gerrit"] = gerrit
    if delay is not None:
        overrides["poll_delay"] = delay
    return overrides


def load_cli_config(config_path: Path | None, overrides: dict[str, Any]) -> CheckerConfig:
    """Load configuration for a command invocation.

    Raises:
        ConfigError: If the configuration is missing or invalid.
    """

    return load_config(config_path, overrides=overrides)


def build_server(config: GerritConfig) -> ReviewServer:
    """Return the review server client described by ``config``."""

    return GerritServer.from_config(config)


def local_name(path: Path) -> str:
    """Return ``path`` relative to the working directory.

    Raises:
        ConfigError: If ``path`` lies outside the working directory.
    """

    relative = os.path.relpath(path.resolve(), Path.cwd())
    if relative == os.pardir or relative.startswith(os.pardir + os.sep):
        raise ConfigError(f"{path}: must be inside the current directory")
    return Path(relative).as_posix()


def format_paths(registry: FormatterRegistry, language: str, paths: Sequence[Path]) -> list[str]:
    """Run the ``language`` formatter over local files and return the complaints.

    The file-name filter of the language is not applied, so any file can be
    checked, e.g. a commit message saved to disk.

    Raises:
        LanguageNotConfiguredError: If ``language`` has no formatter.
        ToolFailureError: If the formatter fails.
        ConfigError: If a file lies outside the working directory.
    """

    registry.require(language)
    contents = {local_name(path): path.read_bytes() for path in paths}
    request = FormatRequest(
        files=[SourceFile(language=language, name=name, content=content) for name, content in contents.items()],
    )
    originals = RevisionFileSet(files={name: RevisionFile(content=content) for name, content in contents.items()})
    reply = format_request(registry, request)
    return collect_complaints(reply.files, originals)


__all__ = ["build_overrides", "build_server", "format_paths", "load_cli_config", "local_name"]

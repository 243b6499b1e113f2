# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Command-line entry point for the gerritfmt service."""

from __future__ import annotations

from pathlib import Path

import typer

from .. import __version__
from ..checkers import list_checkers, register_checker
from ..config import CheckerConfig
from ..console import get_console_manager
from ..errors import ConfigError, GerritFmtError, GerritTransportError, LanguageNotConfiguredError
from ..executor import CheckExecutor
from ..formatters.registry import build_registry
from ..interfaces import ReviewServer
from ..logging import configure_logging, fail, info, ok, section, warn
from ..scheduler import PollingScheduler
from . import _runtime
from .typer_ext import create_typer

EXIT_FAILURE = 1
EXIT_USAGE = 2

app = create_typer(help="Formatting checker for the Gerrit checks plugin.", no_args_is_help=True)

_CONFIG_OPTION = typer.Option(None, "--config", "-c", help="TOML configuration file.")
_URL_OPTION = typer.Option(None, "--url", help="Gerrit base URL.")
_AUTH_OPTION = typer.Option(None, "--auth-file", help="File holding 'user:password' for HTTP basic auth.")
_DEBUG_OPTION = typer.Option(False, "--debug", help="Verbose logging and server-side request tracing.")
_EMOJI_OPTION = typer.Option(True, "--emoji/--no-emoji", help="Toggle emoji in CLI output.")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"gerritfmt {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit.",
    ),
) -> None:
    """Formatting checker for the Gerrit checks plugin."""


def _load(
    config_path: Path | None,
    *,
    url: str | None,
    auth_file: Path | None,
    debug: bool,
    emoji: bool,
    delay: float | None = None,
) -> CheckerConfig:
    overrides = _runtime.build_overrides(url=url, auth_file=auth_file, debug=debug, delay=delay)
    try:
        config = _runtime.load_cli_config(config_path, overrides)
    except ConfigError as exc:
        fail(str(exc), use_emoji=emoji)
        raise typer.Exit(code=EXIT_USAGE) from exc
    configure_logging(debug=config.gerrit.debug)
    return config


def _connect(config: CheckerConfig, *, emoji: bool) -> ReviewServer:
    try:
        return _runtime.build_server(config.gerrit)
    except ConfigError as exc:
        fail(str(exc), use_emoji=emoji)
        raise typer.Exit(code=EXIT_USAGE) from exc


@app.command("serve")
def serve_command(
    config_path: Path | None = _CONFIG_OPTION,
    url: str | None = _URL_OPTION,
    auth_file: Path | None = _AUTH_OPTION,
    delay: float | None = typer.Option(None, "--delay", min=0, help="Seconds to wait after an idle round."),
    rounds: int = typer.Option(0, "--rounds", min=0, help="Stop after this many rounds; 0 polls forever."),
    debug: bool = _DEBUG_OPTION,
    emoji: bool = _EMOJI_OPTION,
) -> None:
    """Poll the server for pending checks and post verdicts."""

    config = _load(config_path, url=url, auth_file=auth_file, debug=debug, emoji=emoji, delay=delay)
    build = build_registry(config.tools)
    for skipped in build.skipped:
        warn(f"{skipped.language} disabled: {skipped.reason}", use_emoji=emoji)
    server = _connect(config, emoji=emoji)
    executor = CheckExecutor(server, build.registry, scheme=config.scheme, message_limit=config.message_limit)
    scheduler = PollingScheduler(server, executor, scheme=config.scheme, delay=config.poll_delay)

    info(f"Polling {config.gerrit.url} for '{config.scheme}' checks", use_emoji=emoji)
    try:
        scheduler.serve(max_rounds=rounds or None)
    except KeyboardInterrupt:
        info("Interrupted", use_emoji=emoji)


@app.command("register")
def register_command(
    repository: str = typer.Argument(..., help="Repository the checker applies to."),
    language: str = typer.Argument(..., help="Language identifier, e.g. 'go' or 'commitmsg'."),
    update: bool = typer.Option(False, "--update", help="Update an existing checker instead of creating one."),
    config_path: Path | None = _CONFIG_OPTION,
    url: str | None = _URL_OPTION,
    auth_file: Path | None = _AUTH_OPTION,
    debug: bool = _DEBUG_OPTION,
    emoji: bool = _EMOJI_OPTION,
) -> None:
    """Create or update the checker for LANGUAGE on REPOSITORY."""

    config = _load(config_path, url=url, auth_file=auth_file, debug=debug, emoji=emoji)
    registry = build_registry(config.tools).registry
    server = _connect(config, emoji=emoji)
    try:
        checker = register_checker(server, registry, repository, language, update=update, scheme=config.scheme)
    except LanguageNotConfiguredError as exc:
        fail(str(exc), use_emoji=emoji)
        raise typer.Exit(code=EXIT_USAGE) from exc
    except GerritTransportError as exc:
        fail(str(exc), use_emoji=emoji)
        raise typer.Exit(code=EXIT_FAILURE) from exc
    ok(f"{'Updated' if update else 'Created'} checker {checker.uuid}", use_emoji=emoji)


@app.command("checkers")
def checkers_command(
    config_path: Path | None = _CONFIG_OPTION,
    url: str | None = _URL_OPTION,
    auth_file: Path | None = _AUTH_OPTION,
    debug: bool = _DEBUG_OPTION,
    emoji: bool = _EMOJI_OPTION,
) -> None:
    """List the checkers of the configured scheme."""

    config = _load(config_path, url=url, auth_file=auth_file, debug=debug, emoji=emoji)
    server = _connect(config, emoji=emoji)
    try:
        checkers = list_checkers(server, scheme=config.scheme)
    except GerritTransportError as exc:
        fail(str(exc), use_emoji=emoji)
        raise typer.Exit(code=EXIT_FAILURE) from exc
    if not checkers:
        info(f"No '{config.scheme}' checkers registered", use_emoji=emoji)
        return
    console = get_console_manager().get(color=False, emoji=emoji)
    for checker in checkers:
        console.print(f"{checker.uuid}  {checker.repository}  {checker.status}", markup=False, highlight=False)


@app.command("languages")
def languages_command(
    config_path: Path | None = _CONFIG_OPTION,
    emoji: bool = _EMOJI_OPTION,
) -> None:
    """List the languages that have a formatter."""

    config = _load(config_path, url=None, auth_file=None, debug=False, emoji=emoji)
    build = build_registry(config.tools)
    console = get_console_manager().get(color=False, emoji=emoji)
    for language in build.registry.languages():
        console.print(language, markup=False, highlight=False)
    for family in build.registry.families:
        console.print(f"{family.prefix}<Footer-Key>", markup=False, highlight=False)
    if build.skipped:
        section("Unavailable", use_color=False)
        for skipped in build.skipped:
            warn(f"{skipped.language}: {skipped.reason}", use_emoji=emoji)


@app.command("format")
def format_command(
    files: list[Path] = typer.Argument(..., exists=True, dir_okay=False, readable=True, help="Files to check."),
    language: str = typer.Option(..., "--language", "-l", help="Formatter language to apply."),
    config_path: Path | None = _CONFIG_OPTION,
    emoji: bool = _EMOJI_OPTION,
) -> None:
    """Check local FILES with a formatter and report the differences."""

    config = _load(config_path, url=None, auth_file=None, debug=False, emoji=emoji)
    registry = build_registry(config.tools).registry
    try:
        complaints = _runtime.format_paths(registry, language, files)
    except (ConfigError, LanguageNotConfiguredError) as exc:
        fail(str(exc), use_emoji=emoji)
        raise typer.Exit(code=EXIT_USAGE) from exc
    except GerritFmtError as exc:
        fail(f"tool failure: {exc}", use_emoji=emoji)
        raise typer.Exit(code=EXIT_FAILURE) from exc
    if complaints:
        for complaint in complaints:
            warn(complaint, use_emoji=emoji)
        raise typer.Exit(code=EXIT_FAILURE)
    ok(f"{len(files)} file(s) formatted correctly", use_emoji=emoji)


__all__ = ["app"]

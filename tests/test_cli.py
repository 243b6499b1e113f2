# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""CLI tests driven through typer's runner."""

from __future__ import annotations

import importlib
from dataclasses import dataclass, field
from pathlib import Path

import pytest
from typer.testing import CliRunner

from gerritfmt.checkers import checker_uuid
from gerritfmt.cli.app import app
from gerritfmt.config import GerritConfig
from gerritfmt.models import CheckState

from .helpers.fake_gerrit import FakeReviewServer


@dataclass
class CliHarness:
    server: FakeReviewServer
    configs: list[GerritConfig] = field(default_factory=list)


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def cli(monkeypatch: pytest.MonkeyPatch) -> CliHarness:
    """Route every CLI command to one in-memory server."""

    harness = CliHarness(server=FakeReviewServer(repository="repo"))

    def fake_build_server(config: GerritConfig) -> FakeReviewServer:
        harness.configs.append(config)
        return harness.server

    monkeypatch.setattr("gerritfmt.cli._runtime.build_server", fake_build_server)
    monkeypatch.setattr(importlib.import_module("gerritfmt.cli.app"), "configure_logging", lambda **_: None)
    return harness


def test_help_lists_commands_sorted(runner: CliRunner) -> None:
    result = runner.invoke(app, ["--help"])

    assert result.exit_code == 0
    positions = [result.stdout.index(name) for name in ("checkers", "format", "languages", "register", "serve")]
    assert positions == sorted(positions)


def test_version(runner: CliRunner) -> None:
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert result.stdout.startswith("gerritfmt ")


def test_register_creates_checker(runner: CliRunner, cli: CliHarness) -> None:
    result = runner.invoke(
        app,
        ["register", "repo", "commitmsg", "--url", "https://review.example.org/", "--no-emoji"],
    )

    uuid = checker_uuid("repo", "commitmsg")
    assert result.exit_code == 0, result.stdout
    assert f"Created checker {uuid}" in result.stdout
    assert uuid in cli.server.checkers
    assert cli.configs[0].url == "https://review.example.org/"


def test_register_unknown_language(runner: CliRunner, cli: CliHarness) -> None:
    result = runner.invoke(app, ["register", "repo", "cobol", "--no-emoji"])

    assert result.exit_code == 2
    assert "language 'cobol' not configured" in result.stdout
    assert cli.server.checkers == {}


def test_register_existing_checker_fails(runner: CliRunner, cli: CliHarness) -> None:
    cli.server.add_checker(checker_uuid("repo", "commitmsg"))

    result = runner.invoke(app, ["register", "repo", "commitmsg", "--no-emoji"])

    assert result.exit_code == 1
    assert "already exists" in result.stdout


def test_checkers_lists_scheme(runner: CliRunner, cli: CliHarness) -> None:
    mine = checker_uuid("repo", "commitmsg")
    cli.server.add_checker(mine)
    cli.server.add_checker(checker_uuid("repo", "go", scheme="other"))

    result = runner.invoke(app, ["checkers", "--no-emoji"])

    assert result.exit_code == 0
    assert f"{mine}  repo  ENABLED" in result.stdout
    assert "other:" not in result.stdout


def test_checkers_empty(runner: CliRunner, cli: CliHarness) -> None:
    result = runner.invoke(app, ["checkers", "--no-emoji"])

    assert result.exit_code == 0
    assert "No 'fmt' checkers registered" in result.stdout


def test_languages(runner: CliRunner, cli: CliHarness) -> None:
    result = runner.invoke(app, ["languages", "--no-emoji"])

    assert result.exit_code == 0
    assert "commitmsg" in result.stdout
    assert "commitfooter-<Footer-Key>" in result.stdout


def test_invalid_config_exits_with_usage_error(runner: CliRunner, cli: CliHarness) -> None:
    result = runner.invoke(app, ["checkers", "--url", "ftp://nope", "--no-emoji"])

    assert result.exit_code == 2
    assert "invalid configuration" in result.stdout


def test_missing_config_file(runner: CliRunner, cli: CliHarness, tmp_path: Path) -> None:
    result = runner.invoke(app, ["languages", "--config", str(tmp_path / "absent.toml"), "--no-emoji"])

    assert result.exit_code == 2
    assert "not found" in result.stdout


def test_serve_runs_bounded_rounds(runner: CliRunner, cli: CliHarness) -> None:
    uuid = checker_uuid("repo", "commitmsg")
    cli.server.add_checker(uuid)
    cli.server.add_revision(9, 1, {"/COMMIT_MSG": b"abc"})

    result = runner.invoke(app, ["serve", "--rounds", "2", "--delay", "0", "--no-emoji"])

    assert result.exit_code == 0, result.stdout
    assert "Polling" in result.stdout
    check = cli.server.state_of(9, 1, uuid)
    assert check.state == CheckState.FAILED
    assert check.message == "/COMMIT_MSG: must have multiple lines"


def test_format_reports_complaints(
    runner: CliRunner,
    cli: CliHarness,
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.chdir(tmp_path)
    (tmp_path / "good.txt").write_text("Subject\n\nBody\n", encoding="utf-8")
    (tmp_path / "bad.txt").write_text("Subject.\n\nBody\n", encoding="utf-8")

    clean = runner.invoke(app, ["format", "good.txt", "--language", "commitmsg", "--no-emoji"])
    dirty = runner.invoke(app, ["format", "good.txt", "bad.txt", "-l", "commitmsg", "--no-emoji"])

    assert clean.exit_code == 0
    assert "1 file(s) formatted correctly" in clean.stdout
    assert dirty.exit_code == 1
    assert "bad.txt: subject must not end in '.'" in dirty.stdout
    assert "good.txt" not in dirty.stdout


def test_format_with_footer_family(
    runner: CliRunner,
    cli: CliHarness,
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.chdir(tmp_path)
    (tmp_path / "msg").write_text("Subject\n\nChange-Id: I1\n", encoding="utf-8")

    result = runner.invoke(app, ["format", "msg", "-l", "commitfooter-Bug", "--no-emoji"])

    assert result.exit_code == 1
    assert "msg: footer 'Bug' not found" in result.stdout


def test_format_unknown_language(
    runner: CliRunner,
    cli: CliHarness,
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.chdir(tmp_path)
    (tmp_path / "a.cob").write_text("x", encoding="utf-8")

    result = runner.invoke(app, ["format", "a.cob", "-l", "cobol", "--no-emoji"])

    assert result.exit_code == 2
    assert "not configured" in result.stdout

# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.

"""Shared pytest fixtures."""

from __future__ import annotations

import stat
from collections.abc import Callable
from pathlib import Path

import pytest

from gerritfmt.formatters.registry import FormatterRegistry, builtin_entries, builtin_families

from .helpers.fake_gerrit import FakeReviewServer


@pytest.fixture
def fake_server() -> FakeReviewServer:
    """Return an empty in-memory review server for repository ``repo``."""
    return FakeReviewServer(repository="repo")


@pytest.fixture
def commit_registry() -> FormatterRegistry:
    """Return a registry holding only the built-in commit message linters."""
    return FormatterRegistry(builtin_entries(), builtin_families())


@pytest.fixture
def make_script(tmp_path: Path) -> Callable[[str, str], Path]:
    """Return a factory writing executable shell scripts into ``tmp_path/bin``."""

    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()

    def _make(name: str, body: str) -> Path:
        script = bin_dir / name
        script.write_text(f"#!/bin/sh\n{body}\n", encoding="utf-8")
        script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return script

    return _make


@pytest.fixture
def script_dir(tmp_path: Path, make_script: Callable[[str, str], Path]) -> Path:
    del make_script
    return tmp_path / "bin"


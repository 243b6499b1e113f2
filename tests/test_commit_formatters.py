# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for the commit message and commit footer linters."""

from __future__ import annotations

import pytest

from gerritfmt.formatters.commit import (
    CommitFooterFormatter,
    CommitMessageFormatter,
    check_commit_footer,
    check_commit_message,
)
from gerritfmt.models import SourceFile


@pytest.mark.parametrize(
    ("message", "expected"),
    [
        ("abc", "multiple lines"),
        ("", "multiple lines"),
        ("abc\ndef\n", "blank line"),
        ("x" * 80 + "\n", "70 chars"),
        ("x" * 71 + "\n\nbody", "70 chars"),
        ("abc.\n\ndef", "end in '.'"),
    ],
)
def test_commit_message_complaints(message: str, expected: str) -> None:
    assert expected in check_commit_message(message)


@pytest.mark.parametrize("message", ["abc\n\ndef", "x" * 70 + "\n\nbody", "abc\n"])
def test_commit_message_accepts_well_formed(message: str) -> None:
    assert check_commit_message(message) == ""


@pytest.mark.parametrize(
    ("message", "expected"),
    [
        ("abc", "two paragraphs"),
        ("abc\n\ndef\n", "not found"),
        ("abc\n\ndef", "not found"),
        ("abc.\n\nmyfooter:abc", "space after"),
        ("abc\n\nmyfooter: here\n\nChange-Id: I1", "not found"),
    ],
)
def test_commit_footer_complaints(message: str, expected: str) -> None:
    assert expected in check_commit_footer(message, "myfooter")


def test_commit_footer_accepts_footer_in_last_paragraph() -> None:
    assert check_commit_footer("abc\n\nChange-Id: I1\nmyfooter: value!", "myfooter") == ""


def test_commit_footer_requires_key() -> None:
    assert "non-empty" in check_commit_footer("abc\n\nChange-Id: I1", "")


def test_commit_message_formatter_reports_without_content() -> None:
    result = CommitMessageFormatter().format(
        [SourceFile(language="commitmsg", name="/COMMIT_MSG", content=b"abc")],
    )

    assert len(result.files) == 1
    answer = result.files[0]
    assert answer.name == "/COMMIT_MSG"
    assert answer.content is None
    assert answer.message == "must have multiple lines"
    assert result.output == ""


def test_commit_message_formatter_echoes_clean_message() -> None:
    content = b"Fix the frobnicator\n\nIt was broken.\n"
    result = CommitMessageFormatter().format(
        [SourceFile(language="commitmsg", name="/COMMIT_MSG", content=content)],
    )

    assert result.files[0].content == content
    assert result.files[0].message == ""


def test_commit_footer_formatter_uses_configured_key() -> None:
    formatter = CommitFooterFormatter("Bug")
    good = SourceFile(language="commitfooter-Bug", name="a", content=b"subject\n\nBug: 123")
    bad = SourceFile(language="commitfooter-Bug", name="b", content=b"subject\n\nChange-Id: I1")

    result = formatter.format([good, bad])

    assert [answer.message for answer in result.files] == ["", "footer 'Bug' not found"]
    assert result.files[0].content == good.content

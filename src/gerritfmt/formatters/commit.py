# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Commit message linters exposed as formatter strategies.

Both strategies work on the ``/COMMIT_MSG`` pseudo-file. They never rewrite
anything: a clean message is echoed back unchanged, a violation is reported
through :attr:`FormattedFile.message` with the content left unset.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass

from ..constants import MAX_SUBJECT_LENGTH
from ..models import FormattedFile, FormatResult, SourceFile


def check_commit_message(message: str) -> str:
    """Return the first complaint about ``message``, or an empty string."""

    lines = message.split("\n")
    if len(lines) < 2:
        return "must have multiple lines"

    if len(lines[1]) > 1:
        return "subject and body must be separated by blank line"

    if len(lines[0]) > MAX_SUBJECT_LENGTH:
        return f"subject must be less than {MAX_SUBJECT_LENGTH} chars"

    if lines[0].endswith("."):
        return "subject must not end in '.'"

    return ""


def check_commit_footer(message: str, footer: str) -> str:
    """Return a complaint unless the last paragraph carries ``footer: value``.

    Args:
        message: Full commit message.
        footer: Required footer key, e.g. ``Change-Id``.

    Returns:
        str: Complaint text, or an empty string when the footer is present.
    """

    if not footer:
        return "required footer should be non-empty"

    blocks = message.split("\n\n")
    if len(blocks) < 2:
        return "gerrit changes must have two paragraphs."

    for line in blocks[-1].split("\n"):
        key, sep, value = line.partition(":")
        if not sep or key != footer:
            continue
        if not value.startswith(" "):
            return f"footer {footer!r} should have space after ':'"
        return ""

    return f"footer {footer!r} not found"


def _lint(files: Sequence[SourceFile], check: Callable[[str], str]) -> FormatResult:
    out: list[FormattedFile] = []
    for source in files:
        complaint = check(source.content.decode("utf-8", errors="replace"))
        if complaint:
            out.append(FormattedFile(name=source.name, message=complaint))
        else:
            out.append(FormattedFile(name=source.name, content=source.content))
    return FormatResult(files=out)


class CommitMessageFormatter:
    """Enforce subject/body layout of commit messages."""

    def format(self, files: Sequence[SourceFile]) -> FormatResult:
        return _lint(files, check_commit_message)


@dataclass(frozen=True, slots=True)
class CommitFooterFormatter:
    """Require a ``key: value`` footer in the last paragraph of a commit message."""

    footer: str

    def format(self, files: Sequence[SourceFile]) -> FormatResult:
        return _lint(files, self._check)

    def _check(self, message: str) -> str:
        return check_commit_footer(message, self.footer)


__all__ = [
    "CommitFooterFormatter",
    "CommitMessageFormatter",
    "check_commit_footer",
    "check_commit_message",
]

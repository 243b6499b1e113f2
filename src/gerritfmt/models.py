# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Core data models shared across the gerritfmt package.

The review-server models mirror the JSON entities of the Gerrit checks plugin
(``CheckerInfo``, ``CheckInput``, ``PendingChecksInfo`` ...) closely enough to
be validated straight from decoded responses. The formatting models describe
the request/reply protocol between the executor and formatter strategies.
"""

from __future__ import annotations

import re
from datetime import UTC, datetime
from enum import StrEnum
from re import Pattern
from typing import Final

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

_TIMESTAMP_LAYOUT: Final[str] = "%Y-%m-%d %H:%M:%S"
_FRACTION_DIGITS: Final[int] = 9
_MICROSECOND_DIGITS: Final[int] = 6


def format_timestamp(value: datetime) -> str:
    """Render ``value`` in Gerrit's wire format (UTC, nanosecond precision).

    Args:
        value: Timestamp to render. Naive values are treated as UTC.

    Returns:
        str: Timestamp formatted as ``YYYY-MM-DD hh:mm:ss.nnnnnnnnn``.
    """

    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    utc = value.astimezone(UTC)
    fraction = f"{utc.microsecond:0{_MICROSECOND_DIGITS}d}".ljust(_FRACTION_DIGITS, "0")
    return f"{utc.strftime(_TIMESTAMP_LAYOUT)}.{fraction}"


def parse_timestamp(raw: str) -> datetime:
    """Parse a Gerrit wire timestamp into an aware UTC :class:`datetime`.

    Args:
        raw: Timestamp text such as ``"2020-04-06 09:06:20.000000000"``.

    Returns:
        datetime: Parsed timestamp; sub-microsecond digits are dropped.

    Raises:
        ValueError: If ``raw`` does not follow the wire format.
    """

    base, _, fraction = raw.strip().partition(".")
    parsed = datetime.strptime(base, _TIMESTAMP_LAYOUT).replace(tzinfo=UTC)
    if fraction:
        if not fraction.isdigit():
            raise ValueError(f"invalid timestamp fraction in {raw!r}")
        micros = int(fraction[:_MICROSECOND_DIGITS].ljust(_MICROSECOND_DIGITS, "0"))
        parsed = parsed.replace(microsecond=micros)
    return parsed


def _coerce_timestamp(value: object) -> object:
    if isinstance(value, str):
        return parse_timestamp(value)
    return value


class CheckState(StrEnum):
    """Verdict states understood by the checks plugin."""

    UNSET = "UNSET"
    RUNNING = "RUNNING"
    SUCCESSFUL = "SUCCESSFUL"
    FAILED = "FAILED"
    IRRELEVANT = "IRRELEVANT"

    @property
    def terminal(self) -> bool:
        """Return ``True`` for states that end a check."""
        return self in _TERMINAL_STATES


_TERMINAL_STATES: Final[frozenset[CheckState]] = frozenset(
    {CheckState.SUCCESSFUL, CheckState.FAILED, CheckState.IRRELEVANT},
)


class FileStatus(StrEnum):
    """Status of a file within a revision."""

    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"
    RENAMED = "renamed"
    COPIED = "copied"
    REWRITTEN = "rewritten"


_STATUS_CODES: Final[dict[str, FileStatus]] = {
    "A": FileStatus.ADDED,
    "M": FileStatus.MODIFIED,
    "D": FileStatus.DELETED,
    "R": FileStatus.RENAMED,
    "C": FileStatus.COPIED,
    "W": FileStatus.REWRITTEN,
}


class RevisionFile(BaseModel):
    """A single file of a revision with its content when not deleted."""

    model_config = ConfigDict(frozen=True)

    status: FileStatus = FileStatus.MODIFIED
    content: bytes | None = None

    @field_validator("status", mode="before")
    @classmethod
    def _coerce_status(cls, value: object) -> object:
        """Accept Gerrit's single-letter status codes."""
        if value is None:
            return FileStatus.MODIFIED
        if isinstance(value, str) and value in _STATUS_CODES:
            return _STATUS_CODES[value]
        return value

    @property
    def deleted(self) -> bool:
        return self.status is FileStatus.DELETED


class RevisionFileSet(BaseModel):
    """Files touched by one (change, patch set) pair."""

    model_config = ConfigDict(frozen=True)

    files: dict[str, RevisionFile] = Field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.files)

    def __contains__(self, name: object) -> bool:
        return name in self.files

    def get(self, name: str) -> RevisionFile | None:
        """Return the file called ``name`` or ``None``."""
        return self.files.get(name)

    def matching(self, pattern: Pattern[str]) -> list[tuple[str, RevisionFile]]:
        """Return non-deleted files whose name matches ``pattern``, sorted by name."""
        return [
            (name, entry)
            for name, entry in sorted(self.files.items())
            if not entry.deleted and pattern.search(name)
        ]


class SourceFile(BaseModel):
    """A file submitted for formatting."""

    model_config = ConfigDict(frozen=True)

    language: str
    name: str
    content: bytes = b""


class FormattedFile(BaseModel):
    """Formatter answer for one file.

    ``content`` holds the (possibly reformatted) bytes. When a strategy decides
    not to reformat it leaves ``content`` unset and explains itself in
    ``message`` instead.
    """

    name: str
    content: bytes | None = None
    message: str = ""


class FormatRequest(BaseModel):
    """Ordered collection of files, all belonging to one revision."""

    files: list[SourceFile] = Field(default_factory=list)


class FormatReply(BaseModel):
    """Formatter answers for a :class:`FormatRequest`."""

    files: list[FormattedFile] = Field(default_factory=list)


class FormatResult(BaseModel):
    """Output of a single formatter strategy invocation."""

    files: list[FormattedFile] = Field(default_factory=list)
    output: str = ""


class CheckablePatchSet(BaseModel):
    """Patch set coordinates attached to a pending check."""

    repository: str = ""
    change_number: int
    patch_set_id: int

    def __str__(self) -> str:
        return f"{self.repository}/{self.change_number}/{self.patch_set_id}"


class PendingCheck(BaseModel):
    """State of an owed check as reported by the server."""

    state: str = "NOT_STARTED"


class PendingCheckEntry(BaseModel):
    """A revision together with the checker UUIDs still owed a verdict."""

    patch_set: CheckablePatchSet
    pending_checks: dict[str, PendingCheck] = Field(default_factory=dict)

    @property
    def change_id(self) -> str:
        return str(self.patch_set.change_number)

    @property
    def patch_set_id(self) -> int:
        return self.patch_set.patch_set_id


class CheckerInput(BaseModel):
    """Payload used to create or update a checker."""

    uuid: str
    name: str
    repository: str
    description: str = ""
    status: str = "ENABLED"
    query: str | None = None


class CheckerInfo(BaseModel):
    """Checker definition as returned by the server."""

    uuid: str
    name: str = ""
    description: str = ""
    url: str = ""
    repository: str = ""
    status: str = ""
    blocking: list[str] = Field(default_factory=list)
    query: str | None = None
    created: datetime | None = None
    updated: datetime | None = None

    @field_validator("created", "updated", mode="before")
    @classmethod
    def _coerce_times(cls, value: object) -> object:
        return _coerce_timestamp(value)


class CheckInput(BaseModel):
    """Payload used to post the state of a check."""

    checker_uuid: str
    state: CheckState
    message: str | None = None
    url: str | None = None
    started: datetime | None = None
    finished: datetime | None = None

    @field_serializer("started", "finished")
    def _serialize_time(self, value: datetime | None) -> str | None:
        return format_timestamp(value) if value is not None else None


class CheckInfo(BaseModel):
    """Check state as returned by the server."""

    repository: str = ""
    change_number: int = 0
    patch_set_id: int = 0
    checker_uuid: str
    state: str
    message: str | None = None
    url: str | None = None
    started: datetime | None = None
    finished: datetime | None = None
    created: datetime | None = None
    updated: datetime | None = None
    checker_name: str | None = None
    checker_status: str | None = None

    @field_validator("started", "finished", "created", "updated", mode="before")
    @classmethod
    def _coerce_times(cls, value: object) -> object:
        return _coerce_timestamp(value)


def compile_pattern(pattern: str | Pattern[str]) -> Pattern[str]:
    """Return ``pattern`` compiled, leaving precompiled patterns untouched."""
    return pattern if isinstance(pattern, re.Pattern) else re.compile(pattern)


__all__ = [
    "CheckInfo",
    "CheckInput",
    "CheckState",
    "CheckablePatchSet",
    "CheckerInfo",
    "CheckerInput",
    "FileStatus",
    "FormatReply",
    "FormatRequest",
    "FormatResult",
    "FormattedFile",
    "PendingCheck",
    "PendingCheckEntry",
    "RevisionFile",
    "RevisionFileSet",
    "SourceFile",
    "compile_pattern",
    "format_timestamp",
    "parse_timestamp",
]

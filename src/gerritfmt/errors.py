# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Exception hierarchy shared by the check engine and its collaborators."""

from __future__ import annotations


class GerritFmtError(Exception):
    """Base class for all errors raised by gerritfmt."""


class ConfigError(GerritFmtError):
    """Raised when configuration input is invalid."""


class IrrelevantCheck(GerritFmtError):
    """Signal that a revision has no files the checker applies to.

    This is not a failure: the executor turns it into an ``IRRELEVANT`` verdict.
    """


class LanguageNotConfiguredError(GerritFmtError):
    """Raised when a language has no registered formatter."""

    def __init__(self, language: str) -> None:
        """Initialise the error for ``language``.

        Args:
            language: Language identifier that failed to resolve.
        """

        super().__init__(f"language {language!r} not configured")
        self.language = language


class ToolFailureError(GerritFmtError):
    """Raised when a formatter strategy cannot produce a result.

    The exception text is a short summary suitable for the review server; the
    complete tool output is kept on :attr:`output` for local logging.
    """

    def __init__(self, message: str, *, output: str = "") -> None:
        """Initialise the error with a summary and optional tool output.

        Args:
            message: Short human-readable description of the failure.
            output: Combined stdout/stderr captured from the tool, if any.
        """

        super().__init__(message)
        self.output = output


class ProtocolViolationError(GerritFmtError):
    """Raised when a formatter returns a file that was never requested."""


class GerritTransportError(GerritFmtError):
    """Raised when talking to the review server fails."""

    def __init__(self, message: str, *, url: str | None = None, status: int | None = None) -> None:
        """Initialise the error with request details.

        Args:
            message: Description of the failure.
            url: URL of the failing request when known.
            status: HTTP status code when the server answered.
        """

        super().__init__(message)
        self.url = url
        self.status = status


__all__ = [
    "ConfigError",
    "GerritFmtError",
    "GerritTransportError",
    "IrrelevantCheck",
    "LanguageNotConfiguredError",
    "ProtocolViolationError",
    "ToolFailureError",
]

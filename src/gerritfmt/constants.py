# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Shared constants used across gerritfmt modules."""

from __future__ import annotations

import re
from typing import Final

CHECKER_SCHEME: Final[str] = "fmt"
"""Scheme under which all checkers of this service are registered."""

COMMIT_MSG_FILE: Final[str] = "/COMMIT_MSG"
"""Name of the pseudo-file holding the commit message of a revision."""

COMMIT_MSG_PATTERN: Final[str] = f"^{re.escape(COMMIT_MSG_FILE)}$"
COMMIT_MSG_LANGUAGE: Final[str] = "commitmsg"
COMMIT_FOOTER_PREFIX: Final[str] = "commitfooter-"

MAX_SUBJECT_LENGTH: Final[int] = 70
MAX_MESSAGE_LENGTH: Final[int] = 1000
TRUNCATION_MARKER: Final[str] = "..."
COMPLAINT_SEPARATOR: Final[str] = ", "

DEFAULT_POLL_DELAY: Final[float] = 10.0
DEFAULT_USER_AGENT: Final[str] = "gerritfmt"
STAGING_PREFIX: Final[str] = "gerritfmt"

ENV_PREFIX: Final[str] = "GERRITFMT_"

__all__ = [
    "CHECKER_SCHEME",
    "COMMIT_FOOTER_PREFIX",
    "COMMIT_MSG_FILE",
    "COMMIT_MSG_LANGUAGE",
    "COMMIT_MSG_PATTERN",
    "COMPLAINT_SEPARATOR",
    "DEFAULT_POLL_DELAY",
    "DEFAULT_USER_AGENT",
    "ENV_PREFIX",
    "MAX_MESSAGE_LENGTH",
    "MAX_SUBJECT_LENGTH",
    "STAGING_PREFIX",
    "TRUNCATION_MARKER",
]

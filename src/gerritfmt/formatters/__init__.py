# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Formatter strategies, their registry and request dispatch."""

from __future__ import annotations

from .base import Formatter
from .commit import CommitFooterFormatter, CommitMessageFormatter, check_commit_footer, check_commit_message
from .dispatch import format_request, split_by_language
from .registry import (
    FormatterEntry,
    FormatterFamily,
    FormatterRegistry,
    RegistryBuild,
    SkippedLanguage,
    build_registry,
)
from .tool import ToolFormatter

__all__ = [
    "CommitFooterFormatter",
    "CommitMessageFormatter",
    "Formatter",
    "FormatterEntry",
    "FormatterFamily",
    "FormatterRegistry",
    "RegistryBuild",
    "SkippedLanguage",
    "ToolFormatter",
    "build_registry",
    "check_commit_footer",
    "check_commit_message",
    "format_request",
    "split_by_language",
]

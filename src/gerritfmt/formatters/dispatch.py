# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Route a format request to the strategies registered for its languages."""

from __future__ import annotations

from collections import defaultdict

from ..errors import ToolFailureError
from ..models import FormatReply, FormatRequest, SourceFile
from .registry import FormatterRegistry


def split_by_language(files: list[SourceFile]) -> dict[str, list[SourceFile]]:
    """Group ``files`` by language, preserving request order within a group."""

    grouped: dict[str, list[SourceFile]] = defaultdict(list)
    for source in files:
        grouped[source.language].append(source)
    return dict(grouped)


def format_request(registry: FormatterRegistry, request: FormatRequest) -> FormatReply:
    """Format every file of ``request`` with the strategy for its language.

    Tool output is attached to the first answer of each language batch when
    that answer carries no message of its own.

    Raises:
        ToolFailureError: If a file has no language or a strategy fails.
        LanguageNotConfiguredError: If a language has no registered formatter.
    """

    for source in request.files:
        if not source.language:
            raise ToolFailureError(f"file {source.name!r} has empty language")

    reply = FormatReply()
    for language, files in split_by_language(request.files).items():
        entry = registry.require(language)
        result = entry.formatter.format(files)
        answers = list(result.files)
        if answers and not answers[0].message and result.output:
            answers[0] = answers[0].model_copy(update={"message": result.output})
        reply.files.extend(answers)
    return reply


__all__ = ["format_request", "split_by_language"]

# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Formatter strategy contract."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from ..models import FormatResult, SourceFile


@runtime_checkable
class Formatter(Protocol):
    """Turn a batch of same-language files into canonical content.

    Implementations return one :class:`~gerritfmt.models.FormattedFile` per
    input file plus any free-form diagnostic output, and raise
    :class:`~gerritfmt.errors.ToolFailureError` when they cannot produce an
    answer at all.
    """

    def format(self, files: Sequence[SourceFile]) -> FormatResult:
        """Return formatted versions of ``files``.

        Args:
            files: Non-empty sequence of files sharing one language.

        Returns:
            FormatResult: Per-file answers and diagnostic output.
        """

        raise NotImplementedError


__all__ = ["Formatter"]

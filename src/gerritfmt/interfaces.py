# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Protocols describing the review-server collaborator."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from .models import CheckerInfo, CheckerInput, CheckInfo, CheckInput, PendingCheckEntry, RevisionFileSet


@runtime_checkable
class ReviewServer(Protocol):
    """Operations the check engine needs from the review server.

    Implementations raise :class:`~gerritfmt.errors.GerritTransportError` for
    any failure talking to the server.
    """

    def pending_checks_by_scheme(self, scheme: str) -> list[PendingCheckEntry]:
        """Return every revision with checks owed under ``scheme``."""
        raise NotImplementedError

    def get_revision_files(self, change_id: str, revision: str) -> RevisionFileSet:
        """Return the files of a revision, with content for non-deleted files."""
        raise NotImplementedError

    def post_check(self, change_id: str, patch_set_id: int, check: CheckInput) -> CheckInfo:
        """Record the state of one check."""
        raise NotImplementedError

    def get_check(self, change_id: str, patch_set_id: int, checker_uuid: str) -> CheckInfo:
        """Return the current state of one check."""
        raise NotImplementedError

    def list_checkers(self) -> list[CheckerInfo]:
        """Return all checkers known to the server."""
        raise NotImplementedError

    def post_checker(self, checker: CheckerInput, *, update: bool = False) -> CheckerInfo:
        """Create a checker, or update the existing one with the same UUID."""
        raise NotImplementedError


__all__ = ["ReviewServer"]

# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Per-check state machine.

For every checker UUID owed on a revision the executor posts ``RUNNING``,
works out the verdict and posts one of ``SUCCESSFUL``, ``FAILED`` or
``IRRELEVANT``. Formatting problems, tool failures and unknown languages all
end up as verdicts. A transport error ends the check it happened in and is
returned as that check's error; the other checks of the entry still run.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import UTC, datetime

from .checkers import checker_language
from .constants import CHECKER_SCHEME, COMPLAINT_SEPARATOR, MAX_MESSAGE_LENGTH, TRUNCATION_MARKER
from .errors import (
    GerritFmtError,
    GerritTransportError,
    IrrelevantCheck,
    LanguageNotConfiguredError,
    ProtocolViolationError,
    ToolFailureError,
)
from .formatters.dispatch import format_request
from .formatters.registry import FormatterRegistry
from .interfaces import ReviewServer
from .models import (
    CheckInput,
    CheckState,
    FormattedFile,
    FormatRequest,
    PendingCheckEntry,
    RevisionFileSet,
    SourceFile,
)

LOGGER = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(UTC)


def truncate_message(message: str, limit: int = MAX_MESSAGE_LENGTH) -> str:
    """Cut ``message`` down to ``limit`` characters, ending with ``...`` when cut."""

    if len(message) <= limit:
        return message
    return message[: limit - 5] + TRUNCATION_MARKER


def collect_complaints(
    results: Iterable[FormattedFile],
    originals: RevisionFileSet,
) -> list[str]:
    """Compare formatter answers with the original files.

    Returns:
        list[str]: ``"<file>: <message>"`` for every file that differs or that
        the formatter declined to reformat.

    Raises:
        ProtocolViolationError: If an answer names a file that was not submitted.
    """

    complaints: list[str] = []
    for result in results:
        original = originals.get(result.name)
        if original is None:
            raise ProtocolViolationError(f"result had unknown file {result.name!r}")
        if result.content is not None and result.content == original.content:
            LOGGER.debug("file %s: OK", result.name)
            continue
        message = result.message or "found a difference"
        LOGGER.debug("file %s: %s", result.name, message)
        complaints.append(f"{result.name}: {message}")
    return complaints


def check_revision(
    registry: FormatterRegistry,
    language: str,
    load_files: Callable[[], RevisionFileSet],
) -> list[str]:
    """Return formatting complaints for the revision files under ``language``.

    ``load_files`` is only called once the language resolves.

    Raises:
        LanguageNotConfiguredError: If ``language`` has no formatter.
        IrrelevantCheck: If no file matches the language's filter.
        ToolFailureError: If the formatter fails.
        ProtocolViolationError: If the formatter answers for unknown files.
    """

    entry = registry.require(language)
    files = load_files()
    request = FormatRequest(
        files=[
            SourceFile(language=language, name=name, content=revision_file.content or b"")
            for name, revision_file in files.matching(entry.pattern)
        ],
    )
    if not request.files:
        raise IrrelevantCheck(language)
    reply = format_request(registry, request)
    return collect_complaints(reply.files, files)


@dataclass(slots=True)
class CheckOutcome:
    """Verdict posted for one checker UUID."""

    checker_uuid: str
    state: CheckState
    message: str = ""
    error: GerritFmtError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(slots=True)
class _RevisionFiles:
    """Lazily fetched file set shared by all checks of one entry."""

    server: ReviewServer
    entry: PendingCheckEntry
    _files: RevisionFileSet | None = field(default=None, init=False)

    def get(self) -> RevisionFileSet:
        if self._files is None:
            self._files = self.server.get_revision_files(self.entry.change_id, str(self.entry.patch_set_id))
        return self._files


class CheckExecutor:
    """Run the pending checks of one revision and report their verdicts."""

    def __init__(
        self,
        server: ReviewServer,
        registry: FormatterRegistry,
        *,
        scheme: str = CHECKER_SCHEME,
        message_limit: int = MAX_MESSAGE_LENGTH,
        clock: Clock = _utcnow,
    ) -> None:
        """Initialise the executor.

        Args:
            server: Review server receiving state updates.
            registry: Formatter registry used to resolve checker languages.
            scheme: Scheme prefix of the checker UUIDs.
            message_limit: Maximum length of a posted message.
            clock: Source of the ``started`` timestamp.
        """

        self.server = server
        self.registry = registry
        self.scheme = scheme
        self.message_limit = message_limit
        self._clock = clock

    def execute(self, entry: PendingCheckEntry) -> list[CheckOutcome]:
        """Process every checker UUID owed on ``entry``.

        Returns:
            list[CheckOutcome]: One outcome per UUID, in processing order. A
            check whose server traffic failed carries the transport error and
            the last state it reached.
        """

        files = _RevisionFiles(self.server, entry)
        outcomes: list[CheckOutcome] = []
        for uuid in entry.pending_checks:
            try:
                outcome = self._execute_one(entry, uuid, files)
            except GerritTransportError as exc:
                LOGGER.error("change %s, %s: %s", entry.patch_set, uuid, exc)
                outcome = CheckOutcome(checker_uuid=uuid, state=CheckState.RUNNING, error=exc)
            outcomes.append(outcome)
        return outcomes

    def _execute_one(self, entry: PendingCheckEntry, uuid: str, files: _RevisionFiles) -> CheckOutcome:
        LOGGER.info("change %s, %s set to %s", entry.patch_set, uuid, CheckState.RUNNING)
        self.server.post_check(
            entry.change_id,
            entry.patch_set_id,
            CheckInput(checker_uuid=uuid, state=CheckState.RUNNING, started=self._clock()),
        )

        error: GerritFmtError | None = None
        language = checker_language(uuid, scheme=self.scheme)
        if language is None:
            state = CheckState.FAILED
            message = truncate_message(f"uuid {uuid!r} has unknown language", self.message_limit)
        else:
            complaints: list[str] = []
            try:
                complaints = check_revision(self.registry, language, files.get)
            except IrrelevantCheck:
                state = CheckState.IRRELEVANT
            except LanguageNotConfiguredError as exc:
                state = CheckState.FAILED
                complaints = [str(exc)]
            except ProtocolViolationError as exc:
                LOGGER.error("change %s, %s: %s", entry.patch_set, uuid, exc)
                state = CheckState.FAILED
                complaints = [f"tool failure: {exc}"]
                error = exc
            except ToolFailureError as exc:
                LOGGER.error("check %s on %s (%s): %s", uuid, entry.patch_set, language, exc)
                if exc.output:
                    LOGGER.error("tool output: %s", exc.output)
                state = CheckState.FAILED
                complaints = [f"tool failure: {exc}"]
            else:
                state = CheckState.FAILED if complaints else CheckState.SUCCESSFUL
            message = truncate_message(COMPLAINT_SEPARATOR.join(complaints), self.message_limit)

        LOGGER.info("status %s for %s on %s", state, uuid, entry.patch_set)
        try:
            self.server.post_check(
                entry.change_id,
                entry.patch_set_id,
                CheckInput(checker_uuid=uuid, state=state, message=message),
            )
        except GerritTransportError as exc:
            LOGGER.error("change %s, posting %s for %s: %s", entry.patch_set, state, uuid, exc)
            return CheckOutcome(checker_uuid=uuid, state=state, message=message, error=exc)
        return CheckOutcome(checker_uuid=uuid, state=state, message=message, error=error)


__all__ = ["CheckExecutor", "CheckOutcome", "check_revision", "collect_complaints", "truncate_message"]

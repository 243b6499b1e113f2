# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Polling loop driving the check executor.

Each round lists the pending checks of the scheme, shuffles them and runs the
executor over every entry. A round that made progress is followed immediately
by the next one, since more work may be queued behind server-side rate
limits. A round without progress (nothing pending, or every entry failed)
sleeps for the configured delay first.
"""

from __future__ import annotations

import logging
import random
import time
from collections.abc import Callable
from dataclasses import dataclass

from .constants import CHECKER_SCHEME, DEFAULT_POLL_DELAY
from .errors import GerritFmtError
from .executor import CheckExecutor
from .interfaces import ReviewServer

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RoundResult:
    """Summary of one polling round."""

    pending: int
    completed: int
    error: GerritFmtError | None = None

    @property
    def progress(self) -> bool:
        """Return ``True`` when at least one entry completed without error."""
        return self.completed > 0

    @property
    def wait(self) -> bool:
        return not self.progress


class PollingScheduler:
    """Run polling rounds until the process stops."""

    def __init__(
        self,
        server: ReviewServer,
        executor: CheckExecutor,
        *,
        scheme: str = CHECKER_SCHEME,
        delay: float = DEFAULT_POLL_DELAY,
        rng: random.Random | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialise the scheduler.

        Args:
            server: Review server queried for pending checks.
            executor: Executor processing each pending entry.
            scheme: Checker scheme to poll for.
            delay: Seconds to sleep after a round without progress.
            rng: Random source used to shuffle entries.
            sleep: Sleep function, replaceable in tests.
        """

        self.server = server
        self.executor = executor
        self.scheme = scheme
        self.delay = delay
        self._rng = rng or random.Random()
        self._sleep = sleep

    def run_round(self) -> RoundResult:
        """List, shuffle and execute pending checks once."""

        try:
            pending = self.server.pending_checks_by_scheme(self.scheme)
        except GerritFmtError as exc:
            return RoundResult(pending=0, completed=0, error=exc)

        if not pending:
            LOGGER.info("no pending checks")
            return RoundResult(pending=0, completed=0)

        # Shuffle so a persistent failure does not always come first.
        self._rng.shuffle(pending)

        first_error: GerritFmtError | None = None
        completed = 0
        for entry in pending:
            try:
                outcomes = self.executor.execute(entry)
            except GerritFmtError as exc:
                error: GerritFmtError | None = exc
            else:
                error = next((outcome.error for outcome in outcomes if outcome.error is not None), None)
            if error is None:
                completed += 1
                continue
            if first_error is None:
                first_error = error
            else:
                LOGGER.warning("change %s: %s", entry.patch_set, error)
        return RoundResult(pending=len(pending), completed=completed, error=first_error)

    def serve(self, *, max_rounds: int | None = None) -> None:
        """Poll forever, or for ``max_rounds`` rounds when given."""

        rounds = 0
        while max_rounds is None or rounds < max_rounds:
            rounds += 1
            result = self.run_round()
            if result.error is not None:
                LOGGER.error("processing pending checks: %s", result.error)
            if result.wait:
                self._sleep(self.delay)


__all__ = ["PollingScheduler", "RoundResult"]

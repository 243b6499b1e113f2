# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Tests for the per-check state machine."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime

import pytest

from gerritfmt.checkers import checker_uuid
from gerritfmt.errors import GerritTransportError, ProtocolViolationError, ToolFailureError
from gerritfmt.executor import CheckExecutor, collect_complaints, truncate_message
from gerritfmt.formatters.registry import (
    FormatterEntry,
    FormatterFamily,
    FormatterRegistry,
    builtin_entries,
    builtin_families,
)
from gerritfmt.models import (
    CheckState,
    FormattedFile,
    FormatResult,
    RevisionFile,
    RevisionFileSet,
    SourceFile,
    compile_pattern,
)

from .helpers.fake_gerrit import FakeReviewServer

FIXED_NOW = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)
GO_UUID = checker_uuid("repo", "go")
COMMITMSG_UUID = checker_uuid("repo", "commitmsg")


@dataclass
class StubFormatter:
    """Go stand-in: identity, uppercase, failure or a bogus file name."""

    mode: str = "identity"

    def format(self, files: Sequence[SourceFile]) -> FormatResult:
        if self.mode == "fail":
            raise ToolFailureError("Command 'gofmt' exited with status 2", output="a.go:1: expected 'package'")
        if self.mode == "bogus":
            return FormatResult(files=[FormattedFile(name="other.go", content=b"")])
        if self.mode == "upper":
            return FormatResult(
                files=[FormattedFile(name=source.name, content=source.content.upper()) for source in files],
            )
        return FormatResult(files=[FormattedFile(name=source.name, content=source.content) for source in files])


def _registry(mode: str = "identity") -> FormatterRegistry:
    go = FormatterEntry(language="go", pattern=compile_pattern(r"\.go$"), formatter=StubFormatter(mode), query="ext:go")
    return FormatterRegistry([*builtin_entries(), go], builtin_families())


def _executor(server: FakeReviewServer, registry: FormatterRegistry, **kwargs: object) -> CheckExecutor:
    return CheckExecutor(server, registry, clock=lambda: FIXED_NOW, **kwargs)


def _single_entry(server: FakeReviewServer):
    entries = server.pending_checks_by_scheme("fmt")
    assert len(entries) == 1
    return entries[0]


def test_truncate_message() -> None:
    assert truncate_message("short", 10) == "short"
    assert truncate_message("x" * 10, 10) == "x" * 10
    truncated = truncate_message("x" * 2000, 1000)
    assert truncated.endswith("...")
    assert len(truncated) <= 1000
    assert truncated == "x" * 995 + "..."


def test_collect_complaints() -> None:
    originals = RevisionFileSet(
        files={name: RevisionFile(content=name[0].encode()) for name in ("a.go", "b.go", "c.go")},
    )
    results = [
        FormattedFile(name="a.go", content=b"a", message="tool chatter"),
        FormattedFile(name="b.go", content=b"B"),
        FormattedFile(name="c.go", message="cannot parse"),
    ]

    assert collect_complaints(results, originals) == ["b.go: found a difference", "c.go: cannot parse"]


def test_collect_complaints_rejects_unknown_files() -> None:
    with pytest.raises(ProtocolViolationError, match="unknown file 'x.go'"):
        collect_complaints([FormattedFile(name="x.go", content=b"")], RevisionFileSet())


def test_identity_formatter_succeeds(fake_server: FakeReviewServer) -> None:
    fake_server.add_checker(GO_UUID)
    fake_server.add_revision(1, 1, {"a.go": b"package a\n", "b.go": b"package b\n"})

    outcomes = _executor(fake_server, _registry()).execute(_single_entry(fake_server))

    assert [(outcome.state, outcome.message) for outcome in outcomes] == [(CheckState.SUCCESSFUL, "")]
    assert outcomes[0].ok
    assert fake_server.posted_states(GO_UUID) == [CheckState.RUNNING, CheckState.SUCCESSFUL]
    running = fake_server.posted[0].check
    assert running.started == FIXED_NOW
    assert fake_server.state_of(1, 1, GO_UUID).state == "SUCCESSFUL"


def test_differences_fail_the_check(fake_server: FakeReviewServer) -> None:
    fake_server.add_checker(GO_UUID)
    fake_server.add_revision(1, 2, {"b.go": b"package b\n", "a.go": b"package a\n", "README": b"hi"})

    (outcome,) = _executor(fake_server, _registry("upper")).execute(_single_entry(fake_server))

    assert outcome.state is CheckState.FAILED
    assert outcome.message == "a.go: found a difference, b.go: found a difference"
    assert outcome.error is None


def test_no_matching_files_is_irrelevant(fake_server: FakeReviewServer) -> None:
    fake_server.add_checker(GO_UUID)
    fake_server.add_revision(1, 1, {"README.md": b"docs", "gone.go": None})

    (outcome,) = _executor(fake_server, _registry()).execute(_single_entry(fake_server))

    assert outcome.state is CheckState.IRRELEVANT
    assert outcome.message == ""
    assert fake_server.posted_states() == [CheckState.RUNNING, CheckState.IRRELEVANT]


def test_tool_failure_fails_check_without_error(fake_server: FakeReviewServer) -> None:
    fake_server.add_checker(GO_UUID)
    fake_server.add_revision(1, 1, {"a.go": b"packag a"})

    (outcome,) = _executor(fake_server, _registry("fail")).execute(_single_entry(fake_server))

    assert outcome.state is CheckState.FAILED
    assert outcome.message == "tool failure: Command 'gofmt' exited with status 2"
    assert outcome.ok


def test_protocol_violation_is_reported_and_marked_as_error(fake_server: FakeReviewServer) -> None:
    fake_server.add_checker(GO_UUID)
    fake_server.add_revision(1, 1, {"a.go": b"package a\n"})

    (outcome,) = _executor(fake_server, _registry("bogus")).execute(_single_entry(fake_server))

    assert outcome.state is CheckState.FAILED
    assert outcome.message.startswith("tool failure: result had unknown file")
    assert isinstance(outcome.error, ProtocolViolationError)
    assert not outcome.ok


def test_unknown_language_fails_check(fake_server: FakeReviewServer, commit_registry: FormatterRegistry) -> None:
    fake_server.add_checker(GO_UUID)
    fake_server.add_revision(1, 1, {"a.go": b"package a\n"})

    (outcome,) = _executor(fake_server, commit_registry).execute(_single_entry(fake_server))

    assert outcome.state is CheckState.FAILED
    assert outcome.message == "language 'go' not configured"
    assert fake_server.fetches == 0


def test_undecodable_uuid_fails_check(fake_server: FakeReviewServer, commit_registry: FormatterRegistry) -> None:
    uuid = checker_uuid("repo", "commitfooter-Change-Id")
    fake_server.add_checker(uuid)
    fake_server.add_revision(1, 1, {"/COMMIT_MSG": b"subject\n\nChange-Id: I1"})

    (outcome,) = _executor(fake_server, commit_registry).execute(_single_entry(fake_server))

    assert outcome.state is CheckState.FAILED
    assert outcome.message == f"uuid {uuid!r} has unknown language"


def test_files_are_fetched_once_per_entry(fake_server: FakeReviewServer) -> None:
    fake_server.add_checker(GO_UUID)
    fake_server.add_checker(checker_uuid("repo", "commitmsg"))
    fake_server.add_revision(1, 1, {"/COMMIT_MSG": b"subject\n\nbody", "a.go": b"package a\n"})

    outcomes = _executor(fake_server, _registry()).execute(_single_entry(fake_server))

    assert sorted(outcome.state for outcome in outcomes) == [CheckState.SUCCESSFUL, CheckState.SUCCESSFUL]
    assert fake_server.fetches == 1


def test_long_messages_are_truncated(fake_server: FakeReviewServer) -> None:
    fake_server.add_checker(GO_UUID)
    fake_server.add_revision(1, 1, {f"pkg{index:03d}/file.go": b"x" for index in range(100)})

    (outcome,) = _executor(fake_server, _registry("upper"), message_limit=64).execute(_single_entry(fake_server))

    assert len(outcome.message) <= 64
    assert outcome.message.endswith("...")
    assert fake_server.posted[-1].check.message == outcome.message


def _two_checker_entry(server: FakeReviewServer):
    server.add_checker(GO_UUID)
    server.add_checker(COMMITMSG_UUID)
    server.add_revision(1, 1, {"/COMMIT_MSG": b"subject\n\nbody", "a.go": b"package a\n"})
    return _single_entry(server)


def test_running_post_failure_only_ends_that_check(fake_server: FakeReviewServer) -> None:
    entry = _two_checker_entry(fake_server)
    fake_server.fail_posts = {(GO_UUID, CheckState.RUNNING)}

    outcomes = {outcome.checker_uuid: outcome for outcome in _executor(fake_server, _registry()).execute(entry)}

    assert outcomes[GO_UUID].state is CheckState.RUNNING
    assert isinstance(outcomes[GO_UUID].error, GerritTransportError)
    assert fake_server.posted_states(GO_UUID) == []
    assert outcomes[COMMITMSG_UUID].ok
    assert fake_server.posted_states(COMMITMSG_UUID) == [CheckState.RUNNING, CheckState.SUCCESSFUL]


def test_terminal_post_failure_only_ends_that_check(fake_server: FakeReviewServer) -> None:
    entry = _two_checker_entry(fake_server)
    fake_server.fail_posts = {(COMMITMSG_UUID, CheckState.SUCCESSFUL)}

    outcomes = {outcome.checker_uuid: outcome for outcome in _executor(fake_server, _registry()).execute(entry)}

    assert outcomes[COMMITMSG_UUID].state is CheckState.SUCCESSFUL
    assert isinstance(outcomes[COMMITMSG_UUID].error, GerritTransportError)
    assert fake_server.posted_states(COMMITMSG_UUID) == [CheckState.RUNNING]
    assert outcomes[GO_UUID].ok
    assert fake_server.posted_states(GO_UUID) == [CheckState.RUNNING, CheckState.SUCCESSFUL]


def test_fetch_failure_is_reported_per_check(fake_server: FakeReviewServer) -> None:
    entry = _two_checker_entry(fake_server)
    del fake_server.revisions[(1, 1)]

    outcomes = _executor(fake_server, _registry()).execute(entry)

    assert [outcome.state for outcome in outcomes] == [CheckState.RUNNING, CheckState.RUNNING]
    assert all(isinstance(outcome.error, GerritTransportError) for outcome in outcomes)
    assert fake_server.posted_states() == [CheckState.RUNNING, CheckState.RUNNING]


def test_family_formatter_is_not_resolved_redundantly(fake_server: FakeReviewServer) -> None:
    built: list[str] = []

    def factory(parameter: str) -> StubFormatter:
        built.append(parameter)
        return StubFormatter()

    family = FormatterFamily(prefix="stub", pattern=compile_pattern(r"\.go$"), factory=factory)
    uuid = checker_uuid("repo", "stubgo")
    fake_server.add_checker(uuid)
    fake_server.add_revision(1, 1, {"a.go": b"package a\n"})

    (outcome,) = _executor(fake_server, FormatterRegistry(builtin_entries(), [family])).execute(
        _single_entry(fake_server),
    )

    assert outcome.state is CheckState.SUCCESSFUL
    # one lookup for the file filter, one for dispatch
    assert built == ["go", "go"]

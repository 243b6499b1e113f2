# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Formatter registry mapping language identifiers to strategies.

Two kinds of registrations exist. Static :class:`FormatterEntry` values bind a
language tag to a file-name filter and a strategy instance. A
:class:`FormatterFamily` covers every identifier sharing a prefix and builds a
fresh strategy from the suffix, e.g. ``commitfooter-Change-Id`` requires a
``Change-Id`` footer.

External tools are only registered when their binaries are found while the
registry is built; the languages left out are reported next to the registry.
"""

from __future__ import annotations

import logging
import os
import shutil
from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass
from re import Pattern
from typing import Final

from ..config import ToolConfig
from ..constants import COMMIT_FOOTER_PREFIX, COMMIT_MSG_LANGUAGE, COMMIT_MSG_PATTERN
from ..errors import LanguageNotConfiguredError
from ..models import compile_pattern
from .base import Formatter
from .commit import CommitFooterFormatter, CommitMessageFormatter
from .tool import ToolFormatter

LOGGER = logging.getLogger(__name__)

FormatterFactory = Callable[[str], Formatter]


@dataclass(frozen=True, slots=True)
class FormatterEntry:
    """Formatter binding for one language."""

    language: str
    pattern: Pattern[str]
    formatter: Formatter
    query: str | None = None

    def matches(self, name: str) -> bool:
        """Return ``True`` when ``name`` passes the file-name filter."""
        return self.pattern.search(name) is not None


@dataclass(frozen=True, slots=True)
class FormatterFamily:
    """Parametrised formatters resolved from ``<prefix><parameter>`` identifiers."""

    prefix: str
    pattern: Pattern[str]
    factory: FormatterFactory
    query: str | None = None

    def build(self, language: str) -> FormatterEntry | None:
        """Return an entry for ``language`` when it belongs to this family."""

        if not language.startswith(self.prefix):
            return None
        parameter = language[len(self.prefix) :]
        return FormatterEntry(
            language=language,
            pattern=self.pattern,
            formatter=self.factory(parameter),
            query=self.query,
        )


class FormatterRegistry(Mapping[str, FormatterEntry]):
    """Immutable registry of formatter entries.

    The mapping interface covers the statically registered languages; use
    :meth:`resolve` to include parametrised families.
    """

    def __init__(
        self,
        entries: Iterable[FormatterEntry] = (),
        families: Iterable[FormatterFamily] = (),
    ) -> None:
        """Initialise the registry.

        Args:
            entries: Static entries; language tags must be unique.
            families: Prefix families consulted before static entries.

        Raises:
            ValueError: If two entries share a language tag.
        """

        table: dict[str, FormatterEntry] = {}
        for entry in entries:
            if entry.language in table:
                raise ValueError(f"Formatter for '{entry.language}' already registered")
            table[entry.language] = entry
        self._entries: Mapping[str, FormatterEntry] = table
        self._families: tuple[FormatterFamily, ...] = tuple(families)

    @property
    def families(self) -> tuple[FormatterFamily, ...]:
        return self._families

    def resolve(self, language: str) -> FormatterEntry | None:
        """Return the entry for ``language`` or ``None`` when it is unknown."""

        for family in self._families:
            entry = family.build(language)
            if entry is not None:
                return entry
        return self._entries.get(language)

    def require(self, language: str) -> FormatterEntry:
        """Return the entry for ``language``.

        Raises:
            LanguageNotConfiguredError: If ``language`` cannot be resolved.
        """

        entry = self.resolve(language)
        if entry is None:
            raise LanguageNotConfiguredError(language)
        return entry

    def is_supported(self, language: str) -> bool:
        return self.resolve(language) is not None

    def languages(self) -> tuple[str, ...]:
        """Return statically registered languages in sorted order."""
        return tuple(sorted(self._entries))

    def __getitem__(self, language: str) -> FormatterEntry:
        return self._entries[language]

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._entries))

    def __len__(self) -> int:
        return len(self._entries)


@dataclass(frozen=True, slots=True)
class SkippedLanguage:
    """A language left out of the registry and the reason why."""

    language: str
    reason: str


@dataclass(frozen=True, slots=True)
class RegistryBuild:
    """Registry produced at startup plus the languages that were skipped."""

    registry: FormatterRegistry
    skipped: tuple[SkippedLanguage, ...] = ()


ToolCommand = tuple[str, tuple[str, ...]]


@dataclass(frozen=True, slots=True)
class _ToolProbe:
    language: str
    pattern: str
    query: str
    locate: Callable[[ToolConfig, str], ToolCommand]


def _which(name: str, path: str, *, executable: bool = True) -> str:
    mode = os.F_OK | os.X_OK if executable else os.F_OK
    found = shutil.which(name, mode=mode, path=path)
    if found is None:
        raise LookupError(f"{name}: not found in {path}")
    return found


def _locate_gofmt(tools: ToolConfig, path: str) -> ToolCommand:
    return _which(tools.gofmt, path), ("-w",)


def _locate_buildifier(tools: ToolConfig, path: str) -> ToolCommand:
    return _which(tools.buildifier, path), ("-mode=fix",)


def _locate_java_format(tools: ToolConfig, path: str) -> ToolCommand:
    jar = _which(tools.google_java_format_jar, path, executable=False)
    return _which(tools.java, path), ("-jar", jar, "-i")


TOOL_PROBES: Final[tuple[_ToolProbe, ...]] = (
    _ToolProbe("java", r"\.java$", "ext:java", _locate_java_format),
    _ToolProbe("bzl", r"(\.bzl|/BUILD|^BUILD)$", "(ext:bzl OR file:BUILD OR file:WORKSPACE)", _locate_buildifier),
    _ToolProbe("go", r"\.go$", "ext:go", _locate_gofmt),
)


def builtin_entries() -> list[FormatterEntry]:
    """Return the entries that need no external binary."""

    return [
        FormatterEntry(
            language=COMMIT_MSG_LANGUAGE,
            pattern=compile_pattern(COMMIT_MSG_PATTERN),
            formatter=CommitMessageFormatter(),
        ),
    ]


def builtin_families() -> list[FormatterFamily]:
    return [
        FormatterFamily(
            prefix=COMMIT_FOOTER_PREFIX,
            pattern=compile_pattern(COMMIT_MSG_PATTERN),
            factory=CommitFooterFormatter,
        ),
    ]


def build_registry(
    tools: ToolConfig | None = None,
    *,
    env: Mapping[str, str] | None = None,
) -> RegistryBuild:
    """Build the formatter registry, probing for external formatter binaries.

    Args:
        tools: Binary locations; defaults to :class:`ToolConfig` defaults.
        env: Environment whose ``PATH`` is searched after ``tools.search_path``.

    Returns:
        RegistryBuild: The registry and the languages skipped for lack of a binary.
    """

    tools = tools or ToolConfig()
    path = tools.lookup_path(env)
    entries = builtin_entries()
    skipped: list[SkippedLanguage] = []
    for probe in TOOL_PROBES:
        try:
            binary, args = probe.locate(tools, path)
        except LookupError as exc:
            LOGGER.info("formatter for %s not available: %s", probe.language, exc)
            skipped.append(SkippedLanguage(language=probe.language, reason=str(exc)))
            continue
        entries.append(
            FormatterEntry(
                language=probe.language,
                pattern=compile_pattern(probe.pattern),
                formatter=ToolFormatter(binary=binary, args=args, timeout=tools.timeout, search_path=path),
                query=probe.query,
            ),
        )
    return RegistryBuild(
        registry=FormatterRegistry(entries, builtin_families()),
        skipped=tuple(skipped),
    )


__all__ = [
    "FormatterEntry",
    "FormatterFactory",
    "FormatterFamily",
    "FormatterRegistry",
    "RegistryBuild",
    "SkippedLanguage",
    "TOOL_PROBES",
    "build_registry",
    "builtin_entries",
    "builtin_families",
]

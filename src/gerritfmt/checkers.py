# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Checker identity and registration.

A checker UUID has the shape ``<scheme>:<language>-<sha1(repository)>``. The
layout is shared with checkers already registered on review servers and must
not change.

Decoding splits the part after the scheme on ``-`` and requires exactly two
fields. Languages that contain ``-`` themselves, such as the
``commitfooter-<Key>`` family, therefore encode fine but never decode; such
checkers are reported as having an unknown language. This is kept as is for
compatibility with existing registrations.
"""

from __future__ import annotations

import hashlib
import logging

from .constants import CHECKER_SCHEME
from .formatters.registry import FormatterRegistry
from .interfaces import ReviewServer
from .models import CheckerInfo, CheckerInput

LOGGER = logging.getLogger(__name__)

_FIELD_SEPARATOR = "-"


def repository_hash(repository: str) -> str:
    """Return the stable hex digest identifying ``repository``."""

    # Bandit: SHA-1 is an identifier here, not a security control.
    return hashlib.sha1(repository.encode("utf-8")).hexdigest()  # nosec B324


def encode_checker_uuid(language: str, digest: str, *, scheme: str = CHECKER_SCHEME) -> str:
    return f"{scheme}:{language}{_FIELD_SEPARATOR}{digest}"


def checker_uuid(repository: str, language: str, *, scheme: str = CHECKER_SCHEME) -> str:
    """Return the UUID of the ``language`` checker for ``repository``."""

    return encode_checker_uuid(language, repository_hash(repository), scheme=scheme)


def decode_checker_uuid(uuid: str, *, scheme: str = CHECKER_SCHEME) -> tuple[str, str] | None:
    """Split ``uuid`` into ``(language, digest)``, or ``None`` when it does not decode."""

    prefix = f"{scheme}:"
    body = uuid[len(prefix) :] if uuid.startswith(prefix) else uuid
    fields = body.split(_FIELD_SEPARATOR)
    if len(fields) != 2:
        return None
    language, digest = fields
    return language, digest


def checker_language(uuid: str, *, scheme: str = CHECKER_SCHEME) -> str | None:
    """Return the language encoded in ``uuid``, or ``None`` when it does not decode."""

    decoded = decode_checker_uuid(uuid, scheme=scheme)
    return decoded[0] if decoded is not None else None


def build_checker_input(
    registry: FormatterRegistry,
    repository: str,
    language: str,
    *,
    scheme: str = CHECKER_SCHEME,
) -> CheckerInput:
    """Return the checker definition for ``language`` on ``repository``.

    Raises:
        LanguageNotConfiguredError: If ``language`` has no formatter.
    """

    entry = registry.require(language)
    return CheckerInput(
        uuid=checker_uuid(repository, language, scheme=scheme),
        name=f"{language} formatting",
        repository=repository,
        description="check source code formatting.",
        status="ENABLED",
        query=entry.query,
    )


def list_checkers(server: ReviewServer, *, scheme: str = CHECKER_SCHEME) -> list[CheckerInfo]:
    """Return the server's checkers that belong to ``scheme`` and decode cleanly."""

    prefix = f"{scheme}:"
    selected: list[CheckerInfo] = []
    for info in server.list_checkers():
        if not info.uuid.startswith(prefix):
            continue
        if checker_language(info.uuid, scheme=scheme) is None:
            LOGGER.debug("ignoring checker %s: no decodable language", info.uuid)
            continue
        selected.append(info)
    return selected


def register_checker(
    server: ReviewServer,
    registry: FormatterRegistry,
    repository: str,
    language: str,
    *,
    update: bool = False,
    scheme: str = CHECKER_SCHEME,
) -> CheckerInfo:
    """Create, or with ``update`` change, the ``language`` checker of ``repository``.

    Raises:
        LanguageNotConfiguredError: If ``language`` has no formatter.
        GerritTransportError: If the server rejects the request.
    """

    checker = build_checker_input(registry, repository, language, scheme=scheme)
    if checker_language(checker.uuid, scheme=scheme) != language:
        LOGGER.warning("checker %s will not decode back to language %r", checker.uuid, language)
    info = server.post_checker(checker, update=update)
    LOGGER.info("%s checker %s", "updated" if update else "created", info.uuid)
    return info


__all__ = [
    "build_checker_input",
    "checker_language",
    "checker_uuid",
    "decode_checker_uuid",
    "encode_checker_uuid",
    "list_checkers",
    "register_checker",
    "repository_hash",
]

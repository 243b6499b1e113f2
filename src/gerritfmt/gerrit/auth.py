# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Authenticators adding credentials to outgoing requests."""

from __future__ import annotations

import base64
import urllib.request
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable

from ..errors import ConfigError


@runtime_checkable
class Authenticator(Protocol):
    """Add an authentication header to an outgoing request."""

    def authenticate(self, request: urllib.request.Request) -> None:
        raise NotImplementedError


@dataclass(frozen=True, slots=True)
class BasicAuth:
    """Send an HTTP ``Basic`` authorization header."""

    encoded: str

    def __repr__(self) -> str:
        return "BasicAuth(encoded=<redacted>)"

    @classmethod
    def from_secret(cls, who: str) -> BasicAuth:
        """Return an authenticator for a ``user:secret`` string."""

        auth = who.strip()
        if ":" not in auth:
            raise ConfigError("credentials must have the form 'user:secret'")
        return cls(encoded=base64.b64encode(auth.encode("utf-8")).decode("ascii"))

    @classmethod
    def from_file(cls, path: Path) -> BasicAuth:
        """Return an authenticator for the ``user:secret`` stored in ``path``."""

        try:
            secret = path.expanduser().read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigError(f"cannot read credentials from {path}: {exc}") from exc
        return cls.from_secret(secret)

    def authenticate(self, request: urllib.request.Request) -> None:
        request.add_header("Authorization", f"Basic {self.encoded}")


__all__ = ["Authenticator", "BasicAuth"]

# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Decoding helpers for Gerrit REST responses."""

from __future__ import annotations

import base64
import binascii
import json
from typing import Any, Final

from ..errors import GerritTransportError

XSSI_PREFIX: Final[bytes] = b")]}'"


def unmarshal(content: bytes) -> Any:
    """Decode a JSON response, dropping Gerrit's anti-XSSI prefix line.

    Raises:
        GerritTransportError: If the payload is not valid JSON.
    """

    body = content.lstrip()
    if body.startswith(XSSI_PREFIX):
        body = body[len(XSSI_PREFIX) :]
    try:
        return json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise GerritTransportError(f"malformed JSON response: {exc}") from exc


def decode_content(content: bytes) -> bytes:
    """Decode the base64 body returned by the file-content endpoint.

    Raises:
        GerritTransportError: If the body is not valid base64.
    """

    try:
        return base64.b64decode(content.strip(), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise GerritTransportError(f"malformed file content: {exc}") from exc


__all__ = ["XSSI_PREFIX", "decode_content", "unmarshal"]

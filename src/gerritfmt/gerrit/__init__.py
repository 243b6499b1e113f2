# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Gerrit REST transport used by the checker service."""

from __future__ import annotations

from .auth import Authenticator, BasicAuth
from .client import GerritServer
from .codec import decode_content, unmarshal

__all__ = ["Authenticator", "BasicAuth", "GerritServer", "decode_content", "unmarshal"]

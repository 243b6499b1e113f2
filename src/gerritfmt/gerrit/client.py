# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Minimal Gerrit REST client covering the checks plugin endpoints."""

from __future__ import annotations

import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from collections.abc import Mapping
from typing import Any, Final, TypeVar

from pydantic import BaseModel, ValidationError

from ..config import GerritConfig
from ..constants import DEFAULT_USER_AGENT
from ..errors import GerritTransportError
from ..models import (
    CheckerInfo,
    CheckerInput,
    CheckInfo,
    CheckInput,
    PendingCheckEntry,
    RevisionFile,
    RevisionFileSet,
)
from .auth import Authenticator, BasicAuth
from .codec import decode_content, unmarshal

LOGGER = logging.getLogger(__name__)

JSON_CONTENT_TYPE: Final[str] = "application/json"
DELETED_STATUS: Final[str] = "D"
CHECKERS_PATH: Final[str] = "a/plugins/checks/checkers/"
PENDING_PATH: Final[str] = "a/plugins/checks/checks.pending/"

ModelT = TypeVar("ModelT", bound=BaseModel)


def _escape(segment: str) -> str:
    return urllib.parse.quote(segment, safe="")


class GerritServer:
    """A single Gerrit host."""

    def __init__(
        self,
        url: str,
        *,
        authenticator: Authenticator | None = None,
        user_agent: str = DEFAULT_USER_AGENT,
        debug: bool = False,
        timeout: float = 30.0,
        opener: urllib.request.OpenerDirector | None = None,
    ) -> None:
        """Initialise the client.

        Args:
            url: Base URL of the Gerrit host, optionally with a path prefix.
            authenticator: Adds credentials to each request.
            user_agent: ``User-Agent`` header value.
            debug: Ask the server to trace every request (``trace=0x1``).
            timeout: Socket timeout per request in seconds.
            opener: Replacement opener, mainly for tests.
        """

        self.url = url if url.endswith("/") else f"{url}/"
        self.authenticator = authenticator
        self.user_agent = user_agent
        self.debug = debug
        self.timeout = timeout
        self._opener = opener or urllib.request.build_opener()

    @classmethod
    def from_config(cls, config: GerritConfig) -> GerritServer:
        """Build a client from :class:`~gerritfmt.config.GerritConfig`."""

        authenticator = BasicAuth.from_file(config.auth_file) if config.auth_file is not None else None
        return cls(
            config.url,
            authenticator=authenticator,
            user_agent=config.user_agent,
            debug=config.debug,
            timeout=config.timeout,
        )

    def __repr__(self) -> str:
        return f"GerritServer(url={self.url!r})"

    # Raw HTTP -----------------------------------------------------------

    def build_url(self, path: str, query: Mapping[str, str] | None = None) -> str:
        """Return the absolute URL for ``path`` relative to the base URL."""

        params = dict(query or {})
        if self.debug:
            params["trace"] = "0x1"
        url = urllib.parse.urljoin(self.url, path.lstrip("/"))
        if params:
            url = f"{url}?{urllib.parse.urlencode(params)}"
        return url

    def do(
        self,
        method: str,
        path: str,
        *,
        body: bytes | None = None,
        content_type: str | None = None,
        query: Mapping[str, str] | None = None,
    ) -> bytes:
        """Run a request and return the response body.

        Raises:
            GerritTransportError: On connection failures and non-2xx answers.
        """

        url = self.build_url(path, query)
        request = urllib.request.Request(url, data=body, method=method)
        request.add_header("User-Agent", self.user_agent)
        if content_type is not None:
            request.add_header("Content-Type", content_type)
        if self.authenticator is not None:
            self.authenticator.authenticate(request)
        try:
            with self._opener.open(request, timeout=self.timeout) as response:
                status = getattr(response, "status", 200)
                payload = response.read()
        except urllib.error.HTTPError as exc:
            raise GerritTransportError(f"{method} {url}: status {exc.code}", url=url, status=exc.code) from exc
        except (urllib.error.URLError, OSError) as exc:
            raise GerritTransportError(f"{method} {url}: {exc}", url=url) from exc
        if status // 100 != 2:
            raise GerritTransportError(f"{method} {url}: status {status}", url=url, status=status)
        return payload

    def get_path(self, path: str, query: Mapping[str, str] | None = None) -> bytes:
        return self.do("GET", path, query=query)

    def get_json(self, path: str, query: Mapping[str, str] | None = None) -> Any:
        return unmarshal(self.get_path(path, query))

    def post_json(self, path: str, payload: Any, *, method: str = "POST") -> Any:
        """Send ``payload`` as JSON and decode the JSON answer."""

        content = json.dumps(payload).encode("utf-8")
        try:
            answer = self.do(method, path, body=content, content_type=JSON_CONTENT_TYPE)
        except GerritTransportError:
            LOGGER.error("%s %s failed for payload %s", method, path, content.decode("utf-8"))
            raise
        return unmarshal(answer)

    # Checks plugin ------------------------------------------------------

    def pending_checks_by_scheme(self, scheme: str) -> list[PendingCheckEntry]:
        data = self.get_json(PENDING_PATH, {"query": f"scheme:{scheme}"})
        return _validate_list(PendingCheckEntry, data)

    def pending_checks(self, checker_uuid: str) -> list[PendingCheckEntry]:
        """Return pending checks for a single checker."""

        data = self.get_json(PENDING_PATH, {"query": f"checker:{checker_uuid}"})
        return _validate_list(PendingCheckEntry, data)

    def post_check(self, change_id: str, patch_set_id: int, check: CheckInput) -> CheckInfo:
        data = self.post_json(
            f"a/changes/{_escape(change_id)}/revisions/{patch_set_id}/checks/",
            check.model_dump(mode="json", exclude_none=True),
        )
        return _validate(CheckInfo, data)

    def get_check(self, change_id: str, patch_set_id: int, checker_uuid: str) -> CheckInfo:
        data = self.get_json(f"changes/{_escape(change_id)}/revisions/{patch_set_id}/checks/{_escape(checker_uuid)}")
        return _validate(CheckInfo, data)

    def list_checkers(self) -> list[CheckerInfo]:
        return _validate_list(CheckerInfo, self.get_json(CHECKERS_PATH))

    def post_checker(self, checker: CheckerInput, *, update: bool = False) -> CheckerInfo:
        path = CHECKERS_PATH + (_escape(checker.uuid) if update else "")
        data = self.post_json(path, checker.model_dump(mode="json", exclude_none=True))
        return _validate(CheckerInfo, data)

    # Changes ------------------------------------------------------------

    def get_content(self, change_id: str, revision: str, name: str) -> bytes:
        """Return the content of ``name`` in a revision."""

        raw = self.get_path(f"changes/{_escape(change_id)}/revisions/{revision}/files/{_escape(name)}/content")
        return decode_content(raw)

    def get_revision_files(self, change_id: str, revision: str) -> RevisionFileSet:
        listing = self.get_json(f"changes/{_escape(change_id)}/revisions/{revision}/files/")
        if not isinstance(listing, Mapping):
            raise GerritTransportError(f"unexpected file listing for {change_id}/{revision}")
        files: dict[str, RevisionFile] = {}
        for name, info in listing.items():
            status = info.get("status") if isinstance(info, Mapping) else None
            content = None if status == DELETED_STATUS else self.get_content(change_id, revision, name)
            files[name] = _validate(RevisionFile, {"status": status, "content": content})
        return RevisionFileSet(files=files)


def _validate(model: type[ModelT], data: Any) -> ModelT:
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise GerritTransportError(f"unexpected {model.__name__} payload: {exc}") from exc


def _validate_list(model: type[ModelT], data: Any) -> list[ModelT]:
    if data is None:
        return []
    if not isinstance(data, list):
        raise GerritTransportError(f"expected a list of {model.__name__}, got {type(data).__name__}")
    return [_validate(model, item) for item in data]


__all__ = ["GerritServer"]

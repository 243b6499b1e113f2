# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Blackcat Informatics® Inc.
"""Formatter strategy that delegates to an external binary.

The binary knows nothing about review servers: files are staged under their
relative names in a private temporary directory, the tool rewrites them in
place, and the result is read back from the same paths.
"""

from __future__ import annotations

import logging
import tempfile
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Final

from ..constants import STAGING_PREFIX
from ..errors import ToolFailureError
from ..models import FormattedFile, FormatResult, SourceFile
from ..process_utils import SubprocessExecutionError, run_command

LOGGER = logging.getLogger(__name__)

PATH_TRAVERSAL_COMPONENT: Final[str] = ".."


def _relative_path(name: str) -> PurePosixPath:
    """Return ``name`` as a safe relative path inside the staging directory.

    Raises:
        ToolFailureError: If ``name`` is absolute or escapes the directory.
    """

    path = PurePosixPath(name)
    if not name or path.is_absolute() or PATH_TRAVERSAL_COMPONENT in path.parts:
        raise ToolFailureError(f"refusing to stage unsafe file name {name!r}")
    return path


@dataclass(frozen=True, slots=True)
class ToolFormatter:
    """Run ``binary`` with ``args`` followed by the relative file names."""

    binary: str
    args: tuple[str, ...] = ()
    timeout: float | None = None
    search_path: str | None = field(default=None, compare=False)

    def command(self, names: Sequence[str]) -> list[str]:
        """Return the full command line for ``names``."""
        return [self.binary, *self.args, *names]

    def format(self, files: Sequence[SourceFile]) -> FormatResult:
        relative = [_relative_path(source.name) for source in files]
        with tempfile.TemporaryDirectory(prefix=STAGING_PREFIX) as tmp:
            root = Path(tmp)
            try:
                for source, rel in zip(files, relative, strict=True):
                    target = root.joinpath(*rel.parts)
                    target.parent.mkdir(parents=True, exist_ok=True)
                    target.write_bytes(source.content)
            except OSError as exc:
                raise ToolFailureError(f"staging files failed: {exc}") from exc

            output = self._run([str(rel) for rel in relative], root)

            out: list[FormattedFile] = []
            for source, rel in zip(files, relative, strict=True):
                try:
                    content = root.joinpath(*rel.parts).read_bytes()
                except OSError as exc:
                    raise ToolFailureError(f"reading {source.name} back failed: {exc}") from exc
                out.append(FormattedFile(name=source.name, content=content))
        return FormatResult(files=out, output=output)

    def _run(self, names: list[str], cwd: Path) -> str:
        command = self.command(names)
        LOGGER.info("running %s in %s", command, cwd)
        try:
            completed = run_command(
                command,
                cwd=cwd,
                search_path=self.search_path,
                check=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as exc:
            raise ToolFailureError(str(exc)) from exc
        except SubprocessExecutionError as exc:
            LOGGER.error(
                "error %s, stderr %s, stdout %s",
                exc,
                exc.stderr or "",
                exc.stdout or "",
            )
            raise ToolFailureError(str(exc), output=exc.output) from exc
        except OSError as exc:
            raise ToolFailureError(f"cannot run {self.binary}: {exc}") from exc
        return (completed.stdout or "") + (completed.stderr or "")


__all__ = ["PATH_TRAVERSAL_COMPONENT", "ToolFormatter"]

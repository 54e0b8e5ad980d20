"""ingestion/patch_writer.py — Applies confirmed remaps and writes the session.

Side effects: writes ``<session>.orig`` and replaces the session file (or
writes an explicit output path).  The order is fixed:

    1. backup    — original input bytes, exclusive create
    2. mutate    — Remap decisions only, in memory
    3. serialize — in memory
    4. replace   — temp file in the target directory, then os.replace

A failure at any step leaves the session file as it was.
"""

from __future__ import annotations

import contextlib
import logging
import os
import shutil
import tempfile
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from core.ardour.errors import BackupWriteError, PatchWriteError
from core.ardour.report import RemapSummary, summarize
from core.ardour.session import SessionDocument, serialize
from core.ardour.types import Remap, RemapDecision

logger = logging.getLogger(__name__)


class PatchStatus(str, Enum):
    NO_CHANGE = "no-change"
    PATCHED = "patched"
    DRY_RUN = "dry-run"


@dataclass(frozen=True)
class PatchResult:
    """Outcome of :meth:`PatchApplier.apply`."""

    status: PatchStatus
    summary: RemapSummary
    backup_path: Path | None = None
    output_path: Path | None = None


def backup_path_for(session_path: Path, suffix: str = ".orig") -> Path:
    """``/a/b/song.ardour`` → ``/a/b/song.ardour.orig``."""
    return session_path.with_name(session_path.name + suffix)


def apply_remaps(document: SessionDocument, decisions: Sequence[RemapDecision]) -> int:
    """Rewrite the stored index of every ``Remap`` decision; return how many."""
    count = 0
    for decision in decisions:
        if isinstance(decision, Remap):
            document.set_index(decision.reference, decision.new)
            count += 1
    return count


def render_patched(document: SessionDocument, decisions: Sequence[RemapDecision]) -> bytes:
    """Mutate and serialize in memory only (used for stdout output)."""
    apply_remaps(document, decisions)
    return serialize(document)


def write_backup(path: Path, data: bytes) -> None:
    """Create ``path`` holding ``data``; never overwrite an existing file.

    Raises:
        BackupWriteError: If ``path`` exists or cannot be written.
    """
    try:
        f = open(path, "xb")
    except FileExistsError as exc:
        raise BackupWriteError(f"backup already exists: {path}") from exc
    except OSError as exc:
        raise BackupWriteError(f"could not create backup {path}: {exc}") from exc

    try:
        with f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
    except OSError as exc:
        # Only the file we just created is removed.
        with contextlib.suppress(OSError):
            path.unlink()
        raise BackupWriteError(f"could not write backup {path}: {exc}") from exc
    logger.info("backup written: %s", path)


def write_atomic(path: Path, data: bytes) -> None:
    """Replace ``path`` with ``data`` via a temp file and ``os.replace``.

    Raises:
        PatchWriteError: If any step fails; ``path`` is then unchanged.
    """
    tmp_path: str | None = None
    try:
        fd, tmp_path = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        if path.exists():
            shutil.copymode(path, tmp_path)
        os.replace(tmp_path, path)
    except OSError as exc:
        if tmp_path is not None:
            with contextlib.suppress(FileNotFoundError):
                os.unlink(tmp_path)
        raise PatchWriteError(f"could not write {path}: {exc}") from exc
    logger.info("session written: %s", path)


class PatchApplier:
    """Applies resolver decisions to a document and persists the result.

    Args:
        session_path:  The session file the document was read from.
        output_path:   Write here instead of in place.  No backup is made
                       when an output path is given.
        backup_suffix: Appended to ``session_path`` for the backup.
        dry_run:       Mutate and serialize in memory only.
    """

    def __init__(
        self,
        session_path: Path,
        *,
        output_path: Path | None = None,
        backup_suffix: str = ".orig",
        dry_run: bool = False,
    ) -> None:
        self.session_path = Path(session_path)
        self.output_path = Path(output_path) if output_path is not None else None
        self.backup_suffix = backup_suffix
        self.dry_run = dry_run

    @property
    def in_place(self) -> bool:
        return self.output_path is None

    def apply(self, document: SessionDocument, decisions: Sequence[RemapDecision]) -> PatchResult:
        """Back up, mutate, serialize and write, in that order.

        Raises:
            BackupWriteError: Backup could not be created; nothing written.
            PatchWriteError:  Final write failed; the target is unchanged.
        """
        summary = summarize(decisions)
        if not summary.has_remaps:
            logger.info("no changes needed")
        if self.dry_run:
            render_patched(document, decisions)
            status = PatchStatus.DRY_RUN if summary.has_remaps else PatchStatus.NO_CHANGE
            return PatchResult(status=status, summary=summary)
        if self.in_place and not summary.has_remaps:
            return PatchResult(status=PatchStatus.NO_CHANGE, summary=summary)

        backup_path: Path | None = None
        if self.in_place:
            backup_path = backup_path_for(self.session_path, self.backup_suffix)
            write_backup(backup_path, document.source)

        # An explicit output path is always written, even when unchanged.
        patched = render_patched(document, decisions)
        target = self.output_path or self.session_path
        write_atomic(target, patched)

        return PatchResult(
            status=PatchStatus.PATCHED if summary.has_remaps else PatchStatus.NO_CHANGE,
            summary=summary,
            backup_path=backup_path,
            output_path=target,
        )

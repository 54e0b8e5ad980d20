"""
Tests for ingestion/patch_writer.py

Every test works inside tmp_path and checks the filesystem afterwards:
which files exist and what bytes they hold.
"""

import os
from pathlib import Path

import pytest

from conftest import EQ_URI, OLD_EQ, FakeDescriptorProvider, lv2_processor, make_session
from core.ardour.errors import BackupWriteError, PatchWriteError
from core.ardour.resolver import resolve
from core.ardour.session import enumerate_plugin_instances, parse
from ingestion.patch_writer import (
    PatchApplier,
    PatchStatus,
    backup_path_for,
    write_atomic,
    write_backup,
)


def _plan(data: bytes, provider):
    document = parse(data)
    return document, resolve(enumerate_plugin_instances(document), provider)


def _dir_listing(path: Path) -> list[str]:
    return sorted(p.name for p in path.iterdir())


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class TestBackupPathFor:
    def test_appends_suffix(self) -> None:
        assert backup_path_for(Path("/a/b/song.ardour")) == Path("/a/b/song.ardour.orig")

    def test_custom_suffix(self) -> None:
        assert backup_path_for(Path("song.ardour"), ".bak") == Path("song.ardour.bak")


class TestWriteBackup:
    def test_creates_file(self, tmp_path: Path) -> None:
        path = tmp_path / "s.ardour.orig"
        write_backup(path, b"<Session/>")
        assert path.read_bytes() == b"<Session/>"

    def test_refuses_to_overwrite(self, tmp_path: Path) -> None:
        path = tmp_path / "s.ardour.orig"
        path.write_bytes(b"older backup")
        with pytest.raises(BackupWriteError, match="already exists"):
            write_backup(path, b"new")
        assert path.read_bytes() == b"older backup"

    def test_missing_directory(self, tmp_path: Path) -> None:
        with pytest.raises(BackupWriteError):
            write_backup(tmp_path / "nope" / "s.orig", b"x")


class TestWriteAtomic:
    def test_replaces_content(self, tmp_path: Path) -> None:
        path = tmp_path / "s.ardour"
        path.write_bytes(b"old")
        write_atomic(path, b"new")
        assert path.read_bytes() == b"new"
        assert _dir_listing(tmp_path) == ["s.ardour"]

    def test_creates_missing_file(self, tmp_path: Path) -> None:
        path = tmp_path / "out.ardour"
        write_atomic(path, b"data")
        assert path.read_bytes() == b"data"

    def test_preserves_mode(self, tmp_path: Path) -> None:
        path = tmp_path / "s.ardour"
        path.write_bytes(b"old")
        os.chmod(path, 0o640)
        write_atomic(path, b"new")
        assert (path.stat().st_mode & 0o777) == 0o640

    def test_replace_failure_leaves_target_and_no_temp(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        path = tmp_path / "s.ardour"
        path.write_bytes(b"old")

        def boom(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr("ingestion.patch_writer.os.replace", boom)
        with pytest.raises(PatchWriteError, match="disk full"):
            write_atomic(path, b"new")
        assert path.read_bytes() == b"old"
        assert _dir_listing(tmp_path) == ["s.ardour"]


# ---------------------------------------------------------------------------
# PatchApplier
# ---------------------------------------------------------------------------


class TestPatchApplierInPlace:
    def test_patches_and_backs_up(self, session_file: Path, swapped_session: bytes, swapped_provider) -> None:
        document, decisions = _plan(swapped_session, swapped_provider)
        result = PatchApplier(session_file).apply(document, decisions)

        assert result.status == PatchStatus.PATCHED
        assert result.backup_path == session_file.with_name("demo.ardour.orig")
        assert result.backup_path.read_bytes() == swapped_session
        assert session_file.read_bytes() != swapped_session
        assert result.summary.remap_count == 4

    def test_patched_file_reparses_with_new_indices(
        self, session_file: Path, swapped_session: bytes, swapped_provider
    ) -> None:
        document, decisions = _plan(swapped_session, swapped_provider)
        PatchApplier(session_file).apply(document, decisions)
        eq = parse(session_file.read_bytes()).instances[0]
        assert [(r.stored_index, r.stored_label) for r in eq.references] == [
            (1, "Gain"),
            (0, "Freq"),
            (1, "Gain"),
            (0, "Freq"),
        ]

    def test_no_change_touches_nothing(self, tmp_path: Path) -> None:
        data = make_session(lv2_processor(EQ_URI, OLD_EQ))
        path = tmp_path / "demo.ardour"
        path.write_bytes(data)
        mtime = path.stat().st_mtime_ns

        document, decisions = _plan(data, FakeDescriptorProvider({EQ_URI: OLD_EQ}))
        result = PatchApplier(path).apply(document, decisions)

        assert result.status == PatchStatus.NO_CHANGE
        assert result.backup_path is None
        assert _dir_listing(tmp_path) == ["demo.ardour"]
        assert path.stat().st_mtime_ns == mtime

    def test_unresolved_only_touches_nothing(self, tmp_path: Path) -> None:
        data = make_session(lv2_processor(EQ_URI, OLD_EQ))
        path = tmp_path / "demo.ardour"
        path.write_bytes(data)

        document, decisions = _plan(data, FakeDescriptorProvider({}))
        result = PatchApplier(path).apply(document, decisions)

        assert result.status == PatchStatus.NO_CHANGE
        assert result.summary.unresolved_count == 2
        assert _dir_listing(tmp_path) == ["demo.ardour"]

    def test_existing_backup_aborts_before_writing(
        self, session_file: Path, swapped_session: bytes, swapped_provider
    ) -> None:
        backup = session_file.with_name("demo.ardour.orig")
        backup.write_bytes(b"previous run")
        document, decisions = _plan(swapped_session, swapped_provider)

        with pytest.raises(BackupWriteError):
            PatchApplier(session_file).apply(document, decisions)

        assert session_file.read_bytes() == swapped_session
        assert backup.read_bytes() == b"previous run"

    def test_write_failure_keeps_original_and_backup(
        self,
        session_file: Path,
        swapped_session: bytes,
        swapped_provider,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        def boom(src, dst):
            raise OSError("read-only file system")

        monkeypatch.setattr("ingestion.patch_writer.os.replace", boom)
        document, decisions = _plan(swapped_session, swapped_provider)

        with pytest.raises(PatchWriteError):
            PatchApplier(session_file).apply(document, decisions)

        assert session_file.read_bytes() == swapped_session
        assert session_file.with_name("demo.ardour.orig").read_bytes() == swapped_session
        assert _dir_listing(session_file.parent) == ["demo.ardour", "demo.ardour.orig"]

    def test_custom_backup_suffix(self, session_file: Path, swapped_session: bytes, swapped_provider) -> None:
        document, decisions = _plan(swapped_session, swapped_provider)
        result = PatchApplier(session_file, backup_suffix=".bak").apply(document, decisions)
        assert result.backup_path == session_file.with_name("demo.ardour.bak")
        assert result.backup_path.exists()


class TestPatchApplierOutputPath:
    def test_writes_output_without_backup(
        self, session_file: Path, swapped_session: bytes, swapped_provider
    ) -> None:
        out = session_file.with_name("fixed.ardour")
        document, decisions = _plan(swapped_session, swapped_provider)
        result = PatchApplier(session_file, output_path=out).apply(document, decisions)

        assert result.status == PatchStatus.PATCHED
        assert result.backup_path is None
        assert result.output_path == out
        assert session_file.read_bytes() == swapped_session
        assert out.read_bytes() != swapped_session
        assert _dir_listing(session_file.parent) == ["demo.ardour", "fixed.ardour"]

    def test_output_written_even_without_changes(self, tmp_path: Path) -> None:
        data = make_session(lv2_processor(EQ_URI, OLD_EQ))
        src = tmp_path / "demo.ardour"
        src.write_bytes(data)
        out = tmp_path / "copy.ardour"

        document, decisions = _plan(data, FakeDescriptorProvider({EQ_URI: OLD_EQ}))
        result = PatchApplier(src, output_path=out).apply(document, decisions)

        assert result.status == PatchStatus.NO_CHANGE
        assert out.read_bytes() == data


class TestPatchApplierDryRun:
    def test_dry_run_writes_nothing(self, session_file: Path, swapped_session: bytes, swapped_provider) -> None:
        document, decisions = _plan(swapped_session, swapped_provider)
        result = PatchApplier(session_file, dry_run=True).apply(document, decisions)

        assert result.status == PatchStatus.DRY_RUN
        assert result.summary.remap_count == 4
        assert session_file.read_bytes() == swapped_session
        assert _dir_listing(session_file.parent) == ["demo.ardour"]

    def test_dry_run_without_changes(self, tmp_path: Path) -> None:
        data = make_session(lv2_processor(EQ_URI, OLD_EQ))
        path = tmp_path / "demo.ardour"
        path.write_bytes(data)
        document, decisions = _plan(data, FakeDescriptorProvider({EQ_URI: OLD_EQ}))
        result = PatchApplier(path, dry_run=True).apply(document, decisions)
        assert result.status == PatchStatus.NO_CHANGE

"""
Tests for backup and restore of project state.

Tests cover:
- backup skipping absent entries and replacing previous backups
- restore converging the project to backup-time state
- discard
- SnapshotError reporting
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from update_engine.errors import SnapshotError
from update_engine.updates.operations import FileSystem, LocalFileSystem
from update_engine.updates.snapshot import SnapshotManager

FOLDERS = ["A", "B", "C"]

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    """Project with folders A and B (C absent)."""
    root = tmp_path / "project"
    (root / "A").mkdir(parents=True)
    (root / "A" / "file.txt").write_text("x")
    (root / "B").mkdir()
    (root / "B" / "file.txt").write_text("y")
    return root


@pytest.fixture
def backup_root(tmp_path: Path) -> Path:
    """Backup root location (not yet created)."""
    return tmp_path / "backup"


def listing(root: Path) -> set[str]:
    """Top-level entry names of a directory."""
    return {entry.name for entry in root.iterdir()}


# =============================================================================
# backup Tests
# =============================================================================


class TestBackup:
    """Tests for SnapshotManager.backup."""

    def test_backup_skips_absent_folders(self, project_root: Path, backup_root: Path) -> None:
        """Test only entries present in the project are captured."""
        manager = SnapshotManager()

        captured = manager.backup(FOLDERS, backup_root, project_root)

        assert captured == ["A", "B"]
        assert listing(backup_root) == {"A", "B"}
        assert (backup_root / "A" / "file.txt").read_text() == "x"
        assert (backup_root / "B" / "file.txt").read_text() == "y"

    def test_backup_replaces_previous_backup(self, project_root: Path, backup_root: Path) -> None:
        """Test a second backup discards everything from the first."""
        manager = SnapshotManager()
        backup_root.mkdir()
        (backup_root / "stale").mkdir()
        (backup_root / "C").mkdir()

        manager.backup(FOLDERS, backup_root, project_root)

        assert listing(backup_root) == {"A", "B"}

    def test_backup_with_nothing_present(self, tmp_path: Path, backup_root: Path) -> None:
        """Test backing up an empty project leaves an empty backup root."""
        manager = SnapshotManager()
        empty_project = tmp_path / "empty"
        empty_project.mkdir()

        assert manager.backup(FOLDERS, backup_root, empty_project) == []
        assert backup_root.is_dir()
        assert listing(backup_root) == set()

    def test_backup_captures_files(self, project_root: Path, backup_root: Path) -> None:
        """Test plain files in the folder list are captured too."""
        (project_root / "package.json").write_text('{"name": "app"}')
        manager = SnapshotManager()

        manager.backup(["package.json", "A"], backup_root, project_root)

        assert (backup_root / "package.json").read_text() == '{"name": "app"}'

    def test_backup_is_idempotent(self, project_root: Path, backup_root: Path) -> None:
        """Test repeated backups produce the same result."""
        manager = SnapshotManager()

        manager.backup(FOLDERS, backup_root, project_root)
        manager.backup(FOLDERS, backup_root, project_root)

        assert listing(backup_root) == {"A", "B"}


# =============================================================================
# restore Tests
# =============================================================================


class TestRestore:
    """Tests for SnapshotManager.restore."""

    def test_round_trip_after_mutation(self, project_root: Path, backup_root: Path) -> None:
        """Test restore brings back A and removes D created after the backup."""
        manager = SnapshotManager()
        manager.backup(FOLDERS, backup_root, project_root)

        LocalFileSystem().delete_directory(project_root / "A")
        (project_root / "B" / "file.txt").write_text("changed")
        (project_root / "D").mkdir()
        (project_root / "C").mkdir()

        restored = manager.restore(FOLDERS + ["D"], backup_root, project_root)

        assert restored == ["A", "B"]
        assert listing(project_root) == {"A", "B"}
        assert (project_root / "A" / "file.txt").read_text() == "x"
        assert (project_root / "B" / "file.txt").read_text() == "y"

    def test_nested_entry_round_trip(self, tmp_path: Path, backup_root: Path) -> None:
        """Test an entry below a subfolder is backed up and restored at its own path."""
        project = tmp_path / "nested-project"
        resources = project / "app" / "App_Resources"
        resources.mkdir(parents=True)
        (resources / "Info.plist").write_text("<plist/>")
        (project / "app" / "main.js").write_text("main")
        folders = ["app/App_Resources"]
        manager = SnapshotManager()

        manager.backup(folders, backup_root, project)
        assert (backup_root / "app" / "App_Resources" / "Info.plist").read_text() == "<plist/>"
        assert not (backup_root / "App_Resources").exists()

        (resources / "Info.plist").write_text("broken")
        (resources / "extra.xml").touch()
        restored = manager.restore(folders, backup_root, project)

        assert restored == folders
        assert listing(resources) == {"Info.plist"}
        assert (resources / "Info.plist").read_text() == "<plist/>"
        assert (project / "app" / "main.js").read_text() == "main"

    def test_nested_entry_restored_when_parent_removed(
        self, tmp_path: Path, backup_root: Path
    ) -> None:
        """Test restore recreates missing parents of a nested entry."""
        project = tmp_path / "nested-project"
        (project / "app" / "App_Resources").mkdir(parents=True)
        (project / "app" / "App_Resources" / "Info.plist").write_text("<plist/>")
        manager = SnapshotManager()
        manager.backup(["app/App_Resources"], backup_root, project)

        LocalFileSystem().delete_directory(project / "app")
        manager.restore(["app/App_Resources"], backup_root, project)

        assert (project / "app" / "App_Resources" / "Info.plist").read_text() == "<plist/>"

    def test_restore_removes_folder_absent_at_backup(
        self, project_root: Path, backup_root: Path
    ) -> None:
        """Test a listed folder created after the backup is deleted."""
        manager = SnapshotManager()
        manager.backup(FOLDERS, backup_root, project_root)
        (project_root / "C").mkdir()
        (project_root / "C" / "new.txt").touch()

        manager.restore(FOLDERS, backup_root, project_root)

        assert not (project_root / "C").exists()

    def test_restore_leaves_unlisted_entries(self, project_root: Path, backup_root: Path) -> None:
        """Test entries outside the folder list are not touched."""
        manager = SnapshotManager()
        manager.backup(FOLDERS, backup_root, project_root)
        (project_root / "app").mkdir()

        manager.restore(FOLDERS, backup_root, project_root)

        assert (project_root / "app").is_dir()

    def test_restore_keeps_backup(self, project_root: Path, backup_root: Path) -> None:
        """Test restoring does not consume the backup."""
        manager = SnapshotManager()
        manager.backup(FOLDERS, backup_root, project_root)

        manager.restore(FOLDERS, backup_root, project_root)

        assert listing(backup_root) == {"A", "B"}


# =============================================================================
# discard Tests
# =============================================================================


class TestDiscard:
    """Tests for SnapshotManager.discard."""

    def test_discard_removes_backup(self, project_root: Path, backup_root: Path) -> None:
        """Test discard deletes the backup root."""
        manager = SnapshotManager()
        manager.backup(FOLDERS, backup_root, project_root)

        manager.discard(backup_root)

        assert not backup_root.exists()

    def test_discard_missing_backup(self, backup_root: Path) -> None:
        """Test discarding a missing backup is a no-op."""
        SnapshotManager().discard(backup_root)


# =============================================================================
# Error Handling Tests
# =============================================================================


class TestSnapshotErrors:
    """Tests for SnapshotError reporting."""

    def test_backup_copy_failure_names_folder_and_path(
        self, project_root: Path, backup_root: Path
    ) -> None:
        """Test a failing copy reports the folder and path."""
        fs = MagicMock(spec=FileSystem)
        fs.exists.return_value = True
        fs.copy_directory.side_effect = PermissionError("denied")
        manager = SnapshotManager(fs)

        with pytest.raises(SnapshotError) as exc_info:
            manager.backup(["A"], backup_root, project_root)

        details = exc_info.value.details
        assert details["operation"] == "backup"
        assert details["folder"] == "A"
        assert details["path"] == str(project_root / "A")
        assert isinstance(exc_info.value.__cause__, PermissionError)

    def test_backup_root_failure_aborts_before_copy(
        self, project_root: Path, backup_root: Path
    ) -> None:
        """Test failing to prepare the backup root copies nothing."""
        fs = MagicMock(spec=FileSystem)
        fs.create_directory.side_effect = OSError("read-only filesystem")
        manager = SnapshotManager(fs)

        with pytest.raises(SnapshotError) as exc_info:
            manager.backup(FOLDERS, backup_root, project_root)

        assert exc_info.value.details["path"] == str(backup_root)
        assert exc_info.value.details["folder"] is None
        fs.copy_directory.assert_not_called()

    def test_restore_failure_is_raised(self, project_root: Path, backup_root: Path) -> None:
        """Test a failing delete during restore is surfaced."""
        fs = MagicMock(spec=FileSystem)
        fs.delete_directory.side_effect = OSError("busy")
        manager = SnapshotManager(fs)

        with pytest.raises(SnapshotError) as exc_info:
            manager.restore(["B"], backup_root, project_root)

        assert exc_info.value.details["operation"] == "restore"
        assert exc_info.value.details["folder"] == "B"
        assert "B" in exc_info.value.message

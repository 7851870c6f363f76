"""
Backup and restore of project state around an update.

A backup copies a fixed list of project-relative entries into a backup root.
Entries missing from the project are skipped, so the backup records exactly
what existed at backup time. Nested entries (``app/App_Resources``) keep
their relative path inside the backup root.

A restore converges the project back to that record: every listed entry is
deleted from the project, then copied back only if the backup holds it. An
entry created after the backup is therefore removed, and nothing that
existed at backup time is lost.

Backup and restore are synchronous and unlocked. Callers must not run them
concurrently against the same project or backup root.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from pathlib import Path

from update_engine.errors import SnapshotError
from update_engine.logging import get_context_logger, get_logger
from update_engine.updates.operations import FileSystem, LocalFileSystem

logger = get_logger(__name__)


class SnapshotManager:
    """
    Creates, restores and discards project backups.

    Attributes:
        fs: Filesystem the snapshots are taken on.
    """

    def __init__(self, fs: FileSystem | None = None) -> None:
        """
        Initialize the manager.

        Args:
            fs: Filesystem implementation. Defaults to LocalFileSystem.
        """
        self.fs = fs if fs is not None else LocalFileSystem()

    def backup(
        self,
        folders: Iterable[str],
        backup_root: Path,
        project_root: Path,
    ) -> list[str]:
        """
        Capture the listed project entries into ``backup_root``.

        Any previous backup at ``backup_root`` is deleted first.

        Args:
            folders: Project-relative entry names.
            backup_root: Backup root directory.
            project_root: Project root directory.

        Returns:
            The entry names that were captured.

        Raises:
            SnapshotError: If any filesystem operation fails.
        """
        self._run("backup", None, backup_root, self.fs.delete_directory, backup_root)
        self._run("backup", None, backup_root, self.fs.create_directory, backup_root)

        captured = []
        for folder in folders:
            source = project_root / folder
            if not self.fs.exists(source):
                continue
            dest_parent = (backup_root / folder).parent
            if dest_parent != backup_root:
                self._run("backup", folder, dest_parent, self.fs.create_directory, dest_parent)
            self._run("backup", folder, source, self.fs.copy_directory, source, dest_parent)
            captured.append(folder)

        logger.info(
            "Backup created",
            extra={
                "backup_root": str(backup_root),
                "project_root": str(project_root),
                "captured": captured,
            },
        )
        return captured

    def restore(
        self,
        folders: Iterable[str],
        backup_root: Path,
        project_root: Path,
    ) -> list[str]:
        """
        Return the listed project entries to their backup-time state.

        Args:
            folders: Project-relative entry names; must match the backup call.
            backup_root: Backup root directory.
            project_root: Project root directory.

        Returns:
            The entry names that were copied back from the backup.

        Raises:
            SnapshotError: If any filesystem operation fails. The project may
                then be partially restored.
        """
        restored = []
        for folder in folders:
            target = project_root / folder
            self._run("restore", folder, target, self.fs.delete_directory, target)

            saved = backup_root / folder
            if self.fs.exists(saved):
                if not self.fs.exists(target.parent):
                    self._run(
                        "restore", folder, target.parent, self.fs.create_directory, target.parent
                    )
                self._run("restore", folder, saved, self.fs.copy_directory, saved, target.parent)
                restored.append(folder)

        logger.info(
            "Backup restored",
            extra={
                "backup_root": str(backup_root),
                "project_root": str(project_root),
                "restored": restored,
            },
        )
        return restored

    def discard(self, backup_root: Path) -> None:
        """
        Delete a backup root once it is no longer needed.

        Raises:
            SnapshotError: If the backup cannot be deleted.
        """
        self._run("discard", None, backup_root, self.fs.delete_directory, backup_root)
        logger.debug("Backup discarded", extra={"backup_root": str(backup_root)})

    def _run(
        self,
        operation: str,
        folder: str | None,
        path: Path,
        func: Callable[..., None],
        *args: Path,
    ) -> None:
        """Call ``func(*args)``, turning an OSError into a SnapshotError."""
        try:
            func(*args)
        except OSError as e:
            get_context_logger(__name__, operation=operation, folder=folder).error(
                f"Snapshot {operation} failed",
                extra={"path": str(path), "error": str(e)},
            )
            subject = f"folder {folder!r}" if folder else "backup root"
            raise SnapshotError(
                f"Failed to {operation} {subject} at {path}: {e}",
                details={
                    "operation": operation,
                    "folder": folder,
                    "path": str(path),
                    "error": str(e),
                },
            ) from e

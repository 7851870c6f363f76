"""
Filesystem operations used by the snapshot manager.

FileSystem is the narrow interface the backup/restore protocol needs;
LocalFileSystem implements it on the local disk with shutil/pathlib.

Entries handled here are usually directories, but plain files (package.json,
lock files) go through the same calls.
"""

from __future__ import annotations

import shutil
from abc import ABC, abstractmethod
from pathlib import Path

from update_engine.logging import get_logger

logger = get_logger(__name__)


class FileSystem(ABC):
    """Filesystem interface consumed by SnapshotManager."""

    @abstractmethod
    def exists(self, path: Path) -> bool:
        """Return True if ``path`` exists."""

    @abstractmethod
    def delete_directory(self, path: Path) -> None:
        """Recursively delete ``path``. A missing path is not an error."""

    @abstractmethod
    def create_directory(self, path: Path) -> None:
        """Create ``path`` and any missing parents."""

    @abstractmethod
    def copy_directory(self, source: Path, dest_into: Path) -> None:
        """Copy ``source`` into ``dest_into``, as ``dest_into / source.name``."""


class LocalFileSystem(FileSystem):
    """
    FileSystem backed by the local disk.

    OSErrors propagate to the caller unchanged.
    """

    def __init__(self, *, mode: int = 0o755) -> None:
        """
        Initialize the filesystem.

        Args:
            mode: Permissions for created directories.
        """
        self.mode = mode

    def exists(self, path: Path) -> bool:
        # Broken symlinks still occupy the name
        return path.exists() or path.is_symlink()

    def delete_directory(self, path: Path) -> None:
        if path.is_symlink() or path.is_file():
            path.unlink()
        elif path.is_dir():
            shutil.rmtree(path)
        else:
            return
        logger.debug("Removed path", extra={"path": str(path)})

    def create_directory(self, path: Path) -> None:
        path.mkdir(parents=True, mode=self.mode, exist_ok=True)

    def copy_directory(self, source: Path, dest_into: Path) -> None:
        destination = dest_into / source.name
        if source.is_dir() and not source.is_symlink():
            shutil.copytree(source, destination, symlinks=True)
        else:
            shutil.copy2(source, destination, follow_symlinks=False)
        logger.debug(
            "Copied path",
            extra={"source": str(source), "destination": str(destination)},
        )

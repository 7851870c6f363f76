"""
Base class for update controllers.

A concrete controller ("update the runtime", "update a template", ...)
subclasses UpdateControllerBase and implements the mutation itself. The base
class wires the resolver, snapshot manager and dependency query together and
runs the mutation under the backup/restore protocol:

1. back up the configured project entries
2. run the mutation
3. on failure, restore the backup and re-raise the original error
4. on success, leave the backup in place for the caller to discard
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import TYPE_CHECKING, TypeVar

from update_engine.logging import get_logger
from update_engine.project import ProjectData, load_project
from update_engine.registry.npm import NpmRegistryClient
from update_engine.updates.dependencies import DependencyQuery
from update_engine.updates.platforms import PlatformDataService, ProjectPlatformDataService
from update_engine.updates.resolver import VersionResolver
from update_engine.updates.snapshot import SnapshotManager

if TYPE_CHECKING:
    from update_engine.config import AppConfig
    from update_engine.registry.client import RegistryClient

logger = get_logger(__name__)

T = TypeVar("T")

DEFAULT_BACKUP_DIR = ".update_backup"
DEFAULT_RUNTIME_SECTION = "nativescript"


class UpdateControllerBase:
    """
    Shared machinery for update controllers.

    Attributes:
        resolver: Version resolver.
        snapshots: Snapshot manager.
        dependencies: Dependency query.
        folders: Project-relative entries protected by a backup.
        backup_dir: Backup root, relative to the project directory.
        runtime_section: package.json key holding installed runtime versions.
    """

    def __init__(
        self,
        resolver: VersionResolver,
        snapshots: SnapshotManager,
        dependencies: DependencyQuery,
        folders: list[str],
        backup_dir: str = DEFAULT_BACKUP_DIR,
        runtime_section: str = DEFAULT_RUNTIME_SECTION,
    ) -> None:
        self.resolver = resolver
        self.snapshots = snapshots
        self.dependencies = dependencies
        self.folders = list(folders)
        self.backup_dir = backup_dir
        self.runtime_section = runtime_section

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        *,
        registry: RegistryClient | None = None,
        platforms: PlatformDataService | None = None,
    ) -> UpdateControllerBase:
        """
        Build a controller from AppConfig.

        Args:
            config: Application configuration.
            registry: Registry client override. Defaults to NpmRegistryClient.
            platforms: Platform lookup override. Defaults to
                ProjectPlatformDataService.
        """
        if registry is None:
            registry = NpmRegistryClient.from_config(config.registry)
        if platforms is None:
            platforms = ProjectPlatformDataService.from_config(config.platforms)

        resolver = VersionResolver.from_config(registry, config.resolver)
        return cls(
            resolver=resolver,
            snapshots=SnapshotManager(),
            dependencies=DependencyQuery(resolver, platforms),
            folders=config.snapshot.folders,
            backup_dir=config.snapshot.backup_dir,
            runtime_section=config.platforms.runtime_section,
        )

    def load_project(self, project_dir: Path | str) -> ProjectData:
        """
        Load the project an update will run against.

        Runtime versions are read from the configured package.json section.

        Raises:
            FailedPreconditionError: If package.json is missing or invalid.
        """
        return load_project(project_dir, runtime_section=self.runtime_section)

    def get_backup_dir(self, project: ProjectData) -> Path:
        """Return the backup root of a project."""
        return project.project_dir / self.backup_dir

    def backup(self, project: ProjectData) -> list[str]:
        """Back up the protected entries of a project."""
        return self.snapshots.backup(self.folders, self.get_backup_dir(project), project.project_dir)

    def restore_backup(self, project: ProjectData) -> list[str]:
        """Restore the protected entries of a project from its backup."""
        return self.snapshots.restore(self.folders, self.get_backup_dir(project), project.project_dir)

    def discard_backup(self, project: ProjectData) -> None:
        """Delete the backup of a project."""
        self.snapshots.discard(self.get_backup_dir(project))

    async def guarded_update(
        self,
        project: ProjectData,
        mutation: Callable[[], Awaitable[T]],
    ) -> T:
        """
        Run ``mutation`` with the project backed up, restoring it on failure.

        A backup failure aborts before anything is mutated. If the mutation
        fails, the backup is restored and the mutation's exception re-raised.
        If the restore fails as well, its SnapshotError is raised instead,
        chained from the mutation's exception.

        Args:
            project: Project being updated.
            mutation: Zero-argument coroutine function performing the update.

        Returns:
            Whatever ``mutation`` returned.

        Raises:
            SnapshotError: If the backup or the restore fails.
            Exception: Whatever ``mutation`` raised, after a successful restore.
        """
        self.backup(project)

        try:
            result = await mutation()
        except BaseException as exc:
            logger.warning(
                "Update failed, restoring backup",
                extra={"project_dir": str(project.project_dir), "error": str(exc)},
            )
            try:
                self.restore_backup(project)
            except Exception:
                logger.error(
                    "Restoring backup failed; project is partially restored",
                    extra={"project_dir": str(project.project_dir)},
                    exc_info=True,
                )
                raise
            raise

        logger.info(
            "Update completed",
            extra={"project_dir": str(project.project_dir)},
        )
        return result

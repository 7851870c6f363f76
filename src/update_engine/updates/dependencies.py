"""
Read-only checks that decide whether an update applies to a project.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from update_engine.logging import get_logger

if TYPE_CHECKING:
    from update_engine.project import Dependency, ProjectData
    from update_engine.updates.platforms import PlatformDataService
    from update_engine.updates.resolver import VersionResolver

logger = get_logger(__name__)


class DependencyQuery:
    """
    Queries over declared dependencies and installed runtime platforms.

    Attributes:
        resolver: Resolver used to find the newest runtime version.
        platforms: Platform runtime lookup.
    """

    def __init__(self, resolver: VersionResolver, platforms: PlatformDataService) -> None:
        self.resolver = resolver
        self.platforms = platforms

    def has_dependency(self, dependency: Dependency, project: ProjectData) -> bool:
        """
        Check whether the project declares a dependency.

        The package name must be a key of ``dependencies`` or
        ``devDependencies``; missing mappings declare nothing.
        """
        for declared in (project.dependencies, project.dev_dependencies):
            if declared and dependency.package_name in declared:
                return True
        return False

    def has_runtime_dependency(self, platform: str, project: ProjectData) -> bool:
        """Check whether the project has a runtime installed for ``platform``."""
        return bool(self.platforms.get_current_platform_version(platform.lower(), project))

    async def get_max_runtime_version(self, platform: str, project: ProjectData) -> str | None:
        """
        Get the newest runtime version the platform can be updated to.

        The installed version is used as the specifier for the platform's
        framework package. If the registry has nothing matching it, the
        installed version itself is returned.

        Args:
            platform: Platform name (case-insensitive).
            project: Project data.

        Returns:
            The target runtime version, or None if the platform has no
            installed runtime.

        Raises:
            RegistryLookupError: If the registry call fails.
        """
        lowercase_platform = platform.lower()
        current_version = self.platforms.get_current_platform_version(lowercase_platform, project)
        if not current_version:
            return None

        package_name = self.platforms.get_framework_package_name(lowercase_platform, project)
        max_version = await self.resolver.resolve_max_version(package_name, current_version)

        if not max_version:
            logger.debug(
                "Keeping installed runtime version",
                extra={"platform": lowercase_platform, "version": current_version},
            )
            return current_version
        return max_version

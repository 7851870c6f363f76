"""
Platform runtime lookup.

A runtime platform (android, ios, ...) is backed by a framework package in
the registry. PlatformDataService answers which package that is and which
version of it the project currently has installed.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from update_engine.errors import InvalidArgumentError
from update_engine.logging import get_logger

if TYPE_CHECKING:
    from update_engine.config import PlatformsConfig
    from update_engine.project import ProjectData

logger = get_logger(__name__)


class PlatformDataService(ABC):
    """Platform lookups consumed by DependencyQuery. Platform names are lowercase."""

    @abstractmethod
    def get_current_platform_version(self, platform: str, project: ProjectData) -> str | None:
        """Return the installed runtime version, or None if the platform is not added."""

    @abstractmethod
    def get_framework_package_name(self, platform: str, project: ProjectData) -> str:
        """Return the registry package backing ``platform``."""


class ProjectPlatformDataService(PlatformDataService):
    """
    PlatformDataService reading runtime versions from project data.

    The installed version of a platform is taken from the project's runtime
    section (``{"tns-android": {"version": "6.0.0"}}``); if the runtime is
    not recorded there, the framework package entry in dependencies or
    devDependencies is used instead.

    Attributes:
        framework_packages: Lowercase platform name to framework package name.
    """

    def __init__(self, framework_packages: dict[str, str]) -> None:
        self.framework_packages = {
            platform.lower(): package for platform, package in framework_packages.items()
        }

    @classmethod
    def from_config(cls, config: PlatformsConfig) -> ProjectPlatformDataService:
        """Create the service from PlatformsConfig."""
        return cls(config.framework_packages)

    def get_framework_package_name(self, platform: str, project: ProjectData) -> str:
        package = self.framework_packages.get(platform.lower())
        if package is None:
            raise InvalidArgumentError(
                f"Unknown platform: {platform}",
                details={
                    "platform": platform,
                    "known_platforms": sorted(self.framework_packages),
                },
            )
        return package

    def get_current_platform_version(self, platform: str, project: ProjectData) -> str | None:
        package = self.framework_packages.get(platform.lower())
        if package is None:
            return None

        runtime = project.runtime_config.get(package)
        if isinstance(runtime, dict) and runtime.get("version"):
            return str(runtime["version"])

        for declared in (project.dependencies, project.dev_dependencies):
            if declared and declared.get(package):
                return declared[package]

        return None

"""
Package registry client abstraction.

The version resolver only talks to a registry through this interface, so the
transport (npm HTTP API, a local mirror, a test double) is swappable.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class RegistryClient(ABC):
    """
    Abstract base class for package registry clients.

    Implementations raise RegistryLookupError for transport failures,
    unsuccessful responses and packages unknown to the registry. A tag or
    range that simply has no match is not an error; it yields None.
    """

    @abstractmethod
    async def get_tag_version(self, name: str, tag: str) -> str | None:
        """
        Get the version currently bound to a dist-tag.

        Args:
            name: Package name.
            tag: Dist-tag (e.g., "latest", "next").

        Returns:
            The tagged version, or None if the tag is not set.

        Raises:
            RegistryLookupError: If the registry cannot be queried.
        """

    @abstractmethod
    async def max_satisfying_version(self, name: str, version_range: str) -> str | None:
        """
        Get the highest published version satisfying a semver range.

        Args:
            name: Package name.
            version_range: npm-style semver range (e.g., "6.x", "^1.2.0").

        Returns:
            The highest matching version, or None if nothing matches.

        Raises:
            RegistryLookupError: If the registry cannot be queried.
        """

    @abstractmethod
    async def fetch_manifest(
        self,
        name: str,
        version: str,
        *,
        full_metadata: bool = True,
    ) -> dict[str, Any]:
        """
        Fetch registry metadata for one exact package version.

        Args:
            name: Package name.
            version: Exact version.
            full_metadata: Request the full (not abbreviated) document.

        Returns:
            The version manifest.

        Raises:
            RegistryLookupError: If the manifest cannot be fetched.
        """

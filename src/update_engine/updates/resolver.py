"""
Version resolution against a package registry.

VersionResolver turns a version specifier into a concrete version:

- exact versions are returned as-is, without a registry call
- ranges resolve to the highest published version satisfying them
- anything else is looked up as a dist-tag

Manifest retrieval is memoized per (name, specifier) and de-duplicated, so
concurrent update operations asking for the same manifest share one fetch.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from update_engine.errors import ResolutionError
from update_engine.logging import get_context_logger, get_logger
from update_engine.updates.single_flight import ManifestCache
from update_engine.updates.specifier import (
    SpecifierKind,
    classify_specifier,
    is_exact_version,
)
from update_engine.versions import clean_version

if TYPE_CHECKING:
    from update_engine.config import ResolverConfig
    from update_engine.registry.client import RegistryClient

logger = get_logger(__name__)


def make_manifest_key(name: str, specifier: str) -> str:
    """Join a package name and specifier into a manifest cache key."""
    return f"{name}@{specifier}"


class VersionResolver:
    """
    Resolves version specifiers to concrete versions.

    Attributes:
        registry: Registry client used for tag, range and manifest lookups.
    """

    def __init__(
        self,
        registry: RegistryClient,
        cache: ManifestCache | None = None,
    ) -> None:
        """
        Initialize the resolver.

        Args:
            registry: Registry client.
            cache: Manifest cache. A fresh cache is created if omitted.
        """
        self.registry = registry
        self._cache = cache if cache is not None else ManifestCache()

    @classmethod
    def from_config(cls, registry: RegistryClient, config: ResolverConfig) -> VersionResolver:
        """Create a resolver from ResolverConfig."""
        return cls(registry, ManifestCache(cache_failures=config.cache_failures))

    @property
    def cache(self) -> ManifestCache:
        """The manifest cache owned by this resolver."""
        return self._cache

    async def resolve_max_version(self, dependency_name: str, specifier: str) -> str | None:
        """
        Resolve a specifier to the version an update should move to.

        Args:
            dependency_name: Registry package name.
            specifier: Exact version, semver range or dist-tag.

        Returns:
            The resolved version, or None if the registry has no match.

        Raises:
            InvalidArgumentError: If the specifier is empty.
            RegistryLookupError: If the registry call fails.
        """
        kind = classify_specifier(specifier)

        if kind is SpecifierKind.EXACT:
            return specifier

        if kind is SpecifierKind.RANGE:
            version = await self.registry.max_satisfying_version(dependency_name, specifier)
        else:
            version = await self.registry.get_tag_version(dependency_name, specifier)

        if version is None:
            logger.warning(
                "No registry version matches specifier",
                extra={
                    "package": dependency_name,
                    "specifier": specifier,
                    "kind": kind.value,
                },
            )
        else:
            logger.debug(
                "Resolved specifier",
                extra={
                    "package": dependency_name,
                    "specifier": specifier,
                    "kind": kind.value,
                    "version": version,
                },
            )
        return version

    async def get_package_manifest(self, name: str, specifier: str) -> dict[str, Any]:
        """
        Get the full registry manifest for a package.

        Only exact versions and dist-tags are meaningful here: a non-exact
        specifier goes straight to the dist-tag lookup and ranges are not
        satisfied against the published versions.

        Results are memoized by the literal (name, specifier) pair for the
        lifetime of this resolver.

        Args:
            name: Package or template name.
            specifier: Exact version or dist-tag.

        Returns:
            The version manifest.

        Raises:
            ResolutionError: If the specifier does not resolve to an exact version.
            RegistryLookupError: If a registry call fails.
        """
        return await self._cache.get_or_fetch(
            make_manifest_key(name, specifier),
            lambda: self._fetch_package_manifest(name, specifier),
        )

    async def _fetch_package_manifest(self, name: str, specifier: str) -> dict[str, Any]:
        log = get_context_logger(__name__, package=name, specifier=specifier)

        if is_exact_version(specifier):
            resolved: str | None = specifier
        else:
            resolved = await self.registry.get_tag_version(name, specifier)
        version = clean_version(resolved)

        if version is None:
            log.error(
                "Specifier did not resolve to an exact version",
                extra={"resolved": resolved},
            )
            raise ResolutionError(
                f"Failed to get information for package: {name}@{specifier}",
                details={"package": name, "specifier": specifier, "resolved": resolved},
            )

        manifest = await self.registry.fetch_manifest(name, version, full_metadata=True)
        log.debug("Fetched package manifest", extra={"version": version})
        return manifest

    def invalidate(self, name: str | None = None, specifier: str | None = None) -> int:
        """
        Drop memoized manifests.

        Args:
            name: Package name. If None, the whole cache is cleared.
            specifier: Specifier. If None, every specifier of ``name`` is dropped.

        Returns:
            Number of entries dropped.
        """
        if name is None:
            count = len(self._cache)
            self._cache.clear()
            return count
        if specifier is not None:
            return int(self._cache.invalidate(make_manifest_key(name, specifier)))
        return self._cache.invalidate_prefix(f"{name}@")

"""
npm registry client.

Implements RegistryClient against the public npm registry HTTP API (or any
compatible mirror):

- ``GET /-/package/<name>/dist-tags`` for dist-tag lookup
- ``GET /<name>`` (abbreviated packument) for range satisfaction
- ``GET /<name>/<version>`` for a single version manifest
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpx
import semantic_version

from update_engine.errors import RegistryLookupError
from update_engine.logging import get_logger
from update_engine.registry.client import RegistryClient
from update_engine.versions import normalize_range

if TYPE_CHECKING:
    from update_engine.config import RegistryConfig

logger = get_logger(__name__)

DEFAULT_REGISTRY_URL = "https://registry.npmjs.org"

# Abbreviated metadata omits readmes and per-version scripts
ABBREVIATED_ACCEPT = "application/vnd.npm.install-v1+json; q=1.0, application/json; q=0.8"
FULL_ACCEPT = "application/json"


def encode_package_name(name: str) -> str:
    """Encode a package name for use in a registry URL path.

    Scoped packages keep the ``@`` but the slash must be escaped:
    ``@scope/pkg`` becomes ``@scope%2fpkg``.
    """
    return name.replace("/", "%2f")


class NpmRegistryClient(RegistryClient):
    """
    Async client for an npm-compatible registry.

    A new ``httpx.AsyncClient`` is opened per call, so one instance can be
    shared freely between concurrent update operations.

    Attributes:
        registry_url: Base registry URL without a trailing slash.
        timeout: Per-request timeout in seconds.
    """

    def __init__(
        self,
        registry_url: str = DEFAULT_REGISTRY_URL,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            registry_url: Base registry URL.
            timeout: Per-request timeout in seconds.
            transport: Optional httpx transport (e.g., a mock transport).
        """
        self.registry_url = registry_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_config(cls, config: RegistryConfig) -> NpmRegistryClient:
        """Create a client from RegistryConfig."""
        return cls(registry_url=config.url, timeout=config.timeout_seconds)

    async def _get_json(self, name: str, path: str, accept: str) -> Any:
        """
        GET a registry document and decode it.

        Raises:
            RegistryLookupError: On transport errors, non-2xx statuses and
                undecodable bodies.
        """
        url = f"{self.registry_url}{path}"
        logger.debug("Registry request", extra={"package": name, "url": url})

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                response = await client.get(url, headers={"Accept": accept})
        except httpx.HTTPError as e:
            logger.error(
                "Registry request failed",
                extra={"package": name, "url": url, "error": str(e)},
            )
            raise RegistryLookupError(
                f"Failed to query registry for package {name}: {e}",
                details={"package": name, "url": url, "error": str(e)},
            ) from e

        if response.status_code == 404:
            raise RegistryLookupError(
                f"Package not found in registry: {name}",
                details={"package": name, "url": url, "status_code": 404},
            )
        if not response.is_success:
            raise RegistryLookupError(
                f"Registry returned HTTP {response.status_code} for package {name}",
                details={
                    "package": name,
                    "url": url,
                    "status_code": response.status_code,
                },
            )

        try:
            return response.json()
        except ValueError as e:
            raise RegistryLookupError(
                f"Invalid registry response for package {name}",
                details={"package": name, "url": url, "error": str(e)},
            ) from e

    async def get_tag_version(self, name: str, tag: str) -> str | None:
        """Return the version bound to ``tag``, or None if the tag is unset."""
        tags = await self._get_json(
            name,
            f"/-/package/{encode_package_name(name)}/dist-tags",
            FULL_ACCEPT,
        )
        if not isinstance(tags, dict):
            return None

        version = tags.get(tag)
        logger.debug(
            "Resolved dist-tag",
            extra={"package": name, "tag": tag, "version": version},
        )
        return version

    async def max_satisfying_version(self, name: str, version_range: str) -> str | None:
        """Return the highest published version matching ``version_range``."""
        packument = await self._get_json(
            name,
            f"/{encode_package_name(name)}",
            ABBREVIATED_ACCEPT,
        )
        published = packument.get("versions", {}) if isinstance(packument, dict) else {}

        candidates = []
        for raw in published:
            try:
                candidates.append(semantic_version.Version(raw))
            except ValueError:
                continue  # Not semver; npm would ignore it as well

        try:
            spec = semantic_version.NpmSpec(normalize_range(version_range))
        except ValueError:
            return None

        best = spec.select(candidates)
        logger.debug(
            "Resolved version range",
            extra={
                "package": name,
                "range": version_range,
                "candidate_count": len(candidates),
                "version": str(best) if best else None,
            },
        )
        return str(best) if best is not None else None

    async def fetch_manifest(
        self,
        name: str,
        version: str,
        *,
        full_metadata: bool = True,
    ) -> dict[str, Any]:
        """Fetch the manifest of ``name@version``."""
        manifest = await self._get_json(
            name,
            f"/{encode_package_name(name)}/{version}",
            FULL_ACCEPT if full_metadata else ABBREVIATED_ACCEPT,
        )
        if not isinstance(manifest, dict):
            raise RegistryLookupError(
                f"Invalid manifest for package {name}@{version}",
                details={"package": name, "version": version},
            )
        return manifest

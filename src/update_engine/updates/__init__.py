"""
Update resolution and safety mechanisms.

This package implements:
- Version specifier classification (exact / range / dist-tag)
- Version resolution with memoized, de-duplicated manifest lookup
- Backup and restore of project state around an update
- Dependency and runtime platform queries
- The base class concrete update controllers build on
"""

from update_engine.updates.controller import UpdateControllerBase
from update_engine.updates.dependencies import DependencyQuery
from update_engine.updates.operations import FileSystem, LocalFileSystem
from update_engine.updates.platforms import (
    PlatformDataService,
    ProjectPlatformDataService,
)
from update_engine.updates.resolver import VersionResolver, make_manifest_key
from update_engine.updates.single_flight import ManifestCache
from update_engine.updates.snapshot import SnapshotManager
from update_engine.updates.specifier import (
    SpecifierKind,
    classify_specifier,
    is_exact_version,
    is_valid_range,
)

__all__ = [
    # Specifiers
    "SpecifierKind",
    "classify_specifier",
    "is_exact_version",
    "is_valid_range",
    # Resolution
    "VersionResolver",
    "ManifestCache",
    "make_manifest_key",
    # Snapshots
    "FileSystem",
    "LocalFileSystem",
    "SnapshotManager",
    # Queries
    "PlatformDataService",
    "ProjectPlatformDataService",
    "DependencyQuery",
    # Controller
    "UpdateControllerBase",
]

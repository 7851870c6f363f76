"""
Pytest configuration for the update engine tests.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock

import pytest

from update_engine.project import ProjectData
from update_engine.registry.client import RegistryClient


@pytest.fixture
def registry() -> AsyncMock:
    """Registry client double with no versions, tags or manifests."""
    client = AsyncMock(spec=RegistryClient)
    client.get_tag_version.return_value = None
    client.max_satisfying_version.return_value = None
    client.fetch_manifest.return_value = {}
    return client


@pytest.fixture
def make_project(tmp_path: Path) -> Callable[..., ProjectData]:
    """Factory writing a package.json and returning matching ProjectData."""

    def _make(
        dependencies: dict[str, str] | None = None,
        dev_dependencies: dict[str, str] | None = None,
        runtime_config: dict[str, Any] | None = None,
    ) -> ProjectData:
        package_json: dict[str, Any] = {"name": "sample-app"}
        if dependencies is not None:
            package_json["dependencies"] = dependencies
        if dev_dependencies is not None:
            package_json["devDependencies"] = dev_dependencies
        if runtime_config is not None:
            package_json["nativescript"] = runtime_config
        (tmp_path / "package.json").write_text(json.dumps(package_json))

        return ProjectData(
            project_dir=tmp_path,
            dependencies=dependencies,
            dev_dependencies=dev_dependencies,
            runtime_config=runtime_config or {},
        )

    return _make

"""
Project manifest data consumed by the dependency and platform queries.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from update_engine.errors import FailedPreconditionError
from update_engine.logging import get_logger

logger = get_logger(__name__)

PACKAGE_JSON_FILE_NAME = "package.json"


class Dependency(BaseModel):
    """
    A dependency an update operation is about to touch.

    Attributes:
        package_name: Registry name of the package (e.g., "tns-core-modules").
        version: Requested version specifier, if any.
    """

    package_name: str = Field(..., min_length=1, description="Registry package name")
    version: str | None = Field(
        default=None,
        description="Requested version specifier (exact, range or dist-tag)",
    )


class ProjectData(BaseModel):
    """
    Declared dependencies and runtime state of a project.

    Either dependency mapping may be missing; a missing mapping declares
    nothing.

    Attributes:
        project_dir: Project root directory.
        dependencies: ``dependencies`` from package.json.
        dev_dependencies: ``devDependencies`` from package.json.
        runtime_config: Runtime section of package.json, keyed by framework
            package name (e.g., ``{"tns-android": {"version": "6.0.0"}}``).
    """

    model_config = ConfigDict(populate_by_name=True)

    project_dir: Path
    dependencies: dict[str, str] | None = None
    dev_dependencies: dict[str, str] | None = Field(
        default=None,
        alias="devDependencies",
    )
    runtime_config: dict[str, Any] = Field(default_factory=dict)

    @property
    def package_json_path(self) -> Path:
        """Path to the project's package.json."""
        return self.project_dir / PACKAGE_JSON_FILE_NAME


def load_project(project_dir: Path | str, runtime_section: str = "nativescript") -> ProjectData:
    """
    Load ProjectData from ``<project_dir>/package.json``.

    Args:
        project_dir: Project root directory.
        runtime_section: package.json key holding installed runtime versions.

    Returns:
        ProjectData for the project.

    Raises:
        FailedPreconditionError: If package.json is missing, is not valid JSON,
            or declares dependencies that are not name-to-version string maps.
    """
    project_dir = Path(project_dir)
    package_json = project_dir / PACKAGE_JSON_FILE_NAME

    try:
        with open(package_json, encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise FailedPreconditionError(
            f"No {PACKAGE_JSON_FILE_NAME} found in project: {project_dir}",
            details={"project_dir": str(project_dir)},
        ) from e
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise FailedPreconditionError(
            f"Invalid {PACKAGE_JSON_FILE_NAME}: {package_json}",
            details={"path": str(package_json), "error": str(e)},
        ) from e

    if not isinstance(data, dict):
        raise FailedPreconditionError(
            f"Invalid {PACKAGE_JSON_FILE_NAME}: {package_json}",
            details={"path": str(package_json), "error": "top-level value is not an object"},
        )

    runtime_config = data.get(runtime_section)
    try:
        project = ProjectData(
            project_dir=project_dir,
            dependencies=data.get("dependencies"),
            devDependencies=data.get("devDependencies"),
            runtime_config=runtime_config if isinstance(runtime_config, dict) else {},
        )
    except ValidationError as e:
        raise FailedPreconditionError(
            f"Invalid {PACKAGE_JSON_FILE_NAME}: {package_json}",
            details={"path": str(package_json), "error": str(e)},
        ) from e

    logger.debug(
        "Loaded project data",
        extra={
            "project_dir": str(project_dir),
            "dependency_count": len(project.dependencies or {}),
            "dev_dependency_count": len(project.dev_dependencies or {}),
        },
    )

    return project

"""
Configuration management for the update engine.

Configuration is loaded from multiple sources with layered precedence:
1. Built-in defaults (Pydantic model defaults)
2. YAML config file (~/.config/update-engine/config.yml or an explicit path)
3. Environment variables (UPDATE_ENGINE_* prefix, __ for nesting)
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

DEFAULT_CONFIG_PATH = Path("~/.config/update-engine/config.yml")
DEFAULT_ENV_PREFIX = "UPDATE_ENGINE_"

# =============================================================================
# Logging Configuration
# =============================================================================


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level.
        log_to_stdout: Whether to log to stdout.
        json_format: Emit JSON records instead of plain text.
    """

    level: str = Field(
        default="info",
        description="Log level: debug, info, warn, error",
    )
    log_to_stdout: bool = Field(
        default=True,
        description="Whether to log to stdout",
    )
    json_format: bool = Field(
        default=True,
        description="Emit one JSON object per log record",
    )

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Validate and normalize log level."""
        valid_levels = {"debug", "info", "warn", "warning", "error", "critical"}
        v_lower = v.lower()
        if v_lower not in valid_levels:
            raise ValueError(
                f"Invalid log level: {v}. Must be one of: {', '.join(sorted(valid_levels))}"
            )
        if v_lower == "warn":
            return "warning"
        return v_lower


# =============================================================================
# Registry Configuration
# =============================================================================


class RegistryConfig(BaseModel):
    """Package registry configuration.

    Attributes:
        url: Base URL of the npm-compatible registry.
        timeout_seconds: Per-request timeout.
    """

    url: str = Field(
        default="https://registry.npmjs.org",
        description="Base URL of the npm-compatible package registry",
    )
    timeout_seconds: float = Field(
        default=30.0,
        description="Timeout for a single registry request in seconds",
        gt=0,
        le=600,
    )

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Require an http(s) URL and strip the trailing slash."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Invalid registry URL: {v}. Must start with http:// or https://")
        return v.rstrip("/")


class ResolverConfig(BaseModel):
    """Version resolver configuration.

    Attributes:
        cache_failures: Keep failed manifest lookups in the cache.
    """

    cache_failures: bool = Field(
        default=False,
        description="Keep failed manifest lookups cached for the process lifetime",
    )


# =============================================================================
# Snapshot Configuration
# =============================================================================


def _default_backup_folders() -> list[str]:
    """Return the project entries captured before an update."""
    return [
        "lib",
        "hooks",
        "webpack.config.js",
        "package.json",
        "package-lock.json",
    ]


class SnapshotConfig(BaseModel):
    """Backup/restore configuration.

    Attributes:
        backup_dir: Backup root, relative to the project directory.
        folders: Project-relative entries captured by a backup.
    """

    backup_dir: str = Field(
        default=".update_backup",
        description="Backup root directory, relative to the project directory",
    )
    folders: list[str] = Field(
        default_factory=_default_backup_folders,
        description="Project-relative folders (or files) captured by a backup",
    )

    @field_validator("folders")
    @classmethod
    def validate_folders(cls, v: list[str]) -> list[str]:
        """Reject absolute paths, parent references and the project root itself."""
        for folder in v:
            path = Path(folder)
            if not folder or path.is_absolute() or ".." in path.parts or not path.parts:
                raise ValueError(
                    f"Invalid backup folder: {folder!r}. Must be a project-relative path"
                )
        return v


# =============================================================================
# Platforms Configuration
# =============================================================================


def _default_framework_packages() -> dict[str, str]:
    """Return the default platform to framework package mapping."""
    return {
        "android": "tns-android",
        "ios": "tns-ios",
    }


class PlatformsConfig(BaseModel):
    """Runtime platform configuration.

    Attributes:
        framework_packages: Platform name to framework package name.
        runtime_section: package.json key holding installed runtime versions.
    """

    framework_packages: dict[str, str] = Field(
        default_factory=_default_framework_packages,
        description="Mapping from platform name to its framework package",
    )
    runtime_section: str = Field(
        default="nativescript",
        description="package.json section that records installed runtime versions",
    )

    @field_validator("framework_packages")
    @classmethod
    def normalize_platform_names(cls, v: dict[str, str]) -> dict[str, str]:
        """Platform names are case-insensitive; store them lowercase."""
        return {platform.lower(): package for platform, package in v.items()}


# =============================================================================
# Main Application Configuration
# =============================================================================


class AppConfig(BaseModel):
    """
    Main configuration model.

    Attributes:
        logging: Logging configuration.
        registry: Package registry configuration.
        resolver: Version resolver configuration.
        snapshot: Backup/restore configuration.
        platforms: Runtime platform configuration.
    """

    logging: LoggingConfig = Field(
        default_factory=LoggingConfig,
        description="Logging configuration",
    )
    registry: RegistryConfig = Field(
        default_factory=RegistryConfig,
        description="Package registry configuration",
    )
    resolver: ResolverConfig = Field(
        default_factory=ResolverConfig,
        description="Version resolver configuration",
    )
    snapshot: SnapshotConfig = Field(
        default_factory=SnapshotConfig,
        description="Backup/restore configuration",
    )
    platforms: PlatformsConfig = Field(
        default_factory=PlatformsConfig,
        description="Runtime platform configuration",
    )


# =============================================================================
# Configuration Loading Functions
# =============================================================================


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Deep merge two dictionaries.

    Args:
        base: The base dictionary.
        override: The dictionary with values to override.

    Returns:
        A new dictionary with merged values.
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _load_yaml_config(config_path: Path) -> dict[str, Any]:
    """
    Load configuration from a YAML file.

    Raises:
        FileNotFoundError: If the config file doesn't exist.
        yaml.YAMLError: If the YAML is invalid.
    """
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path) as f:
        return yaml.safe_load(f) or {}


def _parse_env_value(value: str) -> Any:
    """
    Parse an environment variable value to a Python type.

    Booleans, integers, floats and comma-separated lists are recognized;
    anything else stays a string.
    """
    if value.lower() in ("true", "yes", "on"):
        return True
    if value.lower() in ("false", "no", "off"):
        return False

    try:
        return int(value)
    except ValueError:
        pass

    try:
        return float(value)
    except ValueError:
        pass

    if "," in value:
        return [_parse_env_value(item.strip()) for item in value.split(",")]

    return value


def _load_env_config(prefix: str = DEFAULT_ENV_PREFIX) -> dict[str, Any]:
    """
    Load configuration from environment variables.

    Nested keys use a double underscore, e.g.
    ``UPDATE_ENGINE_REGISTRY__URL=https://registry.example.com``.
    """
    result: dict[str, Any] = {}

    for key, value in os.environ.items():
        if not key.startswith(prefix):
            continue

        parts = key[len(prefix) :].lower().split("__")

        current = result
        for part in parts[:-1]:
            current = current.setdefault(part, {})

        current[parts[-1]] = _parse_env_value(value)

    return result


def load_config(
    config_path: Path | str | None = None,
    env_prefix: str = DEFAULT_ENV_PREFIX,
) -> AppConfig:
    """
    Load configuration from all sources with layered precedence.

    Args:
        config_path: Path to a YAML configuration file. If None, the default
            path is used when it exists.
        env_prefix: Prefix for environment variables.

    Returns:
        Fully configured AppConfig instance.

    Raises:
        FileNotFoundError: If an explicitly specified config file doesn't exist.
        ValidationError: If configuration is invalid.

    Example:
        >>> config = load_config()
        >>> config.registry.url
        'https://registry.npmjs.org'
    """
    config_dict: dict[str, Any] = {}

    if config_path is None:
        default_path = DEFAULT_CONFIG_PATH.expanduser()
        if default_path.exists():
            config_path = default_path
    else:
        config_path = Path(config_path)

    if config_path is not None:
        config_dict = _deep_merge(config_dict, _load_yaml_config(config_path))

    config_dict = _deep_merge(config_dict, _load_env_config(env_prefix))

    return AppConfig(**config_dict)

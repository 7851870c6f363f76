"""
Error types for the update engine.

This module defines the UpdateEngineError base class and subclasses for
domain-specific errors. Callers (the concrete update controller) catch
UpdateEngineError and report ``message`` to the user, while ``details`` carries
the structured context (package name, specifier, folder, path, ...).
"""

from __future__ import annotations

from typing import Any


class UpdateEngineError(Exception):
    """
    Base exception class for update engine errors.

    Attributes:
        error_code: Internal error code string (e.g., "invalid_argument",
            "registry_lookup_failed", "resolution_failed", "snapshot_failed").
        message: Human-readable error message.
        details: Optional structured details (e.g., package name, paths).

    Example:
        >>> raise UpdateEngineError(
        ...     error_code="resolution_failed",
        ...     message="Failed to get information for package: tns-core@next",
        ...     details={"package": "tns-core", "specifier": "next"},
        ... )
    """

    def __init__(
        self,
        error_code: str,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize an UpdateEngineError.

        Args:
            error_code: Internal error code string identifying the error category.
            message: Human-readable error message.
            details: Optional dictionary with structured error details.
        """
        super().__init__(message)
        self.error_code = error_code
        self.message = message
        self.details = details or {}

    def __repr__(self) -> str:
        """Return a detailed string representation."""
        return (
            f"{self.__class__.__name__}("
            f"error_code={self.error_code!r}, "
            f"message={self.message!r}, "
            f"details={self.details!r})"
        )

    def to_dict(self) -> dict[str, Any]:
        """
        Convert the error to a dictionary for serialization.

        Returns:
            Dictionary with error_code, message, and details.
        """
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
        }


class InvalidArgumentError(UpdateEngineError):
    """
    Error raised when an operation receives invalid input arguments.

    Used for empty version specifiers and unknown platform names.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize an InvalidArgumentError."""
        super().__init__(
            error_code="invalid_argument", message=message, details=details
        )


class FailedPreconditionError(UpdateEngineError):
    """
    Error raised when a precondition for the operation is not met.

    Used when the project's package.json is missing or unreadable.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize a FailedPreconditionError."""
        super().__init__(
            error_code="failed_precondition", message=message, details=details
        )


class RegistryLookupError(UpdateEngineError):
    """
    Error raised when a package registry call fails.

    Covers network failures, non-success HTTP statuses (including 404) and
    undecodable responses. The resolver propagates it unchanged and never
    retries.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize a RegistryLookupError."""
        super().__init__(
            error_code="registry_lookup_failed", message=message, details=details
        )


class ResolutionError(UpdateEngineError):
    """
    Error raised when a specifier does not resolve to an exact version.

    Raised on the manifest path, where an exact version is required before
    the manifest can be fetched.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize a ResolutionError."""
        super().__init__(
            error_code="resolution_failed", message=message, details=details
        )


class SnapshotError(UpdateEngineError):
    """
    Error raised when a backup, restore or discard operation fails.

    The details always name the operation, the folder and the path that
    failed. A restore failure leaves the project half-restored and must be
    surfaced to the user.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialize a SnapshotError."""
        super().__init__(error_code="snapshot_failed", message=message, details=details)

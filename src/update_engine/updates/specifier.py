"""
Version specifier classification.

A specifier is the version string a caller asks for. It falls into exactly
one of three kinds, checked in this order:

1. EXACT: a concrete semantic version ("6.5.0", "2.0.0-rc.1", "v6.5.0")
2. RANGE: an npm semver range that is not itself exact ("6.x", "^1.2.0")
3. TAG:   anything else, treated as a registry dist-tag ("latest", "next")

EXACT is tested first because a plain version also parses as a degenerate
range.
"""

from __future__ import annotations

from enum import Enum

import semantic_version

from update_engine.errors import InvalidArgumentError
from update_engine.versions import clean_version, normalize_range


class SpecifierKind(str, Enum):
    """Kind of a version specifier."""

    EXACT = "exact"
    RANGE = "range"
    TAG = "tag"


def is_exact_version(value: str | None) -> bool:
    """
    Check whether a string denotes a concrete semantic version.

    The version itself must be strict SemVer 2.0.0 (no leading zeros, all
    three numeric components present). As in npm, a leading ``v`` or ``=``
    is allowed.
    """
    return clean_version(value) is not None


def is_valid_range(value: str | None) -> bool:
    """Check whether a string parses as an npm semver range."""
    if not value or not value.strip():
        return False
    try:
        semantic_version.NpmSpec(normalize_range(value))
    except ValueError:
        return False
    return True


def classify_specifier(specifier: str) -> SpecifierKind:
    """
    Classify a version specifier.

    Args:
        specifier: Non-empty version specifier.

    Returns:
        The specifier kind.

    Raises:
        InvalidArgumentError: If the specifier is empty or blank.
    """
    if not specifier or not specifier.strip():
        raise InvalidArgumentError(
            "Version specifier cannot be empty",
            details={"specifier": specifier},
        )

    if is_exact_version(specifier):
        return SpecifierKind.EXACT
    if is_valid_range(specifier):
        return SpecifierKind.RANGE
    return SpecifierKind.TAG

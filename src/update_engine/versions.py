"""
npm version string helpers.

Both the specifier classifier and the registry client need to read version
strings the way npm does. npm tolerates a few spellings that strict SemVer
and ``semantic_version.NpmSpec`` do not:

- a leading ``v`` or ``=`` on a concrete version (``v1.2.3``, ``=1.2.3``)
- whitespace between a comparator and its version (``>= 1.2.3``)
- ``~>`` as an alias of ``~`` (``~>1.2``)
"""

from __future__ import annotations

import re

# Semantic versioning regex pattern
# Accepts: 1.0.0, 1.2.3, 2.0.0-beta.1, 1.0.0-alpha+build.123
SEMVER_PATTERN = re.compile(
    r"^(?P<major>0|[1-9]\d*)"
    r"\.(?P<minor>0|[1-9]\d*)"
    r"\.(?P<patch>0|[1-9]\d*)"
    r"(?:-(?P<prerelease>(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*)"
    r"(?:\.(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*))*))?"
    r"(?:\+(?P<buildmetadata>[0-9a-zA-Z-]+(?:\.[0-9a-zA-Z-]+)*))?$"
)

# Prefix npm strips from a concrete version before parsing it
_VERSION_PREFIX = re.compile(r"^=?v?")

# Whitespace npm drops between a comparator and its operand
_COMPARATOR_GAP = re.compile(r"(<=|>=|<|>|=|~>?|\^)\s+")


def clean_version(value: str | None) -> str | None:
    """
    Return the concrete version ``value`` denotes, or None.

    Examples:
        >>> clean_version("v1.2.3")
        '1.2.3'
        >>> clean_version("=2.0.0-rc.1")
        '2.0.0-rc.1'
        >>> clean_version("6.x") is None
        True
    """
    if not value:
        return None
    candidate = _VERSION_PREFIX.sub("", value.strip(), count=1)
    if SEMVER_PATTERN.match(candidate) is None:
        return None
    return candidate


def normalize_range(value: str) -> str:
    """
    Rewrite an npm range into the spelling ``semantic_version.NpmSpec`` parses.

    Runs of whitespace collapse to one space, the gap after a comparator is
    removed and ``~>`` becomes ``~``. Hyphen ranges keep their spaces.
    """
    collapsed = " ".join(value.split())
    return _COMPARATOR_GAP.sub(r"\1", collapsed).replace("~>", "~")

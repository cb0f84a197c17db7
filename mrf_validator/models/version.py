"""
Schema Version Models

Semantic version parsing, coercion of user supplied version strings, and
range constraints used to tag catalog entries and rule nodes.
"""

import re
from typing import Optional

from pydantic import BaseModel, Field

from ..config.constants import REGEX_PATTERNS


class SemanticVersion(BaseModel):
    """Semantic version representation with comparison support."""

    major: int = Field(..., ge=0, description="Major version")
    minor: int = Field(0, ge=0, description="Minor version")
    patch: int = Field(0, ge=0, description="Patch version")

    class Config:
        frozen = True

    @classmethod
    def parse(cls, version_str: str) -> "SemanticVersion":
        """
        Parse a strict MAJOR.MINOR.PATCH string.

        Raises:
            ValueError: If the string is not a full semantic version
        """
        match = re.match(r"^(\d+)\.(\d+)\.(\d+)$", version_str.strip())
        if not match:
            raise ValueError(f"Invalid semantic version: {version_str}")
        return cls(
            major=int(match.group(1)),
            minor=int(match.group(2)),
            patch=int(match.group(3)),
        )

    @classmethod
    def coerce(cls, version_str: str) -> Optional["SemanticVersion"]:
        """
        Loosely interpret a version string the way file authors write it.

        "v2.2", "2.2" and "2.2.0" all become 2.2.0. Returns None when the
        string does not look like a version at all.
        """
        if not version_str or not isinstance(version_str, str):
            return None

        match = re.match(REGEX_PATTERNS["version"], version_str.strip(), re.IGNORECASE)
        if not match:
            return None

        return cls(
            major=int(match.group(1)),
            minor=int(match.group(2) or 0),
            patch=int(match.group(3) or 0),
        )

    def as_tuple(self):
        return (self.major, self.minor, self.patch)

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"

    def __lt__(self, other: "SemanticVersion") -> bool:
        return self.as_tuple() < other.as_tuple()

    def __le__(self, other: "SemanticVersion") -> bool:
        return self.as_tuple() <= other.as_tuple()

    def __gt__(self, other: "SemanticVersion") -> bool:
        return self.as_tuple() > other.as_tuple()

    def __ge__(self, other: "SemanticVersion") -> bool:
        return self.as_tuple() >= other.as_tuple()

    def is_compatible_with(self, other: "SemanticVersion") -> bool:
        """Same major version (caret semantics)."""
        return self.major == other.major


def version_satisfies(version: SemanticVersion, constraint: str) -> bool:
    """
    Check if a version satisfies a range constraint.

    Supported forms: "*", ">=X", ">X", "<=X", "<X", "^X", "~X", "=X" and a bare
    version. Several constraints separated by whitespace must all hold.

    Args:
        version: The version to test
        constraint: Constraint expression

    Returns:
        True if version satisfies every part of the constraint
    """
    parts = constraint.split()
    if not parts:
        return True

    return all(_satisfies_one(version, part) for part in parts)


def _satisfies_one(version: SemanticVersion, constraint: str) -> bool:
    if constraint == "*":
        return True

    if constraint.startswith(">="):
        return version >= SemanticVersion.parse(constraint[2:])
    elif constraint.startswith("<="):
        return version <= SemanticVersion.parse(constraint[2:])
    elif constraint.startswith(">"):
        return version > SemanticVersion.parse(constraint[1:])
    elif constraint.startswith("<"):
        return version < SemanticVersion.parse(constraint[1:])
    elif constraint.startswith("^"):
        target = SemanticVersion.parse(constraint[1:])
        return version.is_compatible_with(target) and version >= target
    elif constraint.startswith("~"):
        target = SemanticVersion.parse(constraint[1:])
        return (
            version.major == target.major
            and version.minor == target.minor
            and version.patch >= target.patch
        )
    elif constraint.startswith("="):
        return version == SemanticVersion.parse(constraint[1:])
    else:
        return version == SemanticVersion.parse(constraint)

"""Version models.

A ``SemVer`` is an immutable ``MAJOR.MINOR.PATCH[-PRERELEASE]`` value whose
ordering ignores the prerelease. ``VersionFile`` records a file discovered to
carry a version marker, and ``CurrentVersion`` summarises where the current
version of a project came from.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


@dataclass(frozen=True)
class SemVer:
    """Semantic version; compare with ``compare_versions`` or ``sort_key``."""

    major: int
    minor: int
    patch: int
    prerelease: str | None = None

    def __str__(self) -> str:
        base = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            return f"{base}-{self.prerelease}"
        return base

    @property
    def sort_key(self) -> tuple[int, int, int]:
        """Ordering key; prerelease is not part of the order."""
        return (self.major, self.minor, self.patch)


class BumpKind(str, Enum):
    """Kind of version bump."""

    MAJOR = "major"
    MINOR = "minor"
    PATCH = "patch"


class VersionFileKind(str, Enum):
    """How a version is embedded in a file."""

    MANIFEST_JSON = "manifest-json"
    PLAIN_TEXT = "plain-text"
    EMBEDDED_CONSTANT = "embedded-constant"


@dataclass
class VersionFile:
    """A file carrying a version marker."""

    path: Path
    kind: VersionFileKind
    current_version: SemVer
    raw_content: str

    @property
    def filename(self) -> str:
        return self.path.name


@dataclass
class CurrentVersion:
    """Current project version and where it was read from.

    ``source`` is a filename, ``"tags"`` when only release tags carry a
    version, or None when nothing was found.
    """

    value: SemVer | None
    source: str | None
    files: list[VersionFile] = field(default_factory=list)

    @property
    def has_version_files(self) -> bool:
        return bool(self.files)


@dataclass
class WriteResult:
    """Outcome of rewriting a single version file."""

    file: VersionFile
    success: bool
    error: str | None = None

"""Semantic version parsing and version file management.

Version files are discovered fresh on every run by probing a fixed list of
candidate filenames with three detectors, in order: JSON manifest with a
``version`` key, a plain-text file whose name contains "version", and a file
embedding a ``Version:`` header or a ``define('...VERSION', 'x.y.z')`` constant.
"""

import json
import logging
import re
from pathlib import Path

from ..config import VersionConfig
from ..constants import VERSION_FILE_CANDIDATES
from ..models import BumpKind, CurrentVersion, SemVer, VersionFile, VersionFileKind, WriteResult
from ..services import git

logger = logging.getLogger(__name__)

_SEMVER = re.compile(r"(\d+)\.(\d+)\.(\d+)(?:-(.+))?")
_TAG = re.compile(r"^\d+\.\d+\.\d+$")
_PLAIN_LEADING = re.compile(r"^(\s*)(\d+\.\d+\.\d+)")
_HEADER = re.compile(r"(Version:\s*)(\d+\.\d+\.\d+)")
_DEFINE = re.compile(r"""(define\s*\(\s*['"][^'"]*VERSION['"]\s*,\s*['"])(\d+\.\d+\.\d+)(['"])""")
_OPENING_MARKER = "<?php"


class VersionError(Exception):
    """Version could not be parsed, computed or found."""


def parse_version(text: str) -> SemVer | None:
    """Parse ``MAJOR.MINOR.PATCH[-PRERELEASE]``; anything else yields None."""
    match = _SEMVER.fullmatch(text)
    if match is None:
        return None
    major, minor, patch, prerelease = match.groups()
    return SemVer(int(major), int(minor), int(patch), prerelease)


def compare_versions(a: SemVer, b: SemVer) -> int:
    """Return -1, 0 or 1 comparing (major, minor, patch); prerelease is ignored."""
    if a.sort_key < b.sort_key:
        return -1
    if a.sort_key > b.sort_key:
        return 1
    return 0


def bump_version(current: SemVer, kind: BumpKind) -> SemVer:
    if kind == BumpKind.MAJOR:
        return SemVer(current.major + 1, 0, 0)
    if kind == BumpKind.MINOR:
        return SemVer(current.major, current.minor + 1, 0)
    if kind == BumpKind.PATCH:
        return SemVer(current.major, current.minor, current.patch + 1)
    raise VersionError(f"Unknown bump kind: {kind}")


def resolve_target(current: SemVer | None, request: str) -> SemVer:
    """Compute the target version for a bump request.

    Args:
        current: Current version, if any
        request: ``major``, ``minor``, ``patch`` or an explicit version

    Raises:
        VersionError: If the request is invalid or needs a current version
    """
    try:
        kind = BumpKind(request.lower())
    except ValueError:
        explicit = parse_version(request)
        if explicit is None:
            raise VersionError(
                f"Invalid version bump '{request}': use major, minor, patch or x.y.z"
            ) from None
        return explicit
    if current is None:
        raise VersionError("No current version found to bump")
    return bump_version(current, kind)


def validate_bump_request(request: str) -> None:
    """Raise VersionError unless request is a bump kind or a valid version."""
    if request.lower() in {k.value for k in BumpKind}:
        return
    if parse_version(request) is None:
        raise VersionError(f"Invalid version bump '{request}': use major, minor, patch or x.y.z")


def bump_kind_of(current: SemVer | None, target: SemVer, request: str) -> BumpKind:
    """Classify a bump, comparing explicit versions with the current one."""
    try:
        return BumpKind(request.lower())
    except ValueError:
        pass
    if current is None or target.major != current.major:
        return BumpKind.MAJOR
    if target.minor != current.minor:
        return BumpKind.MINOR
    return BumpKind.PATCH


def _detect(path: Path, content: str) -> tuple[VersionFileKind, SemVer] | None:
    if path.suffix == ".json":
        try:
            data = json.loads(content)
        except ValueError:
            data = None
        if isinstance(data, dict) and "version" in data:
            version = parse_version(str(data["version"]))
            if version is not None:
                return VersionFileKind.MANIFEST_JSON, version

    if "version" in path.name.lower():
        match = _PLAIN_LEADING.match(content)
        if match:
            version = parse_version(match.group(2))
            if version is not None:
                return VersionFileKind.PLAIN_TEXT, version

    for pattern in (_HEADER, _DEFINE):
        match = pattern.search(content)
        if match:
            version = parse_version(match.group(2))
            if version is not None:
                return VersionFileKind.EMBEDDED_CONSTANT, version
    return None


def candidate_filenames(config: VersionConfig) -> list[str]:
    names: list[str] = []
    for name in [config.primary_file, *VERSION_FILE_CANDIDATES, *config.secondary_files]:
        if name and name not in names:
            names.append(name)
    return names


def detect_version_files(root: Path, config: VersionConfig | None = None) -> list[VersionFile]:
    """Scan root for candidate files carrying a version marker."""
    config = config or VersionConfig()
    found = []
    for name in candidate_filenames(config):
        path = root / name
        if not path.is_file():
            continue
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Could not read %s: %s", path, e)
            continue
        detected = _detect(path, content)
        if detected is None:
            logger.debug("No version marker in %s", name)
            continue
        kind, version = detected
        found.append(VersionFile(path=path, kind=kind, current_version=version, raw_content=content))
    return found


def latest_tag_version(cwd: Path | None = None) -> SemVer | None:
    """Highest ``N.N.N`` release tag, or None."""
    versions = [parse_version(tag) for tag in git.list_tags(cwd=cwd) if _TAG.match(tag)]
    valid = [v for v in versions if v is not None]
    if not valid:
        return None
    return max(valid, key=lambda v: v.sort_key)


def get_current_version(
    root: Path, config: VersionConfig | None = None, cwd: Path | None = None
) -> CurrentVersion:
    """Read the current version, preferring the primary or manifest file over tags.

    Args:
        root: Directory holding the version files
        config: Version settings
        cwd: Repository used for the tag fallback (defaults to root)
    """
    config = config or VersionConfig()
    files = detect_version_files(root, config)
    if files:
        primary = next((f for f in files if f.filename == config.primary_file), None)
        if primary is None:
            primary = next(
                (f for f in files if f.kind == VersionFileKind.MANIFEST_JSON), files[0]
            )
        return CurrentVersion(value=primary.current_version, source=primary.filename, files=files)

    tag_version = latest_tag_version(cwd=cwd or root)
    if tag_version is not None:
        return CurrentVersion(value=tag_version, source="tags")
    return CurrentVersion(value=None, source=None)


def render_version(file: VersionFile, new_version: SemVer, constant_name: str = "VERSION") -> str:
    """Return the file content with every version marker set to new_version.

    Raises:
        VersionError: If no marker can be located or inserted
    """
    new = str(new_version)
    content = file.raw_content

    if file.kind == VersionFileKind.MANIFEST_JSON:
        try:
            data = json.loads(content)
        except ValueError as e:
            raise VersionError(f"{file.filename} is not valid JSON: {e}") from e
        data["version"] = new
        return json.dumps(data, indent=2, ensure_ascii=False) + "\n"

    if file.kind == VersionFileKind.PLAIN_TEXT:
        updated, count = _PLAIN_LEADING.subn(lambda m: m.group(1) + new, content, count=1)
        if count == 0:
            raise VersionError(f"No leading version found in {file.filename}")
        return updated

    if file.kind == VersionFileKind.EMBEDDED_CONSTANT:
        updated, headers = _HEADER.subn(lambda m: m.group(1) + new, content)
        updated, defines = _DEFINE.subn(lambda m: m.group(1) + new + m.group(3), updated)
        if headers or defines:
            return updated
        if _OPENING_MARKER in content:
            define = f"\ndefine('{constant_name}', '{new}');"
            return content.replace(_OPENING_MARKER, _OPENING_MARKER + define, 1)
        raise VersionError(f"No version constant found in {file.filename}")

    raise VersionError(f"Unsupported version file kind: {file.kind}")


def write_version(
    file: VersionFile, new_version: SemVer, constant_name: str = "VERSION"
) -> WriteResult:
    """Rewrite one version file in place; failures are reported, not raised."""
    try:
        content = render_version(file, new_version, constant_name)
        file.path.write_text(content, encoding="utf-8")
    except (VersionError, OSError) as e:
        logger.warning("Failed to update %s: %s", file.filename, e)
        return WriteResult(file=file, success=False, error=str(e))
    file.raw_content = content
    file.current_version = new_version
    logger.debug("Updated %s to %s", file.filename, new_version)
    return WriteResult(file=file, success=True)


def update_version_files(
    files: list[VersionFile], new_version: SemVer, constant_name: str = "VERSION"
) -> list[WriteResult]:
    """Write new_version to every detected file, without reconciling disagreements."""
    return [write_version(f, new_version, constant_name) for f in files]

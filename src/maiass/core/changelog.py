"""Changelog generation from commit history.

Two documents are maintained side by side: the public changelog (ticket IDs
stripped, noise commits dropped, multi-line messages rendered as nested
bullets) and the internal changelog (one ``(author) subject`` line per commit,
ticket IDs kept). Entries are only ever prepended, or replaced when the newest
entry has the same major.minor version and the same date.
"""

import logging
import re
from dataclasses import dataclass
from datetime import date
from pathlib import Path

from ..config import ChangelogConfig
from ..constants import BUMP_COMMIT_MESSAGE
from ..models import SemVer
from ..services import git
from ..services.git import GitError
from .version_manager import compare_versions, latest_tag_version, parse_version

logger = logging.getLogger(__name__)

RECORD_SEPARATOR = "\x1e"
PUBLIC_LOG_FORMAT = "%B%x1e"
INTERNAL_LOG_FORMAT = "(%an) %s"

_ENTRY_HEADER = re.compile(r"^## (\S+)[ \t]*$", re.MULTILINE)
_LEADING_TICKET = re.compile(r"^(\s*(?:[-*]\s+)?)[A-Z]+-\d+\b:?[ \t]*", re.MULTILINE)
_AUTHOR_PREFIX = re.compile(r"^\(([^)]*)\)\s?")
_BULLET = re.compile(r"^[-*•]\s+")


@dataclass
class TopEntry:
    """The newest entry found at the top of a changelog."""

    version: str
    date: str
    start: int
    end: int


def format_date(day: date) -> str:
    """Human-readable entry date, e.g. ``18 October 2026``."""
    return f"{day.day} {day:%B %Y}"


def parse_entries(content: str) -> list[TopEntry]:
    """Locate every ``## <version>`` entry with its date line and extent."""
    headers = list(_ENTRY_HEADER.finditer(content))
    entries = []
    for i, match in enumerate(headers):
        end = headers[i + 1].start() if i + 1 < len(headers) else len(content)
        body = content[match.end():end].lstrip("\n")
        date_line = body.splitlines()[0].strip() if body else ""
        entries.append(TopEntry(match.group(1), date_line, match.start(), end))
    return entries


def _same_minor(a: str, b: SemVer) -> bool:
    version = parse_version(a)
    return version is not None and (version.major, version.minor) == (b.major, b.minor)


def replaceable_entry(content: str, version: SemVer, entry_date: str) -> TopEntry | None:
    """Return the top entry if the new entry should replace it."""
    entries = parse_entries(content)
    if entries and _same_minor(entries[0].version, version) and entries[0].date == entry_date:
        return entries[0]
    return None


def strip_ticket_ids(text: str) -> str:
    """Remove a leading ticket ID token from every line."""
    return _LEADING_TICKET.sub(lambda m: m.group(1), text)


def is_noise(subject: str, noise_prefixes: list[str]) -> bool:
    """True if the subject starts with a configured noise prefix (case-insensitive)."""
    lowered = subject.strip().lower()
    return any(lowered.startswith(prefix.lower()) for prefix in noise_prefixes if prefix)


def _strip_bullet(line: str) -> str:
    return _BULLET.sub("", line.strip(), count=1)


def format_public_commit(message: str) -> str:
    """Render one commit message as changelog bullets."""
    lines = [line.rstrip() for line in message.splitlines() if line.strip()]
    if not lines:
        return ""
    if len(lines) == 1:
        return f"- {_strip_bullet(lines[0])}"

    ai_style = _BULLET.match(lines[0].strip()) is not None
    rendered = [f"- {_strip_bullet(lines[0])}"]
    for line in lines[1:]:
        stripped = line.strip()
        if ai_style and _BULLET.match(stripped):
            rendered.append(f"  {stripped}")
        else:
            rendered.append(f"  - {_strip_bullet(stripped)}")
    return "\n".join(rendered)


def public_bullets(raw_log: str, noise_prefixes: list[str]) -> list[str]:
    """Filter and format ``%B%x1e`` log output for the public changelog."""
    bullets = []
    for record in raw_log.split(RECORD_SEPARATOR):
        text = strip_ticket_ids(record.strip()).strip()
        if not text:
            continue
        if is_noise(text.splitlines()[0], noise_prefixes):
            continue
        formatted = format_public_commit(text)
        if formatted:
            bullets.append(formatted)
    return bullets


def internal_bullets(raw_log: str, noise_prefixes: list[str]) -> list[str]:
    """Filter ``(author) subject`` log lines for the internal changelog."""
    bullets = []
    for line in raw_log.splitlines():
        line = line.strip()
        if not line:
            continue
        subject = _AUTHOR_PREFIX.sub("", line, count=1)
        if not subject.strip() or is_noise(subject, noise_prefixes):
            continue
        bullets.append(f"- {line}")
    return bullets


def build_entry(version: SemVer, entry_date: str, bullets: list[str]) -> str:
    """Assemble header, date line and bullets; no bullet section when empty."""
    entry = f"## {version}\n{entry_date}\n\n"
    if bullets:
        entry += "\n".join(bullets) + "\n\n"
    return entry


def merge_entry(existing: str, entry: str, version: SemVer, entry_date: str) -> str:
    """Replace the top entry if it matches version major.minor and date, else prepend."""
    top = replaceable_entry(existing, version, entry_date)
    if top is not None:
        return existing[: top.start] + entry + existing[top.end :]
    return entry + existing


def resolve_baseline(
    existing: str | None,
    version: SemVer,
    entry_date: str,
    previous_version: SemVer | None,
) -> str | None:
    """Pick the version whose release marks the start of the new entry.

    The top entry of the public changelog wins; when that entry is about to be
    replaced, the one below it is used instead so its commits are kept.
    Falls back to the previous version, then to full history (None).
    """
    if existing:
        entries = parse_entries(existing)
        if entries and replaceable_entry(existing, version, entry_date) is not None:
            return entries[1].version if len(entries) > 1 else None
        if entries:
            return entries[0].version
    if previous_version is not None:
        return str(previous_version)
    return None


def baseline_range(baseline: str | None, cwd: Path | None = None) -> str | None:
    """Revision range after the baseline release, or None for full history.

    The baseline release is located by its tag (``<v>`` or ``v<v>``), then by
    the untagged bump commit, then by the newest release tag not above it.
    """
    if baseline is None:
        return None
    for tag in (baseline, f"v{baseline}"):
        if git.tag_exists(tag, cwd=cwd):
            return f"{tag}..HEAD"
    sha = git.find_commit_by_subject(BUMP_COMMIT_MESSAGE.format(version=baseline), cwd=cwd)
    if sha:
        logger.debug("Baseline %s found at bump commit %s", baseline, sha[:8])
        return f"{sha}..HEAD"
    wanted = parse_version(baseline)
    latest = latest_tag_version(cwd=cwd)
    if wanted is not None and latest is not None and compare_versions(latest, wanted) <= 0:
        logger.debug("No release commit for %s; using tag %s", baseline, latest)
        return f"{latest}..HEAD"
    logger.debug("No tag or bump commit for baseline %s; using full history", baseline)
    return None


def update_changelogs(
    repo_root: Path,
    config: ChangelogConfig,
    version: SemVer,
    previous_version: SemVer | None = None,
    today: date | None = None,
) -> list[Path]:
    """Write the new entry to the public and (if present) internal changelog.

    Best effort: git or filesystem failures are logged as warnings.

    Returns:
        Paths of the changelog files that were written
    """
    entry_date = format_date(today or date.today())
    changelog_dir = repo_root / config.path
    public_path = changelog_dir / config.name
    internal_path = changelog_dir / config.internal_name
    written: list[Path] = []

    try:
        existing = public_path.read_text(encoding="utf-8") if public_path.exists() else ""
        baseline = resolve_baseline(existing, version, entry_date, previous_version)
        revision_range = baseline_range(baseline, cwd=repo_root)

        raw_public = git.get_log(PUBLIC_LOG_FORMAT, revision_range, cwd=repo_root)
        entry = build_entry(version, entry_date, public_bullets(raw_public, config.noise_prefixes))
        changelog_dir.mkdir(parents=True, exist_ok=True)
        public_path.write_text(merge_entry(existing, entry, version, entry_date), encoding="utf-8")
        written.append(public_path)

        if internal_path.exists():
            raw_internal = git.get_log(INTERNAL_LOG_FORMAT, revision_range, cwd=repo_root)
            internal_entry = build_entry(
                version, entry_date, internal_bullets(raw_internal, config.noise_prefixes)
            )
            internal_existing = internal_path.read_text(encoding="utf-8")
            internal_path.write_text(
                merge_entry(internal_existing, internal_entry, version, entry_date),
                encoding="utf-8",
            )
            written.append(internal_path)
    except (GitError, OSError, UnicodeDecodeError) as e:
        logger.warning("Changelog update failed: %s", e)

    return written

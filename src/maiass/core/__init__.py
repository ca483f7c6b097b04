"""Core release logic for maiass.

- version_manager: SemVer parsing, bumping and version file rewriting
- changelog: public and internal changelog generation
- branch_classifier: branch name roles and ticket IDs
- commit_stage: stage/commit/push decision tree
- pipeline: the release pipeline orchestrator
"""

from .branch_classifier import classify_branch, extract_ticket_id
from .changelog import update_changelogs
from .commit_stage import CommitOutcome, CommitResult, CommitStage
from .pipeline import PipelineOrchestrator, decide_tagging
from .version_manager import (
    VersionError,
    bump_version,
    compare_versions,
    detect_version_files,
    get_current_version,
    latest_tag_version,
    parse_version,
    resolve_target,
    update_version_files,
)

__all__ = [
    "CommitOutcome",
    "CommitResult",
    "CommitStage",
    "PipelineOrchestrator",
    "VersionError",
    "bump_version",
    "classify_branch",
    "compare_versions",
    "decide_tagging",
    "detect_version_files",
    "extract_ticket_id",
    "get_current_version",
    "latest_tag_version",
    "parse_version",
    "resolve_target",
    "update_changelogs",
    "update_version_files",
]

"""Pipeline state and result models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .branch import BranchInfo


class PipelineState(str, Enum):
    """Phases of a release run."""

    VALIDATING_BRANCH = "validating_branch"
    COMMITTING = "committing"
    MERGING_TO_DEVELOP = "merging_to_develop"
    MANAGING_VERSION = "managing_version"
    DONE = "done"
    CANCELLED = "cancelled"
    FAILED = "failed"


class PhaseStatus(str, Enum):
    """Outcome of a single phase."""

    SUCCESS = "success"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass
class PhaseResult:
    """Result of a single phase.

    ``stop`` ends the run early while still counting as success (e.g. a
    commits-only run, or a tree the user chose to leave dirty).
    """

    status: PhaseStatus
    message: str = ""
    stop: bool = False

    @classmethod
    def ok(cls, message: str = "", stop: bool = False) -> "PhaseResult":
        return cls(PhaseStatus.SUCCESS, message, stop)

    @classmethod
    def cancelled(cls, message: str) -> "PhaseResult":
        return cls(PhaseStatus.CANCELLED, message, stop=True)

    @classmethod
    def failed(cls, message: str) -> "PhaseResult":
        return cls(PhaseStatus.FAILED, message, stop=True)


@dataclass(frozen=True)
class TaggingDecision:
    """Whether a bump gets a release branch and tag, and whether to ask first."""

    should_tag: bool
    needs_prompt: bool


@dataclass
class PipelineOptions:
    """Caller-supplied options for a release run."""

    bump: str = "patch"
    commits_only: bool = False
    auto_stage: bool = False
    dry_run: bool = False
    force: bool = False
    silent: bool = False
    tag: bool = False


@dataclass
class PipelineRunContext:
    """Mutable state owned by the orchestrator for one run."""

    original_branch: BranchInfo
    develop_branch: str
    master_branch: str
    staging_branch: str
    dry_run: bool = False
    force: bool = False
    silent: bool = False
    tagging: TaggingDecision | None = None
    merge_source: str = ""
    state: PipelineState = PipelineState.VALIDATING_BRANCH


@dataclass
class PipelineResult:
    """Final outcome of a release run."""

    state: PipelineState
    message: str = ""
    final_branch: str | None = None
    previous_version: str | None = None
    new_version: str | None = None
    tagged: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def succeeded(self) -> bool:
        return self.state in (PipelineState.DONE, PipelineState.CANCELLED)

    @property
    def exit_code(self) -> int:
        return 0 if self.succeeded else 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "state": self.state.value,
            "message": self.message,
            "final_branch": self.final_branch,
            "previous_version": self.previous_version,
            "new_version": self.new_version,
            "tagged": self.tagged,
            **self.details,
        }


@dataclass(frozen=True)
class RemoteInfo:
    """Parsed remote URL."""

    url: str
    provider: str | None = None
    owner: str | None = None
    repo: str | None = None

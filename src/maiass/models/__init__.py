"""Data models for maiass.

- Semantic versions and version-bearing files (SemVer, VersionFile)
- Branch classification (BranchRole, BranchInfo)
- Working tree status (WorkingTreeStatus)
- Pipeline state and results (PipelineResult, TaggingDecision)
"""

from .branch import BranchInfo, BranchRole
from .pipeline import (
    PhaseResult,
    PhaseStatus,
    PipelineOptions,
    PipelineResult,
    PipelineRunContext,
    PipelineState,
    RemoteInfo,
    TaggingDecision,
)
from .status import FileChange, WorkingTreeStatus
from .version import BumpKind, CurrentVersion, SemVer, VersionFile, VersionFileKind, WriteResult

__all__ = [
    "BranchInfo",
    "BranchRole",
    "BumpKind",
    "CurrentVersion",
    "FileChange",
    "PhaseResult",
    "PhaseStatus",
    "PipelineOptions",
    "PipelineResult",
    "PipelineRunContext",
    "PipelineState",
    "RemoteInfo",
    "SemVer",
    "TaggingDecision",
    "VersionFile",
    "VersionFileKind",
    "WorkingTreeStatus",
    "WriteResult",
]

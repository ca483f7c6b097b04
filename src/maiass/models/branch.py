"""Branch classification models."""

from dataclasses import dataclass
from enum import Enum


class BranchRole(str, Enum):
    """Semantic role of a branch."""

    MASTER = "master"
    DEVELOP = "develop"
    STAGING = "staging"
    FEATURE = "feature"
    BUGFIX = "bugfix"
    HOTFIX = "hotfix"
    RELEASE = "release"
    CHORE = "chore"
    DOCS = "documentation"
    OTHER = "other"


@dataclass(frozen=True)
class BranchInfo:
    """Classified branch name."""

    name: str
    role: BranchRole
    ticket_id: str | None = None
    is_special: bool = False

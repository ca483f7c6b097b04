"""Classify branch names into workflow roles."""

import re

from ..config import BranchesConfig
from ..models import BranchInfo, BranchRole

_TICKET = re.compile(r".*/([A-Z]+-\d+)")
MASTER_ALIAS = "main"

# Ordered prefix table; the first match wins.
PREFIXES: list[tuple[tuple[str, ...], BranchRole]] = [
    (("feature/", "feat/"), BranchRole.FEATURE),
    (("bugfix/", "bug/", "fix/"), BranchRole.BUGFIX),
    (("hotfix/",), BranchRole.HOTFIX),
    (("release/", "releases/"), BranchRole.RELEASE),
    (("chore/",), BranchRole.CHORE),
    (("docs/", "doc/"), BranchRole.DOCS),
]

SPECIAL_ROLES = {
    BranchRole.MASTER,
    BranchRole.DEVELOP,
    BranchRole.STAGING,
    BranchRole.HOTFIX,
    BranchRole.RELEASE,
}


def extract_ticket_id(branch: str) -> str | None:
    """Ticket ID (``ABC-123``) following the last ``/`` of a branch name."""
    match = _TICKET.match(branch)
    return match.group(1) if match else None


def _role_of(branch: str, branches: BranchesConfig) -> BranchRole:
    if branch == branches.develop:
        return BranchRole.DEVELOP
    if branch == branches.staging:
        return BranchRole.STAGING
    if branch == branches.master or branch == MASTER_ALIAS:
        return BranchRole.MASTER
    for prefixes, role in PREFIXES:
        if branch.startswith(prefixes):
            return role
    return BranchRole.OTHER


def classify_branch(branch: str, branches: BranchesConfig | None = None) -> BranchInfo:
    """Classify a branch name; every input maps to exactly one role."""
    role = _role_of(branch, branches or BranchesConfig())
    return BranchInfo(
        name=branch,
        role=role,
        ticket_id=extract_ticket_id(branch),
        is_special=role in SPECIAL_ROLES,
    )

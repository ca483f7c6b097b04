"""External service integrations for maiass.

This package provides interfaces to external tools and services:
- git: Git operations
- ai: Commit message suggestions over HTTP
- devlog: devlog.sh notifications
"""

from .ai import suggest_commit_message
from .devlog import DevlogNotifier
from .git import (
    GitError,
    GitResult,
    branch_exists,
    checkout,
    commit_file,
    exec_git,
    get_current_branch,
    get_diff,
    get_head_sha,
    get_remote_info,
    get_repo_root,
    get_status_porcelain,
    get_working_tree_status,
    has_staged_changes,
    remote_exists,
    run_git,
    stage_all,
)

__all__ = [
    "DevlogNotifier",
    "GitError",
    "GitResult",
    "branch_exists",
    "checkout",
    "commit_file",
    "exec_git",
    "get_current_branch",
    "get_diff",
    "get_head_sha",
    "get_remote_info",
    "get_repo_root",
    "get_status_porcelain",
    "get_working_tree_status",
    "has_staged_changes",
    "remote_exists",
    "run_git",
    "stage_all",
    "suggest_commit_message",
]

"""Helpers shared by command implementations."""

from pathlib import Path

import typer

from ..config import ConfigError, MaiassConfig, load_config
from ..constants import EXIT_FAILURE, EXIT_NOT_A_REPO
from ..output import OutputContext
from ..services import GitError, get_repo_root


def require_repo_root(ctx: OutputContext) -> Path:
    """Return the repository root or exit with code 3."""
    try:
        return get_repo_root()
    except GitError:
        ctx.error("Not a git repository")
        raise typer.Exit(EXIT_NOT_A_REPO) from None


def require_config(repo_root: Path, ctx: OutputContext) -> MaiassConfig:
    """Load configuration or exit with code 1."""
    try:
        return load_config(repo_root)
    except ConfigError as e:
        ctx.error(str(e))
        raise typer.Exit(EXIT_FAILURE) from None

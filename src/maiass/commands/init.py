"""Init command implementation."""

from ..config import write_config_template
from ..constants import CONFIG_FILENAME
from ..output import get_output_context
from .common import require_repo_root


def init() -> None:
    """Write a default .maiass.toml in the current repository."""
    ctx = get_output_context()
    repo_root = require_repo_root(ctx)

    config_path = repo_root / CONFIG_FILENAME
    if config_path.exists():
        ctx.console.print(f"[yellow]Config already exists:[/yellow] {config_path}")
        return

    write_config_template(repo_root)
    ctx.success(f"Created config template: {config_path}", {"path": str(config_path)})

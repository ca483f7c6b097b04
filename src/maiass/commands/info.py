"""Git info command implementation."""

from ..core import classify_branch
from ..output import get_output_context
from ..services import git
from .common import require_config, require_repo_root


def git_info() -> None:
    """Show branch, ticket, author, working tree and remote details."""
    ctx = get_output_context()
    repo_root = require_repo_root(ctx)
    config = require_config(repo_root, ctx)

    branch = classify_branch(git.get_current_branch(cwd=repo_root), config.branches)
    status = git.get_working_tree_status(cwd=repo_root)
    remote = git.get_remote_info(config.git.remote, cwd=repo_root)

    data = {
        "branch": branch.name,
        "role": branch.role.value,
        "special": branch.is_special,
        "ticket": branch.ticket_id,
        "author": git.get_author(cwd=repo_root),
        "staged": len(status.staged),
        "unstaged": len(status.unstaged),
        "untracked": len(status.untracked),
        "clean": status.is_clean,
        "remote": (
            {"url": remote.url, "provider": remote.provider, "owner": remote.owner, "repo": remote.repo}
            if remote
            else None
        ),
    }
    if ctx.json_mode:
        ctx.print_json(data)
        return

    ctx.console.print(f"[bold]Branch:[/bold] {branch.name} ({branch.role.value})")
    ctx.console.print(f"[bold]Ticket:[/bold] {branch.ticket_id or '-'}")
    ctx.console.print(f"[bold]Author:[/bold] {data['author'] or '-'}")
    ctx.console.print(
        f"[bold]Working tree:[/bold] {data['staged']} staged, "
        f"{data['unstaged']} unstaged, {data['untracked']} untracked"
    )
    if remote:
        where = f"{remote.provider}: {remote.owner}/{remote.repo}" if remote.provider else remote.url
        ctx.console.print(f"[bold]Remote:[/bold] {where}")
    else:
        ctx.console.print("[bold]Remote:[/bold] -")

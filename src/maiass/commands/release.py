"""Release and commit command implementations."""

from typing import Annotated

import typer

from ..core import CommitStage, PipelineOrchestrator
from ..models import PipelineOptions, PipelineResult, PipelineState
from ..output import get_output_context
from ..prompts import Prompter
from ..services import DevlogNotifier, get_remote_info
from .common import require_config, require_repo_root


def _run_pipeline(options: PipelineOptions) -> PipelineResult:
    ctx = get_output_context()
    repo_root = require_repo_root(ctx)
    config = require_config(repo_root, ctx)

    prompter = Prompter(ctx.console, silent=options.silent or options.force)
    notifier = DevlogNotifier(
        config.devlog, repo_root, get_remote_info(config.git.remote, cwd=repo_root)
    )
    stage = CommitStage(config, repo_root, prompter, ctx, notifier=notifier)
    orchestrator = PipelineOrchestrator(config, repo_root, prompter, ctx, commit_stage=stage)
    return orchestrator.run(options)


def _report(result: PipelineResult) -> None:
    ctx = get_output_context()
    if result.state == PipelineState.DONE:
        summary = f"Done on {result.final_branch}"
        if result.new_version:
            summary += f" at version {result.new_version}"
        ctx.result(result.to_dict(), f"[green]✓ {summary}[/green]")
    elif result.state == PipelineState.CANCELLED:
        ctx.result(result.to_dict(), "[yellow]Cancelled[/yellow]")
    else:
        ctx.error(result.message or "Pipeline failed", result.to_dict())
    if result.exit_code:
        raise typer.Exit(result.exit_code)


def release(
    bump: Annotated[
        str,
        typer.Argument(help="Version bump: major, minor, patch or an explicit x.y.z"),
    ] = "patch",
    commits_only: Annotated[
        bool,
        typer.Option("--commits-only", "-c", help="Only commit; skip merge and versioning"),
    ] = False,
    auto_stage: Annotated[
        bool,
        typer.Option("--auto-stage", "-a", help="Stage all changes without asking"),
    ] = False,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", "-d", help="Compute the new version without writing it"),
    ] = False,
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Skip confirmation prompts"),
    ] = False,
    silent: Annotated[
        bool,
        typer.Option("--silent", "-s", help="Answer prompts automatically"),
    ] = False,
    tag: Annotated[
        bool,
        typer.Option("--tag", "-t", help="Always create a release branch and tag"),
    ] = False,
) -> None:
    """Commit, merge to develop, bump the version and update changelogs."""
    _report(
        _run_pipeline(
            PipelineOptions(
                bump=bump,
                commits_only=commits_only,
                auto_stage=auto_stage,
                dry_run=dry_run,
                force=force,
                silent=silent,
                tag=tag,
            )
        )
    )


def commit(
    auto_stage: Annotated[
        bool,
        typer.Option("--auto-stage", "-a", help="Stage all changes without asking"),
    ] = False,
    silent: Annotated[
        bool,
        typer.Option("--silent", "-s", help="Answer prompts automatically"),
    ] = False,
) -> None:
    """Stage and commit changes only."""
    _report(
        _run_pipeline(PipelineOptions(commits_only=True, auto_stage=auto_stage, silent=silent))
    )

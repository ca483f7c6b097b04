"""Version command implementation."""

from pathlib import Path
from typing import Annotated

import typer

from ..constants import EXIT_FAILURE, TAG_MESSAGE
from ..core import (
    VersionError,
    get_current_version,
    latest_tag_version,
    parse_version,
    resolve_target,
    update_version_files,
)
from ..models import CurrentVersion, SemVer
from ..output import get_output_context
from ..services import GitError, git
from .common import require_config, require_repo_root

INITIAL_VERSION = SemVer(1, 0, 0)


def _target_for(current: CurrentVersion, bump: str, force: bool) -> SemVer:
    if current.value is not None:
        return resolve_target(current.value, bump)
    explicit = parse_version(bump)
    if explicit is not None:
        return explicit
    if force:
        return INITIAL_VERSION
    raise VersionError("No current version found; pass an explicit version or --force")


def _show(current: CurrentVersion, repo_root: Path) -> None:
    ctx = get_output_context()
    tag_version = latest_tag_version(cwd=repo_root)
    data = {
        "version": str(current.value) if current.value else None,
        "source": current.source,
        "latest_tag": str(tag_version) if tag_version else None,
        "files": [
            {"file": f.filename, "kind": f.kind.value, "version": str(f.current_version)}
            for f in current.files
        ],
    }
    if ctx.json_mode:
        ctx.print_json(data)
        return
    if current.value is None:
        ctx.console.print("[yellow]No version found[/yellow]")
    else:
        ctx.console.print(f"Current version: [bold]{current.value}[/bold] (from {current.source})")
    ctx.console.print(f"Latest release tag: {tag_version or '-'}")
    for f in current.files:
        ctx.console.print(f"  {f.filename} [dim]({f.kind.value})[/dim] {f.current_version}")


def version(
    bump: Annotated[
        str | None,
        typer.Argument(help="major, minor, patch or x.y.z; omit to show the current version"),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", "-d", help="Show the new version without writing"),
    ] = False,
    tag: Annotated[
        bool,
        typer.Option("--tag", "-t", help="Create an annotated tag for the new version"),
    ] = False,
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Start at 1.0.0 when no version exists"),
    ] = False,
) -> None:
    """Show or bump the project version without committing."""
    ctx = get_output_context()
    repo_root = require_repo_root(ctx)
    config = require_config(repo_root, ctx)
    current = get_current_version(config.version_dir(repo_root), config.version, cwd=repo_root)

    if bump is None:
        _show(current, repo_root)
        return

    try:
        target = _target_for(current, bump, force)
    except VersionError as e:
        ctx.error(str(e))
        raise typer.Exit(EXIT_FAILURE) from None

    previous = str(current.value) if current.value else None
    data = {"previous_version": previous, "new_version": str(target), "dry_run": dry_run}
    if dry_run:
        ctx.result(data, f"Would bump {previous or '(none)'} → {target}")
        return

    results = update_version_files(current.files, target, config.version.constant_name)
    failed = [r.file.filename for r in results if not r.success]
    for r in results:
        if r.success:
            ctx.info(f"Updated {r.file.filename}")
    if not results:
        ctx.warn("No version files detected")

    if tag:
        try:
            if git.tag_exists(str(target), cwd=repo_root):
                raise VersionError(f"Tag {target} already exists")
            git.create_annotated_tag(
                str(target), TAG_MESSAGE.format(version=target), cwd=repo_root
            )
        except (GitError, VersionError) as e:
            ctx.error(str(e))
            raise typer.Exit(EXIT_FAILURE) from None
        ctx.info(f"Created tag {target}")

    data.update(
        {
            "files": [r.file.filename for r in results if r.success],
            "failed": failed,
            "tagged": tag,
        }
    )
    ctx.success(f"Version {target}", data)
    if failed:
        raise typer.Exit(EXIT_FAILURE)

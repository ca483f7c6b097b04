"""Config command implementation."""

from typing import Annotated, Any

import typer
from rich.markup import escape

from ..config import (
    ENV_OVERRIDES,
    ConfigEntry,
    ConfigError,
    MaiassConfig,
    config_keys,
    describe_config,
    mask_value,
    resolve_key,
    set_config_value,
)
from ..constants import CONFIG_FILENAME, EXIT_FAILURE
from ..output import OutputContext, get_output_context
from .common import require_repo_root

_SOURCE_STYLES = {"env": "magenta", "file": "green", "default": "dim"}


def _shown(entry: ConfigEntry, show_sensitive: bool) -> Any:
    if entry.sensitive and not show_sensitive:
        return mask_value(entry.value)
    return entry.value


def _entry_json(entry: ConfigEntry, show_sensitive: bool) -> dict[str, Any]:
    return {
        "key": entry.key,
        "value": _shown(entry, show_sensitive),
        "source": entry.source,
        "env_var": entry.env_var,
    }


def _print_entry(ctx: OutputContext, entry: ConfigEntry, show_sensitive: bool) -> None:
    style = _SOURCE_STYLES[entry.source]
    value = escape(repr(_shown(entry, show_sensitive)))
    ctx.console.print(f"{entry.key} = {value} [{style}]({entry.source})[/{style}]")


def _list_vars(ctx: OutputContext) -> None:
    defaults = MaiassConfig().model_dump(mode="json")
    env_vars = {target: env for env, target in ENV_OVERRIDES.items()}
    keys = [
        {
            "key": f"{section}.{key}",
            "env_var": env_vars.get((section, key)),
            "default": defaults[section][key],
        }
        for section, key in config_keys()
    ]

    if ctx.json_mode:
        ctx.print_json({"keys": keys})
        return
    for item in keys:
        env_note = f"  [dim]{item['env_var']}[/dim]" if item["env_var"] else ""
        ctx.console.print(f"[bold]{item['key']}[/bold]{env_note}")
        ctx.console.print(f"    default: {escape(repr(item['default']))}")


def config(
    key: Annotated[
        str | None,
        typer.Argument(help="Setting to show (section.key or MAIASS_*), or KEY=VALUE to set it"),
    ] = None,
    list_vars: Annotated[
        bool, typer.Option("--list-vars", help="List every setting with its default")
    ] = False,
    show_sensitive: Annotated[
        bool, typer.Option("--show-sensitive", help="Show secrets instead of masking them")
    ] = False,
) -> None:
    """Show, get or set configuration values."""
    ctx = get_output_context()

    if list_vars:
        _list_vars(ctx)
        return

    repo_root = require_repo_root(ctx)

    try:
        if key is not None and "=" in key:
            name, _, raw = key.partition("=")
            stored = set_config_value(repo_root, name.strip(), raw.strip())
            dotted = ".".join(resolve_key(name.strip()))
            ctx.result(
                {"key": dotted, "value": stored, "path": CONFIG_FILENAME},
                f"[green]✓[/green] Set {dotted} = {escape(repr(stored))} in {CONFIG_FILENAME}",
            )
            return

        entries = describe_config(repo_root)
        if key is not None:
            section, field = resolve_key(key)
            entries = [entry for entry in entries if entry.key == f"{section}.{field}"]
    except ConfigError as e:
        ctx.error(str(e))
        raise typer.Exit(EXIT_FAILURE) from None

    if ctx.json_mode:
        if key is not None:
            ctx.print_json(_entry_json(entries[0], show_sensitive))
        else:
            ctx.print_json(
                {"config": [_entry_json(entry, show_sensitive) for entry in entries]}
            )
        return

    for entry in entries:
        _print_entry(ctx, entry, show_sensitive)

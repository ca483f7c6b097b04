"""Output formatting for maiass CLI."""

import json
from dataclasses import dataclass
from typing import Any

from rich.console import Console
from rich.markup import escape


@dataclass
class OutputContext:
    """Context for user-facing output.

    Progress messages go to the console; in JSON mode they are suppressed and
    only the final result object is written to stdout.
    """

    console: Console
    json_mode: bool = False

    def print(self, message: str, style: str | None = None) -> None:
        """Print message respecting output mode."""
        if not self.json_mode:
            self.console.print(message, style=style)

    def phase(self, title: str) -> None:
        """Print a pipeline phase heading."""
        self.print(f"\n[bold cyan]▶ {escape(title)}[/bold cyan]")

    def info(self, message: str) -> None:
        """Print an informational line."""
        self.print(f"[blue]ℹ[/blue] {escape(message)}")

    def warn(self, message: str) -> None:
        """Print a warning line."""
        self.print(f"[yellow]⚠ {escape(message)}[/yellow]")

    def done(self, message: str) -> None:
        """Print a completed step. Progress only, never JSON."""
        self.print(f"[green]✓ {escape(message)}[/green]")

    def fail(self, message: str) -> None:
        """Print a failed step. The final result carries the error in JSON mode."""
        self.print(f"[red]✗ {escape(message)}[/red]")

    def print_json(self, data: dict[str, Any]) -> None:
        """Print JSON data."""
        if self.json_mode:
            print(json.dumps(data, indent=2, default=str))

    def result(self, data: dict[str, Any], message: str = "") -> None:
        """Print result in appropriate format."""
        if self.json_mode:
            self.print_json(data)
        elif message:
            self.console.print(message)

    def error(self, message: str, data: dict[str, Any] | None = None) -> None:
        """Print error in appropriate format."""
        if self.json_mode and data:
            self.print_json({"error": message, **data})
        elif self.json_mode:
            self.print_json({"error": message})
        else:
            self.console.print(f"[red]✗ Error: {escape(message)}[/red]")

    def success(self, message: str, data: dict[str, Any] | None = None) -> None:
        """Print success message in appropriate format."""
        if self.json_mode and data:
            self.print_json({"success": message, **data})
        elif self.json_mode:
            self.print_json({"success": message})
        else:
            self.console.print(f"[green]✓ {escape(message)}[/green]")


# Global output context (set by cli.py main callback)
_ctx: OutputContext | None = None


def get_output_context() -> OutputContext:
    """Get the current output context.

    Returns a default OutputContext if not yet initialized by CLI.
    """
    if _ctx is None:
        return OutputContext(Console())
    return _ctx


def set_output_context(ctx: OutputContext) -> None:
    """Set the global output context. Called by CLI main callback."""
    global _ctx
    _ctx = ctx

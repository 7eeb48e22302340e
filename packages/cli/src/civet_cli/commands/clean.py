"""clean command — remove workspaces kept after failed checks."""

from __future__ import annotations

import click
from rich.console import Console

from civet_core.workspace import list_workspaces, remove_workspace

console = Console()


@click.command("clean")
@click.option("--sha", "shas", multiple=True, help="Remove the workspace for this head revision. Repeatable.")
@click.option("--all", "remove_all", is_flag=True, help="Remove every retained workspace.")
@click.pass_context
def clean_cmd(ctx, shas: tuple[str, ...], remove_all: bool):
    """List retained workspaces, or remove them with --sha / --all."""
    scratch_root = ctx.obj["config"]["scratch_root"]
    retained = list_workspaces(scratch_root)

    if not shas and not remove_all:
        if not retained:
            console.print("[yellow]No retained workspaces.[/yellow]")
            return
        for sha in retained:
            console.print(sha)
        return

    targets = retained if remove_all else list(shas)
    for sha in targets:
        if remove_workspace(scratch_root, sha):
            console.print(f"[green]Removed {sha}[/green]")
        else:
            console.print(f"[yellow]No workspace for {sha}[/yellow]")

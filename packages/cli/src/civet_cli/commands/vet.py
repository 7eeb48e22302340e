"""vet command — run the checks on a local checkout."""

from __future__ import annotations

import click
from rich.console import Console

from civet_core.models import all_passed
from civet_core.pipeline import Pipeline
from civet_core.workspace import Workspace

console = Console()


@click.command("vet")
@click.argument("directory", default=".", type=click.Path(exists=True, file_okay=False))
@click.option("--gate/--no-gate", "gate", default=None, help="Skip build and test when earlier stages fail.")
@click.pass_context
def vet_cmd(ctx, directory: str, gate: bool | None):
    """Run format, analysis, build and test checks on DIRECTORY.

    Nothing is cloned, posted or deleted. Exits with status 1 when any
    check fails.
    """
    config = dict(ctx.obj["config"])
    if gate is not None:
        config["gate_on_findings"] = gate

    workspace = Workspace.for_directory(directory)
    diagnostics = Pipeline(workspace, config).check()

    if not diagnostics:
        console.print("[yellow]Nothing to check.[/yellow]")
        return

    for d in diagnostics:
        color = "green" if d.passed else "red"
        console.print(f"[{color}]{'ok' if d.passed else 'FAIL':>4}[/{color}] ", end="")
        console.print(d.render(), markup=False, highlight=False)

    if not all_passed(diagnostics):
        ctx.exit(1)

"""CLI entry point for civet.

Commands:
  check  — run the checks for one or more pull request event payloads
  vet    — run the checks on a local directory, nothing is posted
  clean  — list or remove workspaces kept after failed checks
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.logging import RichHandler

from civet_cli.commands.check import check_cmd
from civet_cli.commands.clean import clean_cmd
from civet_cli.commands.vet import vet_cmd


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=verbose)],
        force=True,
    )


@click.group()
@click.version_option(
    version=importlib.metadata.version("civet"),
    prog_name="civet",
)
@click.option(
    "--config",
    "config_path",
    default=".civet.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="CIVET_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Log every command the checks run.")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool):
    """Pull request checker: format, static analysis, build and test."""
    from civet_core.config import load_config

    _configure_logging(verbose)
    ctx.ensure_object(dict)
    try:
        ctx.obj["config"] = load_config(config_path)
    except ValueError as e:
        raise click.UsageError(str(e))


main.add_command(check_cmd)
main.add_command(vet_cmd)
main.add_command(clean_cmd)

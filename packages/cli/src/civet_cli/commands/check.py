"""check command — run the checks for pull request event payloads."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from civet_core.checkout import clone
from civet_core.events import EventError, ReviewContext
from civet_core.gh.pull_request import get_client, get_repo
from civet_core.handler import handle_pull_request, process_events, workspace_for
from civet_core.models import all_passed
from civet_core.pipeline import Pipeline
from civet_core.report import format_comment

console = Console()


def _load_events(event_files) -> list[ReviewContext]:
    contexts = []
    for f in event_files:
        try:
            contexts.append(ReviewContext.from_json(f.read()))
        except EventError as e:
            raise click.UsageError(f"{f.name}: {e}")
    return contexts


def _dry_run(contexts: list[ReviewContext], config: dict) -> None:
    for ctx in contexts:
        if ctx.lifecycle is None or ctx.action == "closed":
            console.print(f"[dim]{ctx.repo_name}#{ctx.number}: nothing to do for '{ctx.action}'[/dim]")
            continue
        pr = ctx.pull_request
        workspace = workspace_for(ctx, config)
        clone(workspace, pr.head, pr.head.repo.default_branch or config["default_branch"])
        diagnostics = Pipeline(workspace, config).check()
        if all_passed(diagnostics):
            workspace.destroy()
        console.print(f"\n[bold]{ctx.repo_name}#{ctx.number}[/bold] ({len(diagnostics)} diagnostic(s), not posted)")
        body = format_comment(diagnostics)
        if body:
            console.print(body, markup=False, highlight=False)


@click.command("check")
@click.argument("event_files", nargs=-1, required=True, type=click.File("r"))
@click.option("--jobs", "-j", type=int, default=None, help="Events to check at the same time. Overrides config file.")
@click.option(
    "--scratch-root",
    default=None,
    help="Directory that holds the per-revision workspaces. Overrides config file.",
)
@click.option("--dry-run", is_flag=True, help="Print the report instead of posting it; GitHub is not touched.")
@click.pass_context
def check_cmd(ctx, event_files, jobs: int | None, scratch_root: str | None, dry_run: bool):
    """Check pull requests described by GitHub `pull_request` event payloads.

    Each EVENT_FILE is the JSON body of a webhook delivery (use - for stdin,
    or $GITHUB_EVENT_PATH inside GitHub Actions).

    \b
    Required environment variables (unless --dry-run):
      GITHUB_TOKEN     token allowed to comment on and close pull requests
      CIVET_BOT_USER   optional; defaults to the token's own login
    """
    from civet_cli.auth import resolve_bot_user, resolve_github_token

    config = dict(ctx.obj["config"])
    if jobs is not None:
        config["jobs"] = jobs
    if scratch_root is not None:
        config["scratch_root"] = scratch_root

    contexts = _load_events(event_files)

    if dry_run:
        _dry_run(contexts, config)
        return

    token = resolve_github_token()
    if not token:
        raise click.UsageError("No GitHub token found. Set GITHUB_TOKEN or run `gh auth login` first.")

    client = get_client(token)
    bot_user = resolve_bot_user(client, config.get("bot_user"))

    if len(contexts) == 1:
        results = {0: handle_pull_request(contexts[0], get_repo(client, contexts[0].repo_name), config, bot_user)}
    else:
        results = process_events(contexts, lambda name: get_repo(client, name), config, bot_user, config["jobs"])

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Pull request")
    table.add_column("Action")
    table.add_column("Diagnostics", justify="right")
    table.add_column("Result")
    failed = False
    for i, review in enumerate(contexts):
        diagnostics = results.get(i)
        if diagnostics is None:
            result = "[dim]skipped[/dim]"
        elif all_passed(diagnostics):
            result = "[green]passed[/green]"
        else:
            result = "[red]failed[/red]"
            failed = True
        table.add_row(
            f"{review.repo_name}#{review.number}",
            review.action,
            "—" if diagnostics is None else str(len(diagnostics)),
            result,
        )
    console.print(table)
    if failed:
        ctx.exit(1)

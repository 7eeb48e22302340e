"""Per-event orchestration: provision, fetch, check, report, finalize."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable

from civet_core.checkout import clone
from civet_core.events import ReviewContext
from civet_core.models import Diagnostic
from civet_core.pipeline import Pipeline
from civet_core.report import ReportManager
from civet_core.workspace import Workspace

logger = logging.getLogger(__name__)

_RUN_ACTIONS = ("opened", "synchronize", "reopened")
# Actions after which earlier bot comments may be stale.
_CLEAN_ACTIONS = ("synchronize", "reopened")


def workspace_for(context: ReviewContext, config: dict) -> Workspace:
    pr = context.pull_request
    return Workspace.for_revision(
        config["scratch_root"],
        pr.head.sha,
        pr.base.repo.clone_url,
        config.get("canonical_host", "github.com"),
    )


def handle_pull_request(context: ReviewContext, repo, config: dict, bot_user: str | None) -> list[Diagnostic] | None:
    """Run the full check for one pull request event.

    Returns the diagnostics that were reported, or None when the action is
    one we don't check (closed, labeled, ...).
    """
    pr = context.pull_request
    if context.action not in _RUN_ACTIONS:
        logger.info("ignoring %s action on %s#%d", context.action, context.repo_name, context.number)
        return None

    logger.info("pr: %s", pr.url)
    logger.info("want to merge %s into %s", pr.head.label, pr.base.label)

    reporter = ReportManager(repo, context, config, bot_user)
    if context.action in _CLEAN_ACTIONS:
        reporter.clean_old_comments()

    workspace = workspace_for(context, config)
    default_branch = pr.head.repo.default_branch or config.get("default_branch", "master")
    clone(workspace, pr.head, default_branch)

    diagnostics = Pipeline(workspace, config).check()

    reporter.report(diagnostics)
    reporter.finalize(workspace, diagnostics)
    return diagnostics


def _run_one(context: ReviewContext, repo_for, config: dict, bot_user: str | None):
    return handle_pull_request(context, repo_for(context.repo_name), config, bot_user)


def process_events(
    contexts: list[ReviewContext],
    repo_for: Callable[[str], object],
    config: dict,
    bot_user: str | None,
    jobs: int = 4,
) -> dict[int, list[Diagnostic] | None]:
    """Handle several events concurrently, keyed by their position in ``contexts``.

    Each event is independent; a crash in one is logged and recorded as None.
    ``repo_for`` maps "owner/name" to a repository handle from the shared client.
    """
    results: dict[int, list[Diagnostic] | None] = {}
    with ThreadPoolExecutor(max_workers=max(1, jobs)) as pool:
        futures = {
            pool.submit(_run_one, ctx, repo_for, config, bot_user): i
            for i, ctx in enumerate(contexts)
        }
        for future in as_completed(futures):
            i = futures[future]
            try:
                results[i] = future.result()
            except Exception:
                ctx = contexts[i]
                logger.exception("check failed for %s#%d", ctx.repo_name, ctx.number)
                results[i] = None
    return results

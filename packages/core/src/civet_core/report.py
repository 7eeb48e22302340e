"""Posting results back to the pull request and deciding what happens next.

Re-running on a new push must not pile up comments, so the previous run's
comments are deleted before the new report goes up. Reports are never
stored anywhere else.
"""

from __future__ import annotations

import logging
import re

from github import GithubException
from rich.console import Console

from civet_core.events import ReviewContext
from civet_core.gh.pull_request import close_pull, get_pull, list_bot_comments
from civet_core.models import Diagnostic, all_passed
from civet_core.workspace import Workspace

console = Console()
logger = logging.getLogger(__name__)


def format_comment(diagnostics: list[Diagnostic]) -> str:
    """Render diagnostics as one fenced code block, one line each.

    The fence keeps tool output from being interpreted as Markdown, so it is
    always longer than any backtick run inside the body.
    """
    lines = [line for line in (d.render() for d in diagnostics) if line]
    if not lines:
        return ""
    body = "\n".join(lines)
    longest = max((len(run) for run in re.findall("`+", body)), default=0)
    fence = "`" * max(3, longest + 1)
    return f"{fence}\n{body}\n{fence}"


class ReportManager:
    """Talks to GitHub on behalf of one review.

    ``repo`` is a PyGithub Repository obtained from the shared client; it is
    the only outbound handle and is passed in rather than looked up.
    """

    def __init__(self, repo, context: ReviewContext, config: dict, bot_user: str | None):
        self.repo = repo
        self.context = context
        self.bot_user = bot_user
        self.close_on_failure = bool(config.get("close_on_failure", True))

    def _issue(self):
        return self.repo.get_issue(self.context.number)

    def clean_old_comments(self) -> int:
        """Delete every earlier comment by the bot. Returns how many were removed."""
        if not self.bot_user:
            logger.warning(
                "No bot user configured; not cleaning old comments on %s#%d",
                self.context.repo_name,
                self.context.number,
            )
            return 0
        try:
            comments = list_bot_comments(self._issue(), self.bot_user)
        except GithubException as e:
            logger.warning("Error listing comments on %s#%d: %s", self.context.repo_name, self.context.number, e)
            return 0
        deleted = 0
        for comment in comments:
            try:
                comment.delete()
                deleted += 1
            except GithubException as e:
                logger.warning("Error deleting comment %s: %s", comment.id, e)
        logger.debug("deleted %d old comment(s)", deleted)
        return deleted

    def report(self, diagnostics: list[Diagnostic]):
        """Post all diagnostics as a single comment. Nothing is posted for an empty run."""
        if not diagnostics:
            return None
        body = format_comment(diagnostics)
        if not body:
            return None
        try:
            comment = self._issue().create_comment(body)
        except GithubException as e:
            logger.warning("Error commenting on %s#%d: %s", self.context.repo_name, self.context.number, e)
            return None
        console.print(
            f"[cyan]Reported {len(diagnostics)} diagnostic(s) on {self.context.repo_name}#{self.context.number}[/cyan]"
        )
        return comment

    def finalize(self, workspace: Workspace, diagnostics: list[Diagnostic]) -> bool:
        """Reclaim the workspace on success; otherwise keep it and close the PR.

        Returns True when every diagnostic passed.
        """
        if all_passed(diagnostics):
            workspace.destroy()
            console.print(f"[green]{self.context.repo_name}#{self.context.number}: all checks passed[/green]")
            return True

        console.print(
            f"[red]{self.context.repo_name}#{self.context.number}: checks failed, "
            f"workspace kept at {workspace.root}[/red]"
        )
        pr = self.context.pull_request
        if not self.close_on_failure or pr.state == "closed":
            return False
        try:
            close_pull(get_pull(self.repo, self.context.number), pr.title, pr.body)
        except GithubException as e:
            logger.warning("Error closing %s#%d: %s", self.context.repo_name, self.context.number, e)
        return False

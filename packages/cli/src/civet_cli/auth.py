"""GitHub credentials for the bot.

Token lookup stops at the first source that yields one:
  1. GITHUB_TOKEN (set by CI and in most deployments)
  2. GH_TOKEN (the variable the GitHub CLI itself honours)
  3. `gh auth token` from a logged-in GitHub CLI session
"""

from __future__ import annotations

import logging
import os
import subprocess

from github import GithubException

from civet_core.gh.pull_request import resolve_bot_login

logger = logging.getLogger(__name__)

_TOKEN_VARS = ("GITHUB_TOKEN", "GH_TOKEN")


def resolve_github_token() -> str | None:
    """Return a token, or None. Never raises."""
    for var in _TOKEN_VARS:
        token = os.environ.get(var)
        if token:
            return token

    try:
        result = subprocess.run(["gh", "auth", "token"], capture_output=True, text=True, timeout=5)
    except (FileNotFoundError, subprocess.TimeoutExpired):
        return None
    token = result.stdout.strip() if result.returncode == 0 else ""
    if token:
        logger.debug("Resolved GitHub token via gh CLI session.")
        return token
    return None


def resolve_bot_user(client, configured: str | None) -> str | None:
    """The login whose comments get cleaned: configured, else the token's owner."""
    if configured:
        return configured
    try:
        return resolve_bot_login(client)
    except GithubException as e:
        logger.warning("Could not determine bot login; old comments will not be cleaned: %s", e)
        return None

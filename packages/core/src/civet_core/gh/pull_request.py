from __future__ import annotations

from github import Auth, Github


def get_client(token: str) -> Github:
    """One client per process; PyGithub objects hold no per-review state."""
    return Github(auth=Auth.Token(token))


def get_repo(client: Github, repo_name: str):
    return client.get_repo(repo_name)


def get_pull(repo, pr_number: int):
    return repo.get_pull(pr_number)


def resolve_bot_login(client: Github) -> str:
    """Login of the account the token belongs to."""
    return client.get_user().login


def list_bot_comments(issue, bot_user: str) -> list:
    """Return the issue comments written by ``bot_user``."""
    return [c for c in issue.get_comments() if c.user is not None and c.user.login == bot_user]


def close_pull(pull, title: str, body: str):
    """Close a pull request, sending its current title and body unchanged."""
    pull.edit(title=title, body=body, state="closed")

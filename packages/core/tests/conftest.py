"""Shared fixtures: a workspace whose tool commands are scripted.

Only ``diff`` runs for real, so the format check's line lookup is exercised
end to end while build, analysis and test output stays deterministic.
"""

import shutil
import subprocess

import pytest

from civet_core.workspace import CommandResult, Workspace


class ScriptedWorkspace(Workspace):
    def __init__(self, root, responses=None, **kwargs):
        super().__init__(str(root), **kwargs)
        # first argv element -> CommandResult or exception to raise
        self.responses = responses or {}
        self.calls = []

    def run(self, args, cwd=None):
        self.calls.append(list(args))
        if args[0] == "diff" and "diff" not in self.responses:
            return super().run(args, cwd)
        response = self.responses.get(args[0], CommandResult(args=list(args), returncode=0))
        if isinstance(response, Exception):
            raise response
        return response

    def ran(self, program):
        return [c for c in self.calls if c[0] == program]


def _has_gnu_diff():
    if shutil.which("diff") is None:
        return False
    out = subprocess.run(["diff", "--version"], capture_output=True, text=True)
    return "GNU" in out.stdout


@pytest.fixture
def gnu_diff():
    if not _has_gnu_diff():
        pytest.skip("GNU diff not available")


@pytest.fixture
def scripted():
    return ScriptedWorkspace


@pytest.fixture
def config():
    from civet_core.config import DEFAULT_CONFIG

    cfg = dict(DEFAULT_CONFIG)
    cfg["analysis_command"] = ["pyflakes", "."]
    cfg["build_command"] = ["compileall", "-q", "."]
    cfg["test_command"] = ["pytest", "-q", "--cov=."]
    return cfg


def _repo(name="widgets", login="acme", clone_url="https://github.com/acme/widgets.git"):
    return {"id": 7, "name": name, "clone_url": clone_url, "owner": {"login": login, "type": "Organization"}}


@pytest.fixture
def pr_event():
    """A fresh `pull_request` webhook payload for acme/widgets#12."""
    return {
        "action": "synchronize",
        "number": 12,
        "pull_request": {
            "url": "https://api.github.com/repos/acme/widgets/pulls/12",
            "state": "open",
            "title": "Add sprockets",
            "body": "Adds sprockets.",
            "base": {"label": "acme:master", "ref": "master", "sha": "a" * 40, "repo": _repo()},
            "head": {
                "label": "dev:sprockets",
                "ref": "sprockets",
                "sha": "c" * 40,
                "repo": _repo(login="dev", clone_url="https://github.com/dev/widgets.git"),
            },
        },
    }

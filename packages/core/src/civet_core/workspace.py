"""Per-revision workspaces and the command runner bound to them.

A workspace lives at ``<scratch_root>/<head-sha>/src/<host>/<repo-path>``.
The head SHA is immutable, so two pipeline runs never share a path and no
locking is needed. Every external command runs with the workspace's own
environment mapping; the process environment is never modified.
"""

from __future__ import annotations

import logging
import os
import re
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

# Stripped from the inherited environment so one run's interpreter setup
# cannot leak into another's.
_ISOLATED_VARS = ("PYTHONPATH", "PYTHONHOME", "VIRTUAL_ENV", "PYTHONPYCACHEPREFIX")

_REVISION_RE = re.compile(r"[0-9a-fA-F]{4,64}")


def is_revision(sha: str) -> bool:
    """True for a (possibly abbreviated) hex commit id, the only safe directory name."""
    return isinstance(sha, str) and _REVISION_RE.fullmatch(sha) is not None


def root_for_url(scratch_dir: str, clone_url: str, canonical_host: str = "github.com") -> str:
    """Return the checkout root for ``clone_url`` under ``scratch_dir``.

    A trailing ``.git`` is only dropped for the canonical host; elsewhere it
    may be a legitimate part of the repository name.
    """
    u = urlparse(clone_url)
    path = u.path
    if u.hostname == canonical_host and path.endswith(".git"):
        path = path[: -len(".git")]
    host = u.netloc.rsplit("@", 1)[-1]  # never put credentials on disk
    return os.path.join(scratch_dir, "src", host, path.strip("/"))


@dataclass
class CommandResult:
    args: list[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        """stdout followed by stderr, each starting on its own line."""
        if self.stdout and self.stderr and not self.stdout.endswith("\n"):
            return self.stdout + "\n" + self.stderr
        return self.stdout + self.stderr


class Workspace:
    """Filesystem root for one pipeline run plus its command environment.

    ``owned`` workspaces were provisioned by the bot under a scratch root and
    may be wiped; a workspace wrapping a user directory never is.
    """

    def __init__(self, root: str, base: str | None = None, scratch_root: str | None = None, owned: bool = False):
        self.root = os.path.abspath(root)
        self.base = base or self.root
        self.scratch_root = scratch_root
        self.owned = owned
        self.env = self._build_env()

    @classmethod
    def for_revision(
        cls, scratch_root: str, sha: str, clone_url: str, canonical_host: str = "github.com"
    ) -> Workspace:
        if not is_revision(sha):
            raise ValueError(f"not a commit id: {sha!r}")
        base = os.path.join(scratch_root, sha)
        return cls(root_for_url(base, clone_url, canonical_host), base=base, scratch_root=scratch_root, owned=True)

    @classmethod
    def for_directory(cls, path: str) -> Workspace:
        return cls(path)

    def _build_env(self) -> dict[str, str]:
        env = {k: v for k, v in os.environ.items() if k not in _ISOLATED_VARS}
        env["PYTHONPATH"] = self.root
        if self.owned:
            # Bytecode goes next to the checkout, not inside it.
            env["PYTHONPYCACHEPREFIX"] = os.path.join(self.base, "pycache")
            env["PIP_CACHE_DIR"] = os.path.join(self.scratch_root, "pip-cache")
        return env

    def run(self, args: list[str], cwd: str | None = None) -> CommandResult:
        """Run ``args`` synchronously in the workspace environment.

        Raises FileNotFoundError when the executable does not exist.
        """
        logger.debug("running %s in %s", " ".join(args), cwd or self.root)
        proc = subprocess.run(
            args,
            cwd=cwd or self.root,
            env=self.env,
            capture_output=True,
            text=True,
            errors="replace",
        )
        return CommandResult(args=list(args), returncode=proc.returncode, stdout=proc.stdout, stderr=proc.stderr)

    def prepare(self) -> None:
        """Remove any stale checkout for this revision and create the parent of root."""
        if not self.owned:
            return
        shutil.rmtree(self.base, ignore_errors=True)
        os.makedirs(os.path.dirname(self.root), exist_ok=True)

    def destroy(self) -> None:
        if not self.owned:
            return
        logger.debug("removing workspace %s", self.base)
        shutil.rmtree(self.base, ignore_errors=True)

    def __repr__(self) -> str:
        return f"Workspace(root={self.root!r})"


def scrub_root(text: str, root: str) -> str:
    """Remove every occurrence of root (and the separator after it) from text."""
    prefix = root.rstrip(os.sep) + os.sep
    return text.replace(prefix, "").replace(root, "")


def list_workspaces(scratch_root: str) -> list[str]:
    """Return the revision ids of workspaces retained under ``scratch_root``."""
    root = Path(scratch_root)
    if not root.is_dir():
        return []
    return sorted(p.name for p in root.iterdir() if p.is_dir() and (p / "src").is_dir())


def remove_workspace(scratch_root: str, sha: str) -> bool:
    if not is_revision(sha):
        return False
    target = Path(scratch_root) / sha
    if not (target / "src").is_dir():
        return False
    shutil.rmtree(target)
    return True

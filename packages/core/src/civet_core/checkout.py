"""Fetch the head revision of a pull request into its workspace."""

from __future__ import annotations

import logging
import os

from civet_core.events import Branch
from civet_core.workspace import Workspace

logger = logging.getLogger(__name__)


def clone(workspace: Workspace, head: Branch, default_branch: str) -> bool:
    """Shallow single-branch clone of ``head`` into ``workspace.root``.

    Returns False when the clone fails. The failure is logged but not raised:
    the pipeline then runs over an empty tree and reports whatever it finds.
    """
    workspace.prepare()
    logger.info("cloning %s@%s into %s", head.repo.clone_url, head.ref, workspace.root)
    try:
        result = workspace.run(
            [
                "git",
                "clone",
                "--single-branch",
                "--depth",
                "1",
                "--quiet",
                "-b",
                head.ref,
                head.repo.clone_url,
                workspace.root,
            ],
            cwd=os.path.dirname(workspace.root),
        )
    except FileNotFoundError as e:
        logger.warning("Could not run git: %s", e)
        return False
    if not result.ok:
        logger.warning("Error cloning %s: %s", head.repo.clone_url, result.stderr.strip())
        return False

    # Tooling that resolves the default branch breaks on single-branch
    # checkouts of another branch, so give it a local pointer at HEAD.
    if head.ref != default_branch:
        branch = workspace.run(["git", "branch", default_branch], cwd=workspace.root)
        if not branch.ok:
            logger.warning("Error creating local %s branch: %s", default_branch, branch.stderr.strip())
    return True

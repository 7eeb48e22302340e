"""Build and test stages.

Build failures are reported as one raw transcript rather than per-line
diagnostics: compiler output differs too much between toolchain versions to
parse reliably.
"""

from __future__ import annotations

import logging

from civet_core.models import Diagnostic, StageOutcome
from civet_core.workspace import Workspace, scrub_root

logger = logging.getLogger(__name__)


def parse_build_output(root: str, out: str) -> list[Diagnostic]:
    """Wrap a build transcript as a single unlocated diagnostic, root path removed."""
    return [Diagnostic(message=scrub_root(out, root))]


def _missing_tool(command: list[str], err: OSError) -> StageOutcome:
    logger.error("Could not run %s: %s", command[0], err)
    return StageOutcome([Diagnostic(message=f"could not run {' '.join(command)}: {err}")], proceed=False)


class BuildStage:
    name = "build"

    def __init__(self, config: dict):
        self.command = list(config["build_command"])
        install = config.get("install_command")
        self.install_command = list(install) if install else None

    def install(self, workspace: Workspace) -> None:
        """Fetch dependencies. Failures show up in the build, so only log them."""
        if not self.install_command:
            return
        try:
            result = workspace.run(self.install_command, cwd=workspace.root)
        except FileNotFoundError as e:
            logger.warning("Could not run %s: %s", self.install_command[0], e)
            return
        if not result.ok:
            logger.warning("error installing dependencies: %s", result.output.strip())

    def run(self, workspace: Workspace) -> StageOutcome:
        self.install(workspace)
        try:
            result = workspace.run(self.command, cwd=workspace.root)
        except FileNotFoundError as e:
            return _missing_tool(self.command, e)
        if result.ok:
            return StageOutcome()
        logger.info("build failed with exit status %d", result.returncode)
        return StageOutcome(parse_build_output(workspace.root, result.output), proceed=False)


class TestStage:
    """Quick test run with coverage. The transcript is always reported."""

    __test__ = False  # not a pytest test class
    name = "test"

    def __init__(self, config: dict):
        self.command = list(config["test_command"])
        self.ok_statuses = set(config.get("test_ok_statuses", (0,)))

    def run(self, workspace: Workspace) -> StageOutcome:
        try:
            result = workspace.run(self.command, cwd=workspace.root)
        except FileNotFoundError as e:
            return _missing_tool(self.command, e)
        passed = result.returncode in self.ok_statuses
        if not passed:
            logger.info("tests failed with exit status %d", result.returncode)
        return StageOutcome([Diagnostic(message=result.output, passed=passed)])

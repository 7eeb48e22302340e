from __future__ import annotations

import logging
import os

from civet_core.models import Diagnostic, StageOutcome
from civet_core.workspace import Workspace

logger = logging.getLogger(__name__)


def parse_analysis_output(directory: str, text: str) -> list[Diagnostic]:
    """Parse ``file:line[:col]: message`` lines into diagnostics.

    Lines without a ``": "`` separator or without a line field are banners and
    summaries and are dropped. A non-numeric line becomes 0.
    """
    diagnostics = []
    for line in text.splitlines():
        splits = line.split(": ", 1)
        if len(splits) != 2:
            continue
        location, message = splits
        fields = location.split(":")
        if len(fields) < 2:
            continue
        try:
            line_number = int(fields[1])
        except ValueError:
            line_number = 0
        diagnostics.append(Diagnostic(file=os.path.join(directory, fields[0]), line=line_number, message=message))
    return diagnostics


class AnalysisStage:
    """Run the static-analysis tool once over the whole workspace."""

    name = "analysis"

    def __init__(self, config: dict):
        self.command = list(config["analysis_command"])

    def run(self, workspace: Workspace) -> StageOutcome:
        try:
            result = workspace.run(self.command, cwd=workspace.root)
        except FileNotFoundError as e:
            logger.error("Could not run %s: %s", self.command[0], e)
            return StageOutcome([Diagnostic(message=f"could not run {' '.join(self.command)}: {e}")], proceed=False)
        diagnostics = parse_analysis_output(workspace.root, result.output)
        # A nonzero exit with findings is normal; without any, the tool itself failed.
        if not result.ok and not diagnostics:
            logger.error("%s exited with status %d and reported nothing", self.command[0], result.returncode)
            message = f"{' '.join(self.command)} failed with exit status {result.returncode}:\n{result.output}"
            return StageOutcome([Diagnostic(message=message)], proceed=False)
        logger.info("analysis: %d finding(s), exit status %d", len(diagnostics), result.returncode)
        return StageOutcome(diagnostics)

"""Pipeline controller: run the stages in order and collect their diagnostics."""

from __future__ import annotations

import logging
import os

from civet_core.models import Diagnostic
from civet_core.stages import AnalysisStage, BuildStage, FormatCheckStage, TestStage
from civet_core.stages.format_check import find_sources
from civet_core.workspace import Workspace, scrub_root

logger = logging.getLogger(__name__)

# Stages skipped under gate_on_findings once an earlier stage has failures.
_GATED_STAGES = {"build", "test"}


def default_stages(config: dict) -> list:
    # Order matters: build must come directly before test.
    return [FormatCheckStage(config), AnalysisStage(config), BuildStage(config), TestStage(config)]


def relativize(root: str, diagnostics: list[Diagnostic]) -> list[Diagnostic]:
    """Make file paths relative to root and scrub root from every message."""
    for d in diagnostics:
        if d.file:
            d.file = os.path.relpath(d.file, root) if os.path.isabs(d.file) else os.path.normpath(d.file)
        d.message = scrub_root(d.message, root)
    return diagnostics


class Pipeline:
    def __init__(self, workspace: Workspace, config: dict, stages: list | None = None):
        self.workspace = workspace
        self.gate_on_findings = bool(config.get("gate_on_findings", False))
        self.stages = stages if stages is not None else default_stages(config)

    def check(self) -> list[Diagnostic]:
        """Run every stage and return the diagnostics in stage order."""
        diagnostics: list[Diagnostic] = []
        if not find_sources(self.workspace.root):
            logger.info("no source files under %s", self.workspace.root)
            return diagnostics
        for stage in self.stages:
            if self.gate_on_findings and stage.name in _GATED_STAGES and any(not d.passed for d in diagnostics):
                logger.info("skipping %s: earlier stages reported problems", stage.name)
                break
            outcome = stage.run(self.workspace)
            diagnostics.extend(outcome.diagnostics)
            if not outcome.proceed:
                logger.info("%s stage stopped the pipeline", stage.name)
                break
        return relativize(self.workspace.root, diagnostics)

"""Diagnostic data model shared by every pipeline stage."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable


@dataclass
class Diagnostic:
    """One reportable finding.

    A diagnostic with neither file nor line is a workspace-wide message
    (tool crash, build transcript). ``passed`` diagnostics are shown to the
    author but never count as failures (e.g. a passing test run with coverage).
    """

    file: str | None = None
    line: int | None = None  # 0 and None both mean "no line"
    message: str = ""
    passed: bool = False

    @property
    def located(self) -> bool:
        return bool(self.file) and bool(self.line)

    def render(self) -> str:
        msg = self.message.strip()
        if self.located:
            return f"{self.file}:{self.line}: {msg}"
        if self.file:
            return f"{self.file}: {msg}"
        return msg


@dataclass
class StageOutcome:
    """Result of one stage. ``proceed=False`` stops the stages after it."""

    diagnostics: list[Diagnostic] = field(default_factory=list)
    proceed: bool = True


def all_passed(diagnostics: Iterable[Diagnostic]) -> bool:
    return all(d.passed for d in diagnostics)

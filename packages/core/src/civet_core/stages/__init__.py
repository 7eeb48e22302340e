from civet_core.stages.analysis import AnalysisStage
from civet_core.stages.build import BuildStage, TestStage
from civet_core.stages.format_check import FormatCheckStage

__all__ = ["AnalysisStage", "BuildStage", "FormatCheckStage", "TestStage"]

"""Format check: every source file must survive isort + black unchanged.

When a file changes, the rendered copy is diffed against the original with
GNU diff so the diagnostic can point at the first line that moved.
"""

from __future__ import annotations

import ast
import logging
import os

import black
import isort
from isort.exceptions import FileSkipComment

from civet_core.models import Diagnostic, StageOutcome
from civet_core.workspace import Workspace

logger = logging.getLogger(__name__)

SOURCE_SUFFIX = ".py"
FMT_SUFFIX = ".fmt"

# Only lines that exist in the rendered file are printed, tagged with their
# line number there: ":<n>: <text>".
_DIFF_ARGS = [
    "--unchanged-line-format=",
    "--old-line-format=",
    "--new-line-format=:%dn: %L",
]


def find_sources(root: str) -> list[str]:
    """Return every ``*.py`` file under root, skipping ``.``/``_`` directories."""
    found = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if not d.startswith((".", "_")))
        for name in sorted(filenames):
            path = os.path.join(dirpath, name)
            if name.endswith(SOURCE_SUFFIX) and os.path.isfile(path) and not os.path.islink(path):
                found.append(path)
    return found


def render(src: str, line_length: int = 88) -> str:
    """Canonical rendering: isort import order, then black layout."""
    try:
        src = isort.code(src, profile="black", line_length=line_length)
    except FileSkipComment:
        pass
    return black.format_str(src, mode=black.Mode(line_length=line_length))


def parse_diff(text: str) -> int | None:
    for line in text.splitlines():
        splits = line.split(":", 2)
        if len(splits) != 3:
            continue
        try:
            return int(splits[1])
        except ValueError:
            continue
    return None


def find_first_change(workspace: Workspace, original: str, rendered: str) -> int | None:
    """Line number (in ``rendered``) of the first line that is not in ``original``."""
    try:
        result = workspace.run(["diff", *_DIFF_ARGS, original, rendered], cwd=os.path.dirname(original))
    except FileNotFoundError as e:
        logger.warning("Could not run diff: %s", e)
        return None
    # exit status 1 just means the files differ
    if result.returncode > 1:
        logger.warning("diff failed for %s: %s", original, result.stderr.strip())
        return None
    return parse_diff(result.stdout)


def _parse_error(path: str, err: Exception) -> Diagnostic:
    if isinstance(err, SyntaxError) and err.lineno:
        return Diagnostic(message=f"{path}:{err.lineno}: {err.msg}")
    return Diagnostic(message=f"{path}: {err}")


def check_file(workspace: Workspace, path: str, format_label: str = "black", line_length: int = 88):
    """Return a Diagnostic for a malformed file, or None if it is canonical."""
    try:
        with open(path, "rb") as f:
            src = f.read()
    except OSError as e:
        return _parse_error(path, e)
    try:
        text = src.decode("utf-8")
        ast.parse(text, filename=path)
        rendered = render(text, line_length).encode("utf-8")
    except (SyntaxError, ValueError, black.InvalidInput) as e:
        # UnicodeDecodeError is a ValueError
        return _parse_error(path, e)

    if rendered == src:
        return None

    fmt_path = path + FMT_SUFFIX
    try:
        with open(fmt_path, "wb") as f:
            f.write(rendered)
        line = find_first_change(workspace, path, fmt_path)
    finally:
        if os.path.exists(fmt_path):
            os.remove(fmt_path)

    if line is None:
        return Diagnostic(message=f"{path} needs {format_label}")
    return Diagnostic(file=path, line=line, message=f"needs {format_label}")


class FormatCheckStage:
    name = "format"

    def __init__(self, config: dict):
        self.format_label = config.get("format_label", "black")
        self.line_length = config.get("line_length", 88)

    def run(self, workspace: Workspace) -> StageOutcome:
        outcome = StageOutcome()
        for path in find_sources(workspace.root):
            diagnostic = check_file(workspace, path, self.format_label, self.line_length)
            if diagnostic is not None:
                outcome.diagnostics.append(diagnostic)
        logger.info("format check: %d file(s) need attention", len(outcome.diagnostics))
        return outcome

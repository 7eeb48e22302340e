"""Tests for the format check stage."""

import os

from civet_core.stages.format_check import FormatCheckStage, check_file, find_sources, parse_diff, render

CANONICAL = "def add(a, b):\n    return a + b\n"
MALFORMED = "def main():\n    x = 1\n    print( x )\n"


def _write(path, text):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text)
    return str(path)


class TestFindSources:
    def test_collects_python_files_recursively(self, tmp_path):
        _write(tmp_path / "main.py", CANONICAL)
        _write(tmp_path / "pkg" / "__init__.py", "")
        _write(tmp_path / "pkg" / "util.py", CANONICAL)
        _write(tmp_path / "README.md", "# hi\n")
        found = [os.path.relpath(p, tmp_path) for p in find_sources(str(tmp_path))]
        assert found == ["main.py", os.path.join("pkg", "__init__.py"), os.path.join("pkg", "util.py")]

    def test_skips_dot_and_underscore_directories(self, tmp_path):
        _write(tmp_path / ".git" / "hook.py", MALFORMED)
        _write(tmp_path / "_testdata" / "bad.py", MALFORMED)
        _write(tmp_path / "__pycache__" / "x.py", MALFORMED)
        _write(tmp_path / "ok.py", CANONICAL)
        assert find_sources(str(tmp_path)) == [str(tmp_path / "ok.py")]

    def test_missing_root_is_empty(self, tmp_path):
        assert find_sources(str(tmp_path / "nope")) == []


class TestParseDiff:
    def test_first_tagged_line(self):
        assert parse_diff(":3:     print(x)\n:4: \n") == 3

    def test_skips_untagged_lines(self):
        assert parse_diff("garbage\n:x: not a number\n:12: y = 2\n") == 12

    def test_message_with_colons(self):
        assert parse_diff(':5: d = {"a": 1}\n') == 5

    def test_nothing_usable(self):
        assert parse_diff("") is None
        assert parse_diff("no tags here\n") is None


class TestRender:
    def test_canonical_source_unchanged(self):
        assert render(CANONICAL) == CANONICAL

    def test_reformats_spacing(self):
        assert render("x=1\n") == "x = 1\n"

    def test_sorts_imports(self):
        assert render("import sys\nimport os\n") == "import os\nimport sys\n"


class TestCheckFile:
    def test_canonical_file_has_no_diagnostic(self, scripted, tmp_path):
        path = _write(tmp_path / "ok.py", CANONICAL)
        assert check_file(scripted(tmp_path), path) is None

    def test_located_at_first_changed_line(self, scripted, tmp_path, gnu_diff):
        path = _write(tmp_path / "main.py", MALFORMED)
        d = check_file(scripted(tmp_path), path)
        assert d.file == path
        assert d.line == 3
        assert d.message == "needs black"
        assert d.passed is False

    def test_first_line_change(self, scripted, tmp_path, gnu_diff):
        path = _write(tmp_path / "a.py", "a=1\nb = 2\n")
        assert check_file(scripted(tmp_path), path).line == 1

    def test_later_line_change(self, scripted, tmp_path, gnu_diff):
        path = _write(tmp_path / "a.py", "a = 1\nb = 2\nc=3\n")
        assert check_file(scripted(tmp_path), path).line == 3

    def test_custom_label(self, scripted, tmp_path, gnu_diff):
        path = _write(tmp_path / "a.py", "a=1\n")
        assert check_file(scripted(tmp_path), path, format_label="black+isort").message == "needs black+isort"

    def test_fmt_file_removed(self, scripted, tmp_path, gnu_diff):
        path = _write(tmp_path / "main.py", MALFORMED)
        check_file(scripted(tmp_path), path)
        assert not os.path.exists(path + ".fmt")
        # the original is never rewritten
        assert (tmp_path / "main.py").read_text() == MALFORMED

    def test_diff_runs_against_sibling_fmt_file(self, scripted, tmp_path, gnu_diff):
        path = _write(tmp_path / "main.py", MALFORMED)
        ws = scripted(tmp_path)
        check_file(ws, path)
        diff_call = ws.ran("diff")[0]
        assert diff_call[-2:] == [path, path + ".fmt"]

    def test_unusable_diff_falls_back_to_unlocated(self, scripted, tmp_path):
        path = _write(tmp_path / "main.py", MALFORMED)
        d = check_file(scripted(tmp_path, {"diff": FileNotFoundError("diff")}), path)
        assert d.file is None
        assert d.line is None
        assert d.message == f"{path} needs black"
        assert not os.path.exists(path + ".fmt")

    def test_parse_error_is_unlocated(self, scripted, tmp_path):
        path = _write(tmp_path / "broken.py", "def broken(:\n    pass\n")
        d = check_file(scripted(tmp_path), path)
        assert d.file is None
        assert d.line is None
        assert d.message.startswith(f"{path}:1: ")
        assert d.passed is False

    def test_parse_error_skips_diff(self, scripted, tmp_path):
        path = _write(tmp_path / "broken.py", "def broken(:\n")
        ws = scripted(tmp_path)
        check_file(ws, path)
        assert ws.ran("diff") == []

    def test_undecodable_file(self, scripted, tmp_path):
        path = tmp_path / "latin.py"
        path.write_bytes(b"name = '\xe9'\n")
        d = check_file(scripted(tmp_path), str(path))
        assert d.file is None
        assert str(path) in d.message

    def test_unreadable_file_is_reported_not_raised(self, scripted, tmp_path):
        path = str(tmp_path / "gone.py")
        d = check_file(scripted(tmp_path), path)
        assert d.file is None
        assert d.passed is False
        assert d.message.startswith(f"{path}: ")


class TestFormatCheckStage:
    def test_file_removed_during_walk(self, scripted, tmp_path, config, mocker):
        mocker.patch("civet_core.stages.format_check.find_sources", return_value=[str(tmp_path / "vanished.py")])
        outcome = FormatCheckStage(config).run(scripted(tmp_path))
        assert outcome.proceed is True
        assert len(outcome.diagnostics) == 1
        assert "vanished.py" in outcome.diagnostics[0].message

    def test_one_diagnostic_per_malformed_file(self, scripted, tmp_path, config, gnu_diff):
        _write(tmp_path / "a.py", "a=1\n")
        _write(tmp_path / "b.py", CANONICAL)
        _write(tmp_path / "c.py", "c=3\n")
        outcome = FormatCheckStage(config).run(scripted(tmp_path))
        assert [os.path.basename(d.file) for d in outcome.diagnostics] == ["a.py", "c.py"]
        assert outcome.proceed is True

    def test_clean_tree(self, scripted, tmp_path, config):
        _write(tmp_path / "b.py", CANONICAL)
        outcome = FormatCheckStage(config).run(scripted(tmp_path))
        assert outcome.diagnostics == []

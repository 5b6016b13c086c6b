"""Tests for kubeweb.postprocess.formatter (black)."""

from __future__ import annotations

from pathlib import Path

import pytest

from kubeweb.postprocess.formatter import format_source, format_tree


@pytest.fixture(autouse=True)
def _quiet(quiet_output):
    yield


class TestFormatSource:
    def test_normalizes_quotes_and_spacing(self) -> None:
        assert format_source("x = {'a':1}\n") == 'x = {"a": 1}\n'

    def test_respects_line_length(self) -> None:
        source = "result = function_name(argument_one, argument_two, argument_three)\n"
        assert format_source(source, line_length=100) == source
        assert format_source(source, line_length=40).count("\n") > 1


class TestFormatTree:
    def test_counts_changed_files(self, tmp_path: Path) -> None:
        (tmp_path / "pkg").mkdir()
        (tmp_path / "pkg" / "ugly.py").write_text("def f( a ):\n  return a\n")
        (tmp_path / "pkg" / "clean.py").write_text("x = 1\n")

        assert format_tree(tmp_path) == 1
        assert (tmp_path / "pkg" / "ugly.py").read_text() == "def f(a):\n    return a\n"

    def test_invalid_file_is_reported_and_skipped(self, tmp_path: Path, capfd) -> None:
        (tmp_path / "broken.py").write_text("def f(:\n")
        (tmp_path / "ugly.py").write_text("y=2\n")

        assert format_tree(tmp_path) == 1

        assert (tmp_path / "broken.py").read_text() == "def f(:\n"
        assert (tmp_path / "ugly.py").read_text() == "y = 2\n"
        assert "Could not format" in capfd.readouterr().err

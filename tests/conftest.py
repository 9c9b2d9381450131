from __future__ import annotations

from pathlib import Path
from typing import List

import pytest

from printfunction.cli import main
from printfunction.config import DISABLE_RG_ENV, REPORT_RG_ENV
from tests._fixtures.cli_runner import CliResult, RunCli
from tests._fixtures.tree_builder import TreeBuilder

SAMPLE_FILES = {
    "simple.py": '''
        def hello():
            print("Hello")

        def world():
            print("World")

        async def async_func():
            pass
    ''',
    "class_test.py": '''
        def method():
            return "top"

        class MyClass:
            def method(self):
                return "inner"
    ''',
    "false_positive.py": '''
        # hello is only mentioned in this comment
        greeting = "hello"
    ''',
    "bad/syntax_error.py": '''
        def broken(
            return 1
    ''',
    "other.txt": '''
        This is not a python file
        second line
        third line
    ''',
}


@pytest.fixture(autouse=True)
def _clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(DISABLE_RG_ENV, raising=False)
    monkeypatch.delenv(REPORT_RG_ENV, raising=False)


@pytest.fixture
def tree_builder(tmp_path: Path) -> TreeBuilder:
    """Provide a reusable source tree builder rooted at the pytest tmp_path."""
    return TreeBuilder(tmp_path)


@pytest.fixture
def sample_tree(tree_builder: TreeBuilder, monkeypatch: pytest.MonkeyPatch) -> TreeBuilder:
    """Write the shared sample files and make the tree the working directory."""
    tree_builder.write(SAMPLE_FILES)
    monkeypatch.chdir(tree_builder.path())
    return tree_builder


@pytest.fixture
def run_cli(capsys: pytest.CaptureFixture[str]) -> RunCli:
    """Run ``printfunction.cli.main`` in-process and capture its streams."""

    def _run(argv: List[str]) -> CliResult:
        try:
            code = main(argv)
        except SystemExit as exc:
            code = exc.code if isinstance(exc.code, int) else 1
        captured = capsys.readouterr()
        return CliResult(returncode=code, stdout=captured.out, stderr=captured.err)

    return _run

"""Pytest configuration and fixtures for morfo tests.

Besides the shared project fixtures, this conftest restores stdout/stderr and
the morfo.output module state after each test. The CLI points the status
stream at sys.stderr, which pytest swaps out per test.
"""

import shutil
import sys
import warnings
from pathlib import Path
from typing import Callable

import pytest

from morfo import output
from morfo.config import Config

if sys.version_info >= (3, 13):
    warnings.filterwarnings("ignore", category=ResourceWarning)

EXAMPLES_DIR = Path(__file__).parent.parent / "examples"


@pytest.fixture(autouse=True)
def _restore_stdio():  # noqa: PT004
    """Ensure stdout/stderr and the status stream are restored after each test."""
    yield

    if sys.stdout.closed:
        sys.stdout = sys.__stdout__
    if sys.stderr.closed:
        sys.stderr = sys.__stderr__
    output._output_stream = sys.__stderr__
    output._verbose = False


@pytest.fixture
def write_project(tmp_path) -> Callable[[dict[str, str]], Path]:
    """Return a helper that writes {relative path: content} under tmp_path/project."""

    def _write(files: dict[str, str]) -> Path:
        root = tmp_path / "project"
        for relative, content in files.items():
            path = root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        root.mkdir(exist_ok=True)
        return root.resolve()

    return _write


@pytest.fixture
def config(tmp_path) -> Config:
    """Config with a build directory inside tmp_path."""
    return Config(cc="cc", build_dir=tmp_path / "out")


@pytest.fixture
def example_project(tmp_path) -> Callable[[str], Path]:
    """Copy one of the bundled example projects into tmp_path."""

    def _copy(name: str) -> Path:
        destination = tmp_path / name
        shutil.copytree(EXAMPLES_DIR / name, destination)
        return destination.resolve()

    return _copy

"""Tests for subprocess_utils module."""

import subprocess
from pathlib import Path
from unittest.mock import patch

from morfo.subprocess_utils import format_command, get_subprocess_creation_flags, safe_run


def test_get_subprocess_creation_flags_windows():
    """Test that Windows returns CREATE_NO_WINDOW flag."""
    with patch("sys.platform", "win32"), patch.object(subprocess, "CREATE_NO_WINDOW", 0x08000000, create=True):
        flags = get_subprocess_creation_flags()
        assert flags == subprocess.CREATE_NO_WINDOW


def test_get_subprocess_creation_flags_linux():
    """Test that Linux returns 0."""
    with patch("sys.platform", "linux"):
        assert get_subprocess_creation_flags() == 0


@patch("subprocess.run")
def test_safe_run_no_flags_on_linux(mock_run):
    """Test that safe_run doesn't apply flags on Linux."""
    with patch("sys.platform", "linux"):
        safe_run(["echo", "test"], capture_output=True)

        call_kwargs = mock_run.call_args[1]
        assert "creationflags" not in call_kwargs


@patch("subprocess.run")
def test_safe_run_merges_custom_creationflags(mock_run):
    """Test that custom creationflags are OR'd with defaults."""
    with patch("sys.platform", "win32"), patch.object(subprocess, "CREATE_NO_WINDOW", 0x08000000, create=True):
        safe_run(["echo", "test"], creationflags=0x00000200)

        call_kwargs = mock_run.call_args[1]
        assert call_kwargs["creationflags"] == 0x00000200 | 0x08000000


@patch("subprocess.run")
def test_safe_run_closes_stdin_by_default(mock_run):
    safe_run(["cc", "--version"])

    assert mock_run.call_args[1]["stdin"] == subprocess.DEVNULL


@patch("subprocess.run")
def test_safe_run_keeps_explicit_stdin(mock_run):
    """stdin=None means the child inherits the terminal."""
    safe_run(["./main"], stdin=None)

    assert mock_run.call_args[1]["stdin"] is None


@patch("subprocess.run")
def test_safe_run_stringifies_paths(mock_run):
    safe_run([Path("out") / "main", "arg"])

    assert mock_run.call_args[0][0] == [str(Path("out") / "main"), "arg"]


def test_format_command_strips_quotes():
    cmd = ["gcc", '-DNAME="value"', "main.c", "-o", Path("out/main")]

    assert format_command(cmd) == f"gcc -DNAME=value main.c -o {Path('out/main')}"

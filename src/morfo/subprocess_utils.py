"""Subprocess utilities for compiler and program invocation.

Wraps subprocess.run so every tool morfo launches gets the same platform
treatment, and provides the echo form used for verbose diagnostics.
"""

import subprocess
import sys
from pathlib import Path
from typing import Any, Sequence, Union

CommandArg = Union[str, Path]


def get_subprocess_creation_flags() -> int:
    """Get platform-specific subprocess creation flags.

    Returns:
        - Windows: subprocess.CREATE_NO_WINDOW (prevents console window)
        - Other platforms: 0 (no special flags)
    """
    if sys.platform == "win32":
        return subprocess.CREATE_NO_WINDOW
    return 0


def safe_run(cmd: Sequence[CommandArg], **kwargs: Any) -> subprocess.CompletedProcess:
    """Execute subprocess.run with platform-specific flags.

    Automatically applies:
    - CREATE_NO_WINDOW on Windows
    - stdin=DEVNULL unless the caller passes stdin explicitly

    Compilers never need terminal input, so stdin is closed for them by
    default. Pass stdin=None to let the child inherit the parent's stdin.

    Args:
        cmd: Command and arguments
        **kwargs: Additional arguments passed to subprocess.run

    Returns:
        CompletedProcess result from subprocess.run
    """
    default_flags = get_subprocess_creation_flags()

    if "creationflags" in kwargs:
        kwargs["creationflags"] = kwargs["creationflags"] | default_flags
    elif default_flags:
        kwargs["creationflags"] = default_flags

    if "stdin" not in kwargs:
        kwargs["stdin"] = subprocess.DEVNULL

    return subprocess.run([str(arg) for arg in cmd], **kwargs)


def format_command(cmd: Sequence[CommandArg]) -> str:
    """Render an argv as a single readable line for verbose output.

    Quote characters are stripped, so the result is for display only and is
    not guaranteed to round-trip through a shell.

    Args:
        cmd: Command and arguments

    Returns:
        Space-joined command line without quote characters
    """
    return " ".join(str(arg) for arg in cmd).replace('"', "").replace("'", "")

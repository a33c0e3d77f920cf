"""
Centralized status output for morfo.

Status lines are prefixed with the elapsed time since program launch in
MM:SS.cc format, which makes it easy to see where a build spends its time.
The status stream is separate from the program-output sink: the CLI points
it at stderr so a program's captured stdout is never interleaved with it.

Example output:
    00:00.01 Scanning dependencies of main.c...
    00:00.02 [1/2] Compiling 3 units...
    00:00.41       Done (0.39s)
    00:00.41 [2/2] Running main...

Usage:
    from morfo.output import log, log_phase, log_detail, init_timer

    init_timer(sys.stderr)
    log_phase(1, 2, "Compiling 3 units...")
    log_detail("main.c")
"""

import sys
import threading
import time
from types import TracebackType
from typing import Optional, TextIO

_start_time: Optional[float] = None
_output_stream: TextIO = sys.stderr
_verbose: bool = False
_lock = threading.Lock()


def init_timer(output_stream: Optional[TextIO] = None) -> None:
    """
    Initialize the program timer.

    Call this at program startup to set the reference time for all timestamps.
    If not called explicitly, it will be called automatically on first log.

    Args:
        output_stream: Optional output stream (defaults to sys.stderr)
    """
    global _start_time, _output_stream
    _start_time = time.time()
    if output_stream is not None:
        _output_stream = output_stream


def set_verbose(verbose: bool) -> None:
    """
    Set verbose mode for logging.

    Args:
        verbose: If True, all messages are printed. If False, only non-verbose messages.
    """
    global _verbose
    _verbose = verbose


def get_elapsed() -> float:
    """
    Get elapsed time since timer initialization.

    Returns:
        Elapsed time in seconds
    """
    if _start_time is None:
        init_timer()
    return time.time() - _start_time  # type: ignore


def format_timestamp() -> str:
    """
    Format the current elapsed time as MM:SS.cc.

    Returns:
        Formatted timestamp string
    """
    elapsed = get_elapsed()
    minutes = int(elapsed // 60)
    seconds = elapsed % 60
    return f"{minutes:02d}:{seconds:05.2f}"


def _print(message: str) -> None:
    line = f"{format_timestamp()} {message}\n"
    with _lock:
        _output_stream.write(line)
        _output_stream.flush()


def log(message: str, verbose_only: bool = False) -> None:
    """
    Log a message with timestamp.

    Args:
        message: Message to log
        verbose_only: If True, only print if verbose mode is enabled
    """
    if verbose_only and not _verbose:
        return
    _print(message)


def log_phase(phase: int, total: int, message: str, verbose_only: bool = False) -> None:
    """
    Log a pipeline phase message.

    Format: [N/M] message
    """
    if verbose_only and not _verbose:
        return
    _print(f"[{phase}/{total}] {message}")


def log_detail(message: str, indent: int = 6, verbose_only: bool = False) -> None:
    """
    Log a detail message (indented).

    Args:
        message: Detail message
        indent: Number of spaces to indent (default 6)
        verbose_only: If True, only print if verbose mode is enabled
    """
    if verbose_only and not _verbose:
        return
    _print(f"{' ' * indent}{message}")


class TimedLogger:
    """
    Context manager for logging with elapsed time tracking.

    Usage:
        with TimedLogger("Compiling 3 units", phase=(1, 2)) as logger:
            logger.detail("main.c")
        # Automatically logs completion time
    """

    def __init__(self, operation: str, phase: Optional[tuple[int, int]] = None, verbose_only: bool = False):
        self.operation = operation
        self.phase = phase
        self.verbose_only = verbose_only
        self.start_time = 0.0

    def __enter__(self) -> "TimedLogger":
        self.start_time = time.time()
        if self.phase:
            log_phase(self.phase[0], self.phase[1], f"{self.operation}...", self.verbose_only)
        else:
            log(f"{self.operation}...", self.verbose_only)
        return self

    def __exit__(
        self,
        exc_type: Optional[type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        del exc_val, exc_tb  # Unused
        elapsed = time.time() - self.start_time
        if exc_type is None:
            log_detail(f"Done ({elapsed:.2f}s)", verbose_only=self.verbose_only)
        return None

    def detail(self, message: str) -> None:
        """Log a detail message within this operation."""
        log_detail(message, verbose_only=self.verbose_only)

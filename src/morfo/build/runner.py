"""Execution Pipeline.

Runs the executable produced by the Compiler Pipeline and forwards its
standard output to the caller's sink.

Stream policy: stdout is captured and written verbatim to the sink once the
program exits; stdin and stderr are inherited from the calling process, so
interactive programs can read input and report errors on the terminal.
"""

import logging
import subprocess
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Optional, Sequence

from ..errors import MissingExecutableError, MorfoError, RunError
from ..subprocess_utils import format_command, safe_run

logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    """Outcome of running the compiled program.

    Attributes:
        executable: Path that was (or would have been) executed
        returncode: Program exit status, None if it never ran
        error: Failure to locate, spawn or collect the program
    """

    executable: Path
    returncode: Optional[int] = None
    error: Optional[MorfoError] = None

    @property
    def success(self) -> bool:
        return self.error is None


class Runner:
    """Spawns a compiled program and relays its stdout.

    Args:
        sink: Binary stream receiving diagnostics and program output
        verbose: Echo the program invocation before running it
        sink_lock: Lock serializing writes to sink
    """

    def __init__(self, sink: BinaryIO, verbose: bool = False, sink_lock: Optional[threading.Lock] = None):
        self.sink = sink
        self.verbose = verbose
        self.sink_lock = sink_lock or threading.Lock()

    def run(self, executable: Path, program_args: Sequence[str] = ()) -> RunResult:
        """Run executable with program_args and forward its stdout.

        The program's own exit status is reported in the result; a non-zero
        status is not an error of the pipeline.
        """
        result = RunResult(executable=executable)
        if not executable.exists():
            result.error = MissingExecutableError(executable)
            return result

        cmd = [str(executable.resolve()), *program_args]
        if self.verbose:
            self._write(f"{format_command([executable, *program_args])}\n\n".encode())

        logger.info(f"Running {executable}")
        try:
            completed = safe_run(cmd, stdin=None, stdout=subprocess.PIPE)
        except OSError as e:
            result.error = RunError(executable, e.strerror or str(e))
            return result

        result.returncode = completed.returncode
        logger.debug(f"{executable.name} exited with {completed.returncode}")
        try:
            self._write(completed.stdout or b"")
        except OSError as e:
            result.error = RunError(executable, f"failed to forward output: {e}")
        return result

    def _write(self, data: bytes) -> None:
        with self.sink_lock:
            self.sink.write(data)
            self.sink.flush()

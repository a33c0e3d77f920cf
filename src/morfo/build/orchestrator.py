"""Build-and-run orchestration.

`execute()` is the single entry point of the library:

    1. index the project directory
    2. build the dependency graph of the main file
    3. compile the graph (dependencies first, root linked last)
    4. run the executable and forward its stdout to the sink

The first error from any stage ends the call; nothing is retried and the
run stage is never reached after a failed compile.
"""

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Optional, Sequence, Union

from .. import output
from ..config import Config
from ..errors import MorfoError
from .compiler import Compiler, CompileReport
from .dependency_graph import DependencyGraph, DependencyGraphBuilder
from .dir_index import index_directory
from .runner import Runner, RunResult

logger = logging.getLogger(__name__)


@dataclass
class ExecutionResult:
    """Outcome of execute().

    Attributes:
        graph: Dependency graph (None if scanning failed)
        compile_report: Compile stage outcome (None if never reached)
        run_result: Run stage outcome (None if never reached)
        error: The first error encountered, or None on success
    """

    graph: Optional[DependencyGraph] = None
    compile_report: Optional[CompileReport] = None
    run_result: Optional[RunResult] = None
    error: Optional[MorfoError] = None

    @property
    def success(self) -> bool:
        return self.error is None

    @property
    def returncode(self) -> Optional[int]:
        """Exit status of the program, if it ran."""
        return self.run_result.returncode if self.run_result else None

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise self.error


def scan_project(main_file: Union[str, Path], config: Config, root: Optional[Union[str, Path]] = None) -> DependencyGraph:
    """Index root and build the dependency graph of main_file.

    Args:
        main_file: Main source file
        config: Build configuration (its include dirs guide resolution)
        root: Project directory to index (default: main_file's directory)

    Raises:
        SourceReadError: If the project or a source file cannot be read
    """
    main_path = Path(main_file)
    index = index_directory(Path(root) if root is not None else main_path.resolve().parent)
    return DependencyGraphBuilder(index, config.includes).build(main_path)


def execute(
    main_file: Union[str, Path],
    config: Config,
    out: BinaryIO,
    program_args: Sequence[str] = (),
    root: Optional[Union[str, Path]] = None,
) -> ExecutionResult:
    """Build main_file with its local dependencies and run it.

    Args:
        main_file: Main source file of the program
        config: Build configuration
        out: Binary sink receiving diagnostics (verbose mode) and the
            program's standard output
        program_args: Arguments forwarded verbatim to the program
        root: Project directory to index (default: main_file's directory)

    Returns:
        ExecutionResult; check `success` or call `raise_for_error()`
    """
    result = ExecutionResult()
    sink_lock = threading.Lock()

    try:
        with output.TimedLogger(f"Scanning dependencies of {Path(main_file).name}", phase=(1, 3), verbose_only=True):
            result.graph = scan_project(main_file, config, root)
    except MorfoError as e:
        logger.debug(f"Dependency scan failed: {e}")
        result.error = e
        return result

    project_root = Path(root).resolve() if root is not None else result.graph.root.path.parent
    compiler = Compiler(
        config,
        out,
        include_dirs=[project_root / d for d in config.includes],
        sink_lock=sink_lock,
    )
    with output.TimedLogger(f"Compiling {len(result.graph)} unit(s)", phase=(2, 3), verbose_only=True) as timed:
        result.compile_report = compiler.compile_graph(result.graph)
        for unit_result in result.compile_report.results:
            status = "ok" if unit_result.success else "FAILED"
            timed.detail(f"{unit_result.unit.path.name} ({status}, {unit_result.duration:.2f}s)")
    if not result.compile_report.success:
        logger.info(f"Build failed, not running: {result.compile_report.error}")
        result.error = result.compile_report.error
        return result

    output.log_phase(3, 3, f"Running {result.compile_report.executable}...", verbose_only=True)
    runner = Runner(out, verbose=config.verbose, sink_lock=sink_lock)
    result.run_result = runner.run(result.compile_report.executable, program_args)
    if not result.run_result.success:
        result.error = result.run_result.error
    return result

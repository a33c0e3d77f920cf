"""Compiler Pipeline.

Turns a DependencyGraph into compiler invocations, dependencies first:

    cc <cflags> -I<dirs> math/vec.c -c -o .out/vec.c.o
    cc <cflags> -I<dirs> main.c .out/vec.c.o -o .out/main

Every non-root unit is compiled to `<build_dir>/<file name>.o`, so aux.c and
aux.cc get separate objects. The root unit is compiled and linked with all
of those objects into the executable `<build_dir>/<stem>`. The first failing
invocation stops the pipeline.

With `jobs > 1` independent units are compiled concurrently on a thread
pool. A unit is only started once its dependencies have compiled
successfully, and the root is always compiled last.
"""

import logging
import sys
import threading
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, Optional, Sequence

from ..config import Config
from ..errors import BuildDirectoryError, CompilationError, MorfoError
from ..subprocess_utils import format_command, safe_run
from .dependency_graph import BuildUnit, DependencyGraph

logger = logging.getLogger(__name__)

EXECUTABLE_SUFFIX = ".exe" if sys.platform == "win32" else ""
OBJECT_SUFFIX = ".o"


@dataclass
class CompileResult:
    """Outcome of compiling one build unit."""

    unit: BuildUnit
    output_path: Path
    success: bool
    error: Optional[CompilationError] = None
    duration: float = 0.0


@dataclass
class CompileReport:
    """Outcome of compiling a whole graph.

    Attributes:
        results: Per-unit results in completion order
        error: The first failure, or None if everything compiled
        executable: Path of the linked executable (set on success)
    """

    results: list[CompileResult] = field(default_factory=list)
    error: Optional[MorfoError] = None
    executable: Optional[Path] = None

    @property
    def success(self) -> bool:
        return self.error is None


class Compiler:
    """Compiles a dependency graph with the configured compiler.

    Args:
        config: Build configuration (compiler, flags, build dir, jobs, verbose)
        sink: Binary stream receiving command echoes in verbose mode
        include_dirs: Include search directories passed as -I, ahead of the
            directories the dependency graph found headers in
        sink_lock: Lock serializing writes to sink (shared with other stages)
    """

    def __init__(
        self,
        config: Config,
        sink: BinaryIO,
        include_dirs: Sequence[Path] = (),
        sink_lock: Optional[threading.Lock] = None,
    ):
        self.config = config
        self.sink = sink
        self.include_dirs = list(include_dirs)
        self.sink_lock = sink_lock or threading.Lock()

    @property
    def build_dir(self) -> Path:
        return self.config.build_dir

    def object_path(self, unit: BuildUnit) -> Path:
        return self.build_dir / f"{unit.path.name}{OBJECT_SUFFIX}"

    def executable_path(self, unit: BuildUnit) -> Path:
        return self.build_dir / f"{unit.stem}{EXECUTABLE_SUFFIX}"

    def prepare_build_dir(self) -> None:
        """Create the build directory (and parents) if needed.

        Raises:
            BuildDirectoryError: If the directory cannot be created
        """
        try:
            self.build_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise BuildDirectoryError(self.build_dir, e.strerror or str(e)) from e

    def command_for(self, unit: BuildUnit, graph: DependencyGraph) -> list[str]:
        """Build the compiler argv for a unit.

        The root unit is linked against the objects of every other unit;
        other units are compiled with -c into their object file.
        """
        cmd = [self.config.cc, *self.config.cflags]
        include_dirs = self.include_dirs + [d for d in graph.include_dirs if d not in self.include_dirs]
        cmd.extend(f"-I{d}" for d in include_dirs)
        cmd.append(str(unit.path))

        if unit is graph.root:
            cmd.extend(str(self.object_path(dep)) for dep in graph.compile_order() if dep is not graph.root)
            cmd.extend(["-o", str(self.executable_path(unit))])
        else:
            cmd.extend(["-c", "-o", str(self.object_path(unit))])
        return cmd

    def compile_unit(self, unit: BuildUnit, graph: DependencyGraph) -> CompileResult:
        """Run the compiler for one unit and wait for it.

        Never raises for compiler failures; they are returned in the result.
        """
        cmd = self.command_for(unit, graph)
        output_path = Path(cmd[-1])
        self._echo(format_command(cmd))
        logger.info(f"Compiling {unit.path.name} -> {output_path}")

        start = time.time()
        try:
            completed = safe_run(cmd)
        except FileNotFoundError:
            error = CompilationError(unit.path, None, reason=f"compiler '{self.config.cc}' not found")
            return CompileResult(unit, output_path, False, error, time.time() - start)
        except OSError as e:
            error = CompilationError(unit.path, None, reason=f"could not start '{self.config.cc}': {e}")
            return CompileResult(unit, output_path, False, error, time.time() - start)
        duration = time.time() - start

        returncode = completed.returncode
        if returncode == 0:
            return CompileResult(unit, output_path, True, None, duration)
        if returncode < 0:
            error = CompilationError(unit.path, None, signal=-returncode)
        else:
            error = CompilationError(unit.path, returncode)
        logger.debug(f"Compiler failed for {unit.path.name}: {error}")
        return CompileResult(unit, output_path, False, error, duration)

    def compile_graph(self, graph: DependencyGraph) -> CompileReport:
        """Compile every unit of the graph, dependencies first.

        Returns:
            CompileReport; its error is the first failure encountered
        """
        report = CompileReport()
        try:
            self.prepare_build_dir()
        except BuildDirectoryError as e:
            report.error = e
            return report

        order = graph.compile_order()
        self._warn_on_object_collisions(order)

        if self.config.jobs > 1 and len(order) > 1:
            self._compile_parallel(order, graph, report)
        else:
            self._compile_sequential(order, graph, report)

        if report.success:
            report.executable = self.executable_path(graph.root)
        return report

    def _compile_sequential(self, order: list[BuildUnit], graph: DependencyGraph, report: CompileReport) -> None:
        for unit in order:
            result = self.compile_unit(unit, graph)
            report.results.append(result)
            if not result.success:
                report.error = result.error
                return

    def _compile_parallel(self, order: list[BuildUnit], graph: DependencyGraph, report: CompileReport) -> None:
        position = {unit.path: i for i, unit in enumerate(order)}
        prerequisites: dict[Path, list[Path]] = {}
        for unit in order:
            if unit is graph.root:
                prerequisites[unit.path] = [u.path for u in order if u is not graph.root]
            else:
                # edges pointing later in the order close a cycle
                prerequisites[unit.path] = [
                    dep.path for dep in graph.dependencies_of(unit) if position[dep.path] < position[unit.path]
                ]

        pending = list(order)
        compiled: set[Path] = set()
        running: dict[Future, BuildUnit] = {}

        with ThreadPoolExecutor(max_workers=self.config.jobs, thread_name_prefix="morfo-cc") as pool:
            while pending or running:
                if report.error is None:
                    for unit in list(pending):
                        if all(p in compiled for p in prerequisites[unit.path]):
                            pending.remove(unit)
                            running[pool.submit(self.compile_unit, unit, graph)] = unit
                if not running:
                    break

                finished, _ = wait(running, return_when=FIRST_COMPLETED)
                for future in finished:
                    del running[future]
                    result = future.result()
                    report.results.append(result)
                    if result.success:
                        compiled.add(result.unit.path)
                    elif report.error is None:
                        report.error = result.error

    def _warn_on_object_collisions(self, order: list[BuildUnit]) -> None:
        seen: dict[str, Path] = {}
        # the root is last and produces no object
        for unit in order[:-1]:
            other = seen.setdefault(unit.path.name, unit.path)
            if other != unit.path:
                name = self.object_path(unit).name
                logger.warning(f"{unit.path} and {other} share the output name '{name}'; artifacts will collide")

    def _echo(self, line: str) -> None:
        if not self.config.verbose:
            return
        with self.sink_lock:
            self.sink.write(f"{line}\n".encode())
            self.sink.flush()

"""
Build system components for morfo.

This package provides the build-and-run pipeline:
- Directory indexing (header and source discovery)
- Local include scanning
- Dependency graph construction
- Compilation and linking
- Running the produced executable
"""

from .compiler import Compiler, CompileReport, CompileResult
from .dependency_graph import BuildUnit, DependencyGraph, DependencyGraphBuilder, build_dependency_graph, file_stem
from .dir_index import DirectoryIndex, index_directory
from .include_scanner import scan_includes
from .orchestrator import ExecutionResult, execute, scan_project
from .runner import Runner, RunResult

__all__ = [
    "BuildUnit",
    "CompileReport",
    "CompileResult",
    "Compiler",
    "DependencyGraph",
    "DependencyGraphBuilder",
    "DirectoryIndex",
    "ExecutionResult",
    "RunResult",
    "Runner",
    "build_dependency_graph",
    "execute",
    "file_stem",
    "index_directory",
    "scan_includes",
    "scan_project",
]

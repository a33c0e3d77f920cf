"""Dependency Graph Builder.

Builds the graph of build units reachable from a main source file:

    main.c --#include "vec.h"--> math/vec.h --same stem--> math/vec.c

Each node is one source file; an edge A -> B means B must be compiled before
A's executable is linked. Nodes live in an arena (`DependencyGraph.units`) and
refer to each other by index, so shared and mutually-including sources are
represented once instead of being expanded into an unbounded tree.

Resolution policy:
    - Includes that match no indexed header are external (system or library
      headers) and are skipped.
    - Headers without a sibling source file are header-only and contribute
      no build unit.
    - A source already in the graph is linked to, not rebuilt.
    - An include leading back to a file still being scanned is recorded as a
      cyclic edge and not descended into.
    - A header found anywhere but next to the including file records its
      search directory in `DependencyGraph.include_dirs`, so the compiler
      resolves the include the same way.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Optional, Sequence, Union

from .dir_index import DirectoryIndex
from .include_scanner import scan_includes

logger = logging.getLogger(__name__)


def file_stem(path: Union[str, Path]) -> str:
    """Return a file name without its directory prefix and extension.

    Everything from the first dot of the file name on is dropped, so both
    "main.c" and "src/main.cpp" give "main". A name without an extension
    is returned as-is after removing the directory part.
    """
    name = str(path).replace("\\", "/").rstrip("/").split("/")[-1]
    return name.split(".")[0] or name


@dataclass
class BuildUnit:
    """One source file in the dependency graph.

    Attributes:
        path: Canonical path of the source file
        dependencies: Indices of units this unit needs, in discovery order
    """

    path: Path
    dependencies: list[int] = field(default_factory=list)

    @property
    def name(self) -> str:
        return str(self.path)

    @property
    def stem(self) -> str:
        return file_stem(self.path)


@dataclass
class DependencyGraph:
    """Arena of build units rooted at the main file (index 0).

    Attributes:
        units: All units; `units[0]` is the main file
        cyclic_edges: (from, to) index pairs that close an include cycle
        include_dirs: Directories the compiler must search so that every
            resolved include is found where the graph found it
    """

    units: list[BuildUnit] = field(default_factory=list)
    cyclic_edges: list[tuple[int, int]] = field(default_factory=list)
    include_dirs: list[Path] = field(default_factory=list)
    _positions: dict[Path, int] = field(default_factory=dict, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self._positions = {unit.path: i for i, unit in enumerate(self.units)}

    @property
    def root(self) -> BuildUnit:
        return self.units[0]

    def __len__(self) -> int:
        return len(self.units)

    def index_of(self, path: Path) -> Optional[int]:
        """Return the index of the unit for path, or None."""
        return self._positions.get(path)

    def add_unit(self, path: Path) -> int:
        """Append a unit for path and return its index."""
        self._positions[path] = len(self.units)
        self.units.append(BuildUnit(path=path))
        return self._positions[path]

    def dependencies_of(self, unit: Union[int, BuildUnit]) -> list[BuildUnit]:
        """Return the direct dependencies of a unit (by index or instance)."""
        if isinstance(unit, BuildUnit):
            unit = self._positions[unit.path]
        return [self.units[i] for i in self.units[unit].dependencies]

    def compile_order(self) -> list[BuildUnit]:
        """Return every unit once, dependencies before dependents, root last.

        This is a depth-first post-order from the root. Cyclic edges are
        followed only to nodes not yet visited, so every unit still appears
        exactly once.
        """
        order: list[BuildUnit] = []
        visited: set[int] = set()

        def visit(i: int) -> None:
            visited.add(i)
            for dep in self.units[i].dependencies:
                if dep not in visited:
                    visit(dep)
            order.append(self.units[i])

        if self.units:
            visit(0)
        return order

    def iter_tree(self) -> Iterator[tuple[int, BuildUnit, bool]]:
        """Walk the graph as a tree for display.

        Yields:
            (depth, unit, repeated) triples in pre-order. A unit reached a
            second time is yielded with repeated=True and not expanded again.
        """
        expanded: set[int] = set()

        def walk(i: int, depth: int) -> Iterator[tuple[int, BuildUnit, bool]]:
            if i in expanded:
                yield depth, self.units[i], True
                return
            expanded.add(i)
            yield depth, self.units[i], False
            for dep in self.units[i].dependencies:
                yield from walk(dep, depth + 1)

        if self.units:
            yield from walk(0, 0)


class DependencyGraphBuilder:
    """Builds a DependencyGraph from local includes.

    Args:
        index: Directory index of the project
        include_dirs: Extra directories searched for include targets;
            relative entries are taken against the index root
    """

    def __init__(self, index: DirectoryIndex, include_dirs: Sequence[Union[str, Path]] = ()):
        self.index = index
        self.include_dirs = [(index.root / d) for d in include_dirs]
        self._graph = DependencyGraph()
        self._in_progress: set[Path] = set()

    def build(self, main_file: Union[str, Path]) -> DependencyGraph:
        """Build the graph rooted at main_file.

        Raises:
            SourceReadError: If main_file or a discovered source cannot be read
        """
        self._graph = DependencyGraph()
        self._in_progress = set()
        self._visit(Path(main_file).resolve())
        logger.info(f"Dependency graph for {Path(main_file).name}: {len(self._graph)} unit(s)")
        return self._graph

    def resolve_include(self, target: str, including_file: Path) -> list[Path]:
        """Map an include target to indexed headers.

        Tries the including file's directory, each include dir and the index
        root. If none holds an indexed header, falls back to any header whose
        trailing path components equal the target's.
        """
        return [header for header, _ in self._locate(target, including_file)]

    def _locate(self, target: str, including_file: Path) -> list[tuple[Path, Optional[Path]]]:
        # (header, search dir); the search dir is None when the compiler
        # finds the header next to the including file without help
        candidates: list[tuple[Path, Optional[Path]]] = [(including_file.parent, None)]
        candidates.extend((d, d) for d in self.include_dirs)
        candidates.append((self.index.root, self.index.root))

        found: list[tuple[Path, Optional[Path]]] = []
        for directory, search_dir in candidates:
            try:
                resolved = (directory / target).resolve()
            except OSError:
                continue
            if self.index.has_header(resolved) and all(resolved != h for h, _ in found):
                found.append((resolved, search_dir))
        if found:
            return found

        parts = Path(target).parts
        if not parts or ".." in parts or Path(target).is_absolute():
            return []
        parts = tuple(p for p in parts if p != ".")
        return [(h, h.parents[len(parts) - 1]) for h in self.index.header_files if h.parts[-len(parts):] == parts]

    def _visit(self, path: Path) -> int:
        unit_index = self._graph.add_unit(path)
        unit = self._graph.units[unit_index]
        self._in_progress.add(path)

        for target in scan_includes(path):
            located = self._locate(target, path)
            if not located:
                logger.debug(f"{path.name}: '{target}' is not a local header, skipping")
                continue
            for header, search_dir in located:
                if search_dir is not None and search_dir not in self._graph.include_dirs:
                    logger.debug(f"{path.name}: '{target}' found under {search_dir}")
                    self._graph.include_dirs.append(search_dir)
                sources = self.index.find_source_for(header)
                if not sources:
                    logger.debug(f"{path.name}: '{target}' is header-only")
                for source in sources:
                    if source == path:
                        continue
                    child = self._child_index(unit_index, source)
                    if child not in unit.dependencies:
                        unit.dependencies.append(child)

        self._in_progress.discard(path)
        return unit_index

    def _child_index(self, parent: int, source: Path) -> int:
        existing = self._graph.index_of(source)
        if existing is None:
            return self._visit(source)
        if source in self._in_progress:
            logger.warning(f"Cyclic include: {self._graph.units[parent].path.name} -> {source.name}")
            self._graph.cyclic_edges.append((parent, existing))
        return existing


def build_dependency_graph(
    main_file: Union[str, Path],
    index: DirectoryIndex,
    include_dirs: Sequence[Union[str, Path]] = (),
) -> DependencyGraph:
    """Convenience wrapper around DependencyGraphBuilder.build()."""
    return DependencyGraphBuilder(index, include_dirs).build(main_file)

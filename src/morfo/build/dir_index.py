"""Directory Indexer.

Walks a project root once and classifies every regular file into header
units and source units by extension. All recorded paths are canonical
(absolute, symlinks resolved), so later lookups can compare paths directly.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from ..errors import SourceReadError

logger = logging.getLogger(__name__)

HEADER_EXTENSIONS = (".h", ".hh", ".hpp", ".hxx")
SOURCE_EXTENSIONS = (".c", ".cc", ".cpp", ".cxx")


@dataclass
class DirectoryIndex:
    """Header and source files found under a project root.

    Attributes:
        root: Canonical root directory that was walked
        header_files: Header paths in traversal order
        source_files: Source paths in traversal order
    """

    root: Path
    header_files: list[Path] = field(default_factory=list)
    source_files: list[Path] = field(default_factory=list)
    _header_set: set[Path] = field(default_factory=set, repr=False)
    _source_set: set[Path] = field(default_factory=set, repr=False)

    def add(self, path: Path) -> None:
        """Classify one file; files with other extensions are ignored."""
        suffix = path.suffix.lower()
        if suffix in HEADER_EXTENSIONS and path not in self._header_set:
            self.header_files.append(path)
            self._header_set.add(path)
        elif suffix in SOURCE_EXTENSIONS and path not in self._source_set:
            self.source_files.append(path)
            self._source_set.add(path)

    def has_header(self, path: Path) -> bool:
        return path in self._header_set

    def has_source(self, path: Path) -> bool:
        return path in self._source_set

    def find_source_for(self, header: Path) -> list[Path]:
        """Return the source units implementing a header.

        A header's source is a sibling with the same stem and any source
        extension (aux.h -> aux.c, aux.cpp, ...). Without a sibling, a
        source elsewhere in the tree with the same stem is used, but only if
        it is the only one (include/aux.h -> src/aux.c).
        """
        siblings = [
            candidate
            for candidate in (header.with_suffix(ext) for ext in SOURCE_EXTENSIONS)
            if candidate in self._source_set
        ]
        if siblings:
            return siblings

        elsewhere = [source for source in self.source_files if source.stem == header.stem]
        if len(elsewhere) > 1:
            logger.debug(f"{header.name}: {len(elsewhere)} sources share its stem, none used")
            return []
        return elsewhere


def index_directory(root: Path) -> DirectoryIndex:
    """Recursively index all header and source files under root.

    Symlinked directories are followed (each real directory is visited at
    most once). Entries that fail during the walk, such as subdirectories
    without read permission, are skipped.

    Args:
        root: Directory to walk

    Returns:
        DirectoryIndex for the tree

    Raises:
        SourceReadError: If root itself does not exist or cannot be listed
    """
    root = Path(root).resolve()
    if not root.is_dir():
        raise SourceReadError(root, "not a directory")
    try:
        os.listdir(root)
    except OSError as e:
        raise SourceReadError(root, e.strerror or str(e)) from e

    index = DirectoryIndex(root=root)
    seen_dirs: set[Path] = set()

    def _on_error(error: OSError) -> None:
        logger.debug(f"Skipping unreadable entry {error.filename}: {error.strerror}")

    for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error, followlinks=True):
        real_dir = Path(dirpath).resolve()
        if real_dir in seen_dirs:
            # symlink loop or duplicate link target
            dirnames[:] = []
            continue
        seen_dirs.add(real_dir)
        dirnames.sort()

        for filename in sorted(filenames):
            path = Path(dirpath) / filename
            resolved = _resolve_file(path)
            if resolved is not None:
                index.add(resolved)

    logger.debug(f"Indexed {root}: {len(index.header_files)} headers, {len(index.source_files)} sources")
    return index


def _resolve_file(path: Path) -> Optional[Path]:
    try:
        if not path.is_file():
            return None
        return path.resolve()
    except OSError as e:
        logger.debug(f"Skipping {path}: {e}")
        return None

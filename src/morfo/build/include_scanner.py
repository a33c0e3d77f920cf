"""Include Scanner.

Extracts local include targets (`#include "x.h"`) from a source file by
literal line scanning. Angle-bracket includes are system headers and are
never returned. No preprocessing is done: conditional blocks and comments
are not interpreted.
"""

import re
from pathlib import Path

from ..errors import SourceReadError

_LOCAL_INCLUDE = re.compile(r'#\s*include\s*"([^"]+)"')


def scan_includes(path: Path) -> list[str]:
    """Return the local include targets of a file in line order.

    Each line contributes at most one target. Repeated includes are kept.

    Args:
        path: Source or header file to scan

    Returns:
        Include targets exactly as written between the quotes

    Raises:
        SourceReadError: If the file cannot be read or is not valid UTF-8
    """
    try:
        contents = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise SourceReadError(Path(path), str(e)) from e

    includes = []
    for line in contents.splitlines():
        match = _LOCAL_INCLUDE.search(line)
        if match:
            includes.append(match.group(1))
    return includes

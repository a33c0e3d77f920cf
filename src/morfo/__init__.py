"""morfo - build and run single-entry C/C++ programs.

Basic usage:

    import sys
    from morfo import Config, execute

    result = execute("main.c", Config(cc="gcc"), sys.stdout.buffer)
    result.raise_for_error()
"""

from .build import execute
from .config import Config, load_config
from .errors import MorfoError

__version__ = "0.1.0"

__all__ = ["Config", "MorfoError", "execute", "load_config", "__version__"]

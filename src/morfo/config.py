"""Configuration loading for morfo.

A config file is a small TOML document:

    cc = "gcc"
    cflags = ["-Wall", "-Wextra"]
    builddir = ".build"
    includes = ["src/include"]
    jobs = 4

Only `cc` is required. The file is looked up as ./morfo.toml first, then
~/.config/morfo/config.toml.
"""

import dataclasses
import logging
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from .errors import (
    ConfigFileNotFoundError,
    InvalidConfigError,
    InvalidConfigExtensionError,
    MissingConfigFileError,
    MissingHomeDirectoryError,
)

logger = logging.getLogger(__name__)

DEFAULT_BUILD_DIR = Path(".out")
LOCAL_CONFIG_NAME = "morfo.toml"
GLOBAL_CONFIG_PATH = Path(".config") / "morfo" / "config.toml"

_KNOWN_KEYS = {"cc", "cflags", "builddir", "includes", "jobs"}


@dataclass(frozen=True)
class Config:
    """Immutable build configuration for one build-and-run cycle.

    Attributes:
        cc: Compiler executable name or path
        cflags: Compiler flags, passed to the compiler in order
        build_dir: Directory receiving objects and the final executable
        includes: Extra include search directories (also passed as -I)
        jobs: Number of units compiled concurrently (1 = sequential)
        verbose: Echo every subprocess invocation to the output sink
    """

    cc: str
    cflags: tuple[str, ...] = ()
    build_dir: Path = DEFAULT_BUILD_DIR
    includes: tuple[str, ...] = ()
    jobs: int = 1
    verbose: bool = False

    def __post_init__(self) -> None:
        if self.jobs < 1:
            raise InvalidConfigError(f"jobs must be at least 1, got {self.jobs}")

    def with_overrides(self, **changes: Any) -> "Config":
        """Return a copy with the given fields replaced."""
        return dataclasses.replace(self, **changes)


@dataclass
class _RawConfig:
    """Validated TOML fields before conversion to Config."""

    cc: str
    cflags: list[str] = field(default_factory=list)
    builddir: Optional[str] = None
    includes: list[str] = field(default_factory=list)
    jobs: int = 1


def find_config_file(cwd: Optional[Path] = None, home: Optional[Path] = None) -> Path:
    """Locate the config file.

    Search order:
        1. ./morfo.toml (relative to cwd)
        2. ~/.config/morfo/config.toml

    Args:
        cwd: Directory to look for the local config in (default: current directory)
        home: Home directory override (default: Path.home())

    Returns:
        Path to the config file

    Raises:
        MissingHomeDirectoryError: If no local config exists and the home directory is unknown
        MissingConfigFileError: If neither file exists
    """
    local_config = (cwd or Path(".")) / LOCAL_CONFIG_NAME
    if local_config.exists():
        return local_config

    if home is None:
        try:
            home = Path.home()
        except RuntimeError as e:
            raise MissingHomeDirectoryError() from e

    global_config = home / GLOBAL_CONFIG_PATH
    if global_config.exists():
        return global_config
    raise MissingConfigFileError()


def _expect_str_list(data: dict[str, Any], key: str) -> list[str]:
    value = data.get(key, [])
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise InvalidConfigError(f"invalid type for `{key}`: expected a list of strings")
    return value


def _validate(data: dict[str, Any]) -> _RawConfig:
    if "cc" not in data:
        raise InvalidConfigError("missing field `cc`")
    if not isinstance(data["cc"], str) or not data["cc"]:
        raise InvalidConfigError("invalid type for `cc`: expected a non-empty string")

    builddir = data.get("builddir")
    if builddir is not None and not isinstance(builddir, str):
        raise InvalidConfigError("invalid type for `builddir`: expected a string")

    jobs = data.get("jobs", 1)
    # bool is an int subclass
    if isinstance(jobs, bool) or not isinstance(jobs, int) or jobs < 1:
        raise InvalidConfigError("invalid value for `jobs`: expected a positive integer")

    for key in sorted(set(data) - _KNOWN_KEYS):
        logger.warning(f"Ignoring unknown config key: {key}")

    return _RawConfig(
        cc=data["cc"],
        cflags=_expect_str_list(data, "cflags"),
        builddir=builddir,
        includes=_expect_str_list(data, "includes"),
        jobs=jobs,
    )


def parse_config_file(path: Path) -> Config:
    """Parse a TOML config file.

    Args:
        path: Path to the config file

    Returns:
        Parsed Config

    Raises:
        ConfigFileNotFoundError: If the file does not exist
        InvalidConfigExtensionError: If the file is not a .toml file
        InvalidConfigError: If the file is not valid TOML or fails validation
    """
    path = Path(path)
    if not path.exists():
        raise ConfigFileNotFoundError(path)

    if path.suffix != ".toml":
        raise InvalidConfigExtensionError(path.suffix.lstrip(".") or path.name)

    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise InvalidConfigError(str(e)) from e

    raw = _validate(data)
    logger.debug(f"Loaded config from {path}: cc={raw.cc}, cflags={raw.cflags}")
    return Config(
        cc=raw.cc,
        cflags=tuple(raw.cflags),
        build_dir=Path(raw.builddir) if raw.builddir is not None else DEFAULT_BUILD_DIR,
        includes=tuple(raw.includes),
        jobs=raw.jobs,
    )


def load_config(path: Optional[Path] = None) -> Config:
    """Load the config from an explicit path, or discover it."""
    return parse_config_file(path if path is not None else find_config_file())

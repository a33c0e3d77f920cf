"""Exception hierarchy for morfo.

Every failure the build-and-run pipeline can report derives from MorfoError,
so callers (the CLI in particular) can present any of them uniformly.
"""

from pathlib import Path
from typing import Optional


class MorfoError(Exception):
    """Base class for all morfo errors."""

    pass


class ConfigError(MorfoError):
    """Raised when the configuration cannot be located or loaded."""

    pass


class ConfigFileNotFoundError(ConfigError):
    """Raised when an explicitly given config file does not exist."""

    def __init__(self, path: Path):
        self.path = path
        super().__init__(f"File not found: {path}")


class InvalidConfigError(ConfigError):
    """Raised when the config file is not valid TOML or misses required keys."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(f"Invalid config: {message}")


class InvalidConfigExtensionError(ConfigError):
    """Raised when the config file is not a .toml file."""

    def __init__(self, extension: str):
        self.extension = extension
        super().__init__(f"The config file must be a TOML file. Found: {extension}.")


class MissingConfigFileError(ConfigError):
    """Raised when neither a local nor a global config file exists."""

    def __init__(self) -> None:
        super().__init__("Config file missing.")


class MissingHomeDirectoryError(ConfigError):
    """Raised when the user's home directory cannot be determined."""

    def __init__(self) -> None:
        super().__init__("Home directory missing")


class SourceReadError(MorfoError):
    """Raised when a source file or directory cannot be read."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"IO error: {path}: {reason}")


class BuildDirectoryError(SourceReadError):
    """Raised when the build output directory cannot be created."""

    pass


class CompilationError(MorfoError):
    """Raised when the compiler fails for a build unit.

    Attributes:
        unit: Source file that failed to compile
        exit_code: Compiler exit code, or None if it has none (signal death
            or the compiler could not be started)
        signal: Signal number that terminated the compiler, if any
        reason: Free-form reason when there is no exit code to report
    """

    def __init__(
        self,
        unit: Path,
        exit_code: Optional[int],
        signal: Optional[int] = None,
        reason: Optional[str] = None,
    ):
        self.unit = unit
        self.exit_code = exit_code
        self.signal = signal
        self.reason = reason
        if exit_code is not None:
            detail = f"Process exited with code {exit_code}"
        elif reason is not None:
            detail = reason
        else:
            detail = "Process terminated by signal"
        super().__init__(f"Compilation failure: {detail} ({unit.name})")


class MissingExecutableError(MorfoError):
    """Raised when the expected executable is absent after compilation."""

    def __init__(self, path: Path):
        self.path = path
        super().__init__(f"Executable file missing. ({path})")


class RunError(MorfoError):
    """Raised when the compiled program cannot be spawned or its output collected."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to run {path}: {reason}")

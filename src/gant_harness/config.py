"""Harness configuration from environment variables.

Environment variables:
    GANT_ANT_COMMAND: Ant launcher
        - Split with shell rules, so "python tests/fixtures/fake_ant.py" works
        - Default: "ant"

    GANT_CLASSPATH: Path list appended as `-lib` entries when a run asks for
        the classpath
        - Falls back to CLASSPATH, then to empty

    GANT_PATH_SEPARATOR: Separator between GANT_CLASSPATH entries
        - Default: os.pathsep

    GANT_LINE_SEPARATOR: Separator appended after every captured output line
        - Accepts the escapes "\\n" and "\\r\\n"
        - Default: os.linesep

    GANT_TERM_TIMEOUT: Seconds between SIGTERM and SIGKILL when a run is torn down
        - Default: 2.0, clamped to 0.1-60

    GANT_LOG_DEBUG: Debug logging
        - true/1/yes = on (log to a temp file)
        - false/0/no = off (default, log to stderr)
"""

from __future__ import annotations

import os
import shlex
import tempfile
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

__all__ = ["Config", "load_config", "get_config", "reload_config", "split_path_list"]

DEFAULT_ANT_COMMAND = "ant"
DEFAULT_TERM_TIMEOUT = 2.0


def split_path_list(value: str | None, separator: str) -> list[str]:
    """Split a path list such as a classpath, dropping empty entries."""
    if not value:
        return []
    return [entry for entry in value.split(separator) if entry]


def _parse_bool(value: str | None, default: bool = False) -> bool:
    """Parse a boolean environment variable."""
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes", "on")


def _parse_command(value: str | None) -> list[str]:
    """Split the ant launcher into argv tokens."""
    if not value or not value.strip():
        return [DEFAULT_ANT_COMMAND]
    return shlex.split(value, posix=os.name != "nt")


def _parse_separator(value: str | None, default: str) -> str:
    """Parse a separator, decoding the escapes people type into env files."""
    if not value:
        return default
    return value.replace("\\r", "\r").replace("\\n", "\n")


def _parse_term_timeout(value: str | None) -> float:
    if not value:
        return DEFAULT_TERM_TIMEOUT
    try:
        timeout = float(value)
        return max(0.1, min(timeout, 60.0))
    except ValueError:
        return DEFAULT_TERM_TIMEOUT


def _generate_log_file_path() -> str:
    """Build a timestamped log file path under the system temp directory."""
    log_dir = Path(tempfile.gettempdir()) / "gant-harness"
    log_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = log_dir / f"gant_harness_{timestamp}.log"

    return str(log_file.resolve())


@dataclass
class Config:
    """Harness configuration.

    Attributes:
        ant_command: Ant launcher tokens
        classpath: Path list appended as `-lib` entries
        path_separator: Separator between classpath entries
        line_separator: Separator appended after each captured line
        term_timeout: Grace period between SIGTERM and SIGKILL
        log_debug: Debug logging to a temp file
        log_file: Log file path (set when log_debug is on)
    """

    ant_command: list[str] = field(default_factory=lambda: [DEFAULT_ANT_COMMAND])
    classpath: str = ""
    path_separator: str = os.pathsep
    line_separator: str = os.linesep
    term_timeout: float = DEFAULT_TERM_TIMEOUT
    log_debug: bool = False
    log_file: str | None = None

    @property
    def classpath_entries(self) -> list[str]:
        """Classpath split on the path separator, empty entries dropped."""
        return split_path_list(self.classpath, self.path_separator)

    def __repr__(self) -> str:
        return (
            f"Config(ant_command={' '.join(self.ant_command)}, "
            f"classpath_entries={len(self.classpath_entries)}, "
            f"path_separator={self.path_separator!r}, "
            f"line_separator={self.line_separator!r}, "
            f"term_timeout={self.term_timeout}, "
            f"log_debug={self.log_debug}, "
            f"log_file={self.log_file})"
        )


def load_config() -> Config:
    """Load configuration from the environment."""
    log_debug = _parse_bool(os.environ.get("GANT_LOG_DEBUG"), default=False)
    log_file = _generate_log_file_path() if log_debug else None

    classpath = os.environ.get("GANT_CLASSPATH")
    if classpath is None:
        classpath = os.environ.get("CLASSPATH", "")

    return Config(
        ant_command=_parse_command(os.environ.get("GANT_ANT_COMMAND")),
        classpath=classpath,
        path_separator=_parse_separator(os.environ.get("GANT_PATH_SEPARATOR"), os.pathsep),
        line_separator=_parse_separator(os.environ.get("GANT_LINE_SEPARATOR"), os.linesep),
        term_timeout=_parse_term_timeout(os.environ.get("GANT_TERM_TIMEOUT")),
        log_debug=log_debug,
        log_file=log_file,
    )


# Lazily loaded global instance
_config: Config | None = None


def get_config() -> Config:
    """Return the global configuration."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config() -> Config:
    """Reload configuration from the environment (used by tests)."""
    global _config
    _config = load_config()
    return _config

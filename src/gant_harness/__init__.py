"""gant-harness - run Ant in a separate process and check what it printed.

Environment variables:
    GANT_ANT_COMMAND: Ant launcher (default "ant")
    GANT_CLASSPATH: Entries passed as -lib (default CLASSPATH)
    GANT_LOG_DEBUG: Debug logging to a temp file (default false)

Usage:
    gant-harness -f build.xml --with-classpath
"""

__version__ = "0.1.0"

from .build_log import base_message, successful_build, task_line, trim_total_time
from .command import CommandSpec, build_ant_command
from .errors import (
    HarnessError,
    ProcessInterruptedError,
    ProcessStartError,
    StreamReadError,
    UnexpectedExitCodeError,
)
from .harness import AntHarness
from .runtime import ExecutionResult, ProcessRunner, ProcessSpec, run_process

__all__ = [
    "__version__",
    "AntHarness",
    "CommandSpec",
    "ExecutionResult",
    "HarnessError",
    "ProcessInterruptedError",
    "ProcessRunner",
    "ProcessSpec",
    "ProcessStartError",
    "StreamReadError",
    "UnexpectedExitCodeError",
    "base_message",
    "build_ant_command",
    "run_process",
    "successful_build",
    "task_line",
    "trim_total_time",
]

"""Expected Ant build logs and output normalisation.

Ant prints a `Buildfile:` header, a `<target>:` line for every target it
runs, task output prefixed with the task name, and on success a
`BUILD SUCCESSFUL` line followed by `Total time: ...`. The timing line is
the only nondeterministic part, so comparisons strip it first.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from pathlib import Path

__all__ = [
    "TOTAL_TIME_PATTERN",
    "base_message",
    "successful_build",
    "task_line",
    "trim_total_time",
]

# `.` stops at a line break, so only timing lines themselves are removed
TOTAL_TIME_PATTERN = re.compile(r"Total time: [0-9]*.*")

# Ant right-aligns "[task]" in this many columns
TASK_PREFIX_WIDTH = 11


def trim_total_time(message: str) -> str:
    """Remove every `Total time:` line body from an Ant log."""
    return TOTAL_TIME_PATTERN.sub("", message)


def base_message(build_file: str | Path, targets: Iterable[str]) -> str:
    """Header Ant prints before running any task of `targets`.

    >>> base_message("build.xml", ["init", "compile"])
    'Buildfile: build.xml\\n\\ninit:\\n\\ncompile:\\n'
    """
    parts = [f"Buildfile: {build_file}\n"]
    parts.extend(f"\n{target}:\n" for target in targets)
    return "".join(parts)


def successful_build(base: str) -> str:
    """What a successful run looks like once `trim_total_time` has been applied."""
    return f"{base}\nBUILD SUCCESSFUL\n\n"


def task_line(task: str, message: str) -> str:
    """One line of task output, e.g. `     [echo] hello`."""
    return f"{f'[{task}]':>{TASK_PREFIX_WIDTH}} {message}"

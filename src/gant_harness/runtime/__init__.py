"""Runtime module for subprocess execution and output capture.

This module starts an external process, drains its output on worker tasks
while waiting for it to exit, and returns the captured text with the exit
status.
"""

from __future__ import annotations

from .process_runner import ExecutionResult, ProcessRunner, ProcessSpec, run_process

__all__ = [
    "ExecutionResult",
    "ProcessRunner",
    "ProcessSpec",
    "run_process",
]

"""Harness error taxonomy.

Every failure the harness can hit while driving an external build is fatal
for the calling test; these classes only carry a descriptive message and the
data needed to explain it.
"""

from __future__ import annotations

__all__ = [
    "HarnessError",
    "ProcessStartError",
    "StreamReadError",
    "ProcessInterruptedError",
    "UnexpectedExitCodeError",
]


class HarnessError(Exception):
    """Base class for harness failures."""
    pass


class ProcessStartError(HarnessError):
    """The external process could not be started.

    Attributes:
        argv: Command line that failed to start
        cause_name: Class name of the underlying exception
    """

    def __init__(self, argv: list[str], cause: BaseException) -> None:
        self.argv = list(argv)
        self.cause_name = type(cause).__name__
        super().__init__(f"Got a {self.cause_name} from starting the process: {cause}")


class StreamReadError(HarnessError):
    """Reading a line of the child's output failed mid-stream."""

    def __init__(self, stream: str, cause: BaseException) -> None:
        self.stream = stream
        super().__init__(
            f"Got a {type(cause).__name__} reading a line of {stream} in the read worker: {cause}"
        )


class ProcessInterruptedError(HarnessError):
    """The caller was cancelled while blocked on the process or the read worker.

    Attributes:
        phase: "process" when waiting for exit, "reader" when joining the worker
    """

    def __init__(self, phase: str) -> None:
        self.phase = phase
        if phase == "process":
            message = "Got interrupted waiting for the process to finish."
        else:
            message = "Got interrupted waiting for the read worker to terminate."
        super().__init__(message)


class UnexpectedExitCodeError(HarnessError):
    """The process exited with a status other than the expected one.

    Attributes:
        expected: Expected exit status
        actual: Observed exit status
        output: Captured stdout text
        stderr: Captured stderr text
    """

    def __init__(self, expected: int, actual: int, output: str = "", stderr: str = "") -> None:
        self.expected = expected
        self.actual = actual
        self.output = output
        self.stderr = stderr
        super().__init__(f"Expected exit code {expected} but the process returned {actual}.")

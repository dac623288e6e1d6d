"""Process runner that drains a child's output while waiting for it to exit.

gant-harness runtime module v0.1.0

This module provides:
- Subprocess start in a new session/process group
- Stdout drained line by line on a dedicated worker task
- Stderr drained on its own worker so neither pipe can fill up and block the child
- Exit-status wait followed by a join on the workers
- Cancel-safe cleanup using asyncio.shield

Key design points:
- The captured text is only handed out after both the exit wait and the
  worker join have returned; awaiting the worker is the visibility barrier
- A failing worker stops the wait instead of leaving the child blocked on a pipe
- Cancellation terminates the process group, not just the main process
"""

from __future__ import annotations

import asyncio
import codecs
import logging
import os
import signal
import subprocess
import sys
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from functools import partial
from pathlib import Path
from typing import Any

import anyio

from ..errors import (
    ProcessInterruptedError,
    ProcessStartError,
    StreamReadError,
    UnexpectedExitCodeError,
)

__all__ = [
    "ExecutionResult",
    "ProcessRunner",
    "ProcessSpec",
    "run_process",
]

logger = logging.getLogger(__name__)

IS_WINDOWS = sys.platform == "win32"

DEFAULT_TERM_TIMEOUT = 2.0  # seconds to wait after SIGTERM
DEFAULT_KILL_TIMEOUT = 1.0  # seconds to wait after SIGKILL
DEFAULT_STREAM_LIMIT = 1024 * 1024  # longest line the stdout reader accepts


@dataclass(frozen=True)
class ProcessSpec:
    """Specification for a subprocess to run.

    Attributes:
        argv: Command line arguments (first element is the executable)
        cwd: Working directory (None = inherit)
        env: Environment variables (None = inherit parent)
        stdin_bytes: Optional bytes to write to stdin
        merge_stderr: Send stderr into the captured stdout text
        line_separator: Appended after every captured line
        encoding: Encoding of the child's output
    """

    argv: list[str]
    cwd: Path | None = None
    env: Mapping[str, str] | None = None
    stdin_bytes: bytes | None = None
    merge_stderr: bool = False
    line_separator: str = os.linesep
    encoding: str = "utf-8"

    def __post_init__(self) -> None:
        if not self.argv:
            raise ValueError("ProcessSpec.argv must name an executable")
        try:
            codecs.lookup(self.encoding)
        except LookupError as e:
            raise ValueError(f"Unknown output encoding: {self.encoding!r}") from e


@dataclass(frozen=True)
class ExecutionResult:
    """Captured output and exit status of one finished process.

    Attributes:
        output: Stdout lines, each followed by ProcessSpec.line_separator
        exit_code: Process exit status
        stderr: Stderr text (empty when merged into output)
        argv: Command line that produced this result
    """

    output: str
    exit_code: int
    stderr: str = ""
    argv: tuple[str, ...] = field(default=())

    @property
    def success(self) -> bool:
        return self.exit_code == 0

    def check_exit_code(self, expected: int) -> ExecutionResult:
        """Raise UnexpectedExitCodeError unless the exit status is `expected`."""
        if self.exit_code != expected:
            raise UnexpectedExitCodeError(expected, self.exit_code, self.output, self.stderr)
        return self


def _strip_line_terminator(line: bytes) -> bytes:
    if line.endswith(b"\n"):
        line = line[:-1]
    if line.endswith(b"\r"):
        line = line[:-1]
    return line


@dataclass
class ProcessRunner:
    """Runs one process to completion and returns everything it printed.

    Example:
        runner = ProcessRunner()
        spec = ProcessSpec(argv=["ant", "-f", "build.xml"])

        result = await runner.run(spec)
        result.check_exit_code(0)
        print(result.output)
    """

    term_timeout: float = DEFAULT_TERM_TIMEOUT
    kill_timeout: float = DEFAULT_KILL_TIMEOUT
    stream_limit: int = DEFAULT_STREAM_LIMIT

    async def run(
        self,
        spec: ProcessSpec,
        *,
        on_stderr: Callable[[bytes], None] | None = None,
    ) -> ExecutionResult:
        """Run subprocess and collect its output.

        This method:
        1. Starts the subprocess in an isolated process group/session
        2. Starts the stdout and stderr drain workers
        3. Writes stdin_bytes if provided
        4. Waits for the process to exit, then joins the workers
        5. Terminates the process and cancels the workers if anything fails

        Args:
            spec: Process specification
            on_stderr: Optional callback for stderr chunks

        Returns:
            ExecutionResult with the full output and exit status

        Raises:
            ProcessStartError: If the process cannot be started
            StreamReadError: If reading the output fails mid-stream
            ProcessInterruptedError: If the caller is cancelled while waiting
        """
        process: asyncio.subprocess.Process | None = None
        tasks: list[asyncio.Future[Any]] = []

        try:
            process = await self._start(spec)

            stdout_task = asyncio.create_task(
                self._drain_lines(process, spec),
                name=f"drain-stdout-{process.pid}",
            )
            tasks.append(stdout_task)
            stderr_task: asyncio.Task[str] | None = None
            if process.stderr is not None:
                stderr_task = asyncio.create_task(
                    self._drain_stderr(process, spec, on_stderr),
                    name=f"drain-stderr-{process.pid}",
                )
                tasks.append(stderr_task)
            readers = list(tasks)

            if spec.stdin_bytes is not None and process.stdin:
                await self._write_stdin(process, spec.stdin_bytes)

            waiter = asyncio.ensure_future(process.wait())
            tasks.append(waiter)

            exit_code = await self._wait_for_exit(waiter, readers)
            output = await self._join_reader(stdout_task)
            stderr = await self._join_reader(stderr_task) if stderr_task else ""

            logger.debug(
                f"Subprocess completed pid={process.pid} returncode={exit_code} "
                f"output_chars={len(output)}"
            )
            return ExecutionResult(
                output=output,
                exit_code=exit_code,
                stderr=stderr,
                argv=tuple(spec.argv),
            )

        finally:
            await self._safe_cleanup(process, tasks)

    async def _start(self, spec: ProcessSpec) -> asyncio.subprocess.Process:
        kwargs = self._build_subprocess_kwargs(spec)
        try:
            process = await asyncio.create_subprocess_exec(
                *spec.argv,
                stdin=asyncio.subprocess.PIPE if spec.stdin_bytes is not None else asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT if spec.merge_stderr else asyncio.subprocess.PIPE,
                cwd=spec.cwd,
                limit=self.stream_limit,
                **kwargs,
            )
        except (OSError, ValueError) as e:
            logger.debug(f"Failed to start {spec.argv[0]}: {e}")
            raise ProcessStartError(spec.argv, e) from e

        logger.debug(
            f"Started subprocess pid={process.pid} "
            f"argv={' '.join(spec.argv)} cwd={spec.cwd or os.getcwd()}"
        )
        return process

    def _build_subprocess_kwargs(self, spec: ProcessSpec) -> dict[str, Any]:
        kwargs: dict[str, Any] = {}

        if spec.env is not None:
            kwargs["env"] = dict(spec.env)

        if IS_WINDOWS:
            kwargs["creationflags"] = subprocess.CREATE_NEW_PROCESS_GROUP
        else:
            kwargs["start_new_session"] = True

        return kwargs

    async def _write_stdin(self, process: asyncio.subprocess.Process, data: bytes) -> None:
        if process.stdin is None:
            return
        try:
            process.stdin.write(data)
            await process.stdin.drain()
            process.stdin.close()
            await process.stdin.wait_closed()
        except (BrokenPipeError, ConnectionResetError):
            # Child exited without reading all of its input
            logger.debug(f"stdin closed early by pid={process.pid}")

    async def _drain_lines(
        self,
        process: asyncio.subprocess.Process,
        spec: ProcessSpec,
    ) -> str:
        """Read stdout line by line until end-of-stream.

        Returns:
            Every line with its terminator replaced by spec.line_separator
        """
        if process.stdout is None:
            return ""
        parts: list[str] = []

        try:
            while True:
                line = await process.stdout.readline()
                if not line:
                    break
                parts.append(_strip_line_terminator(line).decode(spec.encoding, errors="replace"))
                parts.append(spec.line_separator)
        except (OSError, ValueError) as e:
            # ValueError: a line longer than stream_limit
            raise StreamReadError("stdout", e) from e

        return "".join(parts)

    async def _drain_stderr(
        self,
        process: asyncio.subprocess.Process,
        spec: ProcessSpec,
        on_stderr: Callable[[bytes], None] | None = None,
    ) -> str:
        """Drain stderr to prevent buffer deadlock."""
        if process.stderr is None:
            return ""
        chunks: list[bytes] = []

        try:
            while True:
                chunk = await process.stderr.read(4096)
                if not chunk:
                    break
                chunks.append(chunk)
                if on_stderr:
                    on_stderr(chunk)
        except OSError as e:
            raise StreamReadError("stderr", e) from e

        return b"".join(chunks).decode(spec.encoding, errors="replace")

    async def _wait_for_exit(
        self,
        waiter: asyncio.Future[int],
        readers: list[asyncio.Task[str]],
    ) -> int:
        """Wait for the exit status, giving up early if a reader fails."""
        try:
            await asyncio.wait(
                {waiter, *readers},
                return_when=asyncio.FIRST_EXCEPTION,
            )
        except asyncio.CancelledError as e:
            raise ProcessInterruptedError("reader" if waiter.done() else "process") from e

        for reader in readers:
            if reader.done() and not reader.cancelled():
                error = reader.exception()
                if error is not None:
                    raise error

        return waiter.result()

    async def _join_reader(self, reader: asyncio.Task[str]) -> str:
        try:
            return await reader
        except asyncio.CancelledError as e:
            raise ProcessInterruptedError("reader") from e

    async def _safe_cleanup(
        self,
        process: asyncio.subprocess.Process | None,
        tasks: list[asyncio.Future[Any]],
    ) -> None:
        """Cleanup shielded from cancellation."""
        try:
            await asyncio.shield(self._do_cleanup(process, tasks))
        except asyncio.CancelledError:
            await self._do_cleanup(process, tasks)

    async def _do_cleanup(
        self,
        process: asyncio.subprocess.Process | None,
        tasks: list[asyncio.Future[Any]],
    ) -> None:
        pending = [task for task in tasks if not task.done()]
        for task in pending:
            task.cancel()
        # Also retrieves exceptions of readers that already failed
        await asyncio.gather(*tasks, return_exceptions=True)

        if process is not None and process.returncode is None:
            await self._terminate_process(process)

    async def _terminate_process(self, process: asyncio.subprocess.Process) -> None:
        """Terminate gracefully, then forcefully if the process ignores it.

        Termination strategy:
        1. SIGTERM to the process group (CTRL_BREAK_EVENT on Windows)
        2. Wait up to term_timeout
        3. SIGKILL to the process group (kill() on Windows)
        4. Wait up to kill_timeout
        """
        pid = process.pid
        logger.debug(f"Terminating subprocess pid={pid}")

        try:
            self._send_signal(process, force=False)
            try:
                await asyncio.wait_for(process.wait(), timeout=self.term_timeout)
                logger.debug(f"Subprocess terminated pid={pid} returncode={process.returncode}")
                return
            except asyncio.TimeoutError:
                pass

            logger.debug(f"Force killing subprocess pid={pid}")
            self._send_signal(process, force=True)
            try:
                await asyncio.wait_for(process.wait(), timeout=self.kill_timeout)
                logger.debug(f"Subprocess killed pid={pid} returncode={process.returncode}")
            except asyncio.TimeoutError:
                logger.warning(f"Subprocess did not exit after kill pid={pid}")

        except ProcessLookupError:
            logger.debug(f"Subprocess already exited pid={pid}")
        except OSError as e:
            logger.warning(f"Error terminating subprocess pid={pid}: {e}")

    def _send_signal(self, process: asyncio.subprocess.Process, *, force: bool) -> None:
        if IS_WINDOWS:
            if force:
                process.kill()
                return
            try:
                os.kill(process.pid, signal.CTRL_BREAK_EVENT)
            except OSError as e:
                logger.debug(f"CTRL_BREAK_EVENT failed, falling back to terminate: {e}")
                process.terminate()
            return

        sig = signal.SIGKILL if force else signal.SIGTERM
        try:
            # start_new_session makes the child its own group leader
            os.killpg(os.getpgid(process.pid), sig)
            logger.debug(f"Sent {sig.name} to process group of pid={process.pid}")
        except ProcessLookupError:
            raise
        except OSError as e:
            logger.debug(f"killpg failed, signalling pid={process.pid} only: {e}")
            process.send_signal(sig)


def run_process(
    spec: ProcessSpec,
    *,
    runner: ProcessRunner | None = None,
) -> ExecutionResult:
    """Blocking convenience wrapper around ProcessRunner.run.

    Must not be called from inside a running event loop.
    """
    runner = runner or ProcessRunner()
    return anyio.run(partial(runner.run, spec))

"""Run Ant in a separate process and return what it printed.

The harness assumes the configured ant launcher is executable. Tests compare
the returned text, after `trim_total_time`, with an expected build log.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from functools import partial
from pathlib import Path
from typing import cast

import anyio

from .command import build_ant_command
from .config import Config, get_config
from .runtime import ExecutionResult, ProcessRunner, ProcessSpec

__all__ = ["AntHarness"]

logger = logging.getLogger(__name__)


@dataclass
class AntHarness:
    """Drives Ant through a ProcessRunner.

    Attributes:
        config: Configuration (ant launcher, classpath, separators)
        cwd: Directory Ant runs in (None = current directory)
        runner: Process runner; built from config when omitted
    """

    config: Config = field(default_factory=get_config)
    cwd: Path | None = None
    runner: ProcessRunner | None = None

    def __post_init__(self) -> None:
        if self.runner is None:
            self.runner = ProcessRunner(term_timeout=self.config.term_timeout)

    def process_spec(
        self,
        build_file: str | Path,
        with_classpath: bool = False,
        *,
        targets: Iterable[str] = (),
        properties: Mapping[str, str | None] | None = None,
    ) -> ProcessSpec:
        command = build_ant_command(
            build_file,
            with_classpath=with_classpath,
            config=self.config,
            properties=properties,
            targets=targets,
        )
        return ProcessSpec(
            argv=command.argv,
            cwd=self.cwd,
            line_separator=self.config.line_separator,
        )

    async def execute(
        self,
        build_file: str | Path,
        with_classpath: bool = False,
        *,
        targets: Iterable[str] = (),
        properties: Mapping[str, str | None] | None = None,
    ) -> ExecutionResult:
        """Run Ant once and return the result without checking the exit code."""
        spec = self.process_spec(
            build_file,
            with_classpath,
            targets=targets,
            properties=properties,
        )
        logger.debug(f"Running ant: {' '.join(spec.argv)}")
        return await cast(ProcessRunner, self.runner).run(spec)

    async def run_ant(
        self,
        build_file: str | Path,
        expected_exit_code: int,
        with_classpath: bool = False,
        *,
        targets: Iterable[str] = (),
        properties: Mapping[str, str | None] | None = None,
    ) -> str:
        """Run Ant and return its stdout.

        Args:
            build_file: The path to the XML file Ant is to use
            expected_exit_code: The exit code the Ant execution should return
            with_classpath: Whether to pass every classpath entry as `-lib`
            targets: Targets to run instead of the default one
            properties: Ant properties to define

        Raises:
            UnexpectedExitCodeError: If Ant returned another exit code
            HarnessError: If the process could not be run to completion
        """
        result = await self.execute(
            build_file,
            with_classpath,
            targets=targets,
            properties=properties,
        )
        if result.exit_code != expected_exit_code and result.stderr:
            logger.info(f"ant stderr:\n{result.stderr}")
        return result.check_exit_code(expected_exit_code).output

    def run_ant_sync(
        self,
        build_file: str | Path,
        expected_exit_code: int,
        with_classpath: bool = False,
        *,
        targets: Iterable[str] = (),
        properties: Mapping[str, str | None] | None = None,
    ) -> str:
        """Blocking form of run_ant, for tests that are not coroutines."""
        return anyio.run(
            partial(
                self.run_ant,
                build_file,
                expected_exit_code,
                with_classpath,
                targets=targets,
                properties=properties,
            )
        )

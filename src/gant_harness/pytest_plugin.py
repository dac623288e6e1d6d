"""pytest plugin exposing the Ant harness to tests.

Load it from a conftest.py:

    pytest_plugins = ["gant_harness.pytest_plugin"]

Every HarnessError raised while driving Ant becomes a test failure carrying
the error's message; there are no retries.
"""

from __future__ import annotations

import contextlib
from collections.abc import Iterable, Iterator, Mapping
from pathlib import Path

import pytest

from .config import Config, reload_config
from .errors import HarnessError, UnexpectedExitCodeError
from .harness import AntHarness

__all__ = ["AntFixture", "harness_failures"]


def _failure_message(error: HarnessError) -> str:
    message = str(error)
    if isinstance(error, UnexpectedExitCodeError):
        if error.output:
            message += f"\n--- stdout ---\n{error.output}"
        if error.stderr:
            message += f"\n--- stderr ---\n{error.stderr}"
    return message


@contextlib.contextmanager
def harness_failures() -> Iterator[None]:
    """Turn HarnessError into pytest.fail."""
    try:
        yield
    except HarnessError as e:
        pytest.fail(_failure_message(e), pytrace=False)


class AntFixture:
    """Test-facing wrapper around AntHarness."""

    def __init__(self, harness: AntHarness) -> None:
        self.harness = harness

    @property
    def config(self) -> Config:
        return self.harness.config

    def run_ant(
        self,
        build_file: str | Path,
        expected_exit_code: int,
        with_classpath: bool = False,
        *,
        targets: Iterable[str] = (),
        properties: Mapping[str, str | None] | None = None,
    ) -> str:
        with harness_failures():
            return self.harness.run_ant_sync(
                build_file,
                expected_exit_code,
                with_classpath,
                targets=targets,
                properties=properties,
            )

    async def run_ant_async(
        self,
        build_file: str | Path,
        expected_exit_code: int,
        with_classpath: bool = False,
        *,
        targets: Iterable[str] = (),
        properties: Mapping[str, str | None] | None = None,
    ) -> str:
        with harness_failures():
            return await self.harness.run_ant(
                build_file,
                expected_exit_code,
                with_classpath,
                targets=targets,
                properties=properties,
            )


@pytest.fixture
def gant_config() -> Config:
    """Configuration freshly read from the environment."""
    return reload_config()


@pytest.fixture
def ant(gant_config: Config) -> AntFixture:
    """Ant runner whose failures fail the test."""
    return AntFixture(AntHarness(config=gant_config))

"""Running Ant from the shell against the Gant test build files.

These go through the `ant` fixture, so every harness failure is reported
as a plain test failure.
"""

from __future__ import annotations

import pytest

from gant_harness.build_log import base_message, successful_build, task_line, trim_total_time
from gant_harness.pytest_plugin import AntFixture

DEFAULT_TARGET_CHAIN = [
    "-initializeWithGroovyHome",
    "-initializeNoGroovyHome",
    "gantTestDefaultFileDefaultTarget",
]


def create_base_message(build_file: str) -> str:
    return base_message(build_file, DEFAULT_TARGET_CHAIN)


class TestRunningAntFromShell:
    """Ant started in a separate process."""

    def test_fails_no_classpath(self, ant: AntFixture, gant_test_xml: str):
        assert ant.run_ant(gant_test_xml, 1, False) == create_base_message(gant_test_xml)

    def test_successful(self, ant: AntFixture, gant_test_xml: str):
        output = trim_total_time(ant.run_ant(gant_test_xml, 0, True))

        assert output == successful_build(create_base_message(gant_test_xml))

    def test_default_file_default_target(self, ant: AntFixture, echo_test_xml: str):
        output = trim_total_time(ant.run_ant(echo_test_xml, 0, False))

        expected = base_message(echo_test_xml, ["defaultTarget"])
        expected += task_line("echo", "A test target in the default file.") + "\n"
        assert output == successful_build(expected)

    def test_multiple_targets(self, ant: AntFixture, echo_test_xml: str):
        output = ant.run_ant(echo_test_xml, 0, False, targets=["defaultTarget", "namedTarget"])

        assert task_line("echo", "A test target in the default file.") in output
        assert task_line("echo", "Another target in the default file.") in output
        assert output.index("defaultTarget:") < output.index("namedTarget:")

    def test_parameters(self, ant: AntFixture, gant_test_xml: str):
        output = ant.run_ant(
            gant_test_xml,
            0,
            targets=["gantWithParameters"],
            properties={"flob": "adob", "burble": None},
        )

        assert task_line("echo", "gant -Dflob=adob -Dburble gantParameters") in output

    @pytest.mark.asyncio
    async def test_async_form(self, ant: AntFixture, gant_test_xml: str):
        output = await ant.run_ant_async(gant_test_xml, 1)

        assert output == create_base_message(gant_test_xml)

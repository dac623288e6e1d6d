"""Command line entry point tests."""

from __future__ import annotations

import argparse
import logging

import pytest

from gant_harness import app
from gant_harness.build_log import base_message, successful_build, task_line
from gant_harness.config import Config


@pytest.fixture(autouse=True)
def use_fake_ant(monkeypatch, gant_config: Config):
    monkeypatch.setattr(app, "get_config", lambda: gant_config)
    yield
    logging.getLogger("gant_harness").setLevel(logging.NOTSET)


class TestParser:
    """Test argument parsing."""

    def test_minimal(self):
        args = app.build_parser().parse_args(["-f", "build.xml"])

        assert args.build_file == "build.xml"
        assert args.with_classpath is False
        assert args.properties == []
        assert args.expect is None
        assert args.targets == []

    def test_full(self):
        args = app.build_parser().parse_args(
            ["-f", "b.xml", "--with-classpath", "-Dflob=adob", "-D", "burble", "--expect", "1", "t1", "t2"]
        )

        assert args.with_classpath is True
        assert args.properties == [("flob", "adob"), ("burble", None)]
        assert args.expect == 1
        assert args.targets == ["t1", "t2"]

    def test_bad_property(self):
        with pytest.raises(argparse.ArgumentTypeError):
            app._parse_property("=value")

    def test_build_file_required(self):
        with pytest.raises(SystemExit):
            app.build_parser().parse_args([])


class TestMain:
    """Test main() end to end with the fake ant."""

    def test_successful_build(self, capsys, echo_test_xml: str):
        exit_code = app.main(["-f", echo_test_xml])

        expected = base_message(echo_test_xml, ["defaultTarget"])
        expected += task_line("echo", "A test target in the default file.") + "\n"
        assert exit_code == 0
        assert capsys.readouterr().out == successful_build(expected)

    def test_raw_keeps_timing(self, capsys, echo_test_xml: str):
        app.main(["-f", echo_test_xml, "--raw"])

        assert "Total time: 0 seconds" in capsys.readouterr().out

    def test_failed_build_returns_ant_exit_code(self, capsys, gant_test_xml: str):
        exit_code = app.main(["-f", gant_test_xml])

        captured = capsys.readouterr()
        assert exit_code == 1
        assert captured.out.startswith(f"Buildfile: {gant_test_xml}\n")
        assert "BUILD FAILED" in captured.err

    def test_with_classpath(self, capsys, gant_test_xml: str):
        assert app.main(["-f", gant_test_xml, "--with-classpath"]) == 0

    def test_expect_mismatch(self, caplog, gant_test_xml: str):
        with caplog.at_level(logging.ERROR, logger="gant_harness"):
            exit_code = app.main(["-f", gant_test_xml, "--expect", "0"])

        assert exit_code == app.HARNESS_FAILURE_EXIT_CODE
        assert "Expected exit code 0 but the process returned 1." in caplog.text

    def test_ant_not_installed(self, monkeypatch, caplog, echo_test_xml: str):
        monkeypatch.setattr(app, "get_config", lambda: Config(ant_command=["nonexistent_ant_xyz_123"]))

        with caplog.at_level(logging.ERROR, logger="gant_harness"):
            exit_code = app.main(["-f", echo_test_xml])

        assert exit_code == app.HARNESS_FAILURE_EXIT_CODE
        assert "from starting the process" in caplog.text

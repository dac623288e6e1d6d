"""Pytest configuration and fixtures."""

from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).parent.parent

# Add src to the Python path for development runs
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from gant_harness.config import Config  # noqa: E402

pytest_plugins = ["gant_harness.pytest_plugin"]

FIXTURES_DIR = PROJECT_ROOT / "tests" / "fixtures"
FAKE_ANT_PATH = FIXTURES_DIR / "fake_ant.py"


@pytest.fixture
def fixtures_dir() -> Path:
    """Directory holding the fake ant launcher and build files."""
    return FIXTURES_DIR


@pytest.fixture
def gant_test_xml() -> str:
    """Build file whose default target needs groovy and gant on the -lib path."""
    return str(FIXTURES_DIR / "gantTest.xml")


@pytest.fixture
def echo_test_xml() -> str:
    """Build file whose default target only echoes."""
    return str(FIXTURES_DIR / "echo" / "gantTest.xml")


@pytest.fixture
def fake_classpath(tmp_path: Path) -> list[str]:
    """Classpath entries the fake ant accepts for <requirelib>."""
    return [str(tmp_path / "groovy-all.jar"), str(tmp_path / "gant.jar")]


@pytest.fixture
def gant_config(fake_classpath: list[str]) -> Config:
    """Configuration that drives the fake ant instead of Apache Ant."""
    return Config(
        ant_command=[sys.executable, str(FAKE_ANT_PATH)],
        classpath=os.pathsep.join(fake_classpath),
        path_separator=os.pathsep,
        line_separator="\n",
        term_timeout=0.5,
    )

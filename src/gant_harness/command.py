"""Ant command line construction.

Builds the argv for `ant -f <file> [-lib <entry>]* [-Dname[=value]]* [target]*`.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .config import Config, get_config, split_path_list

__all__ = ["CommandSpec", "build_ant_command", "split_path_list"]


def _format_property(name: str, value: str | None) -> str:
    if value is None:
        return f"-D{name}"
    return f"-D{name}={value}"


@dataclass(frozen=True)
class CommandSpec:
    """Ordered command line for one Ant invocation.

    Attributes:
        executable: Launcher tokens (["ant"] or e.g. ["python", "fake_ant.py"])
        build_file: Value passed to -f
        lib_entries: One `-lib <entry>` pair each, in order
        properties: `-Dname=value` definitions; a None value gives a bare `-Dname`
        targets: Target names, in order (empty = the project's default target)
    """

    executable: tuple[str, ...]
    build_file: str
    lib_entries: tuple[str, ...] = ()
    properties: tuple[tuple[str, str | None], ...] = ()
    targets: tuple[str, ...] = field(default=())

    @property
    def argv(self) -> list[str]:
        argv = [*self.executable, "-f", self.build_file]
        for entry in self.lib_entries:
            argv += ["-lib", entry]
        argv += [_format_property(name, value) for name, value in self.properties]
        argv += list(self.targets)
        return argv

    def __str__(self) -> str:
        return " ".join(self.argv)


def build_ant_command(
    build_file: str | Path,
    *,
    with_classpath: bool = False,
    config: Config | None = None,
    properties: Mapping[str, str | None] | None = None,
    targets: Iterable[str] = (),
) -> CommandSpec:
    """Build the Ant command for `build_file`.

    Args:
        build_file: Build file passed to -f, kept exactly as given
        with_classpath: Append a `-lib` pair for every configured classpath entry
        config: Configuration (defaults to the global one)
        properties: Ant properties to define
        targets: Targets to run

    Returns:
        The CommandSpec; use `.argv` for the flat token list
    """
    config = config or get_config()

    lib_entries: tuple[str, ...] = ()
    if with_classpath:
        lib_entries = tuple(split_path_list(config.classpath, config.path_separator))

    return CommandSpec(
        executable=tuple(config.ant_command),
        build_file=str(build_file),
        lib_entries=lib_entries,
        properties=tuple((properties or {}).items()),
        targets=tuple(targets),
    )

"""gant-harness command line entry point.

Runs Ant once through the harness, prints the captured output and exits
with Ant's exit status (2 when the harness itself fails).
"""

from __future__ import annotations

import argparse
import logging
import sys
from functools import partial

import anyio

from .build_log import trim_total_time
from .config import Config, get_config
from .errors import HarnessError
from .harness import AntHarness

__all__ = ["main", "build_parser", "configure_logging"]

logger = logging.getLogger(__name__)

HARNESS_FAILURE_EXIT_CODE = 2


def _parse_property(value: str) -> tuple[str, str | None]:
    name, sep, prop_value = value.partition("=")
    if not name:
        raise argparse.ArgumentTypeError(f"invalid property definition: {value!r}")
    return name, prop_value if sep else None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gant-harness",
        description="Run Ant in a separate process and print what it printed.",
    )
    parser.add_argument("-f", "--file", dest="build_file", required=True, help="Ant build file")
    parser.add_argument(
        "--with-classpath",
        action="store_true",
        help="Pass every GANT_CLASSPATH entry to Ant as -lib",
    )
    parser.add_argument(
        "-D",
        dest="properties",
        action="append",
        type=_parse_property,
        default=[],
        metavar="NAME[=VALUE]",
        help="Define an Ant property (repeatable)",
    )
    parser.add_argument(
        "--expect",
        type=int,
        default=None,
        metavar="CODE",
        help="Fail unless Ant exits with CODE",
    )
    parser.add_argument(
        "--raw",
        action="store_true",
        help="Keep the 'Total time:' line in the output",
    )
    parser.add_argument("targets", nargs="*", help="Targets to run")
    return parser


def configure_logging(config: Config) -> None:
    """Log to a temp file in debug mode, otherwise to stderr."""
    formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    if config.log_debug and config.log_file:
        handler: logging.Handler = logging.FileHandler(config.log_file, encoding="utf-8")
        log_level = logging.DEBUG
    else:
        handler = logging.StreamHandler(sys.stderr)
        log_level = logging.INFO
    handler.setFormatter(formatter)

    # Third-party loggers stay at WARNING
    logging.basicConfig(level=logging.WARNING, handlers=[handler])
    logging.getLogger("gant_harness").setLevel(log_level)


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    config = get_config()
    configure_logging(config)
    logger.debug(f"Loaded {config}")

    harness = AntHarness(config=config)
    try:
        result = anyio.run(
            partial(
                harness.execute,
                args.build_file,
                args.with_classpath,
                targets=args.targets,
                properties=dict(args.properties),
            )
        )
        if args.expect is not None:
            result.check_exit_code(args.expect)
    except HarnessError as e:
        logger.error(str(e))
        return HARNESS_FAILURE_EXIT_CODE

    output = result.output if args.raw else trim_total_time(result.output)
    sys.stdout.write(output)
    sys.stdout.flush()
    if result.stderr:
        sys.stderr.write(result.stderr)
        sys.stderr.flush()
    return result.exit_code


if __name__ == "__main__":
    sys.exit(main())

from __future__ import annotations

import argparse
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
import sys
from typing import NoReturn

from dirmirror.config import DEFAULT_PARALLELISM, build_config
from dirmirror.console import Console, raw_terminal
from dirmirror.run_service import EXIT_FAILURE, EXIT_SUCCESS, run_mirror


LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(EXIT_FAILURE, f"{self.prog}: error: {message}\n")


def _build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="dirmirror",
        description="Make DESTINATION an exact copy of SOURCE, asking before each change",
    )
    parser.add_argument("source", type=Path, help="existing source directory")
    parser.add_argument("destination", type=Path, help="existing destination directory")
    parser.add_argument(
        "--parallel",
        type=int,
        default=None,
        help=f"number of concurrent scans and copies (default {DEFAULT_PARALLELISM})",
    )
    parser.add_argument("--force", action="store_true", help="allow every change without asking")
    parser.add_argument("--config", type=Path, default=None, help="YAML or JSON file with defaults")
    parser.add_argument(
        "--exclude",
        action="append",
        default=[],
        metavar="PATTERN",
        help="gitignore-style pattern to leave alone on both sides (repeatable)",
    )
    parser.add_argument("--log-file", type=Path, default=None)
    parser.add_argument("--verbose", "-v", action="store_true")
    return parser


def configure_logging(log_file: Path | None, verbose: bool) -> None:
    logger = logging.getLogger("dirmirror")
    logger.setLevel(logging.DEBUG if verbose or log_file else logging.WARNING)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    formatter = logging.Formatter(LOG_FORMAT)

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(log_file, maxBytes=1_000_000, backupCount=3, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_file, args.verbose)

    try:
        config = build_config(
            source=args.source,
            destination=args.destination,
            parallelism=args.parallel,
            force=args.force,
            excludes=args.exclude,
            config_path=args.config,
        )
    except ValueError as exc:
        print(f"Invalid arguments: {exc}", file=sys.stderr)
        return EXIT_FAILURE

    console = Console()
    with raw_terminal(sys.stdin):
        exit_code, stats = run_mirror(config, console)

    if exit_code == EXIT_SUCCESS and stats is not None:
        print(stats.summary_line())
    return exit_code


if __name__ == "__main__":
    raise SystemExit(main())

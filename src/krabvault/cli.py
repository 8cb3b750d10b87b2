"""Console entry point."""

from __future__ import annotations

import argparse
import logging

from krabvault.frontend.cli.app import run
from krabvault.frontend.cli.context import build_context
from krabvault.frontend.cli.logging_config import configure_logging


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="krabvault", description="Local encrypted password vault")
    parser.add_argument("--data-dir", help="directory holding vault files (default ~/.krabvault)")
    parser.add_argument("--debug", action="store_true", help="verbose logging to the log file")
    args = parser.parse_args(argv)

    ctx = build_context(args.data_dir)
    configure_logging(logging.DEBUG if args.debug else logging.INFO, log_file=ctx.log_file)
    run(ctx)

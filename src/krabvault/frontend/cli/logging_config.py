"""Lightweight logging setup for the TUI."""

import logging
import sys
from pathlib import Path
from typing import Optional


def configure_logging(level: int = logging.INFO, log_file: Optional[Path] = None) -> None:
    # Configure root logger once. The TUI owns the terminal, so it passes a
    # log file; without one, output goes to stdout.
    target = {"filename": str(log_file)} if log_file else {"stream": sys.stdout}
    logging.basicConfig(
        level=level,
        format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        **target,
    )

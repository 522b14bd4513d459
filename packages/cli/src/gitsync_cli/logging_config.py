"""Logging setup for the gitsync executable.

Called once at startup. Level comes from --verbose, else LOG_LEVEL
(DEBUG, INFO, WARNING, ERROR; default INFO).
"""

from __future__ import annotations

import logging
import os

from rich.console import Console
from rich.logging import RichHandler


def setup_logging(verbose: bool = False, console: Console | None = None) -> None:
    if verbose:
        level = logging.DEBUG
    else:
        level = getattr(logging, os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)
    # Replace handlers from a previous call (tests invoke the CLI repeatedly).
    for handler in [h for h in root.handlers if isinstance(h, RichHandler)]:
        root.removeHandler(handler)
    root.addHandler(RichHandler(console=console or Console(stderr=True), show_path=False, markup=False))

    # PyGithub and urllib3 are chatty at DEBUG.
    for noisy in ("urllib3", "github"):
        logging.getLogger(noisy).setLevel(max(level, logging.INFO))

"""Logging setup and pipeline step timing.

Log records go through rich's handler so they interleave cleanly with the
console panels and tables printed by the CLI.
"""

import logging
import time
from collections.abc import Generator
from contextlib import contextmanager

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "shipmatrix"

logger = logging.getLogger(LOGGER_NAME)


def configure_logging(verbose: bool = False, console: Console | None = None) -> None:
    """Install a RichHandler on the package logger.

    Safe to call more than once; the previous handler is replaced.
    """
    root = logging.getLogger(LOGGER_NAME)
    for handler in list(root.handlers):
        if isinstance(handler, RichHandler):
            root.removeHandler(handler)

    handler = RichHandler(
        console=console,
        show_path=False,
        rich_tracebacks=verbose,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="%H:%M:%S"))
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if verbose else logging.INFO)
    root.propagate = False


@contextmanager
def step_timer(step_name: str, log: logging.Logger | None = None) -> Generator[None, None, None]:
    """Log the start and duration of a pipeline step."""
    log = log or logger
    log.info("%s started", step_name)
    start = time.perf_counter()
    try:
        yield
    except Exception:
        elapsed = time.perf_counter() - start
        log.info("%s failed after %.1fs", step_name, elapsed)
        raise
    elapsed = time.perf_counter() - start
    log.info("%s finished in %.1fs", step_name, elapsed)

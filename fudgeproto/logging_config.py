"""Logging setup shared by the compiler, the CLI and the runtime.

Modules obtain a logger with ``get_logger(__name__)``; the CLI calls
``setup_logging`` once to attach a rich handler to the package logger.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler

PACKAGE_LOGGER = "fudgeproto"

_configured = False


def setup_logging(
    level: int | str = logging.WARNING,
    console: Console | None = None,
    show_path: bool = False,
) -> logging.Logger:
    """Configure the package logger with a rich handler.

    Args:
        level: Logging level name or number.
        console: Console to log to (defaults to stderr).
        show_path: Include the source location in each record.

    Returns:
        The configured package logger.
    """
    global _configured

    logger = logging.getLogger(PACKAGE_LOGGER)
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    logger.setLevel(level)

    if not _configured:
        handler = RichHandler(
            console=console or Console(stderr=True),
            show_path=show_path,
            rich_tracebacks=True,
            markup=False,
        )
        handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
        logger.addHandler(handler)
        logger.propagate = False
        _configured = True

    return logger


def get_logger(name: str) -> logging.Logger:
    """Return a logger below the package logger."""
    if name != PACKAGE_LOGGER and not name.startswith(PACKAGE_LOGGER + "."):
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)

"""
Logging setup for the stack recommender.

Modules log through ``logging.getLogger(__name__)``; this module attaches
handlers to the two package loggers so library use stays silent until the
CLI (or an embedding application) calls ``setup_logging``.
"""

import logging
import sys
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme


_LOG_THEME = Theme({
    "logging.level.debug": "dim cyan",
    "logging.level.info": "green",
    "logging.level.warning": "yellow",
    "logging.level.error": "bold red",
    "logging.level.critical": "bold white on red",
    "log.time": "dim",
    "log.path": "dim",
})

# Logs go to stderr so JSON output on stdout stays clean
_console = Console(theme=_LOG_THEME, stderr=True)

PACKAGE_LOGGERS = ("stack_recommender", "tool_catalog")


def setup_logging(
    level: str = "WARNING",
    log_format: Optional[str] = None,
    rich_output: bool = True,
    show_path: bool = False,
) -> None:
    """
    Attach console handlers to the package loggers.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Format string for the plain handler. If None, uses default format.
        rich_output: Use a Rich handler instead of a plain stream handler
        show_path: Whether to show file path in Rich output
    """
    if log_format is None:
        log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    level_value = getattr(logging, level.upper())

    for name in PACKAGE_LOGGERS:
        if rich_output:
            handler: logging.Handler = RichHandler(
                console=_console,
                level=level_value,
                show_path=show_path,
                rich_tracebacks=True,
                markup=False,
            )
        else:
            handler = logging.StreamHandler(sys.stderr)
            handler.setFormatter(logging.Formatter(log_format))
        handler.setLevel(level_value)

        logger = logging.getLogger(name)
        logger.setLevel(level_value)
        logger.handlers.clear()
        logger.addHandler(handler)
        logger.propagate = False


for _name in PACKAGE_LOGGERS:
    logging.getLogger(_name).addHandler(logging.NullHandler())

"""
Logging configuration for the ``rosacash`` package.

Library modules only call ``logging.getLogger(__name__)``; the CLI calls
``configure_logging`` once at startup to attach a rich handler to the
package root logger.
"""
import logging
from typing import Optional, Union

from rich.console import Console
from rich.logging import RichHandler

PACKAGE_LOGGER_NAME = "rosacash"

# library default: stay silent until an entrypoint configures output
logging.getLogger(PACKAGE_LOGGER_NAME).addHandler(logging.NullHandler())


def configure_logging(
    level: Union[int, str] = "WARNING",
    console: Optional[Console] = None,
) -> logging.Logger:
    """
    Attach a single RichHandler to the package root logger.

    Calling it again replaces the handler instead of stacking another one.

    Args:
        level: Level name ("DEBUG", "INFO", ...) or number
        console: Console to write to (stderr by default)

    Returns:
        The configured package logger
    """
    logger = logging.getLogger(PACKAGE_LOGGER_NAME)
    logger.setLevel(level.upper() if isinstance(level, str) else level)

    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False

    return logger

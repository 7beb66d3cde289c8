import logging as root_logging
import sys
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

SDK_LOGGER_NAME = "crsearch"


def setup_sdk_logging(
    level="INFO",
    pretty: bool = False,
    console: Optional[Console] = None,
    propagate: bool = False,
):
    """
    Configures the logging strategy for the crsearch package.

    This function initializes the 'crsearch' logger namespace with one of two
    output modes: a 'pretty' mode rendered through the Rich library, and a plain
    stream mode for non-interactive environments (CI, containers, log shippers).
    Existing handlers are cleared first, so calling it again re-initializes the
    logger instead of stacking handlers.

    Args:
        level (str): The logging threshold (e.g., "DEBUG", "INFO", "WARNING").
            Defaults to "INFO". Use "DEBUG" to see the output of
            [`QueryBuilder.log()`][crsearch.models.query.builders.QueryBuilder.log].
        pretty (bool): If True, enables colored terminal output with timestamps
            and formatted tracebacks.
        console (Optional[rich.console.Console]): An optional Rich Console
            instance used by the pretty handler. Defaults to a new
            Console(stderr=True).
        propagate (bool): Whether records bubble up to the root logger.
            Defaults to False to avoid duplicate output under test runners.
    """
    logger = root_logging.getLogger(SDK_LOGGER_NAME)

    # Clear existing handlers to prevent duplicates
    if logger.hasHandlers():
        logger.handlers.clear()

    if pretty:
        console = console or Console(stderr=True)

        handler = RichHandler(
            level=level,
            console=console,
            show_time=True,
            show_path=True,
            markup=True,
            rich_tracebacks=True,
            log_time_format="[%X]",
        )
        formatter = root_logging.Formatter(
            fmt="[dim white]%(name)s[/dim white]: %(message)s", datefmt="[%X]"
        )
        handler.setFormatter(formatter)
        init_message = f"crsearch logging initialized at level: [bold]{level}[/bold]"
        extra = {"markup": True}
    else:
        handler = root_logging.StreamHandler(sys.stderr)
        # Time [Level] Name: Message
        formatter = root_logging.Formatter(
            fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        handler.setFormatter(formatter)
        init_message = f"crsearch logging initialized at level: {level}"
        extra = {}

    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = propagate

    logger.info(init_message, extra=extra)


def get_logger(name: Optional[str] = None):
    """
    Retrieves a logger instance within the crsearch namespace.

    Args:
        name (Optional[str]): The name of the logger, typically `__name__`
            (e.g., 'crsearch.models.query.builders'). If None, the top-level
            'crsearch' logger is returned.

    Returns:
        logging.Logger: The requested logger.
    """
    if name is not None:
        return root_logging.getLogger(name=name)
    return root_logging.getLogger(SDK_LOGGER_NAME)

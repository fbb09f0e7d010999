"""
Logging setup for the funcvm and func entry points.

Everything logs under the "funcvm" logger; module loggers created with
logging.getLogger(__name__) are its children. Messages go to stderr so that
command output on stdout can be piped.
"""

import logging
import sys
from typing import Optional


LOGGER_NAME = "funcvm"
LOG_FORMAT = "%(levelname_colored)s %(message)s"

_logger: Optional[logging.Logger] = None


def setup_logging(level: str = "INFO", verbose: bool = False) -> logging.Logger:
    """
    (Re)configure the funcvm logger with a single stderr handler.

    Args:
        level: Level name used when not verbose; the shim passes WARNING
        verbose: Force DEBUG (--verbose or FUNCVM_DEBUG=1)

    Returns:
        The configured "funcvm" logger
    """
    global _logger

    numeric_level = logging.DEBUG if verbose else getattr(logging, level.upper())

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(numeric_level)
    logger.handlers.clear()
    logger.propagate = False

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(ColoredFormatter(LOG_FORMAT, use_colors=sys.stderr.isatty()))
    logger.addHandler(handler)

    _logger = logger
    return logger


def get_logger() -> logging.Logger:
    """Return the funcvm logger, setting it up with defaults on first use."""
    global _logger
    if _logger is None:
        _logger = setup_logging()
    return _logger


class ColoredFormatter(logging.Formatter):
    """Adds ``levelname_colored`` to records; ANSI-coloured on terminals."""

    LEVEL_COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[1;31m",
    }
    RESET = "\033[0m"

    def __init__(self, fmt: str, use_colors: bool = True):
        super().__init__(fmt)
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        name = record.levelname
        color = self.LEVEL_COLORS.get(record.levelno) if self.use_colors else None
        record.levelname_colored = f"{color}{name}{self.RESET}" if color else name
        return super().format(record)

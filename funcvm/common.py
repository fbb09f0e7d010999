"""
Common utilities shared across funcvm modules.
"""

from __future__ import annotations

import os
import re
import sys

# Directory names under the cache root that count as installed versions
VERSION_DIR_PATTERN = re.compile(r"^\d+\.\d+\.\d+")

# Version segment embedded in feed download links (".../4.0.3928/...")
URL_VERSION_PATTERN = re.compile(r"/(\d+\.\d+\.\d+)/")


def is_debug_enabled() -> bool:
    """Check whether debug output was requested through the environment."""
    return os.environ.get("FUNCVM_DEBUG", "0") == "1"


def vlog(msg: str, verbose: bool = False) -> None:
    """
    Log verbose message using structured logging.

    Args:
        msg: Message to log
        verbose: Whether verbose mode is enabled
    """
    if verbose or is_debug_enabled():
        try:
            from .logging_config import get_logger
            logger = get_logger()
            logger.debug(msg)
        except Exception:
            # Fallback to stderr if logging fails
            try:
                print(f"[funcvm] {msg}", file=sys.stderr)
            except Exception:
                pass


def format_eta(seconds: float | None) -> str:
    """
    Format a remaining-time estimate for humans.

    Args:
        seconds: Estimated seconds remaining, or None if unknown

    Returns:
        Text such as "45s left", "2m 5s left" or "unknown time left"
    """
    if seconds is None or seconds < 0:
        return "unknown time left"

    total = int(round(seconds))
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)

    if hours:
        return f"{hours}h {minutes}m left"
    if minutes:
        return f"{minutes}m {secs}s left"
    return f"{secs}s left"

"""
Output rendering for version listings.
"""

from __future__ import annotations

import os
import sys
from typing import Iterable

from packaging.version import InvalidVersion, Version

USE_COLOR = os.environ.get("FUNCVM_COLOR", "1") == "1"

GREEN = "\033[32m"
BOLD_GREEN = "\033[1;32m"
RESET = "\033[0m"

TAG_INSTALLED = "installed"
TAG_NOT_INSTALLED = "not installed"


def colorize(text: str, color: str, stream=None) -> str:
    """Apply color to text when writing to a terminal.

    Args:
        text: Text to colorize
        color: ANSI color code
        stream: Stream the text is written to (defaults to stdout)

    Returns:
        Colored text or plain text if colors disabled
    """
    stream = stream or sys.stdout
    if not USE_COLOR or not text or not stream.isatty():
        return text
    return f"{color}{text}{RESET}"


def version_sort_key(name: str) -> tuple:
    """Sort key placing parseable versions in version order before anything else."""
    try:
        return (0, Version(name), name)
    except InvalidVersion:
        return (1, name, name)


def sort_versions(versions: Iterable[str]) -> list[str]:
    return sorted(versions, key=version_sort_key)


def format_tags(tags: list[str]) -> str:
    return f" ({', '.join(tags)})" if tags else ""


def remote_tags(sources: list[str], installed: bool) -> list[str]:
    """
    Annotations for a remote version.

    A version in the cache is tagged "installed". "not installed" is only
    shown when some pin source points at a version missing from the cache.
    """
    tags = list(sources)
    if installed:
        tags.append(TAG_INSTALLED)
    elif sources:
        tags.append(TAG_NOT_INSTALLED)
    return tags


def render_installed_line(version: str, sources: list[str]) -> str:
    line = version + format_tags(sources)
    return colorize(line, BOLD_GREEN) if sources else line


def render_remote_line(tag: str, version: str, tags: list[str], tag_width: int = 8) -> str:
    line = f"{tag:<{tag_width}} {version}{format_tags(tags)}"
    return colorize(line, GREEN) if TAG_INSTALLED in tags else line

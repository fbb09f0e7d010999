"""
Host platform detection.

Maps the running operating system to the names used by the release feed
and by GitHub asset filenames.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass

from .errors import UnsupportedPlatformError


@dataclass(frozen=True)
class ArchQuirk:
    """
    Feed-specific architecture relabelling for one operating system.

    Attributes:
        feed_arch: Architecture value the feed uses for the artifact we want
        url_segment: Label embedded in the feed URL for that artifact
        standard_segment: Label the URL is rewritten to after selection
    """
    feed_arch: str
    url_segment: str
    standard_segment: str


# Keyed by feed OS name. Add entries here when the feed mislabels an artifact.
ARCH_QUIRKS: dict[str, ArchQuirk] = {
    "Windows": ArchQuirk(feed_arch="x86", url_segment="win-x86", standard_segment="win-x64"),
}


@dataclass(frozen=True)
class Platform:
    """
    Platform triple used to filter feed entries and name release assets.

    Attributes:
        os_name: Operating system name as spelled in the feed ("Linux")
        arch: Standard architecture label ("x64")
        label: Asset label used in GitHub filenames ("linux-x64")
    """
    os_name: str
    arch: str
    label: str

    @property
    def quirk(self) -> ArchQuirk | None:
        return ARCH_QUIRKS.get(self.os_name)

    @property
    def feed_arch(self) -> str:
        """Architecture value to match against feed entries."""
        quirk = self.quirk
        return quirk.feed_arch if quirk else self.arch

    @property
    def is_windows(self) -> bool:
        return self.os_name == "Windows"

    @property
    def executable_name(self) -> str:
        return "func.exe" if self.is_windows else "func"

    def normalize_url(self, url: str) -> str:
        """Rewrite a feed download URL to the standard architecture label."""
        quirk = self.quirk
        if quirk is None:
            return url
        return url.replace(quirk.url_segment, quirk.standard_segment)


PLATFORMS: dict[str, Platform] = {
    "win32": Platform(os_name="Windows", arch="x64", label="win-x64"),
    "darwin": Platform(os_name="MacOS", arch="x64", label="osx-x64"),
    "linux": Platform(os_name="Linux", arch="x64", label="linux-x64"),
}


def detect_platform(system: str | None = None) -> Platform:
    """
    Detect the platform descriptor for the running host.

    Args:
        system: Platform identifier override (defaults to sys.platform)

    Returns:
        Platform for Windows, macOS or Linux

    Raises:
        UnsupportedPlatformError: For any other host
    """
    if system is None:
        system = sys.platform

    # sys.platform is "linux" on modern Pythons but may carry a suffix elsewhere
    key = "linux" if system.startswith("linux") else system

    platform = PLATFORMS.get(key)
    if platform is None:
        raise UnsupportedPlatformError(f"Unsupported platform: {system}")
    return platform

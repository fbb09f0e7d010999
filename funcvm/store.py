"""
On-disk version cache and pin files.

Layout under the download directory:

    download/
        funcvm-core-tools-version.txt   global pin
        4.0.3928/                       one directory per installed version
            func
            gozip
            ...

A per-directory pin lives in ``.func-version`` inside any working directory.
The working directory is always passed in by the caller.
"""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path

from .common import VERSION_DIR_PATTERN
from .errors import LocalPinExistsError, NotInstalledError

logger = logging.getLogger(__name__)

GLOBAL_PIN_FILE = "funcvm-core-tools-version.txt"
LOCAL_PIN_FILE = ".func-version"

# Executables that need the exec bit after extraction on POSIX hosts
EXECUTABLES = ("func", "gozip")


def _read_pin(path: Path) -> str | None:
    if not path.is_file():
        return None
    version = path.read_text(encoding="utf-8").strip()
    return version or None


class VersionStore:
    """
    Read/write/list/remove operations over the download cache.

    Args:
        download_dir: Cache root holding version directories and the global pin
        executable_name: Name of the primary binary inside a version directory
    """

    def __init__(self, download_dir: Path | str, executable_name: str = "func"):
        self.download_dir = Path(download_dir)
        self.executable_name = executable_name

    @property
    def global_pin_path(self) -> Path:
        return self.download_dir / GLOBAL_PIN_FILE

    def ensure_root(self) -> Path:
        """Create the cache root if needed."""
        self.download_dir.mkdir(parents=True, exist_ok=True)
        return self.download_dir

    def install_dir(self, version: str) -> Path:
        """Directory for a version. Pure path construction."""
        return self.download_dir / version

    def binary_path(self, version: str) -> Path:
        return self.install_dir(version) / self.executable_name

    def is_version_dir(self, version: str) -> bool:
        """
        True when ``version`` names an existing version directory directly
        under the cache root.

        Names must match the version pattern, and ".", ".." or absolute
        paths never qualify.
        """
        if not VERSION_DIR_PATTERN.match(version):
            return False
        target = self.install_dir(version)
        return target.is_dir() and target.resolve().parent == self.download_dir.resolve()

    def is_installed(self, version: str) -> bool:
        return self.is_version_dir(version)

    def list_installed(self) -> list[str]:
        """
        List installed versions in directory-enumeration order.

        Returns:
            Names of entries matching the version pattern that are directories
        """
        if not self.download_dir.is_dir():
            return []

        return [
            name for name in os.listdir(self.download_dir)
            if VERSION_DIR_PATTERN.match(name) and (self.download_dir / name).is_dir()
        ]

    def read_global_pin(self) -> str | None:
        return _read_pin(self.global_pin_path)

    def write_global_pin(self, version: str) -> Path:
        """Overwrite the global pin unconditionally."""
        self.ensure_root()
        self.global_pin_path.write_text(version, encoding="utf-8")
        logger.debug(f"Wrote global pin {version} to {self.global_pin_path}")
        return self.global_pin_path

    @staticmethod
    def local_pin_path(directory: Path | str) -> Path:
        return Path(directory) / LOCAL_PIN_FILE

    def read_local_pin(self, directory: Path | str) -> str | None:
        return _read_pin(self.local_pin_path(directory))

    def write_local_pin(self, directory: Path | str, version: str, overwrite: bool = False) -> Path:
        """
        Write the per-directory pin.

        Args:
            directory: Working directory holding the pin file
            version: Version to record
            overwrite: Replace an existing pin file

        Returns:
            Path of the pin file

        Raises:
            LocalPinExistsError: If a pin exists and overwrite is False
        """
        path = self.local_pin_path(directory)
        if path.exists() and not overwrite:
            raise LocalPinExistsError(
                f"Local version file {path} already exists.",
                "Use --local to update it.",
            )
        path.write_text(version, encoding="utf-8")
        logger.debug(f"Wrote local pin {version} to {path}")
        return path

    def remove(self, version: str) -> Path:
        """
        Delete an installed version and all of its contents.

        Raises:
            NotInstalledError: If ``version`` does not name an installed version
        """
        target = self.install_dir(version)
        if not self.is_version_dir(version):
            raise NotInstalledError(
                f"Version {version} is not installed at {target}.",
                "Run 'funcvm list' to see installed versions.",
            )
        shutil.rmtree(target)
        logger.debug(f"Removed {target}")
        return target

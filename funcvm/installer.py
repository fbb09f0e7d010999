"""
Installation of resolved versions into the download cache.

An existing version directory means the version is installed; nothing is
fetched or extracted again. Otherwise the archive is streamed to a temporary
file, then extracted into the version directory. Extraction is not atomic: a
failure part-way leaves the directory behind and the user has to remove it.
"""

from __future__ import annotations

import logging
import os
import time
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Callable

from . import http
from .common import format_eta
from .errors import FuncvmError
from .feed import ResolvedTarget
from .platforms import Platform
from .store import EXECUTABLES, VersionStore

logger = logging.getLogger(__name__)

EXECUTABLE_MODE = 0o755


@dataclass(frozen=True)
class InstallResult:
    """
    Outcome of ensure_installed.

    Attributes:
        version: Installed version
        path: Version directory
        downloaded: False when the directory already existed
    """
    version: str
    path: Path
    downloaded: bool


class ProgressReporter:
    """
    Turns download progress into remaining-time messages.

    A message is emitted only when its text differs from the previous one.

    Args:
        emit: Receives each message (defaults to the module logger)
        clock: Monotonic time source
    """

    def __init__(
        self,
        emit: Callable[[str], None] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.emit = emit or logger.info
        self.clock = clock
        self.started = clock()
        self.last_message: str | None = None

    def estimate(self, received: int, total: int | None) -> float | None:
        """Seconds remaining at the current average rate, None if unknown."""
        if not total or received <= 0:
            return None
        elapsed = self.clock() - self.started
        if elapsed <= 0:
            return None
        rate = received / elapsed
        return max(total - received, 0) / rate

    def __call__(self, received: int, total: int | None) -> None:
        message = format_eta(self.estimate(received, total))
        if message != self.last_message:
            self.emit(message)
            self.last_message = message


def extract_archive(archive: BinaryIO, dest: Path) -> None:
    """
    Extract a seekable zip file object into ``dest``.

    Raises:
        FuncvmError: If the file is not a readable zip archive
    """
    try:
        with zipfile.ZipFile(archive) as bundle:
            bundle.extractall(dest)
    except zipfile.BadZipFile as e:
        raise FuncvmError(
            f"Downloaded archive for {dest.name} is not a valid zip file: {e}",
            f"Remove {dest} and try again.",
        ) from e


def mark_executables(directory: Path, names: tuple[str, ...] = EXECUTABLES) -> list[Path]:
    """
    Set mode 0755 on the tool's executables.

    Missing files are logged and skipped.

    Returns:
        Paths whose mode was changed
    """
    changed = []
    for name in names:
        path = directory / name
        if not path.exists():
            logger.warning(f"Expected executable not found: {path}")
            continue
        os.chmod(path, EXECUTABLE_MODE)
        changed.append(path)
    return changed


class InstallCoordinator:
    """
    Ensure resolved versions are present in the version store.

    Args:
        store: Target version store
        platform: Host platform (decides whether permissions are normalized)
        download: Callable(url, progress=...) returning an open archive file
        extract: Callable(archive_file, dest_dir) unpacking the archive
        progress_factory: Builds a fresh progress callback per download
    """

    def __init__(
        self,
        store: VersionStore,
        platform: Platform,
        download: Callable[..., BinaryIO] = http.download,
        extract: Callable[[BinaryIO, Path], None] = extract_archive,
        progress_factory: Callable[[], Callable[[int, int | None], None]] = ProgressReporter,
    ):
        self.store = store
        self.platform = platform
        self._download = download
        self._extract = extract
        self._progress_factory = progress_factory

    def ensure_installed(self, target: ResolvedTarget) -> InstallResult:
        """
        Download and extract ``target`` unless it is already installed.

        Args:
            target: Resolved version and archive URL

        Returns:
            InstallResult describing the version directory

        Raises:
            DownloadError: If the archive cannot be downloaded
            FuncvmError: If the archive cannot be extracted
        """
        dest = self.store.install_dir(target.version)
        if dest.is_dir():
            logger.debug(f"Version {target.version} already installed at {dest}")
            return InstallResult(version=target.version, path=dest, downloaded=False)

        logger.info(f"Downloading {target.download_url} to {dest}...")
        # The whole archive is on disk before anything touches the cache directory
        with self._download(target.download_url, progress=self._progress_factory()) as archive:
            self.store.ensure_root()
            self._extract(archive, dest)

        if not self.platform.is_windows:
            mark_executables(dest)

        return InstallResult(version=target.version, path=dest, downloaded=True)

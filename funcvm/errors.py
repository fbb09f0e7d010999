"""
Error taxonomy for funcvm.

Every error is terminal for the current invocation. Each carries a
human-readable message naming the offending token or path and, where one
exists, a remediation the user can act on.
"""

from __future__ import annotations


class FuncvmError(Exception):
    """
    Base exception for funcvm failures.

    Attributes:
        message: Human-readable error message
        remediation: Suggested fix for the error
    """
    def __init__(self, message: str, remediation: str | None = None):
        self.message = message
        self.remediation = remediation
        super().__init__(message)

    def format(self) -> str:
        """Render message and remediation as a single line."""
        if self.remediation:
            return f"{self.message} {self.remediation}"
        return self.message


class UnsupportedPlatformError(FuncvmError):
    """Host operating system has no published artifacts."""


class NotInitializedError(FuncvmError):
    """No version is pinned by the environment, a local file or the global file."""


class VersionNotFoundError(FuncvmError):
    """Token matched nothing in the feed or in the upstream releases."""


class AssetNotAvailableError(FuncvmError):
    """Release exists but has no artifact for this platform."""


class NotInstalledError(FuncvmError):
    """Requested version is not present in the download cache."""


class LocalPinExistsError(FuncvmError):
    """Refusal to overwrite a per-directory pin without --local."""


class NetworkError(FuncvmError):
    """Raised when an HTTP request fails."""


class FeedError(NetworkError):
    """Raised when the release feed cannot be parsed."""


class DownloadError(NetworkError):
    """Raised when an archive download fails."""


class HttpStatusError(NetworkError):
    """Raised when the server answers with a non-2xx status."""

    def __init__(self, message: str, status: int, remediation: str | None = None):
        self.status = status
        super().__init__(message, remediation)

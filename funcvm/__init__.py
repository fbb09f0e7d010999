"""
funcvm - Azure Functions Core Tools version manager.

Core Modules:
- Resolution: Release feed parsing with GitHub releases fallback
- Storage: Download cache, global and per-directory pin files
- Activation: Environment > local pin > global pin precedence
- Installation: Idempotent download and extraction of resolved versions
- Command line: funcvm commands and the func shim
"""

__version__ = "1.0.0"

VERSION = __version__

# Errors
from .errors import (
    FuncvmError,
    UnsupportedPlatformError,
    NotInitializedError,
    VersionNotFoundError,
    AssetNotAvailableError,
    NotInstalledError,
    LocalPinExistsError,
    NetworkError,
    FeedError,
    DownloadError,
    HttpStatusError,
)

# Foundation
from .config import Config, load_config, load_config_file
from .platforms import Platform, ArchQuirk, ARCH_QUIRKS, detect_platform

# Resolution and storage
from .feed import (
    ArtifactDescriptor,
    Release,
    ReleaseTag,
    Feed,
    ResolvedTarget,
    FeedResolver,
    effective_tags,
    match_tag,
)
from .store import VersionStore, GLOBAL_PIN_FILE, LOCAL_PIN_FILE

# Activation and installation
from .activation import ActiveVersion, VERSION_ENV_VAR, effective_version, version_sources
from .installer import InstallCoordinator, InstallResult, ProgressReporter

# Logging configuration
from .logging_config import setup_logging, get_logger

__all__ = [
    # Version
    "__version__",
    "VERSION",
    # Errors
    "FuncvmError",
    "UnsupportedPlatformError",
    "NotInitializedError",
    "VersionNotFoundError",
    "AssetNotAvailableError",
    "NotInstalledError",
    "LocalPinExistsError",
    "NetworkError",
    "FeedError",
    "DownloadError",
    "HttpStatusError",
    # Foundation
    "Config",
    "load_config",
    "load_config_file",
    "Platform",
    "ArchQuirk",
    "ARCH_QUIRKS",
    "detect_platform",
    # Resolution and storage
    "ArtifactDescriptor",
    "Release",
    "ReleaseTag",
    "Feed",
    "ResolvedTarget",
    "FeedResolver",
    "effective_tags",
    "match_tag",
    "VersionStore",
    "GLOBAL_PIN_FILE",
    "LOCAL_PIN_FILE",
    # Activation and installation
    "ActiveVersion",
    "VERSION_ENV_VAR",
    "effective_version",
    "version_sources",
    "InstallCoordinator",
    "InstallResult",
    "ProgressReporter",
    # Logging
    "setup_logging",
    "get_logger",
]

"""
Configuration file parsing and management.

Supports YAML configuration files with JSON fallback. The first file found
wins over later ones; FUNCVM_HOME and FUNCVM_FEED_URL override file values.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

import yaml

from .common import vlog


DEFAULT_FEED_URL = "https://aka.ms/AAbbk68"
DEFAULT_RELEASES_REPO = "Azure/azure-functions-core-tools"
DEFAULT_HOME_DIR = os.path.join("~", ".funcvm")
DEFAULT_TIMEOUT_SECONDS = 30

# Configuration file locations (in priority order)
CONFIG_LOCATIONS = [
    ".funcvm.yml",                                      # Project root (highest priority)
    ".funcvm.yaml",
    os.path.expanduser("~/.config/funcvm/config.yml"),  # User global
    os.path.expanduser("~/.config/funcvm/config.yaml"),
]


@dataclass(frozen=True)
class Config:
    """
    Runtime configuration.

    Attributes:
        feed_url: Location of the release feed document
        releases_repo: GitHub "owner/repo" queried when the feed has no match
        home_dir: Root of funcvm state (downloads live in home_dir/download)
        timeout_seconds: Timeout for feed and release lookups
        source: Path to the configuration file that was loaded
    """
    feed_url: str = DEFAULT_FEED_URL
    releases_repo: str = DEFAULT_RELEASES_REPO
    home_dir: str = DEFAULT_HOME_DIR
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS
    source: str = ""

    def __post_init__(self):
        """Validate config after initialization."""
        if not self.feed_url:
            raise ValueError("feed_url must not be empty")

        if self.releases_repo.count("/") != 1:
            raise ValueError(
                f"Invalid releases_repo: {self.releases_repo}. Expected 'owner/repo'"
            )

        if self.timeout_seconds < 1 or self.timeout_seconds > 300:
            raise ValueError(
                f"Invalid timeout_seconds: {self.timeout_seconds}. "
                "Must be between 1 and 300"
            )

    @property
    def funcvm_dir(self) -> Path:
        return Path(os.path.expanduser(self.home_dir))

    @property
    def download_dir(self) -> Path:
        return self.funcvm_dir / "download"

    @property
    def releases_url(self) -> str:
        return f"https://github.com/{self.releases_repo}/releases"

    @property
    def releases_api_url(self) -> str:
        return f"https://api.github.com/repos/{self.releases_repo}/releases"

    @staticmethod
    def from_dict(data: dict[str, Any], source: str = "") -> Config:
        """Create Config from dictionary."""
        return Config(
            feed_url=data.get("feed_url", DEFAULT_FEED_URL),
            releases_repo=data.get("releases_repo", DEFAULT_RELEASES_REPO),
            home_dir=data.get("home_dir", DEFAULT_HOME_DIR),
            timeout_seconds=data.get("timeout_seconds", DEFAULT_TIMEOUT_SECONDS),
            source=source,
        )

    def with_environment(self, environ: dict[str, str] | None = None) -> Config:
        """
        Apply environment variable overrides.

        Args:
            environ: Environment mapping (defaults to os.environ)

        Returns:
            New Config with FUNCVM_HOME / FUNCVM_FEED_URL applied
        """
        if environ is None:
            environ = dict(os.environ)

        overrides: dict[str, Any] = {}
        if environ.get("FUNCVM_HOME"):
            overrides["home_dir"] = environ["FUNCVM_HOME"]
        if environ.get("FUNCVM_FEED_URL"):
            overrides["feed_url"] = environ["FUNCVM_FEED_URL"]

        return replace(self, **overrides) if overrides else self


def _load_yaml(file_path: str) -> dict[str, Any] | None:
    """
    Load YAML configuration file.

    Args:
        file_path: Path to YAML file

    Returns:
        Parsed configuration dictionary, or None if file invalid
    """
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
            return data if isinstance(data, dict) else {}
    except (OSError, yaml.YAMLError):
        return None


def _load_json(file_path: str) -> dict[str, Any] | None:
    """
    Load JSON configuration file.

    Args:
        file_path: Path to JSON file

    Returns:
        Parsed configuration dictionary, or None if file invalid
    """
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            data = json.load(f)
            return data if isinstance(data, dict) else {}
    except (OSError, json.JSONDecodeError):
        return None


def load_config_file(file_path: str, verbose: bool = False) -> Config | None:
    """
    Load configuration from a single file.

    JSON files are read as JSON; everything else is parsed as YAML.

    Args:
        file_path: Path to configuration file
        verbose: Enable verbose logging

    Returns:
        Config object, or None if file cannot be loaded
    """
    if not os.path.exists(file_path):
        return None

    vlog(f"Loading config from: {file_path}", verbose)

    if file_path.endswith(".json"):
        data = _load_json(file_path)
    else:
        data = _load_yaml(file_path)

    if data is None:
        vlog(f"Invalid config file: {file_path}", verbose)
        return None

    try:
        config = Config.from_dict(data, source=file_path)
        vlog(f"Loaded config successfully: {file_path}", verbose)
        return config
    except (ValueError, TypeError) as e:
        vlog(f"Config validation failed for {file_path}: {e}", verbose)
        return None


def load_config(
    custom_path: str | None = None,
    environ: dict[str, str] | None = None,
    verbose: bool = False,
    working_dir: Path | str | None = None,
) -> Config:
    """
    Load configuration from the first available source.

    Configuration precedence (highest to lowest):
    1. Environment variables (FUNCVM_HOME, FUNCVM_FEED_URL)
    2. Custom path (if provided)
    3. Project .funcvm.yml
    4. User ~/.config/funcvm/config.yml
    5. Default configuration

    Args:
        custom_path: Optional path to custom configuration file
        environ: Environment mapping (defaults to os.environ)
        verbose: Enable verbose logging
        working_dir: Directory that project-relative locations are resolved
            against (defaults to the process working directory)

    Returns:
        Config object (never None, returns defaults if no config found)

    Raises:
        ValueError: If custom_path is provided but file cannot be loaded
    """
    config: Config | None = None

    if custom_path:
        config = load_config_file(custom_path, verbose)
        if config is None:
            raise ValueError(f"Could not load config from specified path: {custom_path}")
        vlog(f"Using custom config: {custom_path}", verbose)
    else:
        base = Path(working_dir) if working_dir is not None else Path.cwd()
        for location in CONFIG_LOCATIONS:
            # Absolute entries are unaffected by the join
            location = str(base / location)
            config = load_config_file(location, verbose)
            if config is not None:
                vlog(f"Found config at: {location}", verbose)
                break

    if config is None:
        vlog("No config files found, using defaults", verbose)
        config = Config()

    return config.with_environment(environ)

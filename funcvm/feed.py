"""
Release feed parsing and version resolution.

Resolution walks an ordered fallback chain and returns the first hit:

1. tag alias ``v{token}`` in the effective tag set
2. first effective tag (feed order) whose version equals ``token``
3. a GitHub release tagged exactly ``token`` carrying the platform asset

No version ordering is involved; "4" resolves through the ``v4`` alias.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from . import http
from .common import URL_VERSION_PATTERN
from .config import Config
from .errors import AssetNotAvailableError, FeedError, HttpStatusError, VersionNotFoundError
from .platforms import Platform

logger = logging.getLogger(__name__)

ASSET_NAME_TEMPLATE = "Azure.Functions.Cli.{label}.{version}.zip"


@dataclass(frozen=True)
class ArtifactDescriptor:
    """One downloadable variant of a release."""
    os: str
    arch: str
    size: str
    download_url: str

    @staticmethod
    def from_dict(data: dict[str, Any]) -> ArtifactDescriptor:
        return ArtifactDescriptor(
            os=data.get("OS", ""),
            arch=data.get("Architecture", ""),
            size=data.get("size", ""),
            download_url=data.get("downloadLink", ""),
        )


@dataclass(frozen=True)
class Release:
    id: str
    core_tools: tuple[ArtifactDescriptor, ...] = ()

    def find_artifact(self, platform: Platform) -> ArtifactDescriptor | None:
        """First full-size artifact built for the platform."""
        for artifact in self.core_tools:
            if (
                artifact.os == platform.os_name
                and artifact.arch == platform.feed_arch
                and artifact.size == "full"
            ):
                return artifact
        return None


@dataclass(frozen=True)
class ReleaseTag:
    name: str
    release_id: str
    hidden: bool = False


@dataclass(frozen=True)
class Feed:
    """Parsed feed document."""
    tags: tuple[ReleaseTag, ...] = ()
    releases: dict[str, Release] = field(default_factory=dict)

    @staticmethod
    def from_dict(data: dict[str, Any]) -> Feed:
        """
        Build a Feed from the decoded feed document.

        Raises:
            FeedError: If the document is not shaped like a feed
        """
        if not isinstance(data, dict):
            raise FeedError("Release feed is not a JSON object")

        tags_raw = data.get("tags", {})
        releases_raw = data.get("releases", {})
        if not isinstance(tags_raw, dict) or not isinstance(releases_raw, dict):
            raise FeedError("Release feed is missing 'tags' or 'releases'")

        tags = tuple(
            ReleaseTag(
                name=name,
                release_id=str(info.get("release", "")),
                hidden=bool(info.get("hidden", False)),
            )
            for name, info in tags_raw.items()
            if isinstance(info, dict)
        )
        releases = {
            str(release_id): Release(
                id=str(release_id),
                core_tools=tuple(
                    ArtifactDescriptor.from_dict(entry)
                    for entry in (info.get("coreTools") or [])
                    if isinstance(entry, dict)
                ),
            )
            for release_id, info in releases_raw.items()
            if isinstance(info, dict)
        }
        return Feed(tags=tags, releases=releases)


@dataclass(frozen=True)
class ResolvedTarget:
    """
    Result of resolution.

    Attributes:
        download_url: Archive to download
        version: Full semantic version; names the install directory
        tag: Feed tag that produced the target ("" for GitHub releases)
    """
    download_url: str
    version: str
    tag: str = ""


def effective_tags(feed: Feed, platform: Platform) -> dict[str, ResolvedTarget]:
    """
    Visible tags that have a usable artifact for the platform.

    Args:
        feed: Parsed feed
        platform: Host platform

    Returns:
        Mapping of tag name to target, in feed order
    """
    result: dict[str, ResolvedTarget] = {}

    for tag in feed.tags:
        if tag.hidden:
            continue

        release = feed.releases.get(tag.release_id)
        if release is None:
            logger.debug(f"Tag {tag.name} points at unknown release {tag.release_id}")
            continue

        artifact = release.find_artifact(platform)
        if artifact is None:
            continue

        match = URL_VERSION_PATTERN.search(artifact.download_url)
        if not match:
            logger.debug(f"No version in download link for tag {tag.name}: {artifact.download_url}")
            continue

        result[tag.name] = ResolvedTarget(
            download_url=platform.normalize_url(artifact.download_url),
            version=match.group(1),
            tag=tag.name,
        )

    return result


def match_tag(tags: dict[str, ResolvedTarget], token: str) -> ResolvedTarget | None:
    """Alias match on ``v{token}``, then first exact version match."""
    target = tags.get(f"v{token}")
    if target is not None:
        return target

    for candidate in tags.values():
        if candidate.version == token:
            return candidate
    return None


class FeedResolver:
    """
    Resolve version tokens against the release feed and GitHub releases.

    Args:
        config: Runtime configuration (feed URL, releases repo, timeout)
        platform: Host platform
        fetch_json: Callable(url, timeout=..., headers=...) returning a decoded document
    """

    def __init__(
        self,
        config: Config,
        platform: Platform,
        fetch_json: Callable[..., Any] = http.fetch_json,
    ):
        self.config = config
        self.platform = platform
        self._fetch_json = fetch_json
        self._feed: Feed | None = None

    def load_feed(self) -> Feed:
        """Fetch and parse the feed once per resolver."""
        if self._feed is None:
            logger.debug(f"Fetching release feed {self.config.feed_url}")
            document = self._fetch_json(self.config.feed_url, timeout=self.config.timeout_seconds)
            self._feed = Feed.from_dict(document)
        return self._feed

    def tags(self) -> dict[str, ResolvedTarget]:
        return effective_tags(self.load_feed(), self.platform)

    def list_remote(self) -> list[ResolvedTarget]:
        """Effective remote tags in feed order."""
        return list(self.tags().values())

    def resolve(self, token: str) -> ResolvedTarget:
        """
        Resolve a version token to a downloadable target.

        Args:
            token: Full version ("4.0.3928") or tag alias ("4")

        Returns:
            ResolvedTarget with a full semantic version

        Raises:
            VersionNotFoundError: If nothing in the feed or upstream matches
            AssetNotAvailableError: If the upstream release lacks this platform's asset
        """
        token = (token or "").strip()
        if not token:
            raise VersionNotFoundError("No version specified.", "Try 'funcvm use 4'.")

        target = match_tag(self.tags(), token)
        if target is not None:
            logger.debug(f"Resolved {token} via feed tag {target.tag} to {target.version}")
            return target

        return self.resolve_github(token)

    def resolve_github(self, token: str) -> ResolvedTarget:
        """Look up a release tagged exactly ``token`` on GitHub."""
        url = f"{self.config.releases_api_url}/tags/{token}"
        try:
            release = self._fetch_json(
                url,
                timeout=self.config.timeout_seconds,
                headers={"Accept": "application/vnd.github+json"},
            )
        except HttpStatusError as e:
            raise VersionNotFoundError(
                f"Unable to find version {token} on GitHub releases {self.config.releases_url}"
            ) from e

        name = ASSET_NAME_TEMPLATE.format(label=self.platform.label, version=token)
        assets = release.get("assets") if isinstance(release, dict) else None
        if not isinstance(assets, list):
            assets = []
        for asset in assets:
            if not isinstance(asset, dict) or asset.get("name") != name:
                continue
            url = asset.get("browser_download_url")
            if url:
                logger.debug(f"Resolved {token} via GitHub asset {name}")
                return ResolvedTarget(download_url=url, version=token)

        raise AssetNotAvailableError(
            f"Unable to find suitable asset for {self.platform.label} on GitHub releases "
            f"{self.config.releases_url}/tag/{token}"
        )

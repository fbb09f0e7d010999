"""
Shared fixtures: a small release feed and in-memory zip archives.
"""

import io
import zipfile

import pytest

from funcvm.platforms import PLATFORMS

CDN = "https://functionscdn.azureedge.net/public"


def cdn_url(version: str, label: str) -> str:
    return f"{CDN}/{version}/Azure.Functions.Cli.{label}.{version}.zip"


def make_archive(files: dict[str, bytes] | None = None) -> bytes:
    """Build a zip archive in memory."""
    if files is None:
        files = {"func": b"#!/bin/sh\necho func\n", "gozip": b"gozip", "func.dll": b"dll"}
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        for name, content in files.items():
            archive.writestr(name, content)
    return buffer.getvalue()


def build_feed() -> dict:
    return {
        "tags": {
            "v4": {"release": "4.0.3928", "hidden": False},
            "v3": {"release": "3.0.3904", "hidden": False},
            "v4-prerelease": {"release": "4.0.4000", "hidden": True},
            "v2": {"release": "2.7.3188", "hidden": False},
        },
        "releases": {
            "4.0.3928": {
                "coreTools": [
                    {"OS": "Linux", "Architecture": "x64", "size": "minified",
                     "downloadLink": cdn_url("4.0.3928", "linux-x64.min")},
                    {"OS": "Linux", "Architecture": "x64", "size": "full",
                     "downloadLink": cdn_url("4.0.3928", "linux-x64")},
                    {"OS": "MacOS", "Architecture": "x64", "size": "full",
                     "downloadLink": cdn_url("4.0.3928", "osx-x64")},
                    {"OS": "Windows", "Architecture": "x86", "size": "full",
                     "downloadLink": cdn_url("4.0.3928", "win-x86")},
                ],
            },
            "3.0.3904": {
                "coreTools": [
                    {"OS": "Linux", "Architecture": "x64", "size": "full",
                     "downloadLink": cdn_url("3.0.3904", "linux-x64")},
                ],
            },
            "4.0.4000": {
                "coreTools": [
                    {"OS": "Linux", "Architecture": "x64", "size": "full",
                     "downloadLink": cdn_url("4.0.4000", "linux-x64")},
                ],
            },
            "2.7.3188": {
                "coreTools": [
                    {"OS": "Windows", "Architecture": "x86", "size": "full",
                     "downloadLink": cdn_url("2.7.3188", "win-x86")},
                ],
            },
        },
    }


@pytest.fixture
def feed_document():
    return build_feed()


@pytest.fixture
def linux():
    return PLATFORMS["linux"]


@pytest.fixture
def windows():
    return PLATFORMS["win32"]


@pytest.fixture
def archive_bytes():
    return make_archive()

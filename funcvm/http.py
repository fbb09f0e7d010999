"""
Blocking HTTP helpers for the release feed, GitHub lookups and archive downloads.
"""

from __future__ import annotations

import json
import logging
import tempfile
import urllib.error
import urllib.request
from typing import Any, BinaryIO, Callable

from . import __version__
from .errors import DownloadError, FeedError, HttpStatusError, NetworkError

logger = logging.getLogger(__name__)

USER_AGENT = f"funcvm/{__version__}"

# Bytes read per chunk while streaming archives
CHUNK_SIZE = 64 * 1024

ProgressCallback = Callable[[int, "int | None"], None]


def http_get(url: str, timeout: int | None = 30, headers: dict[str, str] | None = None) -> bytes:
    """Perform HTTP GET request.

    Args:
        url: URL to fetch
        timeout: Timeout in seconds (None uses the transport default)
        headers: Optional HTTP headers

    Returns:
        Response body as bytes

    Raises:
        HttpStatusError: If the server answers with a non-2xx status
        NetworkError: If the request fails for any other reason
    """
    default_headers = {"User-Agent": USER_AGENT}
    if headers:
        default_headers.update(headers)

    req = urllib.request.Request(url, headers=default_headers)
    logger.debug(f"GET {url}")
    try:
        with urllib.request.urlopen(req, timeout=timeout) as response:
            return response.read()
    except urllib.error.HTTPError as e:
        raise HttpStatusError(f"Failed to fetch {url}: HTTP {e.code}", status=e.code) from e
    except (urllib.error.URLError, OSError) as e:
        raise NetworkError(f"Failed to fetch {url}: {e}") from e


def fetch_json(url: str, timeout: int | None = 30, headers: dict[str, str] | None = None) -> Any:
    """Fetch and decode a JSON document.

    Raises:
        FeedError: If the body is not valid JSON
    """
    body = http_get(url, timeout=timeout, headers=headers)
    try:
        return json.loads(body.decode("utf-8-sig"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise FeedError(f"Invalid JSON document at {url}: {e}") from e


def download(
    url: str,
    progress: ProgressCallback | None = None,
    timeout: int | None = None,
) -> BinaryIO:
    """Stream a file into an anonymous temporary file, reporting progress per chunk.

    Args:
        url: Archive URL
        progress: Called with (bytes_received, total_bytes_or_None)
        timeout: Socket timeout in seconds (None uses the transport default)

    Returns:
        Temporary file positioned at its start; the caller closes it

    Raises:
        DownloadError: On any HTTP or transport failure
    """
    req = urllib.request.Request(url, headers={"User-Agent": USER_AGENT})
    archive = tempfile.TemporaryFile(prefix="funcvm-")
    received = 0

    try:
        with urllib.request.urlopen(req, timeout=timeout) as response:
            length = response.headers.get("Content-Length")
            total = int(length) if length and length.isdigit() else None

            while True:
                chunk = response.read(CHUNK_SIZE)
                if not chunk:
                    break
                archive.write(chunk)
                received += len(chunk)
                if progress is not None:
                    progress(received, total)
    except urllib.error.HTTPError as e:
        archive.close()
        raise DownloadError(f"Failed to download {url}: HTTP {e.code}") from e
    except (urllib.error.URLError, OSError) as e:
        archive.close()
        raise DownloadError(f"Failed to download {url}: {e}") from e

    archive.seek(0)
    return archive

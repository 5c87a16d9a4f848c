"""Opening diff inputs: local files, http(s) URLs, or standard input."""

import io
import logging
import sys
from pathlib import Path
from urllib.parse import urlparse

import requests

logger = logging.getLogger(__name__)


def is_url(value: str) -> bool:
    """Check if a value is a URL (scheme check is case-insensitive)."""
    lower = value[:8].lower()
    return lower.startswith("http://") or lower.startswith("https://")


def fetch_patch_from_url(url: str, timeout: float = 30.0) -> bytes:
    """Download patch content from a URL.

    The raw bytes are returned so that decoding follows the same rules as
    for local files.
    """
    logger.debug("GET %s (timeout=%s)", url, timeout)
    resp = requests.get(url, timeout=timeout)
    if resp.status_code == 404:
        raise RuntimeError(f"Patch not found or not accessible: {url}")
    resp.raise_for_status()
    return resp.content


def source_stem(value: str) -> str:
    """Name used to tag patches split out of *value*.

    ``series/0001-fix.patch`` and ``https://host/x/0001-fix.patch?raw=1``
    both give ``0001-fix``.
    """
    if is_url(value):
        path = urlparse(value).path.rstrip("/")
        return Path(path).stem if path else ""
    return Path(value).stem


def open_source(value: str, timeout: float = 30.0):
    """Return ``(handle, stem)`` for a file path or URL.

    The handle is binary and must be closed by the caller.

    Raises:
        FileNotFoundError: If *value* is not a URL and not an existing file.
        RuntimeError: If the URL does not exist.
        requests.RequestException: On other download failures.
    """
    if is_url(value):
        return io.BytesIO(fetch_patch_from_url(value, timeout=timeout)), source_stem(value)
    p = Path(value)
    if not p.is_file():
        raise FileNotFoundError(f"{value} is not a file")
    return p.open("rb"), source_stem(value)


def stdin_handle():
    """Binary standard input (falls back to the text stream if unavailable)."""
    return getattr(sys.stdin, "buffer", sys.stdin)

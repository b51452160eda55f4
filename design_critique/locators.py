"""
Transport Locators

Helpers for the references an image can arrive as: data URLs, transient
blob: references, file paths or file:// URLs, and remote http(s) URLs.
"""

import base64
import binascii
import logging
from pathlib import Path
from typing import Optional
from urllib.parse import unquote, urlparse

import requests

from .errors import DecodeError, PayloadFetchError, UnsupportedFormat

logger = logging.getLogger(__name__)

DATA_PREFIX = "data:"
BLOB_PREFIX = "blob:"


def locator_kind(locator: str) -> str:
    """Classify a locator as data, blob, remote or file."""
    if locator.startswith(DATA_PREFIX):
        return "data"
    if locator.startswith(BLOB_PREFIX):
        return "blob"
    if locator.startswith(("http://", "https://")):
        return "remote"
    return "file"


def looks_like_svg(data: bytes) -> bool:
    head = data[:512].lstrip().lower()
    return head.startswith(b"<svg") or (head.startswith(b"<?xml") and b"<svg" in data[:2048].lower())


def reject_svg_placeholder(locator: str) -> None:
    """
    Refuse SVG placeholders, which are never fed to the raster pipeline.

    Raises:
        UnsupportedFormat: If the locator is an SVG data URL or inline SVG
    """
    if locator.startswith("data:image/svg") or "<svg" in locator:
        logger.info("Detected SVG placeholder instead of a raster image")
        raise UnsupportedFormat("image/svg+xml")


def to_data_url(data: bytes, mime: str) -> str:
    return f"{DATA_PREFIX}{mime};base64,{base64.b64encode(data).decode('ascii')}"


def data_url_mime(data_url: str) -> Optional[str]:
    """MIME type declared in a data URL header, or None."""
    header = data_url[len(DATA_PREFIX):].split(",", 1)[0]
    mime = header.split(";", 1)[0].strip().lower()
    return mime or None


def data_url_base64(data_url: str) -> str:
    parts = data_url.split(",", 1)
    return parts[1] if len(parts) == 2 else ""


def parse_data_url(data_url: str) -> tuple[str, bytes]:
    """
    Decode a base64 data URL.

    Returns:
        (mime, decoded bytes)

    Raises:
        DecodeError: If the URL is not base64 encoded or the payload is corrupt
    """
    header = data_url.split(",", 1)[0]
    if not data_url.startswith(DATA_PREFIX) or not header.endswith(";base64"):
        raise DecodeError("Image data URL must be base64 encoded")
    try:
        data = base64.b64decode(data_url_base64(data_url), validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"Invalid base64 encoding in data URL: {e}") from e
    return data_url_mime(data_url) or "application/octet-stream", data


def _file_path(locator: str) -> Path:
    if locator.startswith("file://"):
        return Path(unquote(urlparse(locator).path))
    return Path(locator)


def fetch_bytes(
    locator: str,
    transient_store=None,
    timeout: Optional[float] = None
) -> tuple[bytes, Optional[str]]:
    """
    Resolve any transport locator to its bytes.

    Args:
        locator: data:, blob:, http(s)://, file:// URL or plain path
        transient_store: Store that issued blob: locators (required for them)
        timeout: Seconds to wait for remote fetches

    Returns:
        (data, mime) where mime is the declared type if one is known

    Raises:
        PayloadFetchError: If the locator cannot be resolved
        DecodeError: If a data URL is malformed
    """
    kind = locator_kind(locator)

    if kind == "data":
        mime, data = parse_data_url(locator)
        return data, mime

    if kind == "blob":
        if transient_store is None:
            raise PayloadFetchError(f"No transient store to resolve {locator}")
        return transient_store.resolve(locator)

    if kind == "remote":
        try:
            response = requests.get(locator, timeout=timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise PayloadFetchError(f"Failed to fetch {locator}: {e}") from e
        content_type = response.headers.get("Content-Type")
        mime = content_type.split(";", 1)[0].strip().lower() if content_type else None
        logger.debug("Fetched %d bytes (%s) from %s", len(response.content), mime, locator)
        return response.content, mime

    path = _file_path(locator)
    try:
        return path.read_bytes(), None
    except OSError as e:
        raise PayloadFetchError(f"Failed to read {path}: {e}") from e

"""
Size/Format Validator

Post-hoc checks that a payload is within the byte ceiling and in a format
the vision APIs accept. Used right after compression and again at the
boundary, immediately before a payload is handed to a provider.
"""

import logging
from typing import Optional

from .errors import PayloadTooLarge, UnsupportedFormat
from .locators import data_url_base64, data_url_mime, fetch_bytes, locator_kind
from .models import ACCEPTED_MIME_TYPES, JPEG, MAX_PAYLOAD_BYTES, PNG, EncodedPayload

logger = logging.getLogger(__name__)

_SIGNATURES = (
    (b"\xff\xd8\xff", JPEG),
    (b"\x89PNG\r\n\x1a\n", PNG),
)


def sniff_mime(data: bytes) -> Optional[str]:
    """Identify JPEG or PNG bytes from their magic number."""
    for signature, mime in _SIGNATURES:
        if data.startswith(signature):
            return mime
    return None


def estimate_data_url_size(data_url: str) -> int:
    """Decoded byte size of a base64 data URL, estimated as length * 0.75."""
    return int(len(data_url_base64(data_url)) * 0.75)


def _check(size: int, mime: Optional[str], max_size_bytes: int, accepted: tuple) -> None:
    if mime not in accepted:
        raise UnsupportedFormat(mime, accepted)
    if size > max_size_bytes:
        raise PayloadTooLarge(size, max_size_bytes)


def validate_bytes(
    data: bytes,
    declared_mime: Optional[str] = None,
    max_size_bytes: int = MAX_PAYLOAD_BYTES,
    accepted: tuple = ACCEPTED_MIME_TYPES
) -> str:
    """
    Validate an encoded buffer.

    The format is taken from the bytes themselves. Bytes without a known
    signature are rejected whatever their declared type, and a declared
    MIME type that disagrees with the signature is rejected too.

    Returns:
        The verified MIME type

    Raises:
        UnsupportedFormat: If the bytes are not an accepted format
        PayloadTooLarge: If the buffer exceeds max_size_bytes
    """
    mime = sniff_mime(data)
    if mime is None:
        raise UnsupportedFormat(declared_mime, accepted)
    if declared_mime is not None and declared_mime != mime:
        raise UnsupportedFormat(f"{declared_mime} (content is {mime})", accepted)
    _check(len(data), mime, max_size_bytes, accepted)
    return mime


def validate_payload(
    payload: EncodedPayload,
    max_size_bytes: int = MAX_PAYLOAD_BYTES,
    accepted: tuple = ACCEPTED_MIME_TYPES
) -> EncodedPayload:
    """
    Validate a payload produced by the compressor.

    Raises:
        UnsupportedFormat: If the MIME type is not accepted or does not match
                           the encoded bytes
        PayloadTooLarge: If the payload exceeds max_size_bytes
    """
    if payload.mime not in accepted:
        raise UnsupportedFormat(payload.mime, accepted)
    validate_bytes(payload.data, payload.mime, max_size_bytes, accepted)
    return payload


def validate_data_url(
    data_url: str,
    max_size_bytes: int = MAX_PAYLOAD_BYTES,
    accepted: tuple = ACCEPTED_MIME_TYPES
) -> int:
    """
    Validate a data URL without decoding or fetching it.

    Returns:
        Estimated decoded size in bytes

    Raises:
        UnsupportedFormat: If the header's MIME type is not accepted
        PayloadTooLarge: If the estimated size exceeds max_size_bytes
    """
    size = estimate_data_url_size(data_url)
    logger.debug("Estimated data URL size: %.2fMB", size / (1024 * 1024))
    _check(size, data_url_mime(data_url), max_size_bytes, accepted)
    return size


def verify_locator(
    locator: str,
    max_size_bytes: int = MAX_PAYLOAD_BYTES,
    timeout: Optional[float] = None,
    transient_store=None,
    accepted: tuple = ACCEPTED_MIME_TYPES
) -> int:
    """
    Final boundary check on a transport locator.

    Data URLs are checked by estimation; every other locator is fetched
    again and re-measured, catching payloads that changed after they were
    produced.

    Args:
        locator: Locator about to be handed to the vision API
        max_size_bytes: Byte ceiling of the consumer
        timeout: Seconds to wait for remote fetches
        transient_store: Store that issued blob: locators
        accepted: MIME types the consumer accepts

    Returns:
        Measured (or estimated) size in bytes

    Raises:
        PayloadTooLarge, UnsupportedFormat, PayloadFetchError
    """
    if locator_kind(locator) == "data":
        return validate_data_url(locator, max_size_bytes, accepted)

    data, declared_mime = fetch_bytes(locator, transient_store=transient_store, timeout=timeout)
    # a transport Content-Type is only a hint; the signature decides
    mime = sniff_mime(data)
    if mime is None:
        raise UnsupportedFormat(declared_mime, accepted)
    _check(len(data), mime, max_size_bytes, accepted)
    logger.debug("Verified %s: %d bytes %s", locator, len(data), mime)
    return len(data)


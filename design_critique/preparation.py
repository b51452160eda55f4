"""
Image Preparation

Caller-facing flow that turns any image reference into a payload the
vision API will accept:

1. Reject SVG placeholders and oversized inputs
2. Resolve the reference to bytes and decode it
3. Compress it under the size ceiling and validate the result
4. Optionally upload it and re-check the uploaded copy

Transient locators are released on every exit path.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from .compressor import AttemptObserver, Compressor
from .errors import PayloadTooLarge
from .locators import fetch_bytes, locator_kind, reject_svg_placeholder
from .models import (
    MAX_PAYLOAD_BYTES,
    MIB,
    CompressionSettings,
    DEFAULT_SETTINGS,
    PreparedImage,
)
from .source import SourceImage
from .storage import ObjectStore, TransientObjectStore
from .validation import validate_payload, verify_locator

logger = logging.getLogger(__name__)

ImageReference = Union[bytes, Path, str]

MAX_INPUT_BYTES = 15 * MIB


def read_reference(
    reference: ImageReference,
    transient_store: Optional[TransientObjectStore] = None,
    timeout: Optional[float] = None
) -> tuple[bytes, str]:
    """
    Resolve an image reference to its bytes.

    Returns:
        (data, origin) where origin describes the reference for logging
    """
    if isinstance(reference, bytes):
        return reference, "memory"
    if isinstance(reference, Path):
        return fetch_bytes(str(reference))[0], reference.name

    reject_svg_placeholder(reference)
    data, _ = fetch_bytes(reference, transient_store=transient_store, timeout=timeout)
    kind = locator_kind(reference)
    return data, reference if kind in ("remote", "file") else f"{kind} URL"


def prepare_image(
    reference: ImageReference,
    settings: CompressionSettings = DEFAULT_SETTINGS,
    store: Optional[ObjectStore] = None,
    transient_store: Optional[TransientObjectStore] = None,
    timeout: Optional[float] = None,
    max_input_bytes: int = MAX_INPUT_BYTES,
    max_payload_bytes: int = MAX_PAYLOAD_BYTES,
    release_reference: bool = False,
    on_attempt: Optional[AttemptObserver] = None
) -> PreparedImage:
    """
    Prepare an image for a vision API.

    Args:
        reference: Raw bytes, a Path, or a data:, blob:, file:// or http(s) locator
        settings: Compression budget (already merged with defaults)
        store: If given, the payload is uploaded and the returned
               PreparedImage carries the locator
        transient_store: Store that issued blob: references
        timeout: Seconds to wait for remote fetches
        max_input_bytes: Largest source accepted before decoding
        max_payload_bytes: Ceiling of the consumer, checked on the uploaded copy
        release_reference: Revoke a blob: reference once it has been read,
                           whether or not preparation succeeds
        on_attempt: Observer for each compression attempt

    Returns:
        PreparedImage with a validated payload

    Raises:
        UnsupportedFormat, DecodeError, PayloadFetchError, PayloadTooLarge,
        CompressionExhausted, RasterError

    Example:
        prepared = prepare_image(Path("design.png"), ANTHROPIC_PROFILE)
        print(prepared.payload.size)
    """
    try:
        data, origin = read_reference(reference, transient_store, timeout)
    finally:
        if release_reference and transient_store is not None and isinstance(reference, str):
            transient_store.release(reference)

    logger.info("Original image from %s: %dKB", origin, round(len(data) / 1024))
    if len(data) > max_input_bytes:
        raise PayloadTooLarge(len(data), max_input_bytes)

    with SourceImage.from_bytes(data, origin=origin) as source:
        payload = Compressor(settings, on_attempt=on_attempt).compress(source)

    validate_payload(payload, max_size_bytes=settings.max_size_bytes)

    if store is None:
        return PreparedImage(payload=payload)

    locator = store.upload(payload.data, payload.mime)
    try:
        verify_locator(
            locator,
            max_size_bytes=max_payload_bytes,
            timeout=timeout,
            transient_store=store if isinstance(store, TransientObjectStore) else transient_store
        )
    except Exception:
        store.release(locator)
        raise
    return PreparedImage(payload=payload, locator=locator)

"""
Compressor

The convergence loop that reduces a SourceImage to a payload under the
size ceiling. Each run moves through Init -> Attempting -> Success or
Exhausted; an exhausted run gets one emergency pass before it fails.
"""

import logging
from typing import Callable, Optional

from .errors import CompressionExhausted, EncodeError
from .models import JPEG, PNG, CompressionAttempt, CompressionSettings, EncodedPayload, DEFAULT_SETTINGS
from .planner import emergency_dimensions, emergency_quality, next_attempt, plan_dimensions
from .rasterizer import rasterize
from .source import SourceImage
from .validation import validate_payload

logger = logging.getLogger(__name__)

AttemptObserver = Callable[[CompressionAttempt], None]


class Compressor:
    """
    Reduces images to payloads that satisfy a CompressionSettings budget.

    A Compressor holds no per-image state, so one instance can serve any
    number of independent calls.

    Example:
        compressor = Compressor(merge_settings(max_size_bytes=2 * MIB))
        with SourceImage.from_bytes(data) as source:
            payload = compressor.compress(source)
    """

    def __init__(
        self,
        settings: CompressionSettings = DEFAULT_SETTINGS,
        on_attempt: Optional[AttemptObserver] = None
    ):
        """
        Args:
            settings: Merged compression budget
            on_attempt: Called with every CompressionAttempt, e.g. for
                        progress reporting
        """
        self.settings = settings
        self.on_attempt = on_attempt

    def output_format(self, source: SourceImage) -> tuple[bool, str]:
        """
        Decide flattening and output MIME for a source.

        Returns:
            (flatten, mime)
        """
        settings = self.settings
        flatten = settings.remove_transparency
        if not flatten and settings.force_opaque_format:
            flatten = source.has_alpha
            if flatten:
                logger.info("Transparency detected, converting to JPEG with white background")
        mime = JPEG if settings.force_opaque_format or flatten else PNG
        return flatten, mime

    def compress(self, source: SourceImage) -> EncodedPayload:
        """
        Compress a source until it fits settings.max_size_bytes.

        Args:
            source: Decoded image, owned by the caller

        Returns:
            Validated EncodedPayload no larger than settings.max_size_bytes

        Raises:
            CompressionExhausted: If the budget is unreachable after all
                                  attempts and the emergency pass
            RasterError: If no surface can be allocated
        """
        settings = self.settings
        flatten, mime = self.output_format(source)
        width, height = plan_dimensions(source.width, source.height, settings.max_width, settings.max_height)
        quality = settings.quality

        logger.debug(
            "Compressing %r: %s, flatten=%s, budget %d bytes",
            source, mime, flatten, settings.max_size_bytes
        )

        attempt = 0
        size: Optional[int] = None
        last = (width, height, quality)

        while attempt < settings.max_attempts:
            attempt += 1
            last = (width, height, quality)
            data = self._attempt(source, attempt, width, height, quality, flatten, mime)
            if data is None:
                continue

            previous, size = size, len(data)
            if size <= settings.max_size_bytes:
                return self._success(data, mime, width, height, quality, attempt)

            if previous is not None and size >= previous:
                logger.debug("Attempt %d did not shrink the payload, stopping early", attempt)
                break

            width, height, quality = next_attempt(width, height, quality, size, settings.max_size_bytes)

        # Exhausted: one emergency pass at 70% of the last attempted size
        width, height = emergency_dimensions(last[0], last[1])
        quality = emergency_quality(last[2])
        attempt += 1
        logger.warning(
            "Image still over %dKB after %d attempts, emergency pass at %dx%d",
            round(settings.max_size_bytes / 1024), attempt - 1, width, height
        )
        data = self._attempt(source, attempt, width, height, quality, flatten, mime, emergency=True)
        if data is not None:
            size = len(data)
            if size <= settings.max_size_bytes:
                return self._success(data, mime, width, height, quality, attempt)

        raise CompressionExhausted(size, settings.max_size_bytes, attempt)

    def _attempt(
        self,
        source: SourceImage,
        number: int,
        width: int,
        height: int,
        quality: float,
        flatten: bool,
        mime: str,
        emergency: bool = False
    ) -> Optional[bytes]:
        logger.debug("Compression attempt %d: %dx%d quality %.2f", number, width, height, quality)
        try:
            data = rasterize(source, width, height, flatten=flatten, mime=mime, quality=quality)
        except EncodeError as e:
            logger.warning("Compression attempt %d failed: %s", number, e)
            data = None

        if self.on_attempt is not None:
            self.on_attempt(CompressionAttempt(
                number=number,
                width=width,
                height=height,
                quality=quality,
                size=len(data) if data is not None else None,
                emergency=emergency
            ))
        return data

    def _success(self, data: bytes, mime: str, width: int, height: int, quality: float, attempts: int) -> EncodedPayload:
        payload = EncodedPayload(
            data=data,
            mime=mime,
            width=width,
            height=height,
            quality=quality,
            attempts=attempts
        )
        validate_payload(payload, max_size_bytes=self.settings.max_size_bytes)
        logger.info(
            "Final compressed size: %dKB (%s %dx%d) after %d attempts",
            round(payload.size / 1024), mime, width, height, attempts
        )
        return payload


def compress_image(
    data: bytes,
    settings: CompressionSettings = DEFAULT_SETTINGS,
    origin: Optional[str] = None,
    on_attempt: Optional[AttemptObserver] = None
) -> EncodedPayload:
    """
    Decode, compress and release an encoded image in one call.

    Raises:
        DecodeError, UnsupportedFormat, CompressionExhausted, RasterError
    """
    with SourceImage.from_bytes(data, origin=origin) as source:
        return Compressor(settings, on_attempt=on_attempt).compress(source)

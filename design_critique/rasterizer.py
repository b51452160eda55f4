"""
Canvas Rasterizer

Draws a source image onto an off-screen surface of an exact size and
encodes it. When flattening, the surface is filled with white before the
source is drawn, so translucent pixels composite onto white.
"""

import io
import logging

from PIL import Image

from .errors import DecodeError, EncodeError, RasterError
from .models import JPEG, PNG

logger = logging.getLogger(__name__)

WHITE = (255, 255, 255, 255)

_PIL_FORMATS = {JPEG: "JPEG", PNG: "PNG"}


def encoder_quality(quality: float) -> int:
    """Map a 0-1 quality onto the JPEG encoder's 1-100 scale."""
    return min(100, max(1, round(quality * 100)))


def _allocate(mode: str, width: int, height: int, color=0) -> Image.Image:
    if width < 1 or height < 1:
        raise RasterError(f"Cannot allocate a {width}x{height} surface")
    try:
        return Image.new(mode, (width, height), color)
    except (MemoryError, ValueError) as e:
        raise RasterError(f"Failed to allocate {width}x{height} surface: {e}") from e


def _has_alpha_band(image: Image.Image) -> bool:
    return "A" in image.getbands() or "transparency" in image.info


def _draw(source, width: int, height: int, flatten: bool) -> Image.Image:
    image = source.image
    needs_alpha = flatten or _has_alpha_band(image)
    try:
        frame = image.convert("RGBA" if needs_alpha else "RGB")
    except ValueError as e:
        raise DecodeError(f"Cannot convert {image.mode} image for drawing: {e}") from e
    try:
        scaled = frame.resize((width, height), Image.Resampling.LANCZOS)
    except MemoryError as e:
        raise RasterError(f"Failed to draw source at {width}x{height}: {e}") from e
    finally:
        if frame is not image:
            frame.close()

    if not flatten:
        return scaled

    surface = _allocate("RGBA", width, height, WHITE)
    try:
        surface.alpha_composite(scaled)
        return surface.convert("RGB")
    finally:
        surface.close()
        scaled.close()


def rasterize(
    source,
    width: int,
    height: int,
    *,
    flatten: bool,
    mime: str,
    quality: float
) -> bytes:
    """
    Render a SourceImage at width x height and encode it.

    Args:
        source: SourceImage to draw
        width: Surface width in pixels
        height: Surface height in pixels
        flatten: Fill the surface white before drawing, removing alpha
                 (always done for JPEG output of a source with alpha)
        mime: image/jpeg or image/png
        quality: 0-1 lossy quality (ignored for PNG)

    Returns:
        Encoded image bytes

    Raises:
        RasterError: If no surface can be allocated at this size
        EncodeError: If the encoder fails
    """
    if mime not in _PIL_FORMATS:
        raise ValueError(f"Cannot rasterize to {mime}")
    if width < 1 or height < 1:
        raise RasterError(f"Cannot allocate a {width}x{height} surface")

    # JPEG has no alpha, so any alpha band is composited onto white
    flatten = flatten or (mime == JPEG and _has_alpha_band(source.image))

    surface = _draw(source, width, height, flatten)
    try:
        buffer = io.BytesIO()
        options = {"optimize": True}
        if mime == JPEG:
            options["quality"] = encoder_quality(quality)
        try:
            surface.save(buffer, format=_PIL_FORMATS[mime], **options)
        except (OSError, ValueError) as e:
            raise EncodeError(f"Failed to encode {width}x{height} {mime}: {e}") from e
    finally:
        surface.close()

    data = buffer.getvalue()
    logger.debug(
        "Created %s %dx%d: %dKB%s",
        mime, width, height, round(len(data) / 1024),
        " (transparency removed)" if flatten else ""
    )
    return data

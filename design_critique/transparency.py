"""
Transparency Detector

Decides whether a source needs to be flattened onto an opaque background
before it can be sent as a JPEG. Sampling is done on a downscaled copy;
full-resolution scans are not needed to find translucent regions.
"""

import logging

from PIL import Image

logger = logging.getLogger(__name__)

SAMPLE_SIZE = 100
OPAQUE = 255

_ALPHA_MODES = {"RGBA", "LA", "PA", "RGBa", "La"}


def _may_have_alpha(image: Image.Image) -> bool:
    return image.mode in _ALPHA_MODES or "transparency" in image.info


def detect_transparency(source) -> bool:
    """
    Check a SourceImage for transparent or semi-transparent pixels.

    The image is area-averaged down to at most SAMPLE_SIZE x SAMPLE_SIZE,
    read back as RGBA and every alpha byte is scanned, stopping at the
    first value below 255.

    If the pixels cannot be read back the image is assumed to have
    transparency, which selects the opaque-flatten path.

    Args:
        source: SourceImage to inspect

    Returns:
        True if transparency was detected (or could not be ruled out)
    """
    try:
        image = source.image
        if not _may_have_alpha(image):
            logger.debug("No alpha channel in %s image", image.mode)
            return False

        sample_size = (min(SAMPLE_SIZE, image.width), min(SAMPLE_SIZE, image.height))
        rgba = image.convert("RGBA")
        try:
            sample = rgba.resize(sample_size, Image.Resampling.BOX)
        finally:
            if rgba is not image:
                rgba.close()

        with sample:
            pixels = sample.tobytes()
    except (OSError, ValueError, MemoryError) as e:
        logger.warning("Error checking for transparency, assuming it is present: %s", e)
        return True

    # every 4th byte of RGBA data is the alpha channel
    for position, alpha in enumerate(pixels[3::4]):
        if alpha < OPAQUE:
            logger.debug("Transparency detected: alpha %d at sample %d", alpha, position)
            return True

    logger.debug("No transparency detected in image")
    return False

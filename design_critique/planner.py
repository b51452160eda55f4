"""
Dimension Planner

Computes target dimensions for each compression attempt. All results keep
the source aspect ratio (within floor rounding) and are at least 1px.
"""

import logging
import math

logger = logging.getLogger(__name__)

# Pixel count above which the source is pre-shrunk before the first attempt
PRESHRINK_PIXELS = 2_000_000

MAX_STEP_SCALE = 0.8
QUALITY_STEP = 0.15
QUALITY_FLOOR = 0.4
EMERGENCY_SCALE = 0.7
EMERGENCY_QUALITY = 0.3


def _scaled(width: int, height: int, scale: float) -> tuple[int, int]:
    return max(1, math.floor(width * scale)), max(1, math.floor(height * scale))


def plan_dimensions(width: int, height: int, max_width: int, max_height: int) -> tuple[int, int]:
    """
    Initial target dimensions for a source image.

    Very large sources (more than PRESHRINK_PIXELS) are first scaled down to
    roughly that pixel count; the result is then clamped to max_width and
    max_height with a single uniform scale so the aspect ratio holds.

    Args:
        width: Natural width of the source
        height: Natural height of the source
        max_width: Largest allowed width
        max_height: Largest allowed height

    Returns:
        (target_width, target_height)

    Example:
        plan_dimensions(1600, 1200, 800, 1000)  # -> (800, 600)
    """
    if width < 1 or height < 1:
        raise ValueError(f"Invalid source dimensions {width}x{height}")

    target_width, target_height = width, height

    pixels = width * height
    if pixels > PRESHRINK_PIXELS:
        scale = math.sqrt(PRESHRINK_PIXELS / pixels)
        target_width, target_height = _scaled(width, height, scale)
        logger.debug("Initial aggressive resize to %dx%d", target_width, target_height)

    # integer cross-multiplication keeps the bounding side exact
    if target_width * max_height >= target_height * max_width:
        if target_width > max_width:
            target_height = max(1, target_height * max_width // target_width)
            target_width = max_width
    elif target_height > max_height:
        target_width = max(1, target_width * max_height // target_height)
        target_height = max_height

    return target_width, target_height


def next_attempt(
    width: int,
    height: int,
    quality: float,
    size: int,
    max_size_bytes: int
) -> tuple[int, int, float]:
    """
    Stricter parameters for the attempt after an oversized encode.

    Dimensions shrink by sqrt(max_size_bytes / size), since encoded size grows
    roughly with pixel area, and by at least 20% per step. Quality drops by
    QUALITY_STEP down to QUALITY_FLOOR.

    Returns:
        (new_width, new_height, new_quality)
    """
    scale = min(MAX_STEP_SCALE, math.sqrt(max_size_bytes / size))
    new_width, new_height = _scaled(width, height, scale)
    # never raise quality for a caller who started below the floor
    new_quality = min(quality, max(QUALITY_FLOOR, round(quality - QUALITY_STEP, 4)))
    return new_width, new_height, new_quality


def emergency_dimensions(width: int, height: int) -> tuple[int, int]:
    """Flat 30% shrink used for the final emergency pass."""
    return _scaled(width, height, EMERGENCY_SCALE)


def emergency_quality(quality: float) -> float:
    """Quality for the emergency pass: EMERGENCY_QUALITY, never above the last attempt."""
    return min(quality, EMERGENCY_QUALITY)

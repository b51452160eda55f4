"""
Design Critique - Vision AI Design Feedback

Prepares user-supplied design images for vision-language models and
collects structured UI/UX critique.

The core is an adaptive compression pipeline that reduces any raster
image to an opaque JPEG or PNG under the providers' 5MB ceiling:
- Dimension planning with aggressive pre-shrink for huge images
- Transparency detection and white flattening
- Iterative size convergence with an emergency pass
- Size/format validation before every hand-off

Supports multiple vision providers:
- Anthropic Claude
- OpenAI GPT-4o
"""

__version__ = "0.1.0"

from .compressor import Compressor, compress_image
from .errors import (
    CompressionExhausted,
    DecodeError,
    ImagePipelineError,
    PayloadFetchError,
    PayloadTooLarge,
    RasterError,
    UnsupportedFormat,
)
from .models import CompressionSettings, CritiqueResult, EncodedPayload, PreparedImage, merge_settings
from .preparation import prepare_image
from .source import SourceImage

__all__ = [
    "Compressor",
    "compress_image",
    "prepare_image",
    "SourceImage",
    "CompressionSettings",
    "merge_settings",
    "EncodedPayload",
    "PreparedImage",
    "CritiqueResult",
    "ImagePipelineError",
    "DecodeError",
    "RasterError",
    "CompressionExhausted",
    "PayloadTooLarge",
    "UnsupportedFormat",
    "PayloadFetchError",
]

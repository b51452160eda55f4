"""
Source Images

Decodes caller-supplied bytes into a Pillow image owned by a single
pipeline invocation. Always release a SourceImage (close() or a with
block) once the payload has been produced.
"""

import io
import logging
from functools import cached_property
from typing import Optional

from PIL import Image, ImageOps, UnidentifiedImageError

from .errors import DecodeError, UnsupportedFormat
from .locators import looks_like_svg

logger = logging.getLogger(__name__)

_DECODE_ERRORS = (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError, ValueError)


class SourceImage:
    """
    Decoded pixel data plus the metadata the pipeline needs.

    Example:
        with SourceImage.from_bytes(data, origin="upload.png") as source:
            payload = Compressor(settings).compress(source)
    """

    def __init__(self, image: Image.Image, origin: Optional[str] = None):
        """
        Wrap an already decoded image.

        Args:
            image: Decoded Pillow image; ownership passes to this object
            origin: Where the bytes came from (file name, locator kind, ...)
        """
        self._image = image
        self.origin = origin or "memory"

    @classmethod
    def from_bytes(cls, data: bytes, origin: Optional[str] = None) -> "SourceImage":
        """
        Decode encoded image bytes.

        EXIF orientation is applied so width and height match how the image
        is displayed.

        Raises:
            UnsupportedFormat: If the bytes are an SVG document
            DecodeError: If the bytes are empty, corrupt or not a raster image
        """
        if not data:
            raise DecodeError(f"Empty image data from {origin or 'memory'}")
        if looks_like_svg(data):
            raise UnsupportedFormat("image/svg+xml")

        try:
            image = Image.open(io.BytesIO(data))
        except _DECODE_ERRORS as e:
            raise DecodeError(f"Cannot decode image from {origin or 'memory'}: {e}") from e

        try:
            image.load()
            oriented = ImageOps.exif_transpose(image)
        except _DECODE_ERRORS as e:
            image.close()
            raise DecodeError(f"Cannot decode image from {origin or 'memory'}: {e}") from e

        if oriented is not image:
            image.close()

        logger.debug(
            "Decoded %s image %dx%d (mode %s) from %s",
            oriented.format or image.format, oriented.width, oriented.height,
            oriented.mode, origin or "memory"
        )
        return cls(oriented, origin=origin)

    @property
    def image(self) -> Image.Image:
        if self._image is None:
            raise ValueError("SourceImage has been closed")
        return self._image

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height

    @cached_property
    def has_alpha(self) -> bool:
        """Whether any sampled pixel is not fully opaque (computed once)."""
        from .transparency import detect_transparency

        return detect_transparency(self)

    @property
    def closed(self) -> bool:
        return self._image is None

    def close(self) -> None:
        if self._image is not None:
            self._image.close()
            self._image = None

    def __enter__(self) -> "SourceImage":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def __repr__(self) -> str:
        if self.closed:
            return f"<SourceImage {self.origin} closed>"
        return f"<SourceImage {self.origin} {self.width}x{self.height} {self.image.mode}>"

"""
Pipeline Errors

Typed failures raised by the image pipeline and the vision providers.
Every error is a RuntimeError so callers that only know the generic
contract still catch them.
"""

from typing import Optional


class ImagePipelineError(RuntimeError):
    """Base class for every failure surfaced by design_critique."""


class DecodeError(ImagePipelineError):
    """Source bytes cannot be decoded into a raster image."""


class RasterError(ImagePipelineError):
    """No drawable surface could be acquired at the requested size."""


class EncodeError(ImagePipelineError):
    """
    A single encode call failed.

    Raised by the rasterizer and retried inside the compressor's attempt
    budget; it never reaches callers of compress().
    """


class CompressionExhausted(ImagePipelineError):
    """
    The size ceiling could not be reached within the attempt budget.

    Attributes:
        final_size: Size in bytes of the last encoded attempt (None if every
                    encode failed)
        limit: The size ceiling that was requested
        attempts: Number of encode attempts made, emergency pass included
    """

    def __init__(self, final_size: Optional[int], limit: int, attempts: int):
        self.final_size = final_size
        self.limit = limit
        self.attempts = attempts
        if final_size is None:
            detail = "no attempt could be encoded"
        else:
            detail = f"final size {_mb(final_size)} exceeds limit {_mb(limit)}"
        super().__init__(
            f"Failed to compress image after {attempts} attempts: {detail}"
        )


class PayloadTooLarge(ImagePipelineError):
    """
    A produced or fetched payload is over the byte ceiling.

    Attributes:
        size: Measured (or estimated) payload size in bytes
        limit: The byte ceiling it was checked against
    """

    def __init__(self, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__(
            f"Image is too large ({_mb(size)}). Maximum size allowed is {_mb(limit)}."
        )


class UnsupportedFormat(ImagePipelineError):
    """Payload MIME type is not in the accepted set."""

    def __init__(self, mime: Optional[str], accepted: tuple = ()):
        self.mime = mime
        self.accepted = accepted
        message = f"Unsupported image format: {mime or 'unknown'}"
        if accepted:
            message += f" (accepted: {', '.join(accepted)})"
        super().__init__(message)


class PayloadFetchError(ImagePipelineError):
    """A transport locator could not be resolved to bytes."""


class CritiqueError(ImagePipelineError):
    """The vision provider call failed or returned an unusable response."""


def _mb(size: int) -> str:
    return f"{size / (1024 * 1024):.2f}MB"

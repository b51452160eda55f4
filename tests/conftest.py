"""Shared fixtures: in-memory test images."""

import io
import random

import pytest
from PIL import Image


def noise_image(width: int, height: int, mode: str = "RGB", seed: int = 0) -> Image.Image:
    """Random pixels; compresses about as badly as a busy photo."""
    rng = random.Random(seed)
    bands = len(mode)
    return Image.frombytes(mode, (width, height), rng.randbytes(width * height * bands))


def smooth_image(width: int, height: int, seed: int = 0) -> Image.Image:
    """Low-frequency noise scaled up; behaves like a photo with real detail."""
    with noise_image(max(1, width // 10), max(1, height // 10), seed=seed) as small:
        return small.resize((width, height), Image.Resampling.BILINEAR)


def encode(image: Image.Image, fmt: str = "PNG", **options) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format=fmt, **options)
    return buffer.getvalue()


def decode(data: bytes) -> Image.Image:
    image = Image.open(io.BytesIO(data))
    image.load()
    return image


@pytest.fixture
def opaque_png() -> bytes:
    return encode(Image.new("RGB", (320, 240), (30, 120, 200)))


@pytest.fixture
def translucent_png() -> bytes:
    """500x500 RGBA with a single semi-transparent pixel."""
    image = Image.new("RGBA", (500, 500), (200, 40, 40, 255))
    image.putpixel((250, 250), (200, 40, 40, 128))
    return encode(image)

from PIL import Image

from design_critique.source import SourceImage
from design_critique.transparency import detect_transparency

from conftest import encode


def _source(image: Image.Image, fmt: str = "PNG", **options) -> SourceImage:
    return SourceImage.from_bytes(encode(image, fmt, **options))


def test_rgb_image_is_opaque():
    with _source(Image.new("RGB", (64, 64), "navy")) as source:
        assert detect_transparency(source) is False


def test_fully_opaque_rgba():
    with _source(Image.new("RGBA", (300, 200), (10, 20, 30, 255))) as source:
        assert detect_transparency(source) is False


def test_single_translucent_pixel_survives_sampling(translucent_png):
    with SourceImage.from_bytes(translucent_png) as source:
        assert detect_transparency(source) is True


def test_fully_transparent_rgba():
    with _source(Image.new("RGBA", (40, 40), (0, 0, 0, 0))) as source:
        assert detect_transparency(source) is True


def test_palette_transparency():
    image = Image.new("P", (20, 20), 0)
    image.putpalette([255, 255, 255] + [0, 0, 0] * 255)
    with _source(image, transparency=0) as source:
        assert source.image.mode == "P"
        assert detect_transparency(source) is True


def test_has_alpha_is_cached(monkeypatch, translucent_png):
    calls = []

    def fake_detect(source):
        calls.append(source)
        return True

    monkeypatch.setattr("design_critique.transparency.detect_transparency", fake_detect)
    with SourceImage.from_bytes(translucent_png) as source:
        assert source.has_alpha is True
        assert source.has_alpha is True
    assert len(calls) == 1


def test_unreadable_pixels_assume_transparency():
    class Unreadable:
        @property
        def image(self):
            raise OSError("surface lost")

    assert detect_transparency(Unreadable()) is True

import pytest
from PIL import Image

from design_critique.errors import EncodeError, RasterError
from design_critique.models import JPEG, PNG
from design_critique.rasterizer import encoder_quality, rasterize
from design_critique.source import SourceImage

from conftest import decode, encode, noise_image


@pytest.fixture
def half_transparent():
    image = Image.new("RGBA", (60, 40), (0, 0, 0, 0))
    image.paste((255, 0, 0, 255), (0, 0, 30, 40))
    with SourceImage.from_bytes(encode(image)) as source:
        yield source


def test_encoder_quality_scale():
    assert encoder_quality(0.65) == 65
    assert encoder_quality(1.0) == 100
    assert encoder_quality(0.001) == 1


def test_exact_dimensions():
    with SourceImage.from_bytes(encode(noise_image(200, 100))) as source:
        data = rasterize(source, 73, 41, flatten=False, mime=JPEG, quality=0.7)
    with decode(data) as result:
        assert result.format == "JPEG"
        assert result.size == (73, 41)


def test_flatten_composites_onto_white(half_transparent):
    data = rasterize(half_transparent, 60, 40, flatten=True, mime=JPEG, quality=0.95)
    with decode(data) as result:
        assert result.mode == "RGB"
        r, g, b = result.getpixel((50, 20))
        assert min(r, g, b) > 240
        r, g, b = result.getpixel((10, 20))
        assert r > 200 and g < 60 and b < 60


def test_png_keeps_alpha(half_transparent):
    data = rasterize(half_transparent, 30, 20, flatten=False, mime=PNG, quality=0.5)
    with decode(data) as result:
        assert result.format == "PNG"
        assert result.mode == "RGBA"
        assert result.getpixel((25, 10))[3] == 0


def test_flattened_png_is_opaque(half_transparent):
    data = rasterize(half_transparent, 60, 40, flatten=True, mime=PNG, quality=1.0)
    with decode(data) as result:
        assert result.mode == "RGB"


@pytest.mark.parametrize("width,height", [(0, 10), (10, 0)])
def test_empty_surface_is_a_raster_error(half_transparent, width, height):
    with pytest.raises(RasterError):
        rasterize(half_transparent, width, height, flatten=False, mime=PNG, quality=1.0)


def test_unknown_mime(half_transparent):
    with pytest.raises(ValueError):
        rasterize(half_transparent, 10, 10, flatten=False, mime="image/gif", quality=1.0)


def test_encoder_failure_is_an_encode_error(monkeypatch, half_transparent):
    def broken_save(self, fp, format=None, **params):
        raise OSError("encoder exploded")

    monkeypatch.setattr(Image.Image, "save", broken_save)
    with pytest.raises(EncodeError):
        rasterize(half_transparent, 10, 10, flatten=True, mime=JPEG, quality=0.5)


def test_jpeg_output_composites_alpha_onto_white(half_transparent):
    # transparent pixels carry black RGB underneath
    data = rasterize(half_transparent, 60, 40, flatten=False, mime=JPEG, quality=0.95)
    with decode(data) as result:
        assert result.mode == "RGB"
        r, g, b = result.getpixel((50, 20))
        assert min(r, g, b) > 240

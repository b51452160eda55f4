import pytest
from PIL import Image

from design_critique.errors import DecodeError, UnsupportedFormat
from design_critique.source import SourceImage

from conftest import encode, noise_image


@pytest.fixture
def track_opened(monkeypatch):
    """Record every image opened while decoding and whether it was closed."""
    real_open = Image.open
    opened = []

    def tracking_open(fp, *args, **kwargs):
        image = real_open(fp, *args, **kwargs)
        real_close = image.close
        record = {"closed": False}

        def close():
            record["closed"] = True
            real_close()

        image.close = close
        opened.append(record)
        return image

    monkeypatch.setattr(Image, "open", tracking_open)
    return opened


def test_decode_and_close(opaque_png):
    source = SourceImage.from_bytes(opaque_png, origin="upload.png")
    assert (source.width, source.height) == (320, 240)
    assert "upload.png" in repr(source)

    source.close()
    assert source.closed
    with pytest.raises(ValueError):
        source.image


def test_truncated_image_is_closed(track_opened):
    data = encode(noise_image(64, 64))
    with pytest.raises(DecodeError):
        SourceImage.from_bytes(data[: len(data) // 2])

    assert len(track_opened) == 1
    assert track_opened[0]["closed"] is True


def test_garbage_bytes():
    with pytest.raises(DecodeError):
        SourceImage.from_bytes(b"definitely not an image")


def test_svg_document():
    with pytest.raises(UnsupportedFormat):
        SourceImage.from_bytes(b"<svg xmlns='http://www.w3.org/2000/svg'/>")


def test_exif_orientation_applied():
    image = Image.new("RGB", (40, 20), "teal")
    exif = Image.Exif()
    exif[0x0112] = 6  # rotate 90 degrees clockwise on display
    with SourceImage.from_bytes(encode(image, "JPEG", exif=exif)) as source:
        assert (source.width, source.height) == (20, 40)

import logging
import random

import pytest
from PIL import Image

from design_critique import compressor as compressor_module
from design_critique.compressor import Compressor, compress_image
from design_critique.errors import CompressionExhausted, EncodeError
from design_critique.models import JPEG, MIB, PNG, merge_settings
from design_critique.source import SourceImage

from conftest import decode, encode, noise_image, smooth_image


def _collect(settings, source):
    attempts = []
    payload = Compressor(settings, on_attempt=attempts.append).compress(source)
    return payload, attempts


def test_large_photo_is_preshrunk_and_fits(caplog):
    settings = merge_settings(max_width=800, max_height=1000, max_size_bytes=4 * MIB)
    caplog.set_level(logging.DEBUG, logger="design_critique.planner")

    with SourceImage(smooth_image(4000, 3000), origin="photo") as source:
        payload, attempts = _collect(settings, source)

    assert "Initial aggressive resize" in caplog.text
    assert payload.mime == JPEG
    assert payload.size <= 4 * MIB
    assert payload.width == 800
    assert attempts[0].width == 800
    with decode(payload.data) as result:
        assert result.format == "JPEG"


def test_translucent_source_is_flattened(translucent_png):
    settings = merge_settings(force_opaque_format=True)
    with SourceImage.from_bytes(translucent_png) as source:
        compressor = Compressor(settings)
        assert compressor.output_format(source) == (True, JPEG)
        payload = compressor.compress(source)

    with decode(payload.data) as result:
        assert result.mode == "RGB"
        assert "transparency" not in result.info


def test_unreachable_budget_is_exhausted():
    settings = merge_settings(max_size_bytes=100)
    attempts = []

    with SourceImage(noise_image(1000, 800)) as source:
        with pytest.raises(CompressionExhausted) as excinfo:
            Compressor(settings, on_attempt=attempts.append).compress(source)

    error = excinfo.value
    assert error.limit == 100
    assert error.final_size is not None and error.final_size > 100
    assert 2 <= error.attempts <= settings.max_attempts + 1
    assert attempts[-1].emergency is True
    assert attempts[-1].quality == 0.3
    assert attempts[-2].quality >= 0.4
    assert error.attempts == len(attempts)


def test_payload_under_budget_takes_one_attempt(opaque_png):
    payload = compress_image(opaque_png)
    assert payload.attempts == 1
    assert (payload.width, payload.height) == (320, 240)
    assert payload.quality == 0.65


def test_attempts_get_strictly_smaller():
    settings = merge_settings(max_size_bytes=80_000)
    with SourceImage(noise_image(800, 600, seed=3)) as source:
        payload, attempts = _collect(settings, source)

    assert payload.size <= 80_000
    assert len(attempts) >= 2
    for before, after in zip(attempts, attempts[1:]):
        assert after.width < before.width
        assert after.height < before.height
        assert after.quality <= before.quality
    assert attempts[1].quality == pytest.approx(0.5)


def test_output_never_exceeds_budget():
    rng = random.Random(11)
    settings = merge_settings(max_size_bytes=30_000)
    for seed in range(6):
        width, height = rng.randint(20, 1500), rng.randint(20, 1500)
        with SourceImage(smooth_image(width, height, seed=seed)) as source:
            payload = Compressor(settings).compress(source)
        assert payload.size <= 30_000
        assert payload.width <= settings.max_width
        assert payload.height <= settings.max_height


def test_keep_format_emits_png_for_opaque_source(opaque_png):
    settings = merge_settings(force_opaque_format=False)
    payload = compress_image(opaque_png, settings)
    assert payload.mime == PNG


def test_keep_format_keeps_alpha(translucent_png):
    settings = merge_settings(force_opaque_format=False)
    payload = compress_image(translucent_png, settings)
    assert payload.mime == PNG
    with decode(payload.data) as result:
        assert result.mode == "RGBA"


def test_remove_transparency_without_detection(monkeypatch, opaque_png):
    def fail_detect(source):
        raise AssertionError("detector should not run")

    monkeypatch.setattr("design_critique.transparency.detect_transparency", fail_detect)
    settings = merge_settings(force_opaque_format=False, remove_transparency=True)
    payload = compress_image(opaque_png, settings)
    assert payload.mime == JPEG


def test_failed_encode_is_retried(monkeypatch, opaque_png):
    real_rasterize = compressor_module.rasterize
    calls = []

    def flaky(*args, **kwargs):
        calls.append(args)
        if len(calls) == 1:
            raise EncodeError("transient failure")
        return real_rasterize(*args, **kwargs)

    monkeypatch.setattr(compressor_module, "rasterize", flaky)
    attempts = []
    payload = compress_image(opaque_png, on_attempt=attempts.append)

    assert payload.attempts == 2
    assert attempts[0].size is None
    assert attempts[1].size == payload.size


def test_every_encode_failing(monkeypatch, opaque_png):
    def broken(*args, **kwargs):
        raise EncodeError("no encoder")

    monkeypatch.setattr(compressor_module, "rasterize", broken)
    with pytest.raises(CompressionExhausted) as excinfo:
        compress_image(opaque_png)

    assert excinfo.value.final_size is None
    assert excinfo.value.attempts == 5


def test_compressor_is_reusable(opaque_png):
    compressor = Compressor()
    with SourceImage.from_bytes(opaque_png) as first, SourceImage.from_bytes(opaque_png) as second:
        assert compressor.compress(first).data == compressor.compress(second).data

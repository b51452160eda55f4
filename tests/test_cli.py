import json

import pytest
from click.testing import CliRunner
from PIL import Image

from design_critique.cli import main

from conftest import decode, encode, noise_image


@pytest.fixture
def runner(monkeypatch, tmp_path):
    for name in ("ANTHROPIC_API_KEY", "OPENAI_API_KEY", "VISION_PROVIDER", "UPLOAD_DIR"):
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.chdir(tmp_path)
    return CliRunner()


@pytest.fixture
def design(tmp_path):
    path = tmp_path / "mockup.png"
    path.write_bytes(encode(Image.new("RGBA", (1600, 1200), (20, 90, 160, 255))))
    return path


def test_compress_json(runner, design):
    result = runner.invoke(main, ["compress", str(design), "--output", "json"])

    assert result.exit_code == 0, result.output
    report = json.loads(result.output)
    assert report["mime"] == "image/jpeg"
    assert (report["width"], report["height"]) == (800, 600)
    assert len(report["attempts"]) == 1

    target = design.with_name("mockup_compressed.jpg")
    assert report["output"] == str(target)
    with decode(target.read_bytes()) as image:
        assert image.size == (800, 600)


def test_compress_overrides(runner, design, tmp_path):
    out = tmp_path / "small.png"
    result = runner.invoke(main, [
        "compress", str(design), "-o", str(out),
        "--max-width", "400", "--keep-format", "--output", "json"
    ])

    assert result.exit_code == 0, result.output
    report = json.loads(result.output)
    assert report["mime"] == "image/png"
    assert report["width"] == 400
    assert out.exists()


def test_compress_rich_table(runner, design):
    result = runner.invoke(main, ["compress", str(design)])
    assert result.exit_code == 0, result.output
    assert "800x600" in result.output


def test_compress_failure_exits_nonzero(runner, tmp_path):
    path = tmp_path / "noise.png"
    path.write_bytes(encode(noise_image(400, 400)))
    result = runner.invoke(main, ["compress", str(path), "--max-size", "0.0001"])

    assert result.exit_code == 1
    assert "Failed to compress image" in result.output


def test_check_ok(runner, design):
    result = runner.invoke(main, ["check", str(design)])
    assert result.exit_code == 0, result.output
    assert "OK" in result.output


def test_check_too_large(runner, tmp_path):
    path = tmp_path / "noise.png"
    path.write_bytes(encode(noise_image(200, 200)))
    result = runner.invoke(main, ["check", str(path), "--limit", "0.01"])

    assert result.exit_code == 1
    assert "Image is too large" in result.output


def test_analyze_needs_one_source(runner):
    result = runner.invoke(main, ["analyze"])
    assert result.exit_code == 1
    assert "Give either an IMAGE or --url" in result.output


def test_analyze_without_api_key(runner, design):
    result = runner.invoke(main, ["analyze", str(design), "--provider", "openai"])
    assert result.exit_code == 1
    assert "OpenAI API key not configured" in result.output


def test_compress_tiny_size_limit_fails_cleanly(runner, design):
    result = runner.invoke(main, ["compress", str(design), "--max-size", "1e-9"])

    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
    assert "Failed to compress image" in result.output

"""Tests for the command-line interface."""

import io
import json
from pathlib import Path
from unittest.mock import Mock, patch

import pytest
from PIL import Image, ImageDraw
from typer.testing import CliRunner

from frametrace import __version__
from frametrace.cli import app
from frametrace.core import FrameProcessor
from frametrace.core.tracer import build_svg
from frametrace.domain import JobKind, VectorDocument
from frametrace.io import FontRegistry

RING = "M 0 0 L 60 0 L 60 60 L 0 60 Z M 20 20 L 20 40 L 40 40 L 40 20 Z"

runner = CliRunner()


@pytest.fixture
def tracer() -> Mock:
    stub = Mock()
    stub.trace.return_value = VectorDocument(svg=build_svg([RING], 60, 60), width=60, height=60)
    return stub


@pytest.fixture(autouse=True)
def stub_processor(tracer: Mock, tmp_path: Path):
    """Build every CLI processor with the stub tracer and bundled font."""
    fonts = FontRegistry.from_dirs([tmp_path / "no-fonts"])

    def factory(settings):
        if settings.processing.uses_workers:
            return FrameProcessor(settings)
        return FrameProcessor(settings, tracer=tracer, fonts=fonts)

    with patch("frametrace.cli.app.FrameProcessor", side_effect=factory) as mock_cls:
        yield mock_cls


@pytest.fixture
def png(tmp_path: Path) -> Path:
    image = Image.new("RGB", (80, 60), "white")
    ImageDraw.Draw(image).rectangle((20, 10, 59, 49), fill="black")
    out = io.BytesIO()
    image.save(out, format="PNG")
    path = tmp_path / "square.png"
    path.write_bytes(out.getvalue())
    return path


def invoke(*args: str):
    return runner.invoke(app, ["-q", *args])


class TestImageCommand:
    """Tests for `frametrace image`."""

    def test_prints_json(self, png: Path) -> None:
        result = invoke("image", str(png))

        assert result.exit_code == 0, result.output
        payload = json.loads(result.stdout)
        assert len(payload["paths"]) == 2
        assert "crop" not in payload

    def test_smart_crop_kind(self, png: Path, tracer: Mock) -> None:
        result = invoke("image", str(png), "--kind", "smart-crop")

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["crop"]["offsetX"] == 20
        _, profile = tracer.trace.call_args.args
        assert profile.name == "smart-crop"

    def test_compound_mode(self, png: Path) -> None:
        result = invoke("image", str(png), "--mode", "compound")

        assert json.loads(result.stdout)["paths"] == [RING]

    def test_writes_output_file(self, png: Path, tmp_path: Path) -> None:
        target = tmp_path / "out.json"

        result = invoke("image", str(png), "-o", str(target))

        assert result.exit_code == 0, result.output
        assert json.loads(target.read_text())["viewBox"]["width"] == 60

    def test_rejects_non_image_kind(self, png: Path) -> None:
        result = invoke("image", str(png), "--kind", JobKind.TEXT.value)
        assert result.exit_code == 1

    def test_missing_file(self, tmp_path: Path) -> None:
        result = invoke("image", str(tmp_path / "nope.png"))
        assert result.exit_code == 1

    def test_undecodable_file(self, tmp_path: Path) -> None:
        junk = tmp_path / "junk.png"
        junk.write_bytes(b"junk")

        result = invoke("image", str(junk))

        assert result.exit_code == 1


class TestShapeCommand:
    def test_compound_with_crop(self, png: Path) -> None:
        result = invoke("shape", str(png))

        payload = json.loads(result.stdout)
        assert payload["paths"] == [RING]
        assert payload["crop"]["trimmedWidth"] == 40


class TestBatchCommand:
    """Tests for `frametrace batch`."""

    def test_isolates_failures(self, png: Path, tmp_path: Path) -> None:
        empty = tmp_path / "empty.png"
        empty.write_bytes(b"")

        result = invoke("batch", str(png), str(empty), str(png))

        assert result.exit_code == 0, result.output
        results = json.loads(result.stdout)["results"]
        assert [r["name"] for r in results] == ["square.png", "empty.png", "square.png"]
        assert "error" in results[1]
        assert "paths" in results[2]

    def test_workers_option_reaches_settings(self, png: Path, stub_processor: Mock) -> None:
        runner.invoke(app, ["-q", "-j", "3", "--timeout", "2", "batch", str(png)])

        settings = stub_processor.call_args.args[0]
        assert settings.processing.max_workers == 3
        assert settings.processing.item_timeout_seconds == 2


class TestTextCommand:
    """Tests for `frametrace text`."""

    def test_combined(self) -> None:
        result = invoke("text", "Hi", "--size", "80")

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["paths"] == [RING]

    def test_individual(self) -> None:
        result = invoke("text", "A B", "--mode", "individual")

        assert result.exit_code == 0, result.output
        results = json.loads(result.stdout)["results"]
        assert [r["letter"] for r in results] == ["A", "B"]

    def test_invalid_font_size(self) -> None:
        result = invoke("text", "Hi", "--size", "5")
        assert result.exit_code == 1

    def test_invalid_mode(self) -> None:
        result = invoke("text", "Hi", "--mode", "diagonal")
        assert result.exit_code == 1


class TestMisc:
    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_fonts(self) -> None:
        result = runner.invoke(app, ["fonts"])

        assert result.exit_code == 0
        assert "sans-bold" in result.output

    def test_no_args_shows_help(self) -> None:
        result = runner.invoke(app, [])
        assert "Usage" in result.output

"""Tests for image decoding and font discovery."""

import io
from pathlib import Path
from unittest.mock import Mock

import pytest
from fontTools.fontBuilder import FontBuilder
from fontTools.pens.ttGlyphPen import TTGlyphPen
from PIL import Image, ImageFont

from frametrace.exceptions import DecodeError, InputValidationError
from frametrace.io import (
    DEFAULT_FONTS,
    FontFace,
    FontLocator,
    FontRegistry,
    FontSpec,
    decode_image,
    has_alpha,
    to_rgba,
)
from frametrace.io.fonts import read_font_face


def build_font(path: Path, family: str, weight: int) -> Path:
    """Write a minimal TrueType font with one square glyph for "A"."""
    pen = TTGlyphPen(None)
    pen.moveTo((100, 0))
    pen.lineTo((100, 700))
    pen.lineTo((500, 700))
    pen.lineTo((500, 0))
    pen.closePath()

    fb = FontBuilder(1000, isTTF=True)
    fb.setupGlyphOrder([".notdef", "A"])
    fb.setupCharacterMap({ord("A"): "A"})
    fb.setupGlyf({".notdef": TTGlyphPen(None).glyph(), "A": pen.glyph()})
    fb.setupHorizontalMetrics({".notdef": (600, 0), "A": (600, 100)})
    fb.setupHorizontalHeader(ascent=800, descent=-200)
    fb.setupNameTable({"familyName": family, "styleName": "Regular"})
    fb.setupOS2(
        usWeightClass=weight,
        sTypoAscender=800,
        sTypoDescender=-200,
        usWinAscent=800,
        usWinDescent=200,
    )
    fb.setupPost()
    fb.save(str(path))
    return path


@pytest.fixture
def font_dir(tmp_path: Path) -> Path:
    """A directory with two weights of one family plus a junk file."""
    fonts = tmp_path / "fonts"
    (fonts / "nested").mkdir(parents=True)
    build_font(fonts / "Test-Regular.ttf", "Test Sans", 400)
    build_font(fonts / "nested" / "Test-Bold.ttf", "Test Sans", 700)
    (fonts / "broken.ttf").write_bytes(b"not a font")
    (fonts / "readme.txt").write_text("ignored")
    return fonts


class TestDecodeImage:
    """Tests for Pillow decoding."""

    def test_decodes_png(self) -> None:
        out = io.BytesIO()
        Image.new("RGB", (7, 5), "red").save(out, format="PNG")

        image = decode_image(out.getvalue())

        assert image.size == (7, 5)

    def test_rejects_garbage(self) -> None:
        with pytest.raises(DecodeError):
            decode_image(b"\x00\x01\x02")

    def test_rejects_empty(self) -> None:
        with pytest.raises(DecodeError, match="empty input"):
            decode_image(b"")


class TestAlphaHelpers:
    """Tests for alpha detection and conversion."""

    @pytest.mark.parametrize(
        ("mode", "expected"),
        [("RGBA", True), ("LA", True), ("RGB", False), ("L", False)],
    )
    def test_has_alpha(self, mode: str, expected: bool) -> None:
        assert has_alpha(Image.new(mode, (2, 2))) is expected

    def test_palette_transparency(self) -> None:
        image = Image.new("P", (2, 2))
        assert not has_alpha(image)
        image.info["transparency"] = 0
        assert has_alpha(image)

    def test_to_rgba_is_opaque(self) -> None:
        rgba = to_rgba(Image.new("RGB", (2, 2), "blue"))
        assert rgba.mode == "RGBA"
        assert rgba.getpixel((0, 0)) == (0, 0, 255, 255)


class TestReadFontFace:
    """Tests for reading font metadata with fontTools."""

    def test_reads_family_and_weight(self, font_dir: Path) -> None:
        face = read_font_face(font_dir / "nested" / "Test-Bold.ttf")

        assert face is not None
        assert face.family == "Test Sans"
        assert face.weight == 700
        assert not face.italic

    def test_unreadable_file(self, font_dir: Path) -> None:
        assert read_font_face(font_dir / "broken.ttf") is None


class TestFontLocator:
    """Tests for scanning font directories."""

    def test_requires_scan(self, font_dir: Path) -> None:
        locator = FontLocator([font_dir])
        with pytest.raises(RuntimeError, match="Fonts not scanned"):
            locator.find("Test Sans", 400)

    def test_scan_finds_families(self, font_dir: Path) -> None:
        locator = FontLocator([font_dir])
        locator.scan()
        assert locator.families == ["test sans"]

    def test_find_exact_and_nearest_weight(self, font_dir: Path) -> None:
        locator = FontLocator([font_dir])
        locator.scan()

        assert locator.find("test sans", 700).path.name == "Test-Bold.ttf"
        assert locator.find("Test Sans", 900).weight == 700
        assert locator.find("Test Sans", 100).weight == 400
        assert locator.find("Missing Family", 400) is None

    def test_missing_directory_ignored(self, tmp_path: Path) -> None:
        locator = FontLocator([tmp_path / "does-not-exist"])
        locator.scan()
        assert locator.families == []


class TestFontRegistry:
    """Tests for the font key registry."""

    def test_resolves_installed_family(self, font_dir: Path) -> None:
        specs = {"test-bold": FontSpec("test-bold", "Test Bold", ("Nope", "Test Sans"), 700)}

        registry = FontRegistry.from_dirs([font_dir], specs)

        assert registry.path("test-bold").name == "Test-Bold.ttf"
        assert isinstance(registry.load("test-bold", 40), ImageFont.FreeTypeFont)

    def test_falls_back_to_bundled_font(self, tmp_path: Path) -> None:
        registry = FontRegistry.from_dirs([tmp_path])

        assert registry.keys() == list(DEFAULT_FONTS)
        assert registry.path("sans-bold") is None
        assert registry.load("sans-bold", 40) is not None

    def test_unknown_key(self, tmp_path: Path) -> None:
        registry = FontRegistry.from_dirs([tmp_path])

        assert "comic-sans" not in registry
        with pytest.raises(InputValidationError) as exc_info:
            registry.spec("comic-sans")
        assert exc_info.value.field == "font"

    def test_build_uses_locator(self) -> None:
        locator = Mock(spec=FontLocator)
        locator.find.side_effect = lambda family, weight: (
            FontFace(Path("/fonts/serif.ttf"), family, weight) if family == "DejaVu Serif" else None
        )

        registry = FontRegistry.build(locator)

        assert registry.path("serif-bold") == Path("/fonts/serif.ttf")
        assert registry.path("sans-bold") is None

"""Tests for raster normalization."""

import io

import pytest
from PIL import Image, ImageDraw

from frametrace.config import DEFAULT_PROFILES, RasterConfig
from frametrace.core.normalizer import RasterNormalizer
from frametrace.domain import BACKGROUND, FOREGROUND, CropBox, NormalizeVariant
from frametrace.exceptions import DecodeError


def encode(image: Image.Image, fmt: str = "PNG") -> bytes:
    out = io.BytesIO()
    image.save(out, format=fmt)
    return out.getvalue()


@pytest.fixture
def normalizer() -> RasterNormalizer:
    return RasterNormalizer()


@pytest.fixture
def square_png() -> bytes:
    """Black 40x40 square on a white 100x100 canvas."""
    image = Image.new("RGB", (100, 100), "white")
    ImageDraw.Draw(image).rectangle((30, 30, 69, 69), fill="black")
    return encode(image)


@pytest.fixture
def offset_rect_png() -> bytes:
    """Black 50x40 rectangle at (50, 20) on a white 200x100 canvas."""
    image = Image.new("RGB", (200, 100), "white")
    ImageDraw.Draw(image).rectangle((50, 20, 99, 59), fill="black")
    return encode(image)


class TestStandardVariant:
    """Tests for the default pipeline."""

    def test_binarizes_to_two_levels(self, normalizer: RasterNormalizer, square_png: bytes) -> None:
        raster = normalizer.normalize(square_png, DEFAULT_PROFILES["vectorize"])

        assert raster.image.mode == "L"
        assert set(raster.image.getdata()) == {FOREGROUND, BACKGROUND}
        assert raster.foreground_count() == 40 * 40
        assert raster.crop is None
        assert raster.threshold == DEFAULT_PROFILES["vectorize"].threshold

    def test_keeps_size_without_cap(self, normalizer: RasterNormalizer, square_png: bytes) -> None:
        raster = normalizer.normalize(square_png, DEFAULT_PROFILES["vectorize"])
        assert (raster.width, raster.height) == (100, 100)

    def test_transparency_flattened_onto_white(self, normalizer: RasterNormalizer) -> None:
        """White ink on a transparent canvas disappears in the standard variant."""
        image = Image.new("RGBA", (50, 50), (0, 0, 0, 0))
        ImageDraw.Draw(image).rectangle((10, 10, 39, 39), fill=(255, 255, 255, 255))

        raster = normalizer.normalize(encode(image), DEFAULT_PROFILES["vectorize"])

        assert raster.is_blank()

    def test_blank_image(self, normalizer: RasterNormalizer) -> None:
        raster = normalizer.normalize(
            encode(Image.new("RGB", (30, 30), "white")), DEFAULT_PROFILES["vectorize"]
        )
        assert raster.is_blank()

    def test_jpeg_input(self, normalizer: RasterNormalizer) -> None:
        image = Image.new("RGB", (60, 60), "white")
        ImageDraw.Draw(image).ellipse((10, 10, 49, 49), fill="black")

        raster = normalizer.normalize(encode(image, "JPEG"), DEFAULT_PROFILES["vectorize"])

        assert not raster.is_blank()
        assert set(raster.image.getdata()) <= {FOREGROUND, BACKGROUND}


class TestFit:
    """Tests for resizing into the target square."""

    def test_downscales_to_max_dimension(self, offset_rect_png: bytes) -> None:
        normalizer = RasterNormalizer(RasterConfig(max_dimension=50))

        raster = normalizer.normalize(offset_rect_png, DEFAULT_PROFILES["vectorize"])

        assert (raster.width, raster.height) == (50, 25)

    def test_never_enlarges(self) -> None:
        normalizer = RasterNormalizer(RasterConfig(max_dimension=500))
        image = Image.new("RGB", (20, 10), "white")

        raster = normalizer.normalize(encode(image), DEFAULT_PROFILES["vectorize"])

        assert (raster.width, raster.height) == (20, 10)


class TestAutoCropVariant:
    """Tests for trimming to the subject."""

    def test_reports_crop_box(self, normalizer: RasterNormalizer, offset_rect_png: bytes) -> None:
        raster = normalizer.normalize(
            offset_rect_png, DEFAULT_PROFILES["smart-crop"], NormalizeVariant.AUTO_CROP
        )

        assert raster.crop == CropBox(
            original_width=200,
            original_height=100,
            trimmed_width=50,
            trimmed_height=40,
            offset_x=50,
            offset_y=20,
        )
        assert (raster.width, raster.height) == (50, 40)
        assert raster.foreground_count() == 50 * 40

    def test_uniform_image_kept_whole(self, normalizer: RasterNormalizer) -> None:
        image = Image.new("RGB", (30, 20), "white")

        cropped, crop = normalizer.trim(image)

        assert cropped.size == (30, 20)
        assert crop == CropBox(30, 20, 30, 20, 0, 0)

    def test_transparent_background(self, normalizer: RasterNormalizer) -> None:
        """Fully transparent pixels compare equal whatever their colour."""
        image = Image.new("RGBA", (80, 60), (12, 200, 40, 0))
        ImageDraw.Draw(image).rectangle((5, 10, 24, 29), fill=(255, 0, 0, 255))

        cropped, crop = normalizer.trim(image)

        assert (crop.offset_x, crop.offset_y) == (5, 10)
        assert cropped.size == (20, 20)

    def test_tolerance_ignores_near_background(self) -> None:
        normalizer = RasterNormalizer(RasterConfig(trim_tolerance=10))
        image = Image.new("RGB", (40, 40), (255, 255, 255))
        ImageDraw.Draw(image).point((3, 3), fill=(250, 250, 250))
        ImageDraw.Draw(image).rectangle((20, 20, 29, 29), fill="black")

        _, crop = normalizer.trim(image)

        assert (crop.offset_x, crop.offset_y) == (20, 20)
        assert (crop.trimmed_width, crop.trimmed_height) == (10, 10)


class TestForegroundVariant:
    """Tests for background removal."""

    def test_uses_alpha_when_present(self, normalizer: RasterNormalizer) -> None:
        """Opaque pixels are foreground even when they are white."""
        image = Image.new("RGBA", (50, 50), (0, 0, 0, 0))
        ImageDraw.Draw(image).rectangle((10, 10, 39, 39), fill=(255, 255, 255, 255))

        raster = normalizer.normalize(
            encode(image), DEFAULT_PROFILES["remove-bg"], NormalizeVariant.FOREGROUND
        )

        assert raster.foreground_count() == 30 * 30
        assert raster.image.getpixel((25, 25)) == FOREGROUND
        assert raster.image.getpixel((0, 0)) == BACKGROUND

    def test_falls_back_to_luminance(self, normalizer: RasterNormalizer) -> None:
        image = Image.new("RGB", (50, 50), (230, 230, 230))
        ImageDraw.Draw(image).rectangle((10, 10, 29, 29), fill=(20, 20, 20))

        raster = normalizer.normalize(
            encode(image), DEFAULT_PROFILES["remove-bg"], NormalizeVariant.FOREGROUND
        )

        assert raster.image.getpixel((15, 15)) == FOREGROUND
        assert raster.image.getpixel((45, 45)) == BACKGROUND
        assert raster.foreground_count() == 20 * 20

    def test_without_alpha_matches_standard(self, normalizer: RasterNormalizer) -> None:
        image = Image.new("RGB", (40, 30), (240, 240, 240))
        ImageDraw.Draw(image).ellipse((5, 5, 30, 25), fill=(90, 90, 90))
        profile = DEFAULT_PROFILES["remove-bg"]

        foreground = normalizer.normalize(encode(image), profile, NormalizeVariant.FOREGROUND)
        standard = normalizer.normalize(encode(image), profile, NormalizeVariant.STANDARD)

        assert foreground.image.tobytes() == standard.image.tobytes()


class TestDecodeFailures:
    """Tests for inputs that are not images."""

    def test_garbage_bytes(self, normalizer: RasterNormalizer) -> None:
        with pytest.raises(DecodeError, match="unrecognized image format"):
            normalizer.normalize(b"definitely not an image", DEFAULT_PROFILES["vectorize"])

    def test_empty_bytes(self, normalizer: RasterNormalizer) -> None:
        with pytest.raises(DecodeError, match="empty input"):
            normalizer.normalize(b"", DEFAULT_PROFILES["vectorize"])

    def test_truncated_png(self, normalizer: RasterNormalizer, square_png: bytes) -> None:
        with pytest.raises(DecodeError):
            normalizer.normalize(square_png[:60], DEFAULT_PROFILES["vectorize"])

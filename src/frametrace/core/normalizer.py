"""Raster normalization: arbitrary bitmaps in, binarized tracer input out.

Standard pipeline, in order:
1. Decode; images without alpha are treated as fully opaque
2. Flatten transparency onto white
3. Fit inside a square of the longest side (optionally capped), never enlarging
4. Grayscale and contrast-stretch
5. Threshold: luminance >= threshold is background, below is foreground

Two variants branch off it:
- AUTO_CROP trims to the subject before step 1 and reports a CropBox
- FOREGROUND binarizes the alpha channel directly when there is one, and
  otherwise thresholds luminance and inverts the mask into tracer polarity
"""

import structlog
from PIL import Image, ImageChops, ImageOps

from frametrace.config import Profile, RasterConfig
from frametrace.domain import BACKGROUND, FOREGROUND, CropBox, NormalizeVariant, RasterBuffer
from frametrace.io.image import decode_image, has_alpha, to_rgba

logger = structlog.get_logger(__name__)


def _threshold_lut(threshold: int) -> list[int]:
    return [FOREGROUND if value < threshold else BACKGROUND for value in range(256)]


def composite_over_white(image: Image.Image) -> Image.Image:
    """Flatten alpha over an opaque white background."""
    rgba = to_rgba(image)
    background = Image.new("RGBA", rgba.size, (255, 255, 255, 255))
    return Image.alpha_composite(background, rgba).convert("RGB")


class RasterNormalizer:
    """Turns decoded bitmaps into RasterBuffers.

    Stateless apart from its configuration; safe to share between jobs.

    Example:
        normalizer = RasterNormalizer()
        raster = normalizer.normalize(png_bytes, profile)
    """

    def __init__(self, config: RasterConfig | None = None) -> None:
        self.config = config or RasterConfig()

    def normalize(
        self,
        data: bytes,
        profile: Profile,
        variant: NormalizeVariant = NormalizeVariant.STANDARD,
    ) -> RasterBuffer:
        """Decode and normalize encoded image bytes.

        Raises:
            DecodeError: If the bytes are not a decodable image
        """
        image = decode_image(data)
        return self.normalize_image(image, profile, variant)

    def normalize_image(
        self,
        image: Image.Image,
        profile: Profile,
        variant: NormalizeVariant = NormalizeVariant.STANDARD,
    ) -> RasterBuffer:
        """Normalize an already decoded image.

        Args:
            image: Decoded image in any mode
            profile: Supplies the binarization threshold
            variant: Normalization variant

        Returns:
            Binarized RasterBuffer
        """
        source_has_alpha = has_alpha(image)
        rgba = to_rgba(image)

        crop: CropBox | None = None
        if variant is NormalizeVariant.AUTO_CROP:
            rgba, crop = self.trim(rgba)

        if variant is NormalizeVariant.FOREGROUND and source_has_alpha:
            binary = self._binarize_alpha(self._fit(rgba))
        else:
            gray = self._grayscale(self._fit(composite_over_white(rgba)))
            # Without alpha, foreground isolation is plain binarization at the
            # profile threshold (200 for remove-bg): dark regions become foreground.
            binary = gray.point(_threshold_lut(profile.threshold))

        logger.debug(
            "Raster normalized",
            variant=variant.value,
            alpha=source_has_alpha,
            width=binary.width,
            height=binary.height,
            threshold=profile.threshold,
        )
        return RasterBuffer(image=binary, threshold=profile.threshold, crop=crop)

    def trim(self, image: Image.Image) -> tuple[Image.Image, CropBox]:
        """Crop to the tight box of content that differs from the corner colour.

        Colour channels are premultiplied by alpha first so that fully
        transparent pixels compare equal whatever colour they carry.

        Args:
            image: Image to trim

        Returns:
            Tuple of (cropped RGBA image, CropBox). A uniform image is
            returned whole with a zero-offset CropBox.
        """
        rgba = to_rgba(image)
        width, height = rgba.size

        r, g, b, a = rgba.split()
        premultiplied = Image.merge(
            "RGBA",
            [ImageChops.multiply(r, a), ImageChops.multiply(g, a), ImageChops.multiply(b, a), a],
        )
        corner = Image.new("RGBA", rgba.size, premultiplied.getpixel((0, 0)))
        diff_channels = ImageChops.difference(premultiplied, corner).split()

        mask = diff_channels[0]
        for channel in diff_channels[1:]:
            mask = ImageChops.lighter(mask, channel)

        tolerance = self.config.trim_tolerance
        bbox = mask.point([255 if value > tolerance else 0 for value in range(256)]).getbbox()

        if bbox is None:
            return rgba, CropBox(width, height, width, height, 0, 0)

        left, top, right, bottom = bbox
        crop = CropBox(
            original_width=width,
            original_height=height,
            trimmed_width=right - left,
            trimmed_height=bottom - top,
            offset_x=left,
            offset_y=top,
        )
        return rgba.crop(bbox), crop

    def _fit(self, image: Image.Image) -> Image.Image:
        """Fit inside the target square without enlarging."""
        width, height = image.size
        longest = max(width, height)
        target = longest
        if self.config.max_dimension is not None:
            target = min(target, self.config.max_dimension)

        if longest <= target:
            return image

        scale = target / longest
        size = (max(1, round(width * scale)), max(1, round(height * scale)))
        return image.resize(size, Image.Resampling.LANCZOS)

    def _grayscale(self, image: Image.Image) -> Image.Image:
        """Single channel with the luminance histogram stretched to full range."""
        return ImageOps.autocontrast(image.convert("L"), cutoff=self.config.contrast_cutoff)

    def _binarize_alpha(self, image: Image.Image) -> Image.Image:
        """Opaque pixels become foreground."""
        alpha = image.getchannel("A")
        threshold = self.config.alpha_threshold
        return alpha.point(
            [FOREGROUND if value >= threshold else BACKGROUND for value in range(256)]
        )

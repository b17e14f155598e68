"""Text rasterization.

Renders a string (whole, or one character at a time) black on white, crops
the ink tightly and hands the bitmap to the RasterNormalizer, so text ends up
in the same RasterBuffer form as an uploaded image.
"""

import structlog
from PIL import Image, ImageDraw, ImageOps

from frametrace.config import Profile, TextConfig
from frametrace.core.normalizer import RasterNormalizer
from frametrace.domain import NormalizeVariant, RasterBuffer
from frametrace.exceptions import EmptyResultError
from frametrace.io.fonts import FontRegistry

logger = structlog.get_logger(__name__)


class TextRasterizer:
    """Renders text with a registry font into RasterBuffers.

    Example:
        rasterizer = TextRasterizer(fonts, RasterNormalizer())
        raster = rasterizer.rasterize_text("Hello", 200, "sans-bold", profile)
    """

    def __init__(
        self,
        fonts: FontRegistry,
        normalizer: RasterNormalizer,
        config: TextConfig | None = None,
        max_length: int = 50,
    ) -> None:
        """Initialize the rasterizer.

        Args:
            fonts: Font registry used to load fonts by key
            normalizer: Normalizer applied to the cropped render
            config: Text settings (crop tolerance)
            max_length: Characters kept before rendering
        """
        self.fonts = fonts
        self.normalizer = normalizer
        self.config = config or TextConfig()
        self.max_length = max_length

    def prepare(self, text: str) -> str:
        """Collapse whitespace runs to single spaces and truncate."""
        return " ".join(text.split())[: self.max_length]

    def glyphs(self, text: str) -> list[str]:
        """Characters rendered individually, in order, whitespace skipped."""
        return [char for char in self.prepare(text) if not char.isspace()]

    def render(self, text: str, font_size: int, font_key: str) -> Image.Image:
        """Draw text centred on an oversized canvas and crop to the ink.

        The canvas is three font sizes tall and (length + 2) font sizes wide,
        so no glyph of the requested size can reach its edge.

        Args:
            text: Text to draw (already prepared)
            font_size: Pixel size
            font_key: Registry key

        Returns:
            Cropped grayscale image, black ink on white

        Raises:
            EmptyResultError: If nothing visible was drawn
        """
        font = self.fonts.load(font_key, font_size)
        width = font_size * (len(text) + 2)
        height = font_size * 3

        canvas = Image.new("L", (width, height), 255)
        draw = ImageDraw.Draw(canvas)
        draw.text((width / 2, height / 2), text, font=font, fill=0, anchor="mm")

        tolerance = self.config.crop_tolerance
        ink = ImageOps.invert(canvas).point([255 if v > tolerance else 0 for v in range(256)])
        bbox = ink.getbbox()
        if bbox is None:
            raise EmptyResultError(f"Text {text!r} rendered no visible glyphs")

        return canvas.crop(bbox)

    def rasterize_text(
        self,
        text: str,
        font_size: int,
        font_key: str,
        profile: Profile,
    ) -> RasterBuffer:
        """Render a whole string into one RasterBuffer."""
        prepared = self.prepare(text)
        image = self.render(prepared, font_size, font_key)
        logger.debug(
            "Text rendered",
            text=prepared,
            font=font_key,
            size=font_size,
            width=image.width,
            height=image.height,
        )
        return self.normalizer.normalize_image(image, profile, NormalizeVariant.STANDARD)

    def rasterize_glyphs(
        self,
        text: str,
        font_size: int,
        font_key: str,
        profile: Profile,
    ) -> list[RasterBuffer]:
        """Render each non-whitespace character into its own RasterBuffer."""
        return [
            self.rasterize_text(char, font_size, font_key, profile)
            for char in self.glyphs(text)
        ]

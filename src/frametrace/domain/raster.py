"""Raster types handed from the normalizer to the tracer.

This module defines:
- CropBox: Where a trimmed subject sat inside the original image
- RasterBuffer: A binarized bitmap ready for tracing
"""

import io
from dataclasses import dataclass
from typing import Any

from PIL import Image

FOREGROUND = 0
BACKGROUND = 255


@dataclass(frozen=True, slots=True)
class CropBox:
    """Trim metadata reported by the subject auto-crop variant.

    Display-only: it never influences tracing.

    Attributes:
        original_width: Width of the decoded input
        original_height: Height of the decoded input
        trimmed_width: Width after trimming
        trimmed_height: Height after trimming
        offset_x: Left edge of the trimmed region in the original
        offset_y: Top edge of the trimmed region in the original
    """

    original_width: int
    original_height: int
    trimmed_width: int
    trimmed_height: int
    offset_x: int
    offset_y: int

    def to_dict(self) -> dict[str, int]:
        """Serialize using the camelCase keys the frame panel reads."""
        return {
            "originalWidth": self.original_width,
            "originalHeight": self.original_height,
            "trimmedWidth": self.trimmed_width,
            "trimmedHeight": self.trimmed_height,
            "offsetX": self.offset_x,
            "offsetY": self.offset_y,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CropBox":
        """Deserialize from the camelCase dictionary form."""
        return cls(
            original_width=data["originalWidth"],
            original_height=data["originalHeight"],
            trimmed_width=data["trimmedWidth"],
            trimmed_height=data["trimmedHeight"],
            offset_x=data["offsetX"],
            offset_y=data["offsetY"],
        )


@dataclass(frozen=True)
class RasterBuffer:
    """A binarized, single-channel bitmap.

    Pixels are either FOREGROUND (0, traced) or BACKGROUND (255). The buffer
    is created by the normalizer or the text rasterizer and consumed within
    one job.

    Attributes:
        image: Pillow image in mode "L"
        threshold: Luminance threshold the image was binarized at
        crop: Trim metadata, when the auto-crop variant ran
    """

    image: Image.Image
    threshold: int
    crop: CropBox | None = None

    def __post_init__(self) -> None:
        if self.image.mode != "L":
            raise ValueError(f"RasterBuffer requires a mode 'L' image, got {self.image.mode!r}")

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height

    def foreground_count(self) -> int:
        """Count foreground pixels."""
        return self.image.histogram()[FOREGROUND]

    def is_blank(self) -> bool:
        """True if the buffer holds no foreground at all."""
        return self.foreground_count() == 0

    def to_png(self) -> bytes:
        """Encode the buffer as a 1-bit PNG."""
        out = io.BytesIO()
        self.image.convert("1").save(out, format="PNG")
        return out.getvalue()

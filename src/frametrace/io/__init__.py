"""I/O layer for frametrace.

This module wraps the third-party readers the pipeline depends on:

- Image decoding with Pillow
- Font discovery with fontTools and font loading with Pillow

Key classes:
- FontLocator: Scan font directories for families and weights
- FontRegistry: Read-only font key lookup, resolved once at startup
"""

from frametrace.io.fonts import DEFAULT_FONTS, FontFace, FontLocator, FontRegistry, FontSpec
from frametrace.io.image import decode_image, has_alpha, to_rgba

__all__ = [
    "DEFAULT_FONTS",
    "FontFace",
    "FontLocator",
    "FontRegistry",
    "FontSpec",
    "decode_image",
    "has_alpha",
    "to_rgba",
]

"""frametrace - Turn raster images and text into vector frame outlines.

frametrace normalizes a bitmap (photo, rendered text, or uploaded shape),
traces it with potrace, and decomposes the traced SVG into bounded lists of
path-data strings ready to be dropped into a design surface as a mask.

Example:
    $ frametrace image logo.png

This prints ``{"paths": [...], "viewBox": {...}}`` for the traced outline.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]

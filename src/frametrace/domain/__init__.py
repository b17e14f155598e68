"""Domain models for frametrace.

This module contains the types that flow through the conversion pipeline.
All models are designed to be:

- Immutable (frozen dataclasses)
- Serializable for inter-process communication (worker pools)
- Independent of the tracing engine's own types

Key classes:
- RasterBuffer: Binarized bitmap ready for tracing
- CropBox: Trim metadata for auto-cropped inputs
- VectorDocument: Raw SVG produced by the tracer
- ViewBox: Coordinate frame of the path data
- Job: One conversion request
- ConversionResult / ItemResult: Pipeline outcomes
"""

from frametrace.domain.job import Job, JobKind, NormalizeVariant, TextMode
from frametrace.domain.raster import BACKGROUND, FOREGROUND, CropBox, RasterBuffer
from frametrace.domain.result import ConversionResult, ItemResult
from frametrace.domain.vector import DecompositionMode, PathRecord, VectorDocument, ViewBox

__all__: list[str] = [
    # Constants
    "BACKGROUND",
    "FOREGROUND",
    # Enums
    "DecompositionMode",
    "JobKind",
    "NormalizeVariant",
    "TextMode",
    # Core types
    "ConversionResult",
    "CropBox",
    "ItemResult",
    "Job",
    "PathRecord",
    "RasterBuffer",
    "VectorDocument",
    "ViewBox",
]

"""Core processing pipeline for frametrace.

This module contains the stages every conversion runs through:

- Raster normalization (decode, flatten, fit, binarize, optional trim)
- Text rasterization (render with a registry font, crop to ink)
- Tracing (binarized bitmap to SVG via potrace)
- Decomposition (SVG to path records, flattened or compound)
- Orchestration (validation, per-item isolation, worker pool)

All services are designed to be:
- Stateless apart from read-only configuration
- Safe for use in worker processes

Key functions:
- decompose: Turn a vector document into path records
- parse_view_box: Read the coordinate frame of a vector document
- process_item: Picklable single-job runner for worker processes

Key classes:
- RasterNormalizer: Bitmaps to RasterBuffers
- TextRasterizer: Text to RasterBuffers
- PotraceTracer: RasterBuffers to VectorDocuments
- NestingAnalyzer: Groups traced holes with their outlines
- FrameProcessor: Main orchestrator
"""

from frametrace.core.analyzer import ContourNesting, NestingAnalyzer
from frametrace.core.decomposer import decompose, iter_path_data, parse_view_box, split_subpaths
from frametrace.core.geometry import point_in_polygon, signed_area
from frametrace.core.normalizer import RasterNormalizer
from frametrace.core.processor import FrameProcessor, process_item, run_job
from frametrace.core.text import TextRasterizer
from frametrace.core.tracer import PotraceTracer, Tracer

__all__ = [
    # Analyzer classes
    "ContourNesting",
    # Processor classes
    "FrameProcessor",
    "NestingAnalyzer",
    # Tracer classes
    "PotraceTracer",
    # Stage classes
    "RasterNormalizer",
    "TextRasterizer",
    "Tracer",
    # Functions
    "decompose",
    "iter_path_data",
    "parse_view_box",
    "point_in_polygon",
    "process_item",
    "run_job",
    "signed_area",
    "split_subpaths",
]

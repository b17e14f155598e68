"""Contour tracing adapter.

Wraps the potrace engine behind a small contract:
``trace(raster, profile) -> VectorDocument`` or TraceError.

Profile fields map onto engine parameters:
- min_contour_area -> turdsize (speckle suppression, in pixels)
- optimize_curves -> opticurve
- threshold -> blacklevel (threshold / 255), matching the raster's own cut
- fill_tag / background_tag -> presentational SVG attributes only

The engine returns a flat list of closed curves. Curves are regrouped so
each filled outline is written together with the holes directly inside it,
as one even-odd ``<path>`` per group.
"""

from collections.abc import Sequence
from typing import Protocol
from xml.sax.saxutils import quoteattr

import potrace
import structlog

from frametrace.config import Profile, TracerConfig, TurnPolicy
from frametrace.core.analyzer import NestingAnalyzer
from frametrace.domain import RasterBuffer, VectorDocument
from frametrace.exceptions import TraceError

logger = structlog.get_logger(__name__)

TURN_POLICIES: dict[TurnPolicy, int] = {
    TurnPolicy.BLACK: potrace.POTRACE_TURNPOLICY_BLACK,
    TurnPolicy.WHITE: potrace.POTRACE_TURNPOLICY_WHITE,
    TurnPolicy.LEFT: potrace.POTRACE_TURNPOLICY_LEFT,
    TurnPolicy.RIGHT: potrace.POTRACE_TURNPOLICY_RIGHT,
    TurnPolicy.MINORITY: potrace.POTRACE_TURNPOLICY_MINORITY,
    TurnPolicy.MAJORITY: potrace.POTRACE_TURNPOLICY_MAJORITY,
    TurnPolicy.RANDOM: potrace.POTRACE_TURNPOLICY_RANDOM,
}


class Tracer(Protocol):
    """Anything that turns a RasterBuffer into a VectorDocument."""

    def trace(self, raster: RasterBuffer, profile: Profile) -> VectorDocument: ...


def format_number(value: float, precision: int) -> str:
    """Fixed-point with trailing zeros removed; never emits "-0"."""
    text = f"{value:.{precision}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    if text in ("-0", ""):
        return "0"
    return text


def curve_to_path_data(curve: Sequence, precision: int = 2) -> str:
    """Serialize one potrace curve as an absolute, closed subpath."""

    def pt(point) -> str:
        return f"{format_number(point.x, precision)} {format_number(point.y, precision)}"

    parts = [f"M {pt(curve.start_point)}"]
    for segment in curve:
        if segment.is_corner:
            parts.append(f"L {pt(segment.c)} L {pt(segment.end_point)}")
        else:
            parts.append(f"C {pt(segment.c1)} {pt(segment.c2)} {pt(segment.end_point)}")
    parts.append("Z")
    return " ".join(parts)


def build_svg(
    path_data: Sequence[str],
    width: int,
    height: int,
    fill: str = "black",
    background: str = "transparent",
) -> str:
    """Assemble an SVG document from path-data strings."""
    lines = [
        f'<svg xmlns="http://www.w3.org/2000/svg" version="1.1" '
        f'width="{width}" height="{height}" viewBox="0 0 {width} {height}">'
    ]
    if background and background != "transparent":
        lines.append(
            f'<rect x="0" y="0" width="100%" height="100%" fill={quoteattr(background)}/>'
        )
    for d in path_data:
        lines.append(
            f'<path d={quoteattr(d)} fill={quoteattr(fill)} stroke="none" fill-rule="evenodd"/>'
        )
    lines.append("</svg>")
    return "\n".join(lines)


class PotraceTracer:
    """Tracer backed by the potrace engine.

    Example:
        tracer = PotraceTracer()
        document = tracer.trace(raster, profile)
    """

    def __init__(self, config: TracerConfig | None = None) -> None:
        self.config = config or TracerConfig()
        self.analyzer = NestingAnalyzer()

    def trace(self, raster: RasterBuffer, profile: Profile) -> VectorDocument:
        """Trace a binarized raster.

        Args:
            raster: Binarized bitmap (foreground = 0)
            profile: Tracing parameters

        Returns:
            VectorDocument whose viewBox is the raster's pixel frame

        Raises:
            TraceError: If the engine fails
        """
        if raster.is_blank():
            logger.debug("Blank raster, nothing to trace", width=raster.width, height=raster.height)
            return self._document([], raster, profile)

        try:
            bitmap = potrace.Bitmap(raster.image, blacklevel=profile.threshold / 255.0)
            curves = list(
                bitmap.trace(
                    turdsize=profile.min_contour_area,
                    turnpolicy=TURN_POLICIES[self.config.turn_policy],
                    alphamax=self.config.alpha_max,
                    opticurve=profile.optimize_curves,
                    opttolerance=self.config.opt_tolerance,
                )
            )
        except Exception as e:
            raise TraceError(str(e) or type(e).__name__) from e

        outlines = [[(p.x, p.y) for p in curve.decomposition_points] for curve in curves]
        nesting = self.analyzer.analyze(outlines)

        precision = self.config.precision
        path_data = [
            " ".join(curve_to_path_data(curves[idx], precision) for idx in group)
            for group in nesting.groups
        ]

        logger.debug(
            "Raster traced",
            curves=len(curves),
            paths=len(path_data),
            holes=len(nesting.holes()),
            turdsize=profile.min_contour_area,
        )
        return self._document(path_data, raster, profile)

    def _document(
        self,
        path_data: Sequence[str],
        raster: RasterBuffer,
        profile: Profile,
    ) -> VectorDocument:
        svg = build_svg(
            path_data,
            raster.width,
            raster.height,
            fill=profile.fill_tag,
            background=profile.background_tag,
        )
        return VectorDocument(svg=svg, width=raster.width, height=raster.height)

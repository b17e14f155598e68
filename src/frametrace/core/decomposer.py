"""Vector document decomposition.

Turns the tracer's SVG text into path records and a view box. Two modes:

- FLATTEN: every path-data string is split at each moveto ("M"/"m");
  fragments are trimmed, empty ones dropped, and a closing " Z" is appended
  when missing. Each fragment becomes its own record.
- COMPOUND: each path-data string is kept whole (trimmed), so subpaths that
  form holes stay together.

In both modes records come out in document order and stop at the cap.
"""

import math
import re
from collections.abc import Iterator
from xml.etree import ElementTree

import structlog

from frametrace.domain import DecompositionMode, PathRecord, VectorDocument, ViewBox
from frametrace.exceptions import EmptyResultError

logger = structlog.get_logger(__name__)

_VIEWBOX_SEPARATOR = re.compile(r"[\s,]+")
_SUBPATH_START = re.compile(r"(?=[Mm])")


def _parse(svg: str) -> ElementTree.Element | None:
    try:
        return ElementTree.fromstring(svg)
    except ElementTree.ParseError as e:
        logger.warning("Unparseable vector document", error=str(e))
        return None


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def parse_view_box(document: VectorDocument | str) -> ViewBox:
    """Read the root viewBox of an SVG document.

    Falls back to ViewBox.default() as a whole when the attribute is missing,
    does not hold exactly four numbers, or any of them is not finite.
    """
    svg = document.svg if isinstance(document, VectorDocument) else document
    root = _parse(svg)
    raw = root.get("viewBox") if root is not None else None
    if not raw:
        return ViewBox.default()

    tokens = [t for t in _VIEWBOX_SEPARATOR.split(raw.strip()) if t]
    if len(tokens) != 4:
        return ViewBox.default()
    try:
        left, top, width, height = (float(t) for t in tokens)
    except ValueError:
        return ViewBox.default()
    if not all(math.isfinite(v) for v in (left, top, width, height)):
        return ViewBox.default()

    return ViewBox(left=left, top=top, width=width, height=height)


def iter_path_data(svg: str) -> Iterator[str]:
    """Yield the ``d`` attribute of every <path> element in document order."""
    root = _parse(svg)
    if root is None:
        return
    for element in root.iter():
        if _local_name(element.tag) != "path":
            continue
        d = element.get("d")
        if d is not None:
            yield d


def split_subpaths(d: str) -> list[str]:
    """Split one path-data string into closed single-subpath fragments.

    Examples:
        >>> split_subpaths("M0 0 L10 0 L10 10 Z M2 2 L8 2 L8 8 Z")
        ['M0 0 L10 0 L10 10 Z', 'M2 2 L8 2 L8 8 Z']
        >>> split_subpaths("M0 0 L10 0 L10 10")
        ['M0 0 L10 0 L10 10 Z']
    """
    fragments = []
    for piece in _SUBPATH_START.split(d):
        piece = piece.strip()
        if not piece or piece[0] not in "Mm":
            continue
        if piece[-1] not in "Zz":
            piece = f"{piece} Z"
        fragments.append(piece)
    return fragments


def decompose(
    document: VectorDocument | str,
    mode: DecompositionMode,
    cap: int,
) -> list[PathRecord]:
    """Turn a vector document into at most ``cap`` path records.

    Args:
        document: Tracer output (or raw SVG text)
        mode: FLATTEN or COMPOUND
        cap: Maximum number of records

    Returns:
        Path records in document order

    Raises:
        ValueError: If cap is below 1
        EmptyResultError: If no records were produced
    """
    if cap < 1:
        raise ValueError(f"cap must be at least 1, got {cap}")

    svg = document.svg if isinstance(document, VectorDocument) else document
    records: list[PathRecord] = []
    truncated = False

    for d in iter_path_data(svg):
        if mode is DecompositionMode.FLATTEN:
            pieces = split_subpaths(d)
        else:
            pieces = [d.strip()] if d.strip() else []

        for piece in pieces:
            if len(records) >= cap:
                truncated = True
                break
            records.append(piece)
        if truncated:
            break

    if not records:
        raise EmptyResultError()

    logger.debug("Document decomposed", mode=mode.value, records=len(records), truncated=truncated)
    return records

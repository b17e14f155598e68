"""Polygon helpers used to organize traced contours.

Points are plain ``(x, y)`` tuples. All functions are pure and stateless.
"""

from collections.abc import Sequence

Point = tuple[float, float]
BBox = tuple[float, float, float, float]


def signed_area(points: Sequence[Point]) -> float:
    """Calculate signed area of a polygon using the shoelace formula.

    The sign of the area indicates winding direction in a y-up frame:
    - Positive area: counter-clockwise winding
    - Negative area: clockwise winding

    Args:
        points: Polygon vertices

    Returns:
        Signed area. Returns 0.0 for degenerate polygons.

    Examples:
        >>> signed_area([(0, 0), (1, 0), (1, 1), (0, 1)])
        1.0
        >>> signed_area([(0, 0), (0, 1), (1, 1), (1, 0)])
        -1.0
    """
    n = len(points)
    if n < 3:
        return 0.0

    area = 0.0
    for i in range(n):
        j = (i + 1) % n
        area += points[i][0] * points[j][1]
        area -= points[j][0] * points[i][1]

    return area / 2.0


def point_in_polygon(point: Point, polygon: Sequence[Point]) -> bool:
    """Determine if a point is inside a polygon using ray casting.

    Casts a horizontal ray to the right and counts edge crossings:
    odd = inside, even = outside.

    Examples:
        >>> square = [(0, 0), (2, 0), (2, 2), (0, 2)]
        >>> point_in_polygon((1, 1), square)
        True
        >>> point_in_polygon((3, 3), square)
        False
    """
    n = len(polygon)
    if n < 3:
        return False

    inside = False
    x, y = point
    j = n - 1

    for i in range(n):
        xi, yi = polygon[i]
        xj, yj = polygon[j]

        if ((yi > y) != (yj > y)) and (x < (xj - xi) * (y - yi) / (yj - yi) + xi):
            inside = not inside

        j = i

    return inside


def bounding_box(points: Sequence[Point]) -> BBox:
    """Return (min_x, min_y, max_x, max_y); all zeros for no points."""
    if not points:
        return (0.0, 0.0, 0.0, 0.0)
    xs = [p[0] for p in points]
    ys = [p[1] for p in points]
    return (min(xs), min(ys), max(xs), max(ys))


def bbox_area(bbox: BBox) -> float:
    return (bbox[2] - bbox[0]) * (bbox[3] - bbox[1])


def bbox_contains(bbox: BBox, point: Point) -> bool:
    """Closed-interval containment test."""
    return bbox[0] <= point[0] <= bbox[2] and bbox[1] <= point[1] <= bbox[3]

"""Contour nesting analysis for traced outlines.

The tracer returns every boundary it found as a flat list: outer edges of
ink regions and the edges of the holes inside them alike. This module
rebuilds the nesting tree so each outer contour can be emitted together with
its holes as one compound path:

- Each contour's parent is the smallest contour containing it
- Even depth contours are filled outlines, odd depth contours are holes
- A hole joins the compound group of its parent outline
"""

from collections.abc import Sequence
from dataclasses import dataclass

from frametrace.core.geometry import (
    BBox,
    Point,
    bbox_area,
    bbox_contains,
    bounding_box,
    point_in_polygon,
)


@dataclass
class ContourNode:
    """A node in the contour nesting tree.

    Attributes:
        index: Index of this contour in the analyzed list
        parent: Index of the smallest enclosing contour (None if top-level)
        children: Indices of directly enclosed contours
        depth: Nesting depth (0 for top-level)
    """

    index: int
    parent: int | None
    children: list[int]
    depth: int

    @property
    def is_hole(self) -> bool:
        return self.depth % 2 == 1


@dataclass
class ContourNesting:
    """Nesting tree of a set of contours.

    Attributes:
        nodes: ContourNode for each analyzed contour, keyed by index
        groups: Compound groups in input order of their outline; each group
            is ``[outline_index, hole_index, ...]``
    """

    nodes: dict[int, ContourNode]
    groups: list[list[int]]

    def holes(self) -> list[int]:
        return [idx for idx, node in self.nodes.items() if node.is_hole]

    def has_holes(self) -> bool:
        return any(node.is_hole for node in self.nodes.values())


class NestingAnalyzer:
    """Builds contour nesting trees with point-in-polygon tests.

    The analyzer is stateless and safe for use in worker processes.
    """

    def analyze(self, contours: Sequence[Sequence[Point]]) -> ContourNesting:
        """Analyze a list of closed polygons.

        Args:
            contours: Polygons, each a sequence of (x, y) vertices

        Returns:
            ContourNesting with the tree and the compound groups
        """
        if not contours:
            return ContourNesting(nodes={}, groups=[])

        bboxes = [bounding_box(points) for points in contours]
        parent_map = self._find_parents(contours, bboxes)

        def get_depth(idx: int, memo: dict[int, int]) -> int:
            if idx in memo:
                return memo[idx]
            parent = parent_map[idx]
            memo[idx] = 0 if parent is None else get_depth(parent, memo) + 1
            return memo[idx]

        depth_memo: dict[int, int] = {}
        nodes: dict[int, ContourNode] = {}
        for idx in range(len(contours)):
            nodes[idx] = ContourNode(
                index=idx,
                parent=parent_map[idx],
                children=[],
                depth=get_depth(idx, depth_memo),
            )

        for idx, node in nodes.items():
            if node.parent is not None:
                nodes[node.parent].children.append(idx)

        groups: list[list[int]] = []
        group_of: dict[int, list[int]] = {}
        for idx, node in nodes.items():
            if not node.is_hole:
                group = [idx]
                groups.append(group)
                group_of[idx] = group

        for idx, node in nodes.items():
            if node.is_hole and node.parent is not None:
                group_of[node.parent].append(idx)

        return ContourNesting(nodes=nodes, groups=groups)

    def _find_parents(
        self,
        contours: Sequence[Sequence[Point]],
        bboxes: list[BBox],
    ) -> dict[int, int | None]:
        """Map each contour to its smallest enclosing contour."""
        areas = [bbox_area(bbox) for bbox in bboxes]
        parent_map: dict[int, int | None] = {}

        for idx, points in enumerate(contours):
            if not points:
                parent_map[idx] = None
                continue

            test_point = points[0]
            candidates = [
                other
                for other, other_points in enumerate(contours)
                if other != idx
                and areas[other] > areas[idx]
                and bbox_contains(bboxes[other], test_point)
                and point_in_polygon(test_point, other_points)
            ]

            parent_map[idx] = min(candidates, key=lambda i: areas[i]) if candidates else None

        return parent_map

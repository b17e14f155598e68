"""Vector-side types: tracer documents, view boxes and decomposition modes."""

from dataclasses import dataclass
from enum import Enum
from typing import Any

# A single path-data string ("M 10 10 L 20 10 ... Z"), simple or compound.
PathRecord = str


class DecompositionMode(str, Enum):
    """How a traced path-data string is turned into path records.

    - FLATTEN: split at every moveto; each subpath becomes its own record.
      Holes are lost (an "O" becomes two filled discs).
    - COMPOUND: keep each path-data string whole so even-odd holes survive.
    """

    FLATTEN = "flatten"
    COMPOUND = "compound"


@dataclass(frozen=True, slots=True)
class ViewBox:
    """Coordinate frame the path data is expressed in."""

    left: float
    top: float
    width: float
    height: float

    @classmethod
    def default(cls) -> "ViewBox":
        """Canonical frame used when a document declares none."""
        return cls(left=0, top=0, width=1000, height=1000)

    def to_dict(self) -> dict[str, float]:
        return {
            "width": self.width,
            "height": self.height,
            "left": self.left,
            "top": self.top,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ViewBox":
        return cls(
            left=data["left"],
            top=data["top"],
            width=data["width"],
            height=data["height"],
        )


@dataclass(frozen=True, slots=True)
class VectorDocument:
    """Raw tracer output.

    Attributes:
        svg: SVG document text holding ordered <path d=...> elements and one
            viewBox declaration on the root element
        width: Width of the traced raster in pixels
        height: Height of the traced raster in pixels
    """

    svg: str
    width: int
    height: int

"""Job description types.

A Job is one conversion request: an input (image bytes or text), the job
kind that selects profile, normalization variant, decomposition mode and cap,
and an optional mode override. Jobs serialize to plain dicts so they can be
handed to worker processes.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from frametrace.domain.vector import DecompositionMode


class JobKind(str, Enum):
    """Endpoint / job kind."""

    VECTORIZE = "vectorize"
    SMART_CROP = "smart-crop"
    REMOVE_BACKGROUND = "remove-bg"
    TEXT = "text"
    GLYPH = "glyph"
    SHAPE = "shape"

    @property
    def is_text(self) -> bool:
        return self in (JobKind.TEXT, JobKind.GLYPH)


class NormalizeVariant(str, Enum):
    """Raster normalization variant."""

    STANDARD = "standard"
    AUTO_CROP = "auto-crop"
    FOREGROUND = "foreground"


class TextMode(str, Enum):
    """Text conversion shape: one frame for the string, or one per character."""

    COMBINED = "combined"
    INDIVIDUAL = "individual"


@dataclass(frozen=True)
class Job:
    """A single-item conversion request.

    Exactly one of ``data`` (image kinds) or ``text`` (text kinds) is set.

    Attributes:
        kind: Job kind
        name: Item label (file name or character)
        data: Encoded image bytes
        text: Text to render
        font_size: Pixel size for text rendering
        font_key: Font registry key for text rendering
        mode: Decomposition mode override (None = the kind's default)
    """

    kind: JobKind
    name: str = ""
    data: bytes | None = None
    text: str | None = None
    font_size: int | None = None
    font_key: str | None = None
    mode: DecompositionMode | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for IPC."""
        return {
            "kind": self.kind.value,
            "name": self.name,
            "data": self.data,
            "text": self.text,
            "font_size": self.font_size,
            "font_key": self.font_key,
            "mode": self.mode.value if self.mode else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Job":
        """Deserialize from dictionary."""
        return cls(
            kind=JobKind(data["kind"]),
            name=data.get("name", ""),
            data=data.get("data"),
            text=data.get("text"),
            font_size=data.get("font_size"),
            font_key=data.get("font_key"),
            mode=DecompositionMode(data["mode"]) if data.get("mode") else None,
        )

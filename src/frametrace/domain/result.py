"""Conversion results returned by the job orchestrator."""

from dataclasses import dataclass, field
from typing import Any

from frametrace.domain.raster import CropBox
from frametrace.domain.vector import PathRecord, ViewBox
from frametrace.exceptions import PerItemError


@dataclass(frozen=True)
class ConversionResult:
    """Outcome of one successful single-item pipeline run.

    Attributes:
        paths: Path records, at most the job's cap
        view_box: Frame the path data is expressed in
        crop: Trim metadata for auto-cropped inputs
    """

    paths: list[PathRecord]
    view_box: ViewBox
    crop: CropBox | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the JSON shape served to callers."""
        data: dict[str, Any] = {
            "paths": list(self.paths),
            "viewBox": self.view_box.to_dict(),
        }
        if self.crop is not None:
            data["crop"] = self.crop.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ConversionResult":
        """Deserialize from dictionary."""
        crop = data.get("crop")
        return cls(
            paths=list(data["paths"]),
            view_box=ViewBox.from_dict(data["viewBox"]),
            crop=CropBox.from_dict(crop) if crop else None,
        )


@dataclass(frozen=True)
class ItemResult:
    """One slot of a batch or per-character result list.

    Holds either a ConversionResult or the item's PerItemError, never both.
    """

    name: str
    result: ConversionResult | None = None
    error: PerItemError | None = None
    duration_ms: float = field(default=0.0, compare=False)

    def __post_init__(self) -> None:
        if (self.result is None) == (self.error is None):
            raise ValueError("ItemResult needs exactly one of result or error")

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def paths(self) -> list[PathRecord]:
        return self.result.paths if self.result is not None else []

    @property
    def view_box(self) -> ViewBox | None:
        return self.result.view_box if self.result is not None else None

    @classmethod
    def success(cls, name: str, result: ConversionResult, duration_ms: float = 0.0) -> "ItemResult":
        return cls(name=name, result=result, duration_ms=duration_ms)

    @classmethod
    def failure(cls, name: str, message: str, duration_ms: float = 0.0) -> "ItemResult":
        return cls(name=name, error=PerItemError(name, message), duration_ms=duration_ms)

    def to_dict(self, key: str = "name") -> dict[str, Any]:
        """Serialize one slot.

        Args:
            key: Label key, "name" for batches and "letter" for characters

        Returns:
            ``{key, paths, viewBox[, crop]}`` or ``{key, error}``
        """
        if self.result is None:
            return {key: self.name, "error": self.error.message if self.error else ""}
        return {key: self.name, **self.result.to_dict()}

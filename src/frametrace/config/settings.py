"""Configuration settings for frametrace."""

from collections.abc import Mapping
from enum import Enum
from pathlib import Path
from types import MappingProxyType

from pydantic import BaseModel, ConfigDict, Field

from frametrace.domain import DecompositionMode, JobKind, NormalizeVariant


class Profile(BaseModel):
    """Named bundle of binarization and tracing parameters.

    Immutable; selected per job kind.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    min_contour_area: int = Field(
        default=20,
        ge=0,
        description="Contours enclosing fewer pixels than this are dropped as speckle",
    )
    optimize_curves: bool = Field(
        default=True,
        description="Ask the tracer to join segments into smoother curves",
    )
    threshold: int = Field(
        default=160,
        ge=0,
        le=255,
        description="Luminance at or above which a pixel is background",
    )
    fill_tag: str = Field(default="black", description="Fill colour written on traced paths")
    background_tag: str = Field(
        default="transparent",
        description="Background colour of the traced document",
    )


class JobSpec(BaseModel):
    """What a job kind runs: profile, normalization variant, mode and cap."""

    model_config = ConfigDict(frozen=True)

    profile: str
    variant: NormalizeVariant = NormalizeVariant.STANDARD
    mode: DecompositionMode = DecompositionMode.FLATTEN
    cap: int = Field(default=200, ge=1, description="Maximum path records emitted")


def _profiles(*profiles: Profile) -> Mapping[str, Profile]:
    return MappingProxyType({p.name: p for p in profiles})


DEFAULT_PROFILES: Mapping[str, Profile] = _profiles(
    Profile(name="vectorize", min_contour_area=20, threshold=160),
    Profile(name="smart-crop", min_contour_area=20, threshold=160),
    Profile(name="remove-bg", min_contour_area=20, threshold=200),
    Profile(name="text", min_contour_area=10, threshold=128),
    Profile(name="glyph", min_contour_area=4, threshold=128),
    Profile(name="shape", min_contour_area=10, threshold=160),
)

JOB_SPECS: Mapping[JobKind, JobSpec] = MappingProxyType(
    {
        JobKind.VECTORIZE: JobSpec(profile="vectorize"),
        JobKind.SMART_CROP: JobSpec(profile="smart-crop", variant=NormalizeVariant.AUTO_CROP),
        JobKind.REMOVE_BACKGROUND: JobSpec(
            profile="remove-bg", variant=NormalizeVariant.FOREGROUND
        ),
        JobKind.TEXT: JobSpec(profile="text", mode=DecompositionMode.COMPOUND, cap=300),
        JobKind.GLYPH: JobSpec(profile="glyph", mode=DecompositionMode.COMPOUND, cap=300),
        JobKind.SHAPE: JobSpec(
            profile="shape",
            variant=NormalizeVariant.AUTO_CROP,
            mode=DecompositionMode.COMPOUND,
            cap=300,
        ),
    }
)


def build_profile_registry(overrides: list[Profile] | None = None) -> Mapping[str, Profile]:
    """Build the read-only profile registry.

    Args:
        overrides: Profiles replacing (by name) or extending the defaults

    Returns:
        Immutable mapping of profile name to Profile
    """
    profiles = dict(DEFAULT_PROFILES)
    for profile in overrides or []:
        profiles[profile.name] = profile
    return MappingProxyType(profiles)


class TurnPolicy(str, Enum):
    """How the tracer resolves ambiguous pixel corners."""

    BLACK = "black"
    WHITE = "white"
    LEFT = "left"
    RIGHT = "right"
    MINORITY = "minority"
    MAJORITY = "majority"
    RANDOM = "random"


class LimitsConfig(BaseModel):
    """Request validation limits."""

    max_input_bytes: int = Field(
        default=5 * 1024 * 1024,
        ge=1,
        description="Largest accepted upload",
    )
    max_batch_items: int = Field(default=20, ge=1, description="Largest accepted batch")
    max_text_length: int = Field(
        default=50,
        ge=1,
        description="Longer text is truncated before rendering",
    )
    min_font_size: int = Field(default=20, ge=1, description="Smallest accepted font size")
    max_font_size: int = Field(default=500, ge=1, description="Largest accepted font size")


class RasterConfig(BaseModel):
    """Raster normalization settings."""

    max_dimension: int | None = Field(
        default=None,
        ge=16,
        description="Cap on the target square (None = the image's own longest side)",
    )
    contrast_cutoff: float = Field(
        default=1.0,
        ge=0.0,
        le=49.0,
        description="Percent of darkest/lightest pixels clipped by contrast stretching",
    )
    trim_tolerance: int = Field(
        default=10,
        ge=0,
        le=255,
        description="Difference from the corner colour that counts as content when trimming",
    )
    alpha_threshold: int = Field(
        default=128,
        ge=0,
        le=255,
        description="Alpha at or above which a pixel is foreground in foreground isolation",
    )


class TextConfig(BaseModel):
    """Text rendering settings."""

    default_font: str = Field(default="sans-bold", description="Font key used when none is given")
    default_font_size: int = Field(default=200, ge=1, description="Default pixel size")
    crop_tolerance: int = Field(
        default=10,
        ge=0,
        le=254,
        description="Darkness below which anti-aliased pixels are ignored when cropping",
    )
    font_dirs: list[Path] = Field(
        default_factory=lambda: [
            Path("/usr/share/fonts"),
            Path("/usr/local/share/fonts"),
            Path.home() / ".fonts",
            Path.home() / ".local/share/fonts",
            Path("/Library/Fonts"),
            Path("/System/Library/Fonts"),
            Path("C:/Windows/Fonts"),
        ],
        description="Directories scanned for TrueType/OpenType files",
    )


class TracerConfig(BaseModel):
    """Settings passed through to the tracing engine."""

    alpha_max: float = Field(
        default=1.0,
        ge=0.0,
        le=1.3334,
        description="Corner threshold (0 = polygons, 1.3334 = no corners)",
    )
    opt_tolerance: float = Field(default=0.2, ge=0.0, description="Curve optimization tolerance")
    turn_policy: TurnPolicy = Field(default=TurnPolicy.MINORITY, description="Turn policy")
    precision: int = Field(default=2, ge=0, le=6, description="Decimals in emitted coordinates")


class ProcessingConfig(BaseModel):
    """Configuration for batch processing."""

    max_workers: int = Field(
        default=1,
        ge=1,
        description="Worker processes for batch items (1 = sequential)",
    )
    item_timeout_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Per-item time limit, enforced in worker processes (None = unlimited)",
    )

    @property
    def uses_workers(self) -> bool:
        """Whether multi-item runs go through worker processes."""
        return self.max_workers > 1 or self.item_timeout_seconds is not None


class LoggingConfig(BaseModel):
    """Logging configuration."""

    log_file: Path | None = Field(
        default=None,
        description="Path to log file",
    )
    log_level: str = Field(
        default="WARNING",
        description="Console log level",
    )
    file_log_level: str = Field(
        default="DEBUG",
        description="File log level (more verbose)",
    )
    json_format: bool = Field(
        default=True,
        description="Render events as JSON lines (False = key=value text)",
    )


class ServerConfig(BaseModel):
    """HTTP service settings."""

    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=3000, ge=1, le=65535, description="Bind port")


class FrameTraceSettings(BaseModel):
    """Main application settings."""

    profiles: list[Profile] = Field(
        default_factory=list,
        description="Profile overrides applied on top of the built-in profiles",
    )
    limits: LimitsConfig = Field(default_factory=LimitsConfig)
    raster: RasterConfig = Field(default_factory=RasterConfig)
    text: TextConfig = Field(default_factory=TextConfig)
    tracer: TracerConfig = Field(default_factory=TracerConfig)
    processing: ProcessingConfig = Field(default_factory=ProcessingConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)


def get_default_settings() -> FrameTraceSettings:
    """Get default application settings."""
    return FrameTraceSettings()

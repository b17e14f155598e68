"""Tests for settings, profiles and job specs."""

import pytest
from pydantic import ValidationError

from frametrace.config import (
    DEFAULT_PROFILES,
    JOB_SPECS,
    FrameTraceSettings,
    Profile,
    TracerConfig,
    build_profile_registry,
    get_default_settings,
)
from frametrace.domain import DecompositionMode, JobKind, NormalizeVariant


class TestProfiles:
    """Tests for the built-in profile table."""

    @pytest.mark.parametrize(
        ("name", "min_area", "threshold"),
        [
            ("vectorize", 20, 160),
            ("smart-crop", 20, 160),
            ("remove-bg", 20, 200),
            ("text", 10, 128),
            ("glyph", 4, 128),
            ("shape", 10, 160),
        ],
    )
    def test_defaults(self, name: str, min_area: int, threshold: int) -> None:
        profile = DEFAULT_PROFILES[name]
        assert profile.min_contour_area == min_area
        assert profile.threshold == threshold
        assert profile.optimize_curves
        assert profile.fill_tag == "black"
        assert profile.background_tag == "transparent"

    def test_profiles_are_frozen(self) -> None:
        with pytest.raises(ValidationError):
            DEFAULT_PROFILES["vectorize"].threshold = 10  # type: ignore[misc]

    def test_registry_is_read_only(self) -> None:
        registry = build_profile_registry()
        with pytest.raises(TypeError):
            registry["vectorize"] = Profile(name="vectorize")  # type: ignore[index]

    def test_overrides_replace_by_name(self) -> None:
        registry = build_profile_registry([Profile(name="text", threshold=100), Profile(name="new")])

        assert registry["text"].threshold == 100
        assert "new" in registry
        assert registry["vectorize"] == DEFAULT_PROFILES["vectorize"]
        assert DEFAULT_PROFILES["text"].threshold == 128

    @pytest.mark.parametrize("threshold", [-1, 256])
    def test_threshold_range(self, threshold: int) -> None:
        with pytest.raises(ValidationError):
            Profile(name="bad", threshold=threshold)


class TestJobSpecs:
    """Tests for the job kind table."""

    def test_every_kind_has_a_spec(self) -> None:
        assert set(JOB_SPECS) == set(JobKind)

    def test_every_spec_has_a_profile(self) -> None:
        assert all(spec.profile in DEFAULT_PROFILES for spec in JOB_SPECS.values())

    @pytest.mark.parametrize(
        ("kind", "variant", "mode", "cap"),
        [
            (JobKind.VECTORIZE, NormalizeVariant.STANDARD, DecompositionMode.FLATTEN, 200),
            (JobKind.SMART_CROP, NormalizeVariant.AUTO_CROP, DecompositionMode.FLATTEN, 200),
            (JobKind.REMOVE_BACKGROUND, NormalizeVariant.FOREGROUND, DecompositionMode.FLATTEN, 200),
            (JobKind.TEXT, NormalizeVariant.STANDARD, DecompositionMode.COMPOUND, 300),
            (JobKind.GLYPH, NormalizeVariant.STANDARD, DecompositionMode.COMPOUND, 300),
            (JobKind.SHAPE, NormalizeVariant.AUTO_CROP, DecompositionMode.COMPOUND, 300),
        ],
    )
    def test_spec_table(
        self,
        kind: JobKind,
        variant: NormalizeVariant,
        mode: DecompositionMode,
        cap: int,
    ) -> None:
        spec = JOB_SPECS[kind]
        assert (spec.variant, spec.mode, spec.cap) == (variant, mode, cap)


class TestSettings:
    """Tests for the settings tree."""

    def test_defaults(self) -> None:
        settings = get_default_settings()

        assert settings.limits.max_input_bytes == 5 * 1024 * 1024
        assert settings.limits.max_batch_items == 20
        assert (settings.limits.min_font_size, settings.limits.max_font_size) == (20, 500)
        assert settings.processing.max_workers == 1
        assert settings.server.port == 3000

    def test_round_trips_through_dump(self) -> None:
        settings = FrameTraceSettings(profiles=[Profile(name="text", threshold=90)])

        restored = FrameTraceSettings.model_validate(settings.model_dump())

        assert restored == settings

    def test_alpha_max_bounds(self) -> None:
        with pytest.raises(ValidationError):
            TracerConfig(alpha_max=2.0)

"""Configuration management for frametrace.

This module provides configuration management using Pydantic models.
Configuration can be provided via CLI arguments or defaults.

Key classes:
- Profile: Binarization and tracing parameters for one job kind
- JobSpec: Profile, normalization variant, decomposition mode and cap of a job kind
- LimitsConfig: Request validation limits
- RasterConfig: Normalization settings
- TextConfig: Text rendering settings
- TracerConfig: Tracing engine settings
- ProcessingConfig: Batch processing settings
- LoggingConfig: Logging settings
- FrameTraceSettings: Main application settings
"""

from frametrace.config.settings import (
    DEFAULT_PROFILES,
    JOB_SPECS,
    FrameTraceSettings,
    JobSpec,
    LimitsConfig,
    LoggingConfig,
    ProcessingConfig,
    Profile,
    RasterConfig,
    ServerConfig,
    TextConfig,
    TracerConfig,
    TurnPolicy,
    build_profile_registry,
    get_default_settings,
)

__all__ = [
    "DEFAULT_PROFILES",
    "JOB_SPECS",
    "FrameTraceSettings",
    "JobSpec",
    "LimitsConfig",
    "LoggingConfig",
    "ProcessingConfig",
    "Profile",
    "RasterConfig",
    "ServerConfig",
    "TextConfig",
    "TracerConfig",
    "TurnPolicy",
    "build_profile_registry",
    "get_default_settings",
]

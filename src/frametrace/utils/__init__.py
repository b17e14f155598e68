"""Utility functions for frametrace.

This module provides:

- Logging setup and configuration
- Per-item progress logging and statistics
"""

from frametrace.utils.logging import (
    ProcessingLogger,
    ProcessingStats,
    configure_logging,
)

__all__ = [
    "ProcessingLogger",
    "ProcessingStats",
    "configure_logging",
]

"""Shared test wiring."""

import pytest

from frametrace.utils import configure_logging


@pytest.fixture(autouse=True)
def _reset_logging():
    """Detach handlers a test installed via configure_logging, for isolation."""
    yield
    configure_logging(quiet=True)

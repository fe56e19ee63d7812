"""Shared pytest configuration."""

from __future__ import annotations

import pytest
import structlog


@pytest.fixture(autouse=True)
def _reset_structlog():
    """CLI tests configure structlog globally; restore defaults after each test."""
    yield
    structlog.reset_defaults()

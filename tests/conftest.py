"""
Shared pytest fixtures and configuration for asyncinit tests.

This module provides:
- Automatic unit/integration markers based on test location
- Settings fixtures isolated from the developer's environment
"""

import sys
from pathlib import Path
from typing import Generator

import pytest

# Ensure asyncinit package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from asyncinit.core.settings import AsyncInitSettings, get_settings


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark tests based on their location."""
    for item in items:
        test_path = Path(item.fspath).relative_to(Path(__file__).parent)

        if "integration" in str(test_path):
            item.add_marker(pytest.mark.integration)

        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration", "slow"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Settings Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def clean_settings_cache(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Drop cached settings and any ASYNC_INIT_* variables around each test."""
    for key in ("DEBUG", "DEFER_FAILURE", "HEARTBEAT_INTERVAL", "LOG_LEVEL", "LOG_JSON"):
        monkeypatch.delenv(f"ASYNC_INIT_{key}", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings() -> AsyncInitSettings:
    """Quiet settings with a fast heartbeat, ignoring any .env file."""
    return AsyncInitSettings(_env_file=None, heartbeat_interval=0.01)

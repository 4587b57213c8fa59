"""driverbridge test configuration — shared fixtures for unit and integration tests."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest


# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------

FIXTURES_DIR = Path(__file__).parent / "fixtures"
FAKE_DRIVER = FIXTURES_DIR / "fake_driver.py"


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_settings_cache():
    """Clear the settings LRU cache between tests."""
    from driverbridge.settings.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# ---------------------------------------------------------------------------
# Fake driver
# ---------------------------------------------------------------------------


@pytest.fixture()
def fake_driver_config():
    """Return a factory for ``ServiceConfig`` objects that launch ``fake_driver.py``.

    The Python interpreter plays the driver executable; the script path and
    ``--mode`` go in as extra arguments ahead of the port arguments.
    """
    from driverbridge.service.config import ServiceConfig

    def _make(mode: str = "legacy", **overrides) -> ServiceConfig:
        interpreter = Path(sys.executable)
        params = dict(
            executable_path=str(interpreter.parent),
            executable_file_name=interpreter.name,
            host="127.0.0.1",
            extra_arguments=(str(FAKE_DRIVER), "--mode", mode),
            download_url="https://example.test/driver",
            initialization_timeout=10.0,
            termination_timeout=2.0,
            poll_interval=0.05,
            probe_timeout=1.0,
        )
        params.update(overrides)
        return ServiceConfig(**params)

    return _make


# ---------------------------------------------------------------------------
# Pytest markers
# ---------------------------------------------------------------------------


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests that spawn real processes or open sockets")
    config.addinivalue_line("markers", "slow: marks tests that take more than a few seconds")

# tests/conftest.py
from __future__ import annotations

"""
Pytest configuration for the astrocusp suite.

- Registers Hypothesis profiles for local dev and CI.
- Freezes the process TZ to UTC (zones are always passed explicitly).
- Provides an ERFA handle for independent cross-checks.
- Shares one ChartEngine and one Flask test client per session.
"""

import os
import pytest
from hypothesis import settings, HealthCheck


# ──────────────────────────────────────────────────────────────────────────────
# Hypothesis profiles
# ──────────────────────────────────────────────────────────────────────────────
settings.register_profile(
    "dev",
    settings(
        deadline=None,
        max_examples=60,
        suppress_health_check=[HealthCheck.too_slow],
    ),
)
settings.register_profile(
    "ci",
    settings(
        deadline=None,
        max_examples=200,
        suppress_health_check=[HealthCheck.too_slow],
    ),
)

_profile = (
    "ci"
    if (os.getenv("CI") or os.getenv("GITHUB_ACTIONS"))
    else os.getenv("HYPOTHESIS_PROFILE", "dev")
)
settings.load_profile(_profile)


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "slow: mark test as slow")


def pytest_report_header(config: pytest.Config) -> str:
    return f"Hypothesis profile: '{_profile}'"


# ──────────────────────────────────────────────────────────────────────────────
# Global fixtures
# ──────────────────────────────────────────────────────────────────────────────

@pytest.fixture(scope="session", autouse=True)
def freeze_tz_env():
    prev = os.environ.get("TZ")
    os.environ["TZ"] = "UTC"
    try:
        yield
    finally:
        if prev is None:
            os.environ.pop("TZ", None)
        else:
            os.environ["TZ"] = prev


@pytest.fixture(scope="session")
def erfa_lib():
    """pyERFA as an independent reference for JD, obliquity and sidereal time."""
    import erfa
    for fn in ("cal2jd", "obl80", "nut80", "gmst82"):
        assert hasattr(erfa, fn), f"ERFA.{fn} not available"
    return erfa


@pytest.fixture(scope="session")
def ensure_tzdata():
    from zoneinfo import ZoneInfo
    for name in ("UTC", "Europe/Paris", "America/New_York"):
        ZoneInfo(name)


@pytest.fixture(scope="session")
def dataset():
    from astrocusp.core.ephemeris import load_vsop87
    return load_vsop87()


@pytest.fixture(scope="session")
def engine(dataset):
    from astrocusp.core.chart import ChartEngine
    from astrocusp.core.ephemeris import SunEphemeris
    from astrocusp.utils.config import EngineConfig
    return ChartEngine(EngineConfig(), SunEphemeris(dataset))


@pytest.fixture()
def client(engine):
    from astrocusp.main import create_app
    app = create_app(engine=engine)
    app.testing = True
    return app.test_client()

# tests/conftest.py
from __future__ import annotations

"""
Pytest configuration for the astromap suite.

- Registers Hypothesis profiles for local dev and CI.
- Freezes the process TZ to UTC (we always pass IANA zones explicitly).
- Sanity-checks ERFA availability.
- Shared fixtures: a fixed ten-body chart and a Flask test client backed by
  a static ephemeris, so nothing here needs a JPL kernel.
"""

import os
import pytest
from hypothesis import settings, HealthCheck

from astromap.core.constants import MAJORS
from astromap.core.models import EquatorialCoordinate


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
        max_examples=120,
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
    config.addinivalue_line("markers", "slow: mark test as slow (process pools, full grids)")
    config.addinivalue_line("filterwarnings", "ignore::DeprecationWarning")


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
def ensure_erfa():
    """Fail early if pyERFA is missing the calls the timescale chain uses."""
    import erfa
    for name in ("dtf2d", "utctai", "taitt", "utcut1", "ee06a"):
        assert hasattr(erfa, name), f"ERFA.{name} not available"
    return erfa


# Roughly the sky of 2000-01-01 12:00 TT; exact values don't matter, only
# that they are fixed and spread over both hemispheres.
CHART = {
    "Sun": (281.29, -23.03),
    "Moon": (223.32, -10.90),
    "Mercury": (271.89, -24.42),
    "Venus": (241.57, -20.87),
    "Mars": (327.96, -13.19),
    "Jupiter": (25.23, 8.60),
    "Saturn": (40.40, 12.61),
    "Uranus": (314.80, -17.01),
    "Neptune": (303.19, -19.98),
    "Pluto": (251.45, -11.38),
}


@pytest.fixture(scope="session")
def chart():
    return {b: EquatorialCoordinate(ra, dec) for b, (ra, dec) in CHART.items()}


@pytest.fixture(scope="session")
def equal_weights():
    return {b: 1.0 for b in MAJORS}


@pytest.fixture()
def client(chart):
    from astromap.core.ephemeris import StaticEphemeris
    from astromap.main import create_app

    app = create_app(ephemeris=StaticEphemeris(chart))
    app.testing = True
    return app.test_client()

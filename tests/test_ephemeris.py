# tests/test_ephemeris.py
from __future__ import annotations

import os

import pytest

from astromap.core.ephemeris import (
    EphemerisError,
    SkyfieldEphemeris,
    StaticEphemeris,
    provider_from_env,
)
from astromap.core.models import EquatorialCoordinate

KERNEL = os.getenv("ASTRO_EPHEMERIS", "de421.bsp")


def test_static_provider_returns_requested_bodies(chart) -> None:
    prov = StaticEphemeris(chart)
    out = prov.equatorial_positions(2451545.0, ["Moon", "Sun"])
    assert list(out) == ["Moon", "Sun"]
    assert out["Sun"] == chart["Sun"]


def test_static_provider_unknown_body() -> None:
    prov = StaticEphemeris({"Sun": EquatorialCoordinate(0.0, 0.0)})
    with pytest.raises(EphemerisError) as ei:
        prov.equatorial_positions(2451545.0, ["Sun", "Vulcan"])
    assert ei.value.stage == "body"
    assert ei.value.context == {"body": "Vulcan"}


def test_provider_from_env(monkeypatch) -> None:
    monkeypatch.setenv("ASTRO_EPHEMERIS", "/data/de440s.bsp")
    assert provider_from_env().kernel_path == "/data/de440s.bsp"
    assert provider_from_env("other.bsp").kernel_path == "other.bsp"


def test_missing_kernel_is_categorized(tmp_path) -> None:
    prov = SkyfieldEphemeris(str(tmp_path / "absent.bsp"))
    with pytest.raises(EphemerisError) as ei:
        prov.equatorial_positions(2451545.0, ["Sun"])
    assert ei.value.stage == "kernel"


@pytest.mark.slow
@pytest.mark.skipif(not os.path.exists(KERNEL), reason=f"JPL kernel {KERNEL} not available")
def test_skyfield_sun_at_j2000() -> None:
    pos = SkyfieldEphemeris(KERNEL).equatorial_positions(2451545.0, ["Sun", "Jupiter"])
    # apparent Sun of date at J2000: RA 18h45m ≈ 281.3°, Dec ≈ -23.0°
    assert pos["Sun"].ra == pytest.approx(281.3, abs=0.2)
    assert pos["Sun"].dec == pytest.approx(-23.0, abs=0.2)
    assert 0.0 <= pos["Jupiter"].ra < 360.0
    with pytest.raises(EphemerisError):
        SkyfieldEphemeris(KERNEL).equatorial_positions(2451545.0, ["Chiron"])

# tests/test_sda.py
from __future__ import annotations

import pytest
from hypothesis import given, strategies as st

from astromap.core.sda import (
    calculate_sda,
    circumpolar_latitudes,
    diurnal_arc_hours,
    hour_angle_at_altitude,
    is_circumpolar,
    latitude_for_hour_angle,
    never_rises,
    nocturnal_arc_hours,
    rise_set_latitude_range,
)

lats = st.floats(min_value=-90.0, max_value=90.0, allow_nan=False)
decs = st.floats(min_value=-89.0, max_value=89.0, allow_nan=False)


def test_equator_equinox_half_arc() -> None:
    arc = calculate_sda(0.0, 0.0)
    assert arc.is_normal
    assert arc.sda == pytest.approx(90.0)
    assert arc.rise_ha == pytest.approx(-90.0)
    assert arc.set_ha == pytest.approx(90.0)


def test_circumpolar_boundary_for_solstice_declination() -> None:
    # 90 - 24 = 66: poleward of that the body never sets
    assert calculate_sda(67.0, 24.0).never_sets
    assert is_circumpolar(67.0, 24.0)
    assert calculate_sda(65.0, 24.0).is_normal
    assert calculate_sda(-67.0, 24.0).never_rises
    assert never_rises(-67.0, 24.0)


@pytest.mark.parametrize("lat,dec,down,up", [
    (90.0, 10.0, False, True),    # north pole, northern body: up all day
    (90.0, -10.0, True, False),   # north pole, southern body: down all day
    (-90.0, -5.0, False, True),
    (90.0, 0.0, True, False),     # on the horizon at the pole counts as down
])
def test_pole_guard(lat: float, dec: float, down: bool, up: bool) -> None:
    arc = calculate_sda(lat, dec)
    assert arc.never_rises == down
    assert arc.never_sets == up


@given(lats, decs)
def test_exactly_one_state(lat: float, dec: float) -> None:
    arc = calculate_sda(lat, dec)
    assert [arc.is_normal, arc.never_rises, arc.never_sets].count(True) == 1
    if arc.is_normal:
        assert 0.0 <= arc.sda <= 180.0
        assert arc.rise_ha == -arc.set_ha
    else:
        assert arc.rise_ha is None and arc.set_ha is None


@given(st.floats(min_value=-89.0, max_value=89.0), decs)
def test_hemisphere_mirror(lat: float, dec: float) -> None:
    a, b = calculate_sda(lat, dec), calculate_sda(-lat, -dec)
    assert a.is_normal == b.is_normal
    if a.is_normal:
        assert a.sda == pytest.approx(b.sda, abs=1e-9)


def test_latitude_for_hour_angle_inverts_sda() -> None:
    arc = calculate_sda(40.0, 20.0)
    assert latitude_for_hour_angle(arc.set_ha, 20.0) == pytest.approx(40.0, abs=1e-9)
    assert latitude_for_hour_angle(90.0, 0.0) == 0.0
    assert latitude_for_hour_angle(45.0, 0.0) is None


def test_arc_hours() -> None:
    assert diurnal_arc_hours(0.0, 0.0) == pytest.approx(12.0)
    assert nocturnal_arc_hours(0.0, 0.0) == pytest.approx(12.0)
    assert diurnal_arc_hours(80.0, 20.0) == "always_up"
    assert nocturnal_arc_hours(80.0, 20.0) == "always_down"
    assert diurnal_arc_hours(-80.0, 20.0) == "always_down"


def test_critical_latitudes() -> None:
    c = circumpolar_latitudes(24.0)
    assert c["never_sets_above"] == pytest.approx(66.0)
    assert c["never_rises_above"] == pytest.approx(-66.0)
    assert c["can_be_circumpolar"] is True
    assert circumpolar_latitudes(0.0)["can_be_circumpolar"] is False
    assert rise_set_latitude_range(-30.0) == (-60.0, 60.0)


def test_hour_angle_at_altitude() -> None:
    assert hour_angle_at_altitude(0.0, 0.0, 0.0) == pytest.approx(90.0)
    assert hour_angle_at_altitude(10.0, 10.0, 90.0) == pytest.approx(0.0, abs=1e-5)
    # max altitude is 90 - 60 - 40 = -10, never reaches the horizon
    assert hour_angle_at_altitude(60.0, -40.0, 0.0) is None

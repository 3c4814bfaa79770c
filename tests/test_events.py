# tests/test_events.py
from __future__ import annotations

import pytest
from hypothesis import given, strategies as st

from astromap.core.events import (
    calculate_all_event_times,
    calculate_event_time,
    lst_abs_difference,
    lst_difference,
)


def test_culmination_events() -> None:
    assert calculate_event_time("Sun", 270.0, 10.0, 45.0, "culminate").lst == pytest.approx(270.0)
    anti = calculate_event_time("Sun", 270.0, 10.0, 45.0, "anti_culminate")
    assert anti.lst == pytest.approx(90.0)
    assert anti.is_possible and anti.circumpolar_state is None


def test_equator_rise_and_set() -> None:
    rise = calculate_event_time("Sun", 30.0, 0.0, 0.0, "rise")
    sett = calculate_event_time("Sun", 30.0, 0.0, 0.0, "set")
    assert rise.lst == pytest.approx(300.0)
    assert sett.lst == pytest.approx(120.0)


def test_circumpolar_events_are_impossible() -> None:
    up = calculate_event_time("Sun", 30.0, 20.0, 80.0, "rise")
    assert not up.is_possible
    assert up.circumpolar_state == "always_above"
    assert up.lst == 0.0
    down = calculate_event_time("Sun", 30.0, 20.0, -80.0, "set")
    assert not down.is_possible
    assert down.circumpolar_state == "always_below"
    # meridian passages happen regardless
    assert calculate_event_time("Sun", 30.0, 20.0, 80.0, "culminate").is_possible


def test_all_event_times_order() -> None:
    evs = calculate_all_event_times("Moon", 10.0, 5.0, 30.0)
    assert [e.event for e in evs] == ["rise", "set", "culminate", "anti_culminate"]
    assert all(e.body == "Moon" for e in evs)


@given(
    st.floats(min_value=0.0, max_value=359.9),
    st.floats(min_value=-60.0, max_value=60.0),
    st.floats(min_value=-25.0, max_value=25.0),
)
def test_rise_and_set_straddle_culmination(ra: float, lat: float, dec: float) -> None:
    rise = calculate_event_time("X", ra, dec, lat, "rise")
    sett = calculate_event_time("X", ra, dec, lat, "set")
    assert rise.is_possible and sett.is_possible
    before = lst_difference(ra, rise.lst)
    after = lst_difference(sett.lst, ra)
    assert before == pytest.approx(after, abs=1e-9)
    assert 0.0 <= before <= 180.0


def test_lst_difference_is_signed_and_wrapped() -> None:
    assert lst_difference(10.0, 350.0) == pytest.approx(20.0)
    assert lst_difference(350.0, 10.0) == pytest.approx(-20.0)
    assert lst_abs_difference(350.0, 10.0) == pytest.approx(20.0)

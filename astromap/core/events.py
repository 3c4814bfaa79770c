# astromap/core/events.py
"""
Local sidereal time of a body's four angular events at a given latitude.

LST at which the body reaches hour angle H is RA + H, so
  culminate      -> RA
  anti_culminate -> RA + 180
  rise / set     -> RA -/+ SDA (only where the body crosses the horizon)
"""

from __future__ import annotations

from typing import List, assert_never

from astromap.core.angles import normalize_degrees, normalize_degrees_symmetric
from astromap.core.models import AngularEvent, EventTime
from astromap.core.sda import calculate_sda

__all__ = [
    "calculate_event_time",
    "calculate_all_event_times",
    "lst_difference",
    "lst_abs_difference",
]


def _horizon_event(body: str, ra: float, dec: float, latitude: float, event: AngularEvent) -> EventTime:
    arc = calculate_sda(latitude, dec)
    if arc.never_rises:
        return EventTime(body, event, 0.0, False, "always_below")
    if arc.never_sets:
        return EventTime(body, event, 0.0, False, "always_above")
    ha = arc.rise_ha if event == "rise" else arc.set_ha
    return EventTime(body, event, normalize_degrees(ra + ha), True)


def calculate_event_time(
    body: str, ra: float, dec: float, latitude: float, event: AngularEvent
) -> EventTime:
    if event == "rise" or event == "set":
        return _horizon_event(body, ra, dec, latitude, event)
    elif event == "culminate":
        return EventTime(body, event, normalize_degrees(ra), True)
    elif event == "anti_culminate":
        return EventTime(body, event, normalize_degrees(ra + 180.0), True)
    else:
        assert_never(event)


def calculate_all_event_times(body: str, ra: float, dec: float, latitude: float) -> List[EventTime]:
    return [
        calculate_event_time(body, ra, dec, latitude, ev)
        for ev in ("rise", "set", "culminate", "anti_culminate")
    ]


def lst_difference(lst1: float, lst2: float) -> float:
    """Signed LST gap lst1 - lst2 in [-180, 180)."""
    return normalize_degrees_symmetric(lst1 - lst2)


def lst_abs_difference(lst1: float, lst2: float) -> float:
    return abs(lst_difference(lst1, lst2))

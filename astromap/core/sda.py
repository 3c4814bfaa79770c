# astromap/core/sda.py
"""
Semi-diurnal arc solver.

    cos(H0) = -tan(phi) * tan(delta)

H0 is the hour angle of rising/setting on the geometric horizon (no
refraction, no dip). Out-of-domain cosines are the circumpolar cases.
"""

from __future__ import annotations

from typing import Dict, Optional, Tuple, Union

from astromap.core.angles import acos_deg, atan_deg, clamp, cos_deg, sin_deg, tan_deg
from astromap.core.constants import EPSILON, POLE_GUARD_DEG
from astromap.core.models import SemiDiurnalArc

__all__ = [
    "calculate_sda",
    "circumpolar_latitudes",
    "is_circumpolar",
    "never_rises",
    "latitude_for_hour_angle",
    "diurnal_arc_hours",
    "nocturnal_arc_hours",
    "rise_set_latitude_range",
    "hour_angle_at_altitude",
]

_NEVER_SETS = SemiDiurnalArc(sda=180.0, never_sets=True)
_NEVER_RISES = SemiDiurnalArc(sda=0.0, never_rises=True)


def calculate_sda(latitude: float, declination: float) -> SemiDiurnalArc:
    # tan(lat) blows up at the pole; same-hemisphere bodies stay up, others stay down
    if abs(latitude) > POLE_GUARD_DEG:
        return _NEVER_SETS if latitude * declination > 0 else _NEVER_RISES

    cos_h = -tan_deg(latitude) * tan_deg(declination)
    if cos_h < -1.0 + EPSILON:
        return _NEVER_SETS
    if cos_h > 1.0 - EPSILON:
        return _NEVER_RISES

    sda = acos_deg(cos_h)
    return SemiDiurnalArc(sda=sda, rise_ha=-sda, set_ha=sda)


def circumpolar_latitudes(declination: float) -> Dict[str, Union[float, bool]]:
    """
    Critical latitudes for a declination:
      never_sets_above  - poleward of this (same hemisphere) the body stays up
      never_rises_above - poleward of this (other hemisphere) it stays down
    """
    critical = 90.0 - abs(declination)
    sign = 1.0 if declination >= 0 else -1.0
    return {
        "never_sets_above": sign * critical,
        "never_rises_above": -sign * critical,
        "can_be_circumpolar": abs(declination) > EPSILON,
    }


def is_circumpolar(latitude: float, declination: float) -> bool:
    return calculate_sda(latitude, declination).never_sets


def never_rises(latitude: float, declination: float) -> bool:
    return calculate_sda(latitude, declination).never_rises


def latitude_for_hour_angle(hour_angle: float, declination: float) -> Optional[float]:
    """Inverse problem: the latitude whose rise/set hour angle is ``hour_angle``."""
    if abs(declination) < EPSILON:
        # equatorial bodies rise/set at +-90 everywhere off the poles
        return 0.0 if abs(abs(hour_angle) - 90.0) < EPSILON else None
    lat = atan_deg(-cos_deg(hour_angle) / tan_deg(declination))
    return lat if abs(lat) <= 90.0 else None


def diurnal_arc_hours(latitude: float, declination: float) -> Union[float, str]:
    arc = calculate_sda(latitude, declination)
    if arc.never_sets:
        return "always_up"
    if arc.never_rises:
        return "always_down"
    return 2.0 * arc.sda / 15.0


def nocturnal_arc_hours(latitude: float, declination: float) -> Union[float, str]:
    diurnal = diurnal_arc_hours(latitude, declination)
    if diurnal == "always_up":
        return "always_down"
    if diurnal == "always_down":
        return "always_up"
    return 24.0 - diurnal  # type: ignore[operator]


def rise_set_latitude_range(declination: float) -> Tuple[float, float]:
    """Latitudes at which the body actually crosses the horizon."""
    limit = 90.0 - abs(declination)
    return -limit, limit


def hour_angle_at_altitude(
    latitude: float, declination: float, altitude: float = 0.0
) -> Optional[float]:
    """Hour angle (>= 0) at which the body stands at ``altitude``; None if never."""
    denom = cos_deg(latitude) * cos_deg(declination)
    if abs(denom) < EPSILON:
        return None
    cos_h = (sin_deg(altitude) - sin_deg(latitude) * sin_deg(declination)) / denom
    if cos_h < -1.0 - EPSILON or cos_h > 1.0 + EPSILON:
        return None
    return acos_deg(clamp(cos_h, -1.0, 1.0))

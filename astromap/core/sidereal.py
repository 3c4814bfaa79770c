# astromap/core/sidereal.py
"""
Sidereal time and hour-angle relations.

GMST uses the IAU 1982 polynomial in days/centuries from J2000 (UT1).
GAST adds the equation of the equinoxes, either supplied by the caller or
taken from ERFA (IAU 2006/2000A). Longitudes are east-positive.
"""

from __future__ import annotations

import math
from typing import Optional, Tuple

import erfa  # pyERFA

from astromap.core.angles import (
    asin_deg,
    atan2_deg,
    cos_deg,
    degrees_to_hours,
    normalize_degrees,
    normalize_degrees_symmetric,
    sin_deg,
    to_hms,
)
from astromap.core.constants import (
    DAYS_PER_JULIAN_CENTURY,
    GMST_AT_J2000_DEG,
    GMST_RATE_DEG_PER_DAY,
    GMST_T2_COEFF,
    GMST_T3_DIVISOR,
    J2000,
)

__all__ = [
    "gmst_deg", "equation_of_equinoxes_deg", "gast_deg", "lmst_deg", "last_deg",
    "local_hour_angle", "local_hour_angle_hours",
    "longitude_for_hour_angle", "longitude_for_mc", "longitude_for_ic",
    "jd_for_hour_angle", "jd_for_culmination", "hour_angle_to_hms",
    "altitude_deg", "azimuth_deg", "is_above_horizon",
]


def _split_jd(jd: float) -> Tuple[float, float]:
    d = float(math.floor(jd))
    return d, jd - d


# ── sidereal time ─────────────────────────────────────────────────────────────
def gmst_deg(jd_ut1: float) -> float:
    d = jd_ut1 - J2000
    t = d / DAYS_PER_JULIAN_CENTURY
    theta = (
        GMST_AT_J2000_DEG
        + GMST_RATE_DEG_PER_DAY * d
        + GMST_T2_COEFF * t * t
        - t * t * t / GMST_T3_DIVISOR
    )
    return normalize_degrees(theta)


def equation_of_equinoxes_deg(jd_tt: float) -> float:
    d1, d2 = _split_jd(jd_tt)
    return math.degrees(float(erfa.ee06a(d1, d2)))


def gast_deg(
    jd_ut1: float,
    *,
    jd_tt: Optional[float] = None,
    nutation_in_ra_deg: Optional[float] = None,
) -> float:
    """GMST plus nutation in right ascension."""
    if nutation_in_ra_deg is None:
        nutation_in_ra_deg = equation_of_equinoxes_deg(jd_ut1 if jd_tt is None else jd_tt)
    return normalize_degrees(gmst_deg(jd_ut1) + nutation_in_ra_deg)


def lmst_deg(jd_ut1: float, longitude: float) -> float:
    return normalize_degrees(gmst_deg(jd_ut1) + longitude)


def last_deg(
    jd_ut1: float,
    longitude: float,
    *,
    jd_tt: Optional[float] = None,
    nutation_in_ra_deg: Optional[float] = None,
) -> float:
    gast = gast_deg(jd_ut1, jd_tt=jd_tt, nutation_in_ra_deg=nutation_in_ra_deg)
    return normalize_degrees(gast + longitude)


# ── hour angles ───────────────────────────────────────────────────────────────
def local_hour_angle(jd_ut1: float, longitude: float, ra: float) -> float:
    """Hour angle in degrees, [-180, 180). Negative means east of the meridian."""
    return normalize_degrees_symmetric(lmst_deg(jd_ut1, longitude) - ra)


def local_hour_angle_hours(jd_ut1: float, longitude: float, ra: float) -> float:
    return degrees_to_hours(local_hour_angle(jd_ut1, longitude, ra))


def longitude_for_hour_angle(jd_ut1: float, ra: float, hour_angle: float) -> float:
    """Longitude at which the body sits at ``hour_angle`` at this instant."""
    return normalize_degrees_symmetric(hour_angle + ra - gmst_deg(jd_ut1))


def longitude_for_mc(jd_ut1: float, ra: float) -> float:
    return longitude_for_hour_angle(jd_ut1, ra, 0.0)


def longitude_for_ic(jd_ut1: float, ra: float) -> float:
    return longitude_for_hour_angle(jd_ut1, ra, 180.0)


def jd_for_hour_angle(jd0: float, longitude: float, ra: float, target_ha: float) -> float:
    """
    Nearest instant to ``jd0`` at which the hour angle reaches ``target_ha``.
    RA is held fixed, so this is a single sidereal-rate step (good to the
    body's own motion over at most half a day).
    """
    current = local_hour_angle(jd0, longitude, ra)
    delta = normalize_degrees_symmetric(target_ha - current)
    return jd0 + delta / GMST_RATE_DEG_PER_DAY


def jd_for_culmination(jd0: float, longitude: float, ra: float) -> float:
    return jd_for_hour_angle(jd0, longitude, ra, 0.0)


def hour_angle_to_hms(hour_angle: float) -> Tuple[int, int, float]:
    return to_hms(hour_angle)


# ── horizon coordinates ───────────────────────────────────────────────────────
def altitude_deg(latitude: float, dec: float, hour_angle: float) -> float:
    s = sin_deg(latitude) * sin_deg(dec) + cos_deg(latitude) * cos_deg(dec) * cos_deg(hour_angle)
    return asin_deg(s)


def azimuth_deg(latitude: float, dec: float, hour_angle: float) -> float:
    """Azimuth measured from north through east, [0, 360)."""
    y = -cos_deg(dec) * sin_deg(hour_angle)
    x = sin_deg(dec) * cos_deg(latitude) - cos_deg(dec) * sin_deg(latitude) * cos_deg(hour_angle)
    return normalize_degrees(atan2_deg(y, x))


def is_above_horizon(latitude: float, dec: float, hour_angle: float, horizon: float = 0.0) -> bool:
    return altitude_deg(latitude, dec, hour_angle) > horizon

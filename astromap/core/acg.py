# astromap/core/acg.py
"""
Astrocartography (ACG) line solver.

For one instant and a body's RA/Dec:
  MC  - longitude where the body is on the upper meridian (H = 0)
  IC  - lower meridian (H = 180)
  ASC - longitude where it is rising, per latitude (H = -SDA)
  DSC - setting (H = +SDA)

MC/IC are meridians, so every sample shares one longitude. ASC/DSC curve
and stop where the body turns circumpolar.
"""

from __future__ import annotations

import logging
import math
from typing import Dict, Iterable, List, Mapping, Tuple

from astromap.core.angles import normalize_degrees_symmetric, sample_range
from astromap.core.constants import (
    ACG_DEFAULT_ORB,
    ACG_DOMAIN_BUFFER,
    ACG_LATITUDE_STEP,
    ACG_MAX_LATITUDE,
    body_sort_key,
)
from astromap.core.models import ACGLine, EquatorialCoordinate, GeoLocation, LineType
from astromap.core.sda import calculate_sda
from astromap.core.sidereal import longitude_for_hour_angle, longitude_for_ic, longitude_for_mc

log = logging.getLogger(__name__)

__all__ = [
    "calculate_mc_line",
    "calculate_ic_line",
    "calculate_asc_line",
    "calculate_dsc_line",
    "calculate_body_lines",
    "calculate_all_acg_lines",
    "point_distance",
    "line_distance",
    "find_lines_near_location",
    "filter_lines_by_type",
    "filter_lines_by_body",
    "find_line_intersections",
    "line_name",
    "is_line_dashed",
    "group_lines_by_body",
]


def _meridian_line(body: str, line_type: LineType, longitude: float) -> ACGLine:
    pts = tuple(
        GeoLocation(lat, longitude)
        for lat in sample_range(-ACG_MAX_LATITUDE, ACG_MAX_LATITUDE, ACG_LATITUDE_STEP)
    )
    return ACGLine(body=body, line_type=line_type, points=pts, is_circumpolar=False)


def calculate_mc_line(jd_ut1: float, ra: float, body: str) -> ACGLine:
    return _meridian_line(body, "MC", longitude_for_mc(jd_ut1, ra))


def calculate_ic_line(jd_ut1: float, ra: float, body: str) -> ACGLine:
    return _meridian_line(body, "IC", longitude_for_ic(jd_ut1, ra))


def _horizon_domain(dec: float) -> Tuple[float, float]:
    """
    Latitude span to sample for ASC/DSC. Poleward of 90-|dec| on the body's
    own side it never sets; the other side is left open and the SDA solver
    drops latitudes where it never rises.
    """
    limit = 90.0 - abs(dec)
    if dec >= 0:
        lo, hi = -90.0, limit
    else:
        lo, hi = -limit, 90.0
    lo = max(-ACG_MAX_LATITUDE, lo + ACG_DOMAIN_BUFFER)
    hi = min(ACG_MAX_LATITUDE, hi - ACG_DOMAIN_BUFFER)
    return lo, hi


def _horizon_line(jd_ut1: float, ra: float, dec: float, body: str, line_type: LineType) -> ACGLine:
    lo, hi = _horizon_domain(dec)
    pts: List[GeoLocation] = []
    for lat in sample_range(lo, hi, ACG_LATITUDE_STEP):
        arc = calculate_sda(lat, dec)
        if not arc.is_normal:
            continue
        ha = arc.rise_ha if line_type == "ASC" else arc.set_ha
        pts.append(GeoLocation(lat, longitude_for_hour_angle(jd_ut1, ra, ha)))
    circumpolar = lo > -ACG_MAX_LATITUDE or hi < ACG_MAX_LATITUDE
    return ACGLine(body=body, line_type=line_type, points=tuple(pts), is_circumpolar=circumpolar)


def calculate_asc_line(jd_ut1: float, ra: float, dec: float, body: str) -> ACGLine:
    return _horizon_line(jd_ut1, ra, dec, body, "ASC")


def calculate_dsc_line(jd_ut1: float, ra: float, dec: float, body: str) -> ACGLine:
    return _horizon_line(jd_ut1, ra, dec, body, "DSC")


def calculate_body_lines(jd_ut1: float, body: str, pos: EquatorialCoordinate) -> List[ACGLine]:
    """MC, IC, ASC, DSC for one body, in that order."""
    return [
        calculate_mc_line(jd_ut1, pos.ra, body),
        calculate_ic_line(jd_ut1, pos.ra, body),
        calculate_asc_line(jd_ut1, pos.ra, pos.dec, body),
        calculate_dsc_line(jd_ut1, pos.ra, pos.dec, body),
    ]


def calculate_all_acg_lines(
    jd_ut1: float, positions: Mapping[str, EquatorialCoordinate]
) -> List[ACGLine]:
    out: List[ACGLine] = []
    for body in sorted(positions, key=body_sort_key):
        out.extend(calculate_body_lines(jd_ut1, body, positions[body]))
    log.debug("acg: %d lines for %d bodies", len(out), len(positions))
    return out


# ── proximity queries ─────────────────────────────────────────────────────────
def point_distance(a: GeoLocation, b: GeoLocation) -> float:
    """Planar distance in degrees with the longitude gap wrapped to +-180."""
    dlat = a.latitude - b.latitude
    dlon = normalize_degrees_symmetric(a.longitude - b.longitude)
    return math.hypot(dlat, dlon)


def line_distance(location: GeoLocation, line: ACGLine) -> float:
    """Distance to the nearest sampled point; inf for an empty line."""
    return min((point_distance(location, p) for p in line.points), default=math.inf)


def find_lines_near_location(
    location: GeoLocation, lines: Iterable[ACGLine], orb: float = ACG_DEFAULT_ORB
) -> List[Tuple[ACGLine, float]]:
    hits = []
    for line in lines:
        d = line_distance(location, line)
        if d <= orb:
            hits.append((line, d))
    hits.sort(key=lambda t: t[1])
    return hits


def filter_lines_by_type(lines: Iterable[ACGLine], line_type: LineType) -> List[ACGLine]:
    return [ln for ln in lines if ln.line_type == line_type]


def filter_lines_by_body(lines: Iterable[ACGLine], body: str) -> List[ACGLine]:
    return [ln for ln in lines if ln.body == body]


def find_line_intersections(line1: ACGLine, line2: ACGLine, tolerance: float = 1.0) -> List[GeoLocation]:
    """Crossing points of two lines: sample pairs within ``tolerance`` in both
    axes, averaged, then thinned so no two results are within tolerance."""
    found: List[GeoLocation] = []
    for p1 in line1.points:
        for p2 in line2.points:
            if abs(p1.latitude - p2.latitude) >= tolerance:
                continue
            dlon = normalize_degrees_symmetric(p2.longitude - p1.longitude)
            if abs(dlon) >= tolerance:
                continue
            cand = GeoLocation(
                (p1.latitude + p2.latitude) / 2.0,
                normalize_degrees_symmetric(p1.longitude + dlon / 2.0),
            )
            if any(
                abs(u.latitude - cand.latitude) < tolerance
                and abs(normalize_degrees_symmetric(u.longitude - cand.longitude)) < tolerance
                for u in found
            ):
                continue
            found.append(cand)
    return found


def line_name(line: ACGLine) -> str:
    return f"{line.body} {line.line_type}"


def is_line_dashed(line_type: LineType) -> bool:
    # meridian lines are drawn dashed, horizon lines solid
    return line_type in ("MC", "IC")


def group_lines_by_body(lines: Iterable[ACGLine]) -> Dict[str, Dict[str, ACGLine]]:
    out: Dict[str, Dict[str, ACGLine]] = {}
    for ln in lines:
        out.setdefault(ln.body, {})[ln.line_type] = ln
    return out

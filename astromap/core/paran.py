# astromap/core/paran.py
# -*- coding: utf-8 -*-
"""
Parans: latitudes where two bodies hit angular events at the same LST.

For a pair (body1/event1, body2/event2) the LST gap

    D(lat) = sym(LST1(lat) - LST2(lat))

is continuous wherever both events happen. The solver samples D on a fixed
latitude grid, brackets every sign change between adjacent *defined*
samples, and bisects each bracket. Gaps with |D| >= 90 on either side are
the +-180 wrap, not a root, and are skipped.

Circumpolar latitudes make D undefined. A bracket whose midpoint lands in
such a gap tries the quarter points and keeps whichever half still
brackets a sign change; if neither does the bracket is dropped.

Catalog helpers (``find_all_parans`` and the query/grouping functions)
work on ``ParanResult`` and run over every unique body pair.
"""

from __future__ import annotations

import logging
from statistics import median
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from astromap.core.angles import clamp, sample_range
from astromap.core.constants import (
    EVENT_LABELS,
    EVENTS,
    PARAN_BISECTION_TOL,
    PARAN_BRACKET_LIMIT,
    PARAN_LAT_HIGH,
    PARAN_LAT_LOW,
    PARAN_LATITUDE_STEP,
    PARAN_MAX_ITERATIONS,
    PARAN_MAX_ORB,
    PARAN_STRENGTH_THRESHOLD,
    body_sort_key,
)
from astromap.core.events import calculate_event_time, lst_difference
from astromap.core.models import (
    AngularEvent,
    EquatorialCoordinate,
    EventTime,
    ParanPoint,
    ParanResult,
    ParanSearchResult,
    ParanSummary,
)

log = logging.getLogger(__name__)

__all__ = [
    "calculate_paran_strength",
    "lst_difference_at",
    "find_parans_in_range",
    "find_paran_latitude",
    "find_all_parans_for_pair",
    "body_pairs",
    "compile_paran_result",
    "find_all_parans",
    "top_parans",
    "parans_for_body",
    "parans_at_latitude",
    "parans_by_event",
    "parans_by_strength",
    "group_parans_by_latitude",
    "group_parans_by_pair",
    "group_parans_by_event_type",
    "paran_statistics",
    "describe_paran",
]

# (diff, event1, event2) at one latitude
_Sample = Tuple[float, EventTime, EventTime]


def calculate_paran_strength(time_difference: float, max_orb: float = PARAN_MAX_ORB) -> float:
    """1.0 for an exact coincidence, falling linearly to 0 at ``max_orb``."""
    d = abs(time_difference)
    if d >= max_orb:
        return 0.0
    return clamp(1.0 - d / max_orb, 0.0, 1.0)


def lst_difference_at(
    latitude: float,
    body1: str, pos1: EquatorialCoordinate, event1: AngularEvent,
    body2: str, pos2: EquatorialCoordinate, event2: AngularEvent,
) -> Optional[_Sample]:
    """D(lat) with both event times, or None where either event can't happen."""
    et1 = calculate_event_time(body1, pos1.ra, pos1.dec, latitude, event1)
    if not et1.is_possible:
        return None
    et2 = calculate_event_time(body2, pos2.ra, pos2.dec, latitude, event2)
    if not et2.is_possible:
        return None
    return lst_difference(et1.lst, et2.lst), et1, et2


def _bisect_bracket(
    f,
    a: float, a_diff: float,
    b: float, b_diff: float,
    max_orb: float,
) -> Optional[ParanSearchResult]:
    iterations = 0
    while iterations < PARAN_MAX_ITERATIONS and (b - a) > PARAN_BISECTION_TOL:
        mid = (a + b) / 2.0
        sample = f(mid)
        if sample is None:
            low = f((a + mid) / 2.0)
            high = f((mid + b) / 2.0)
            if low is not None and low[0] * a_diff <= 0:
                b = mid
            elif high is not None and high[0] * b_diff <= 0:
                a = mid
            else:
                return None
        elif a_diff * sample[0] <= 0:
            b = mid
        else:
            a = mid
        iterations += 1

    lat = (a + b) / 2.0
    final = f(lat)
    if final is None:
        return None
    diff, et1, et2 = final
    return ParanSearchResult(
        latitude=lat,
        time_difference=diff,
        event1=et1,
        event2=et2,
        strength=calculate_paran_strength(diff, max_orb),
        iterations=iterations,
        converged=(b - a) <= PARAN_BISECTION_TOL,
    )


def find_parans_in_range(
    body1: str, pos1: EquatorialCoordinate, event1: AngularEvent,
    body2: str, pos2: EquatorialCoordinate, event2: AngularEvent,
    lat_low: float = PARAN_LAT_LOW,
    lat_high: float = PARAN_LAT_HIGH,
    max_orb: float = PARAN_MAX_ORB,
) -> List[ParanSearchResult]:
    """Every paran of one event pair in [lat_low, lat_high], south to north."""
    def f(lat: float) -> Optional[_Sample]:
        return lst_difference_at(lat, body1, pos1, event1, body2, pos2, event2)

    return _scan_brackets(f, lat_low, lat_high, max_orb)


def _scan_brackets(f, lat_low: float, lat_high: float, max_orb: float) -> List[ParanSearchResult]:
    """Sample ``f`` on the latitude grid and bisect every usable bracket."""
    samples: List[Tuple[float, float]] = []
    for lat in sample_range(lat_low, lat_high, PARAN_LATITUDE_STEP):
        s = f(lat)
        if s is not None:
            samples.append((lat, s[0]))

    out: List[ParanSearchResult] = []
    for (la, da), (lb, db) in zip(samples, samples[1:]):
        if not (da * db < 0 and abs(da) < PARAN_BRACKET_LIMIT and abs(db) < PARAN_BRACKET_LIMIT):
            continue
        res = _bisect_bracket(f, la, da, lb, db, max_orb)
        if res is not None:
            out.append(res)
    return out


def find_paran_latitude(
    body1: str, pos1: EquatorialCoordinate, event1: AngularEvent,
    body2: str, pos2: EquatorialCoordinate, event2: AngularEvent,
    lat_low: float = PARAN_LAT_LOW,
    lat_high: float = PARAN_LAT_HIGH,
    max_orb: float = PARAN_MAX_ORB,
) -> Optional[ParanSearchResult]:
    """Southernmost paran of the pair, or None."""
    found = find_parans_in_range(body1, pos1, event1, body2, pos2, event2, lat_low, lat_high, max_orb)
    return found[0] if found else None


def find_all_parans_for_pair(
    body1: str, pos1: EquatorialCoordinate,
    body2: str, pos2: EquatorialCoordinate,
    lat_low: float = PARAN_LAT_LOW,
    lat_high: float = PARAN_LAT_HIGH,
    max_orb: float = PARAN_MAX_ORB,
) -> List[ParanSearchResult]:
    """All 16 event combinations for one pair."""
    out: List[ParanSearchResult] = []
    for e1 in EVENTS:
        for e2 in EVENTS:
            out.extend(find_parans_in_range(body1, pos1, e1, body2, pos2, e2, lat_low, lat_high, max_orb))  # type: ignore[arg-type]
    return out


# ── catalog ───────────────────────────────────────────────────────────────────
def body_pairs(bodies: Iterable[str]) -> List[Tuple[str, str]]:
    ordered = sorted(set(bodies), key=body_sort_key)
    return [(a, b) for i, a in enumerate(ordered) for b in ordered[i + 1:]]


def _event_class(e: str) -> str:
    return "culminate" if e in ("culminate", "anti_culminate") else e


_SUMMARY_KEYS: Dict[Tuple[str, str], str] = {
    ("rise", "rise"): "rise_rise",
    ("culminate", "rise"): "rise_culminate",
    ("rise", "set"): "rise_set",
    ("culminate", "culminate"): "culminate_culminate",
    ("culminate", "set"): "culminate_set",
    ("set", "set"): "set_set",
}


def _summarize(points: Sequence[ParanPoint]) -> ParanSummary:
    counts = {k: 0 for k in _SUMMARY_KEYS.values()}
    for p in points:
        key = tuple(sorted((_event_class(p.event1), _event_class(p.event2))))
        counts[_SUMMARY_KEYS[key]] += 1  # type: ignore[index]
    return ParanSummary(total=len(points), **counts)


def compile_paran_result(
    pair_results: Iterable[Tuple[str, str, List[ParanSearchResult]]],
    strength_threshold: float = PARAN_STRENGTH_THRESHOLD,
) -> ParanResult:
    """Flatten per-pair searches, drop weak hits, strongest first."""
    points: List[ParanPoint] = []
    for body1, body2, results in pair_results:
        for r in results:
            if r.strength < strength_threshold:
                continue
            points.append(ParanPoint(
                body1=body1, event1=r.event1.event,
                body2=body2, event2=r.event2.event,
                latitude=r.latitude, strength=r.strength,
            ))
    # stable sort keeps pair/event order among equal strengths
    points.sort(key=lambda p: -p.strength)
    return ParanResult(points=tuple(points), summary=_summarize(points))


def find_all_parans(
    positions: Mapping[str, EquatorialCoordinate],
    strength_threshold: float = PARAN_STRENGTH_THRESHOLD,
    lat_low: float = PARAN_LAT_LOW,
    lat_high: float = PARAN_LAT_HIGH,
    max_orb: float = PARAN_MAX_ORB,
) -> ParanResult:
    pairs = body_pairs(positions)
    result = compile_paran_result(
        (
            (b1, b2, find_all_parans_for_pair(b1, positions[b1], b2, positions[b2], lat_low, lat_high, max_orb))
            for b1, b2 in pairs
        ),
        strength_threshold,
    )
    log.debug("parans: %d points over %d pairs", result.summary.total, len(pairs))
    return result


# ── queries ───────────────────────────────────────────────────────────────────
def top_parans(result: ParanResult, limit: int = 50) -> List[ParanPoint]:
    return list(result.points[:limit])


def parans_for_body(result: ParanResult, body: str) -> List[ParanPoint]:
    return [p for p in result.points if body in (p.body1, p.body2)]


def parans_at_latitude(result: ParanResult, latitude: float, orb: float = 2.0) -> List[ParanPoint]:
    return [p for p in result.points if abs(p.latitude - latitude) <= orb]


def parans_by_event(result: ParanResult, event: AngularEvent) -> List[ParanPoint]:
    return [p for p in result.points if event in (p.event1, p.event2)]


def parans_by_strength(result: ParanResult, min_strength: float, max_strength: float = 1.0) -> List[ParanPoint]:
    return [p for p in result.points if min_strength <= p.strength <= max_strength]


def group_parans_by_latitude(result: ParanResult, band_size: float = 5.0) -> Dict[float, List[ParanPoint]]:
    """Keyed by band centre (latitude rounded to the nearest multiple of band_size)."""
    bands: Dict[float, List[ParanPoint]] = {}
    for p in result.points:
        centre = round(p.latitude / band_size) * band_size
        bands.setdefault(float(centre), []).append(p)
    return bands


def group_parans_by_pair(result: ParanResult) -> Dict[str, List[ParanPoint]]:
    pairs: Dict[str, List[ParanPoint]] = {}
    for p in result.points:
        pairs.setdefault(f"{p.body1}-{p.body2}", []).append(p)
    return pairs


def group_parans_by_event_type(result: ParanResult) -> Dict[str, List[ParanPoint]]:
    groups: Dict[str, List[ParanPoint]] = {}
    for p in result.points:
        e1, e2 = sorted((p.event1, p.event2))
        groups.setdefault(f"{e1}-{e2}", []).append(p)
    return groups


def paran_statistics(result: ParanResult) -> Dict[str, Any]:
    pts = result.points
    if not pts:
        return {
            "total": 0,
            "average_strength": 0.0,
            "median_strength": 0.0,
            "latitude_range": {"min": 0.0, "max": 0.0},
            "strongest": None,
            "by_hemisphere": {"northern": 0, "southern": 0},
        }
    strengths = [p.strength for p in pts]
    lats = [p.latitude for p in pts]
    return {
        "total": len(pts),
        "average_strength": sum(strengths) / len(strengths),
        "median_strength": median(strengths),
        "latitude_range": {"min": min(lats), "max": max(lats)},
        "strongest": pts[0].to_dict(),
        "by_hemisphere": {
            "northern": sum(1 for x in lats if x > 0),
            "southern": sum(1 for x in lats if x < 0),
        },
    }


def describe_paran(p: ParanPoint) -> str:
    return (
        f"{p.body1} {EVENT_LABELS[p.event1]} / {p.body2} {EVENT_LABELS[p.event2]}"
        f" at {p.latitude:.1f}°"
    )

# astromap/core/zenith.py
"""
Zenith bands and latitude-only scoring.

A body passes through the zenith at latitude == declination, so each body
contributes a horizontal band. A latitude scores

    sum(weight * exp(-(lat - dec)^2 / (2 sigma^2)))

over bodies with positive weight.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Mapping, Optional, Tuple

from astromap.core.angles import clamp, gaussian, sample_range
from astromap.core.constants import (
    DECLINATION_SIGMA,
    DEFAULT_DECLINATION_ORB,
    ZENITH_SEARCH_LIMIT,
    body_sort_key,
)
from astromap.core.models import ZenithLine

__all__ = [
    "ZenithBand",
    "ZenithScore",
    "calculate_zenith_line",
    "calculate_zenith_lines",
    "calculate_zenith_bands",
    "score_latitude",
    "score_latitudes",
    "find_optimal_zenith_latitudes",
    "find_zenith_overlaps",
    "generate_zenith_band_points",
    "zenith_band_intensity",
    "find_optimal_latitude_in_range",
    "find_high_scoring_bands",
]

_GOLDEN = (1.0 + math.sqrt(5.0)) / 2.0


@dataclass(frozen=True)
class ZenithBand:
    body: str
    center_latitude: float
    min_latitude: float
    max_latitude: float
    orb: float
    weight: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ZenithScore:
    latitude: float
    total: float
    # (body, |lat - dec|, contribution), largest contribution first
    contributions: Tuple[Tuple[str, float, float], ...] = ()

    @property
    def top_body(self) -> Optional[str]:
        return self.contributions[0][0] if self.contributions else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "latitude": self.latitude,
            "total": self.total,
            "contributions": [
                {"body": b, "distance": d, "contribution": c} for b, d, c in self.contributions
            ],
        }


def _ordered(bodies) -> List[str]:
    return sorted(bodies, key=body_sort_key)


def calculate_zenith_line(body: str, declination: float, orb: float = DEFAULT_DECLINATION_ORB) -> ZenithLine:
    return ZenithLine(body, declination, declination - orb, declination + orb)


def calculate_zenith_lines(
    declinations: Mapping[str, float], orb: float = DEFAULT_DECLINATION_ORB
) -> List[ZenithLine]:
    return [calculate_zenith_line(b, declinations[b], orb) for b in _ordered(declinations)]


def calculate_zenith_bands(
    declinations: Mapping[str, float],
    weights: Mapping[str, float],
    orb: float = DEFAULT_DECLINATION_ORB,
) -> List[ZenithBand]:
    return [
        ZenithBand(b, dec, dec - orb, dec + orb, orb, float(weights.get(b, 0.0)))
        for b, dec in ((b, declinations[b]) for b in _ordered(declinations))
    ]


def score_latitude(
    latitude: float,
    declinations: Mapping[str, float],
    weights: Mapping[str, float],
    sigma: float = DECLINATION_SIGMA,
) -> ZenithScore:
    contribs: List[Tuple[str, float, float]] = []
    total = 0.0
    for body in _ordered(declinations):
        w = weights.get(body, 0.0)
        if w <= 0:
            continue
        dist = abs(latitude - declinations[body])
        c = w * gaussian(dist, 0.0, sigma)
        contribs.append((body, dist, c))
        total += c
    contribs.sort(key=lambda t: -t[2])
    return ZenithScore(latitude, total, tuple(contribs))


def score_latitudes(
    latitudes: List[float],
    declinations: Mapping[str, float],
    weights: Mapping[str, float],
    sigma: float = DECLINATION_SIGMA,
) -> List[ZenithScore]:
    return [score_latitude(lat, declinations, weights, sigma) for lat in latitudes]


def find_optimal_zenith_latitudes(
    declinations: Mapping[str, float],
    weights: Mapping[str, float],
    top_n: int = 10,
    step: float = 0.5,
    sigma: float = DECLINATION_SIGMA,
) -> List[ZenithScore]:
    """Best ``top_n`` sampled latitudes in +-70."""
    scores = score_latitudes(
        sample_range(-ZENITH_SEARCH_LIMIT, ZENITH_SEARCH_LIMIT, step), declinations, weights, sigma
    )
    scores.sort(key=lambda s: -s.total)
    return scores[:top_n]


def find_zenith_overlaps(
    declinations: Mapping[str, float],
    weights: Mapping[str, float],
    orb: float = DEFAULT_DECLINATION_ORB,
) -> List[Dict[str, Any]]:
    """
    Latitudes where two or more weighted bands overlap. Overlap centres
    closer than ``orb`` to an existing entry are merged into it.
    """
    active = [b for b in _ordered(declinations) if weights.get(b, 0.0) > 0]
    overlaps: List[Dict[str, Any]] = []
    for i, b1 in enumerate(active):
        for b2 in active[i + 1:]:
            lo = max(declinations[b1], declinations[b2]) - orb
            hi = min(declinations[b1], declinations[b2]) + orb
            if lo > hi:
                continue
            centre = (lo + hi) / 2.0
            hit = next((o for o in overlaps if abs(o["latitude"] - centre) < orb), None)
            if hit is None:
                overlaps.append({
                    "latitude": centre,
                    "bodies": [b1, b2],
                    "combined_weight": weights[b1] + weights[b2],
                })
                continue
            for b in (b1, b2):
                if b not in hit["bodies"]:
                    hit["bodies"].append(b)
                    hit["combined_weight"] += weights[b]
    overlaps.sort(key=lambda o: -o["combined_weight"])
    return overlaps


def generate_zenith_band_points(line: ZenithLine, lon_step: float = 5.0) -> List[Tuple[float, float]]:
    return [(line.declination, lon) for lon in sample_range(-180.0, 180.0, lon_step)]


def zenith_band_intensity(line: ZenithLine, weights: Mapping[str, float], max_weight: float = 10.0) -> float:
    return clamp(weights.get(line.body, 0.0) / max_weight, 0.0, 1.0)


def find_optimal_latitude_in_range(
    lat_min: float,
    lat_max: float,
    declinations: Mapping[str, float],
    weights: Mapping[str, float],
    tol: float = 0.1,
    sigma: float = DECLINATION_SIGMA,
) -> ZenithScore:
    """Golden-section search; assumes one peak inside the range."""
    def f(x: float) -> float:
        return score_latitude(x, declinations, weights, sigma).total

    a, b = lat_min, lat_max
    c = b - (b - a) / _GOLDEN
    d = a + (b - a) / _GOLDEN
    while abs(b - a) > tol:
        if f(c) > f(d):
            b = d
        else:
            a = c
        c = b - (b - a) / _GOLDEN
        d = a + (b - a) / _GOLDEN
    return score_latitude((a + b) / 2.0, declinations, weights, sigma)


def find_high_scoring_bands(
    declinations: Mapping[str, float],
    weights: Mapping[str, float],
    threshold: float = 0.5,
    step: float = 0.5,
    sigma: float = DECLINATION_SIGMA,
) -> List[Dict[str, float]]:
    """Contiguous latitude runs scoring at least ``threshold`` x the peak."""
    lats = sample_range(-ZENITH_SEARCH_LIMIT, ZENITH_SEARCH_LIMIT, step)
    scores = [score_latitude(x, declinations, weights, sigma).total for x in lats]
    peak = max(scores, default=0.0)
    if peak <= 0:
        return []
    cut = peak * threshold

    bands: List[Dict[str, float]] = []
    run: List[Tuple[float, float]] = []
    for lat, s in zip(lats, scores):
        if s >= cut:
            run.append((lat, s))
            continue
        if run:
            bands.append({"min_lat": run[0][0], "max_lat": run[-1][0],
                          "avg_score": sum(v for _, v in run) / len(run)})
            run = []
    if run:
        bands.append({"min_lat": run[0][0], "max_lat": run[-1][0],
                      "avg_score": sum(v for _, v in run) / len(run)})
    return bands

# astromap/core/grid.py
"""
Geospatial scoring grid.

Each cell sums three signals:
  zenith - latitude-only Gaussian over body declinations
  acg    - proximity to ACG lines, (1 - d/orb) * weight per line within orb
  paran  - latitude proximity to paran points,
           (1 - d/orb) * mean(weight1, weight2) * strength per point within orb

``score`` is the exact sum of the three (nothing is rounded). The cell's
``dominant_factor`` is the single largest signal, or "mixed" when the
largest value is shared (which includes an all-zero cell).
"""

from __future__ import annotations

import math
from bisect import bisect_left, bisect_right
from dataclasses import dataclass, asdict, fields
from typing import Any, Dict, Iterable, List, Literal, Mapping, Optional, Sequence, Tuple

from astromap.core.angles import normalize_degrees_symmetric, sample_count, sample_range
from astromap.core.constants import DECLINATION_SIGMA, GRID_DEFAULTS
from astromap.core.models import ACGLine, DominantFactor, GridCell, ParanPoint
from astromap.core.zenith import score_latitude

__all__ = [
    "GridOptions",
    "LineIndex",
    "index_lines",
    "grid_latitudes",
    "grid_longitudes",
    "score_location_for_acg",
    "score_paran_proximity",
    "classify_dominant_factor",
    "score_cell",
    "score_grid_row",
    "generate_scoring_grid",
    "top_locations",
    "filter_by_dominant_factor",
    "filter_by_dominant_body",
    "grid_statistics",
]

DistanceMetric = Literal["planar", "great_circle"]


@dataclass(frozen=True)
class GridOptions:
    lat_step: float = GRID_DEFAULTS["lat_step"]
    lon_step: float = GRID_DEFAULTS["lon_step"]
    lat_min: float = GRID_DEFAULTS["lat_min"]
    lat_max: float = GRID_DEFAULTS["lat_max"]
    lon_min: float = GRID_DEFAULTS["lon_min"]
    lon_max: float = GRID_DEFAULTS["lon_max"]
    acg_orb: float = GRID_DEFAULTS["acg_orb"]
    paran_orb: float = GRID_DEFAULTS["paran_orb"]
    acg_metric: DistanceMetric = "planar"
    zenith_sigma: float = DECLINATION_SIGMA

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "GridOptions":
        """Known keys only; anything else is ignored."""
        if not data:
            return cls()
        names = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in names})

    @property
    def cell_count(self) -> int:
        return (
            sample_count(self.lat_min, self.lat_max, self.lat_step)
            * sample_count(self.lon_min, self.lon_max, self.lon_step)
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def grid_latitudes(opts: GridOptions) -> List[float]:
    return sample_range(opts.lat_min, opts.lat_max, opts.lat_step)


def grid_longitudes(opts: GridOptions) -> List[float]:
    return sample_range(opts.lon_min, opts.lon_max, opts.lon_step)


# ── ACG proximity ─────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class LineIndex:
    """A line's points split into latitude-sorted columns for windowed lookup."""
    body: str
    line_type: str
    lats: Tuple[float, ...]
    lons: Tuple[float, ...]


def index_lines(lines: Iterable[ACGLine]) -> List[LineIndex]:
    out = []
    for ln in lines:
        pts = sorted(ln.points, key=lambda p: p.latitude)
        out.append(LineIndex(
            ln.body, ln.line_type,
            tuple(p.latitude for p in pts), tuple(p.longitude for p in pts),
        ))
    return out


def _planar(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    return math.hypot(lat1 - lat2, normalize_degrees_symmetric(lon1 - lon2))


def _great_circle(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    p1, p2 = math.radians(lat1), math.radians(lat2)
    dp = p2 - p1
    dl = math.radians(lon2 - lon1)
    h = math.sin(dp / 2) ** 2 + math.cos(p1) * math.cos(p2) * math.sin(dl / 2) ** 2
    return math.degrees(2.0 * math.asin(min(1.0, math.sqrt(h))))


_METRICS = {"planar": _planar, "great_circle": _great_circle}


def _nearest(idx: LineIndex, lat: float, lon: float, orb: float, dist) -> float:
    # both metrics are >= |dlat|, so only points within orb in latitude can qualify
    lo = bisect_left(idx.lats, lat - orb)
    hi = bisect_right(idx.lats, lat + orb)
    best = math.inf
    for i in range(lo, hi):
        d = dist(lat, lon, idx.lats[i], idx.lons[i])
        if d < best:
            best = d
    return best


def score_location_for_acg(
    lat: float,
    lon: float,
    lines: Sequence[LineIndex],
    weights: Mapping[str, float],
    orb: float = GRID_DEFAULTS["acg_orb"],
    metric: DistanceMetric = "planar",
) -> Tuple[float, Optional[str], List[Dict[str, Any]]]:
    """(total, dominant body, per-line hits)."""
    dist = _METRICS[metric]
    total = 0.0
    best = 0.0
    dominant: Optional[str] = None
    hits: List[Dict[str, Any]] = []
    for idx in lines:
        d = _nearest(idx, lat, lon, orb, dist)
        if d > orb:
            continue
        c = (1.0 - d / orb) * weights.get(idx.body, 0.0)
        total += c
        hits.append({"body": idx.body, "line_type": idx.line_type, "distance": d})
        if c > best:
            best, dominant = c, idx.body
    return total, dominant, hits


# ── paran proximity ───────────────────────────────────────────────────────────
def _paran_contribution(lat: float, p: ParanPoint, weights: Mapping[str, float], orb: float) -> float:
    d = abs(lat - p.latitude)
    if d > orb:
        return 0.0
    avg = (weights.get(p.body1, 0.0) + weights.get(p.body2, 0.0)) / 2.0
    return (1.0 - d / orb) * avg * p.strength


def score_paran_proximity(
    lat: float,
    parans: Iterable[ParanPoint],
    weights: Mapping[str, float],
    orb: float = GRID_DEFAULTS["paran_orb"],
) -> float:
    return sum((_paran_contribution(lat, p, weights, orb) for p in parans), 0.0)


def _paran_dominant_body(
    lat: float, parans: Sequence[ParanPoint], weights: Mapping[str, float], orb: float
) -> Optional[str]:
    best: Optional[ParanPoint] = None
    best_c = 0.0
    for p in parans:
        c = _paran_contribution(lat, p, weights, orb)
        if c > best_c:
            best, best_c = p, c
    if best is None:
        return None
    w1 = weights.get(best.body1, 0.0)
    w2 = weights.get(best.body2, 0.0)
    return best.body1 if w1 >= w2 else best.body2


# ── cells ─────────────────────────────────────────────────────────────────────
def classify_dominant_factor(zenith: float, acg: float, paran: float) -> DominantFactor:
    top = max(zenith, acg, paran)
    if [zenith, acg, paran].count(top) > 1:
        return "mixed"
    if zenith == top:
        return "zenith"
    if acg == top:
        return "acg"
    return "paran"


def score_cell(
    lat: float,
    lon: float,
    declinations: Mapping[str, float],
    weights: Mapping[str, float],
    lines: Sequence[LineIndex],
    parans: Sequence[ParanPoint],
    opts: GridOptions,
) -> GridCell:
    zen = score_latitude(lat, declinations, weights, opts.zenith_sigma)
    acg, acg_body, _ = score_location_for_acg(lat, lon, lines, weights, opts.acg_orb, opts.acg_metric)
    par = score_paran_proximity(lat, parans, weights, opts.paran_orb)

    factor = classify_dominant_factor(zen.total, acg, par)
    body: Optional[str] = None
    if factor == "zenith":
        body = zen.top_body
    elif factor == "acg":
        body = acg_body
    elif factor == "paran":
        body = _paran_dominant_body(lat, parans, weights, opts.paran_orb)

    return GridCell(
        lat=lat,
        lon=lon,
        score=zen.total + acg + par,
        zenith_contribution=zen.total,
        acg_contribution=acg,
        paran_contribution=par,
        dominant_factor=factor,
        dominant_body=body,
    )


def score_grid_row(
    lat: float,
    declinations: Mapping[str, float],
    weights: Mapping[str, float],
    lines: Sequence[LineIndex],
    parans: Sequence[ParanPoint],
    opts: GridOptions,
) -> List[GridCell]:
    """One latitude row, west to east. Top-level so a process pool can pickle it."""
    return [
        score_cell(lat, lon, declinations, weights, lines, parans, opts)
        for lon in grid_longitudes(opts)
    ]


def generate_scoring_grid(
    declinations: Mapping[str, float],
    weights: Mapping[str, float],
    lines: Iterable[ACGLine],
    parans: Iterable[ParanPoint],
    opts: Optional[GridOptions] = None,
) -> List[GridCell]:
    """Cells ordered by latitude, then longitude."""
    opts = opts or GridOptions()
    idx = index_lines(lines)
    pts = list(parans)
    out: List[GridCell] = []
    for lat in grid_latitudes(opts):
        out.extend(score_grid_row(lat, declinations, weights, idx, pts, opts))
    return out


# ── queries ───────────────────────────────────────────────────────────────────
def top_locations(grid: Iterable[GridCell], n: int = 10) -> List[GridCell]:
    return sorted(grid, key=lambda c: -c.score)[:n]


def filter_by_dominant_factor(grid: Iterable[GridCell], factor: DominantFactor) -> List[GridCell]:
    return [c for c in grid if c.dominant_factor == factor]


def filter_by_dominant_body(grid: Iterable[GridCell], body: str) -> List[GridCell]:
    return [c for c in grid if c.dominant_body == body]


def grid_statistics(grid: Sequence[GridCell]) -> Dict[str, Any]:
    counts = {"zenith": 0, "acg": 0, "paran": 0, "mixed": 0}
    if not grid:
        return {"total_cells": 0, "avg_score": 0.0, "max_score": 0.0, "min_score": 0.0,
                "dominant_counts": counts}
    scores = [c.score for c in grid]
    for c in grid:
        counts[c.dominant_factor] += 1
    return {
        "total_cells": len(grid),
        "avg_score": sum(scores) / len(scores),
        "max_score": max(scores),
        "min_score": min(scores),
        "dominant_counts": counts,
    }

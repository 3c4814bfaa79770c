# astromap/core/pipeline.py
"""
End-to-end map computation for one snapshot.

    positions ─┬─> ACG lines ──────────┐
               ├─> zenith lines        ├─> scoring grid
               └─> paran catalog ──────┘

``workers > 1`` spreads the independent units (one body's lines, one body
pair's paran search, one grid row) over a process pool. Results are
gathered in input order, so output is identical to the in-process run.
"""

from __future__ import annotations

import logging
from concurrent.futures import ProcessPoolExecutor
from contextlib import contextmanager
from dataclasses import dataclass, field
from functools import partial
from time import perf_counter
from typing import Any, Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence

from astromap.core.acg import calculate_body_lines
from astromap.core.constants import (
    PARAN_LAT_HIGH,
    PARAN_LAT_LOW,
    PARAN_MAX_ORB,
    PARAN_STRENGTH_THRESHOLD,
    body_sort_key,
)
from astromap.core.grid import (
    GridOptions,
    grid_latitudes,
    grid_statistics,
    index_lines,
    score_grid_row,
)
from astromap.core.models import ACGLine, EquatorialCoordinate, GridCell, ParanResult, ZenithLine
from astromap.core.paran import body_pairs, compile_paran_result, find_all_parans_for_pair
from astromap.core.sidereal import gmst_deg
from astromap.core.zenith import calculate_zenith_lines

log = logging.getLogger(__name__)

__all__ = [
    "MapResult",
    "compute_acg_lines",
    "compute_parans",
    "compute_grid",
    "compute_map",
]


@dataclass(frozen=True)
class MapResult:
    jd_ut1: float
    gmst_deg: float
    lines: List[ACGLine]
    zenith_lines: List[ZenithLine]
    parans: ParanResult
    grid: List[GridCell]
    timings: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "jd_ut1": self.jd_ut1,
            "gmst_deg": self.gmst_deg,
            "lines": [ln.to_dict() for ln in self.lines],
            "zenith_lines": [z.to_dict() for z in self.zenith_lines],
            "parans": self.parans.to_dict(),
            "grid": [c.to_dict() for c in self.grid],
            "grid_stats": grid_statistics(self.grid),
            "timings": dict(self.timings),
        }


@contextmanager
def _pool(workers: int) -> Iterator[Optional[ProcessPoolExecutor]]:
    if workers <= 1:
        yield None
        return
    with ProcessPoolExecutor(max_workers=workers) as ex:
        yield ex


def _ordered_map(ex: Optional[ProcessPoolExecutor], fn: Callable, *iterables: Sequence, workers: int = 1) -> List:
    if ex is None:
        return list(map(fn, *iterables))
    n = len(iterables[0]) if iterables else 0
    chunk = max(1, n // (workers * 4))
    return list(ex.map(fn, *iterables, chunksize=chunk))


def compute_acg_lines(
    jd_ut1: float,
    positions: Mapping[str, EquatorialCoordinate],
    workers: int = 1,
    executor: Optional[ProcessPoolExecutor] = None,
) -> List[ACGLine]:
    """MC/IC/ASC/DSC for every body, ordered by body then line type."""
    bodies = sorted(positions, key=body_sort_key)
    with _pool(workers if executor is None else 1) as own:
        ex = executor or own
        per_body = _ordered_map(ex, partial(calculate_body_lines, jd_ut1), bodies,
                                [positions[b] for b in bodies], workers=workers)
    return [ln for lines in per_body for ln in lines]


def compute_parans(
    positions: Mapping[str, EquatorialCoordinate],
    strength_threshold: float = PARAN_STRENGTH_THRESHOLD,
    lat_low: float = PARAN_LAT_LOW,
    lat_high: float = PARAN_LAT_HIGH,
    max_orb: float = PARAN_MAX_ORB,
    workers: int = 1,
    executor: Optional[ProcessPoolExecutor] = None,
) -> ParanResult:
    pairs = body_pairs(positions)
    search = partial(find_all_parans_for_pair, lat_low=lat_low, lat_high=lat_high, max_orb=max_orb)
    with _pool(workers if executor is None else 1) as own:
        ex = executor or own
        found = _ordered_map(
            ex, search,
            [a for a, _ in pairs], [positions[a] for a, _ in pairs],
            [b for _, b in pairs], [positions[b] for _, b in pairs],
            workers=workers,
        )
    return compile_paran_result(
        ((a, b, res) for (a, b), res in zip(pairs, found)), strength_threshold
    )


def compute_grid(
    declinations: Mapping[str, float],
    weights: Mapping[str, float],
    lines: Iterable[ACGLine],
    parans: ParanResult,
    opts: Optional[GridOptions] = None,
    workers: int = 1,
    executor: Optional[ProcessPoolExecutor] = None,
) -> List[GridCell]:
    """Cells ordered by latitude, then longitude."""
    opts = opts or GridOptions()
    row = partial(
        score_grid_row,
        declinations=dict(declinations),
        weights=dict(weights),
        lines=index_lines(lines),
        parans=list(parans.points),
        opts=opts,
    )
    lats = grid_latitudes(opts)
    with _pool(workers if executor is None else 1) as own:
        ex = executor or own
        rows = _ordered_map(ex, row, lats, workers=workers)
    return [cell for r in rows for cell in r]


def compute_map(
    jd_ut1: float,
    positions: Mapping[str, EquatorialCoordinate],
    weights: Mapping[str, float],
    opts: Optional[GridOptions] = None,
    *,
    strength_threshold: float = PARAN_STRENGTH_THRESHOLD,
    lat_low: float = PARAN_LAT_LOW,
    lat_high: float = PARAN_LAT_HIGH,
    workers: int = 1,
) -> MapResult:
    opts = opts or GridOptions()
    timings: Dict[str, float] = {}
    declinations = {b: p.dec for b, p in positions.items()}

    with _pool(workers) as ex:
        t0 = perf_counter()
        lines = compute_acg_lines(jd_ut1, positions, workers, executor=ex)
        timings["acg_s"] = perf_counter() - t0

        t0 = perf_counter()
        parans = compute_parans(positions, strength_threshold, lat_low, lat_high,
                                workers=workers, executor=ex)
        timings["parans_s"] = perf_counter() - t0

        t0 = perf_counter()
        grid = compute_grid(declinations, weights, lines, parans, opts, workers, executor=ex)
        timings["grid_s"] = perf_counter() - t0

    zenith = calculate_zenith_lines(declinations)
    log.info(
        "map computed: bodies=%d lines=%d parans=%d cells=%d workers=%d",
        len(positions), len(lines), parans.summary.total, len(grid), workers,
    )
    log.debug("map timings: %s", timings)
    return MapResult(
        jd_ut1=jd_ut1,
        gmst_deg=gmst_deg(jd_ut1),
        lines=lines,
        zenith_lines=zenith,
        parans=parans,
        grid=grid,
        timings=timings,
    )

# astromap/core/constants.py
"""
Numeric constants shared by the line, paran and grid solvers.

Values are plain module-level floats/tuples so every solver reads the same
table; nothing here is mutated at runtime.
"""

from __future__ import annotations

from typing import Dict, Tuple

# ── epochs & sidereal rate ────────────────────────────────────────────────────
J2000: float = 2451545.0
DAYS_PER_JULIAN_CENTURY: float = 36525.0
SECONDS_PER_DAY: float = 86400.0

GMST_AT_J2000_DEG: float = 280.46061837
GMST_RATE_DEG_PER_DAY: float = 360.98564736629
GMST_T2_COEFF: float = 0.000387933
GMST_T3_DIVISOR: float = 38710000.0

# ── numerical tolerances ──────────────────────────────────────────────────────
EPSILON: float = 1e-10
POLE_GUARD_DEG: float = 89.9

# ── ACG line sampling ─────────────────────────────────────────────────────────
ACG_LATITUDE_STEP: float = 0.5
ACG_MAX_LATITUDE: float = 89.5
ACG_DOMAIN_BUFFER: float = 0.5
ACG_DEFAULT_ORB: float = 2.0

# ── parans ────────────────────────────────────────────────────────────────────
PARAN_BISECTION_TOL: float = 1e-6
PARAN_MAX_ITERATIONS: int = 100
PARAN_LATITUDE_STEP: float = 0.25
PARAN_LAT_LOW: float = -85.0
PARAN_LAT_HIGH: float = 85.0
PARAN_MAX_ORB: float = 1.0
PARAN_STRENGTH_THRESHOLD: float = 0.5
# samples whose LST difference exceeds this are treated as wrap-around, not roots
PARAN_BRACKET_LIMIT: float = 90.0

# ── zenith ────────────────────────────────────────────────────────────────────
DECLINATION_SIGMA: float = 3.0
DEFAULT_DECLINATION_ORB: float = 1.0
ZENITH_SEARCH_LIMIT: float = 70.0

# ── grid defaults ─────────────────────────────────────────────────────────────
GRID_DEFAULTS: Dict[str, float] = {
    "lat_step": 5.0,
    "lon_step": 10.0,
    "lat_min": -85.0,
    "lat_max": 85.0,
    "lon_min": -180.0,
    "lon_max": 180.0,
    "acg_orb": ACG_DEFAULT_ORB,
    "paran_orb": PARAN_MAX_ORB,
}
MAX_GRID_CELLS: int = 200_000

# ── catalogs ──────────────────────────────────────────────────────────────────
MAJORS: Tuple[str, ...] = (
    "Sun", "Moon", "Mercury", "Venus", "Mars",
    "Jupiter", "Saturn", "Uranus", "Neptune", "Pluto",
)

EVENTS: Tuple[str, ...] = ("rise", "set", "culminate", "anti_culminate")

LINE_LABELS: Dict[str, str] = {
    "MC": "Midheaven",
    "IC": "Imum Coeli",
    "ASC": "Ascendant",
    "DSC": "Descendant",
}

EVENT_LABELS: Dict[str, str] = {
    "rise": "rising",
    "set": "setting",
    "culminate": "culminating",
    "anti_culminate": "anti-culminating",
}


def body_sort_key(body: str) -> Tuple[int, str]:
    """Catalog order first, then anything else alphabetically."""
    try:
        return (MAJORS.index(body), "")
    except ValueError:
        return (len(MAJORS), body)

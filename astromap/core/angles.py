# astromap/core/angles.py
"""
Angle kernel: degree trigonometry, wrapping, interpolation and the two
scalar root finders (bisection, Newton-Raphson) used by the solvers.

All angles are degrees unless a name says otherwise. Functions are pure.
"""

from __future__ import annotations

import math
import sys
from dataclasses import dataclass, asdict
from typing import Any, Callable, Dict, List, Optional, Tuple

from astromap.core.constants import (
    EPSILON,
    PARAN_BISECTION_TOL,
    PARAN_MAX_ITERATIONS,
)

__all__ = [
    "sin_deg", "cos_deg", "tan_deg", "asin_deg", "acos_deg", "atan_deg", "atan2_deg",
    "to_radians", "to_degrees",
    "normalize_degrees", "normalize_degrees_symmetric", "normalize_radians",
    "normalize_hour_angle", "degrees_to_hours", "hours_to_degrees",
    "to_dms", "from_dms", "to_hms",
    "lerp", "inverse_lerp", "clamp", "lagrange_interp3",
    "gaussian", "standard_normal",
    "angular_distance", "angular_difference", "is_within_orb",
    "BisectionResult", "bisection_solve", "newton_raphson", "sample_count", "sample_range",
]

_TWO_PI = 2.0 * math.pi


# ── trig in degrees ───────────────────────────────────────────────────────────
def to_radians(deg: float) -> float:
    return deg * math.pi / 180.0


def to_degrees(rad: float) -> float:
    return rad * 180.0 / math.pi


def sin_deg(deg: float) -> float:
    return math.sin(to_radians(deg))


def cos_deg(deg: float) -> float:
    return math.cos(to_radians(deg))


def tan_deg(deg: float) -> float:
    return math.tan(to_radians(deg))


def asin_deg(x: float) -> float:
    # rounding can push |x| a hair past 1
    return to_degrees(math.asin(clamp(x, -1.0, 1.0)))


def acos_deg(x: float) -> float:
    return to_degrees(math.acos(clamp(x, -1.0, 1.0)))


def atan_deg(x: float) -> float:
    return to_degrees(math.atan(x))


def atan2_deg(y: float, x: float) -> float:
    return to_degrees(math.atan2(y, x))


# ── wrapping ──────────────────────────────────────────────────────────────────
def normalize_degrees(deg: float) -> float:
    """Wrap to [0, 360)."""
    r = deg % 360.0
    # tiny negatives come back as exactly 360.0
    return 0.0 if r >= 360.0 else r


def normalize_degrees_symmetric(deg: float) -> float:
    """Wrap to [-180, 180)."""
    return normalize_degrees(deg + 180.0) - 180.0


def normalize_radians(rad: float) -> float:
    r = rad % _TWO_PI
    return 0.0 if r >= _TWO_PI else r


def normalize_hour_angle(hours: float) -> float:
    """Wrap an hour angle in hours to [-12, 12)."""
    r = (hours + 12.0) % 24.0
    if r >= 24.0:
        r = 0.0
    return r - 12.0


def degrees_to_hours(deg: float) -> float:
    return deg / 15.0


def hours_to_degrees(hours: float) -> float:
    return hours * 15.0


# ── sexagesimal ───────────────────────────────────────────────────────────────
def to_dms(deg: float) -> Tuple[int, int, float]:
    """Split into (degrees, minutes, seconds); the sign rides on the first
    non-zero field."""
    sign = -1 if deg < 0 else 1
    a = abs(deg)
    d = int(a)
    m_float = (a - d) * 60.0
    m = int(m_float)
    s = (m_float - m) * 60.0
    if d != 0:
        return sign * d, m, s
    if m != 0:
        return 0, sign * m, s
    return 0, 0, sign * s


def from_dms(d: float, m: float = 0.0, s: float = 0.0) -> float:
    negative = d < 0 or (d == 0 and (m < 0 or (m == 0 and s < 0)))
    total = abs(d) + abs(m) / 60.0 + abs(s) / 3600.0
    return -total if negative else total


def to_hms(deg: float) -> Tuple[int, int, float]:
    hours = normalize_degrees(deg) / 15.0
    h = int(hours)
    m_float = (hours - h) * 60.0
    m = int(m_float)
    return h, m, (m_float - m) * 60.0


# ── interpolation ─────────────────────────────────────────────────────────────
def lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


def inverse_lerp(a: float, b: float, value: float) -> float:
    if abs(b - a) < EPSILON:
        return 0.0
    return (value - a) / (b - a)


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def lagrange_interp3(y_prev: float, y0: float, y_next: float, t: float) -> float:
    """Quadratic through (-1, y_prev), (0, y0), (1, y_next), evaluated at t."""
    return (
        y_prev * t * (t - 1.0) / 2.0
        + y0 * (1.0 - t * t)
        + y_next * t * (t + 1.0) / 2.0
    )


# ── distributions ─────────────────────────────────────────────────────────────
def gaussian(x: float, mu: float = 0.0, sigma: float = 1.0) -> float:
    """Unnormalized bell curve, 1.0 at x == mu."""
    return math.exp(-((x - mu) ** 2) / (2.0 * sigma * sigma))


def standard_normal(x: float) -> float:
    return math.exp(-0.5 * x * x) / math.sqrt(_TWO_PI)


# ── angular comparisons ───────────────────────────────────────────────────────
def angular_distance(a: float, b: float) -> float:
    """Unsigned shortest separation in [0, 180]."""
    return abs(normalize_degrees_symmetric(a - b))


def angular_difference(a: float, b: float) -> float:
    """Signed shortest separation a - b in [-180, 180)."""
    return normalize_degrees_symmetric(a - b)


def is_within_orb(a: float, b: float, orb: float) -> bool:
    return angular_distance(a, b) <= orb


# ── root finding ──────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class BisectionResult:
    root: Optional[float]
    iterations: int
    converged: bool
    residual: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def bisection_solve(
    f: Callable[[float], float],
    a: float,
    b: float,
    tol: float = PARAN_BISECTION_TOL,
    max_iter: int = PARAN_MAX_ITERATIONS,
) -> BisectionResult:
    """
    Bisect ``f`` on [a, b].

    An endpoint already within ``tol`` of zero is returned with zero
    iterations. Same-signed endpoints give ``root=None``. Running out of
    iterations returns the last midpoint with ``converged=False``.
    """
    fa = f(a)
    fb = f(b)
    if abs(fa) < tol:
        return BisectionResult(a, 0, True, fa)
    if abs(fb) < tol:
        return BisectionResult(b, 0, True, fb)
    if fa * fb > 0:
        return BisectionResult(None, 0, False, min(abs(fa), abs(fb)))

    mid, fm = a, fa
    for i in range(1, max_iter + 1):
        mid = (a + b) / 2.0
        fm = f(mid)
        if abs(fm) < tol or (b - a) / 2.0 < tol:
            return BisectionResult(mid, i, True, fm)
        if fa * fm < 0:
            b, fb = mid, fm
        else:
            a, fa = mid, fm
    return BisectionResult(mid, max_iter, False, fm)


def newton_raphson(
    f: Callable[[float], float],
    x0: float,
    tol: float = PARAN_BISECTION_TOL,
    max_iter: int = PARAN_MAX_ITERATIONS,
    h: float = 1e-4,
) -> BisectionResult:
    """Newton iteration with a central-difference derivative."""
    x = x0
    fx = f(x)
    for i in range(1, max_iter + 1):
        if abs(fx) < tol:
            return BisectionResult(x, i - 1, True, fx)
        dfx = (f(x + h) - f(x - h)) / (2.0 * h)
        if abs(dfx) < EPSILON:
            return BisectionResult(None, i, False, fx)
        step = fx / dfx
        x -= step
        fx = f(x)
        if abs(step) < tol:
            return BisectionResult(x, i, True, fx)
    return BisectionResult(x, max_iter, abs(fx) < tol, fx)


def sample_count(lo: float, hi: float, step: float) -> int:
    """Number of points ``sample_range`` yields, without building them."""
    if step <= 0 or hi < lo:
        return 0
    n = (hi - lo) / step + 1e-9
    # tiny steps can overflow to inf
    if n >= sys.maxsize:
        return sys.maxsize
    return int(math.floor(n)) + 1


def sample_range(lo: float, hi: float, step: float) -> List[float]:
    """Inclusive samples lo, lo+step, ... <= hi, built from integer counts."""
    return [lo + i * step for i in range(sample_count(lo, hi, step))]

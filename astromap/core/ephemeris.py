# astromap/core/ephemeris.py
"""
Where body positions come from.

The engine only needs apparent geocentric RA/Dec of date for one instant.
Two providers satisfy ``EphemerisProvider``:

* StaticEphemeris   - caller already holds RA/Dec (tests, precomputed charts)
* SkyfieldEphemeris - JPL kernel via Skyfield, loaded lazily once per instance
"""

from __future__ import annotations

import logging
import os
import threading
from typing import Any, Dict, Iterable, Mapping, Optional, Protocol

from astromap.core.angles import normalize_degrees
from astromap.core.constants import MAJORS
from astromap.core.models import EquatorialCoordinate

log = logging.getLogger(__name__)

__all__ = [
    "EphemerisError",
    "EphemerisProvider",
    "StaticEphemeris",
    "SkyfieldEphemeris",
    "provider_from_env",
]

DEFAULT_KERNEL = "de421.bsp"


class EphemerisError(RuntimeError):
    """Categorized error for provider callers."""
    def __init__(self, stage: str, message: str, **context: Any):
        super().__init__(f"{stage}: {message}")
        self.stage = stage
        self.message = message
        self.context = context


class EphemerisProvider(Protocol):
    def equatorial_positions(
        self, jd_tt: float, bodies: Iterable[str] = MAJORS
    ) -> Dict[str, EquatorialCoordinate]:
        ...


class StaticEphemeris:
    """Returns the same coordinates whatever the instant."""

    def __init__(self, positions: Mapping[str, EquatorialCoordinate]):
        self._positions = dict(positions)

    def equatorial_positions(self, jd_tt: float, bodies: Iterable[str] = MAJORS) -> Dict[str, EquatorialCoordinate]:
        out = {}
        for b in bodies:
            if b not in self._positions:
                raise EphemerisError("body", f"No position for body '{b}'", body=b)
            out[b] = self._positions[b]
        return out


# Skyfield target names in DE4xx kernels
_KERNEL_TARGETS: Dict[str, str] = {
    "Sun": "sun",
    "Moon": "moon",
    "Mercury": "mercury",
    "Venus": "venus",
    "Mars": "mars",
    "Jupiter": "jupiter barycenter",
    "Saturn": "saturn barycenter",
    "Uranus": "uranus barycenter",
    "Neptune": "neptune barycenter",
    "Pluto": "pluto barycenter",
}


class SkyfieldEphemeris:
    """Apparent geocentric RA/Dec (equator and equinox of date)."""

    def __init__(self, kernel_path: str = DEFAULT_KERNEL):
        self.kernel_path = kernel_path
        self._lock = threading.Lock()
        self._ts = None
        self._kernel = None

    def _load(self):
        if self._kernel is not None:
            return self._ts, self._kernel
        from skyfield.api import load
        with self._lock:
            if self._kernel is None:
                try:
                    self._ts = load.timescale()
                    self._kernel = load(self.kernel_path)
                except Exception as e:
                    raise EphemerisError("kernel", f"Skyfield failed to load kernel: {self.kernel_path}", error=str(e))
                log.info("ephemeris kernel loaded: %s", os.path.basename(self.kernel_path))
        return self._ts, self._kernel

    def equatorial_positions(self, jd_tt: float, bodies: Iterable[str] = MAJORS) -> Dict[str, EquatorialCoordinate]:
        ts, kernel = self._load()
        t = ts.tt_jd(jd_tt)
        earth = kernel["earth"]
        out: Dict[str, EquatorialCoordinate] = {}
        for b in bodies:
            target = _KERNEL_TARGETS.get(b)
            if target is None:
                raise EphemerisError("body", f"Unsupported body '{b}'", body=b)
            ra, dec, _ = earth.at(t).observe(kernel[target]).apparent().radec(epoch="date")
            out[b] = EquatorialCoordinate(normalize_degrees(ra.hours * 15.0), float(dec.degrees))
        return out


def provider_from_env(kernel_path: Optional[str] = None) -> SkyfieldEphemeris:
    return SkyfieldEphemeris(kernel_path or os.getenv("ASTRO_EPHEMERIS", DEFAULT_KERNEL))

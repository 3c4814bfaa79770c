# astromap/core/models.py
"""
Value types passed between the solvers.

Everything is a frozen dataclass; ``to_dict()`` gives the JSON shape the API
returns. Closed vocabularies (line types, events, circumpolar state, grid
dominant factor) are ``Literal`` unions so dispatch on them can be checked
for exhaustiveness.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict, field
from typing import Any, Dict, List, Literal, Optional, Tuple

LineType = Literal["MC", "IC", "ASC", "DSC"]
AngularEvent = Literal["rise", "set", "culminate", "anti_culminate"]
CircumpolarState = Literal["always_above", "always_below"]
DominantFactor = Literal["zenith", "acg", "paran", "mixed"]


@dataclass(frozen=True)
class EquatorialCoordinate:
    ra: float   # degrees [0, 360)
    dec: float  # degrees [-90, 90]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class GeoLocation:
    latitude: float
    longitude: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class SemiDiurnalArc:
    sda: float
    never_rises: bool = False
    never_sets: bool = False
    rise_ha: Optional[float] = None
    set_ha: Optional[float] = None

    @property
    def is_normal(self) -> bool:
        return not (self.never_rises or self.never_sets)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ACGLine:
    body: str
    line_type: LineType
    points: Tuple[GeoLocation, ...]
    is_circumpolar: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "body": self.body,
            "line_type": self.line_type,
            "is_circumpolar": self.is_circumpolar,
            "points": [[p.latitude, p.longitude] for p in self.points],
        }


@dataclass(frozen=True)
class ZenithLine:
    body: str
    declination: float
    orb_min: float
    orb_max: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class EventTime:
    body: str
    event: AngularEvent
    lst: float
    is_possible: bool
    circumpolar_state: Optional[CircumpolarState] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ParanSearchResult:
    latitude: float
    time_difference: float
    event1: EventTime
    event2: EventTime
    strength: float
    iterations: int
    converged: bool

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ParanPoint:
    body1: str
    event1: AngularEvent
    body2: str
    event2: AngularEvent
    latitude: float
    strength: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ParanSummary:
    rise_rise: int = 0
    rise_culminate: int = 0
    rise_set: int = 0
    culminate_culminate: int = 0
    culminate_set: int = 0
    set_set: int = 0
    total: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ParanResult:
    points: Tuple[ParanPoint, ...]
    summary: ParanSummary = field(default_factory=ParanSummary)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "points": [p.to_dict() for p in self.points],
            "summary": self.summary.to_dict(),
        }


@dataclass(frozen=True)
class GridCell:
    lat: float
    lon: float
    score: float
    zenith_contribution: float
    acg_contribution: float
    paran_contribution: float
    dominant_factor: DominantFactor
    dominant_body: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def cells_to_dicts(cells: List[GridCell]) -> List[Dict[str, Any]]:
    return [c.to_dict() for c in cells]

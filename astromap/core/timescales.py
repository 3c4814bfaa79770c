# astromap/core/timescales.py
# -----------------------------------------------------------------------------
# Civil instant → Julian days for the map engine (ERFA aligned)
#
#   build_snapshot(date_str, time_str, tz_name, dut1_seconds) -> TimeSnapshot
#
#   • UTC calendar → JD(UTC)            erfa.dtf2d
#   • UTC → TAI → TT                    erfa.utctai, erfa.taitt
#   • UTC + DUT1 → UT1                  erfa.utcut1
#   • |DUT1| ≤ 0.9 s; UTC before 1960 rejected.
#   • Local offset via zoneinfo; DST-ambiguous wall times flagged.
# -----------------------------------------------------------------------------

from __future__ import annotations

import math
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from typing import Any, Dict, List, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import erfa  # pyERFA

from astromap.core.constants import SECONDS_PER_DAY

__all__ = ["TimeSnapshot", "build_snapshot", "snapshot_from_jd"]


@dataclass(frozen=True)
class TimeSnapshot:
    jd_utc: float
    jd_tt: float
    jd_ut1: float
    delta_t: float        # TT − UT1 [s]
    dut1: float           # UT1 − UTC [s]
    tz_offset_seconds: int
    timezone: str
    warnings: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["warnings"] = list(self.warnings)
        return d


def _split_jd(jd: float) -> Tuple[float, float]:
    d1 = math.floor(jd)
    return float(d1), float(jd - d1)


def _local_to_utc(date_str: str, time_str: str, tz_name: str) -> Tuple[datetime, int, List[str]]:
    try:
        z = ZoneInfo(tz_name)
    except ZoneInfoNotFoundError as e:
        raise ValueError(f"Unknown IANA time zone '{tz_name}'") from e
    try:
        hms, _, frac = time_str.partition(".")
        h, m, s = (int(x) for x in hms.split(":"))
        micro = min(999_999, round(float("0." + frac) * 1e6)) if frac else 0
        y, mo, d = (int(x) for x in date_str.split("-"))
        naive = datetime(y, mo, d, h, m, s, micro)
    except ValueError as e:
        raise ValueError(f"Invalid civil time '{date_str} {time_str}': {e}") from e

    warnings: List[str] = []
    if naive.year < 1600 or naive.year > 2200:
        warnings.append(f"date_year_{naive.year}_outside_optimal_erfa_range")

    aware0 = naive.replace(tzinfo=z, fold=0)
    off0 = aware0.utcoffset()
    if off0 is None:
        raise ValueError("Timezone returned None utcoffset()")
    if naive.replace(tzinfo=z, fold=1).utcoffset() != off0:
        warnings.append("dst_ambiguous")
    return aware0.astimezone(timezone.utc), int(off0.total_seconds()), warnings


def _jd_utc(u: datetime) -> float:
    ifrac = min(9999, (u.microsecond + 50) // 100)  # 1e-4 s units
    try:
        utc1, utc2 = erfa.dtf2d("UTC", u.year, u.month, u.day, u.hour, u.minute, u.second + ifrac / 1e4)
    except Exception as e:
        raise ValueError(f"ERFA dtf2d failed: {e}") from e
    return math.fsum((float(utc1), float(utc2)))


def build_snapshot(
    date_str: str,
    time_str: str,
    tz_name: str = "UTC",
    dut1_seconds: float = 0.0,
) -> TimeSnapshot:
    if abs(dut1_seconds) > 0.9 + 1e-12:
        raise ValueError(f"dut1_seconds out of range (|DUT1| ≤ 0.9 s): {dut1_seconds}")

    u, tz_off, warnings = _local_to_utc(date_str, time_str, tz_name)
    if (u.year, u.month, u.day) < (1960, 1, 1):
        raise ValueError("UTC dates before 1960-01-01 are not supported.")

    jd_utc = _jd_utc(u)
    utc1, utc2 = _split_jd(jd_utc)
    tai1, tai2 = erfa.utctai(utc1, utc2)
    tt1, tt2 = erfa.taitt(tai1, tai2)
    ut11, ut12 = erfa.utcut1(utc1, utc2, float(dut1_seconds))

    return TimeSnapshot(
        jd_utc=jd_utc,
        jd_tt=math.fsum((float(tt1), float(tt2))),
        jd_ut1=math.fsum((float(ut11), float(ut12))),
        # difference the parts before collapsing to keep precision
        delta_t=float(((tt1 - ut11) + (tt2 - ut12)) * SECONDS_PER_DAY),
        dut1=float(dut1_seconds),
        tz_offset_seconds=tz_off,
        timezone=tz_name,
        warnings=tuple(warnings),
    )


def snapshot_from_jd(jd_ut1: float, jd_tt: float | None = None) -> TimeSnapshot:
    """Wrap caller-supplied Julian days; UTC is taken equal to UT1."""
    tt = jd_ut1 if jd_tt is None else jd_tt
    return TimeSnapshot(
        jd_utc=jd_ut1,
        jd_tt=tt,
        jd_ut1=jd_ut1,
        delta_t=(tt - jd_ut1) * SECONDS_PER_DAY,
        dut1=0.0,
        tz_offset_seconds=0,
        timezone="UTC",
    )

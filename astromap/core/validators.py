# astromap/core/validators.py
from __future__ import annotations

import math
import re
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Tuple, TypedDict, Union
from zoneinfo import ZoneInfo

from astromap.core.constants import MAJORS, MAX_GRID_CELLS
from astromap.core.grid import GridOptions
from astromap.core.models import EquatorialCoordinate

# ───────────────────────── errors ─────────────────────────

class ValidationError(ValueError):
    """Structured request error; ``errors()`` lists {"loc","msg","type"} items."""
    def __init__(self, details: Union[str, Dict[str, Any], List[Dict[str, Any]]]):
        if isinstance(details, str):
            self._details = [{"loc": [], "msg": details, "type": "value_error"}]
        elif isinstance(details, dict):
            self._details = [details]
        else:
            self._details = list(details)
        msg = self._details[0]["msg"] if self._details else "validation_error"
        super().__init__(msg)

    def errors(self) -> List[Dict[str, Any]]:
        return list(self._details)


# ───────────────────────── helpers ─────────────────────────

def _err(loc: List[str] | str, msg: str, typ: str = "value_error") -> Dict[str, Any]:
    return {"loc": [loc] if isinstance(loc, str) else loc, "msg": msg, "type": typ}

def _as_float(v: Any) -> Optional[float]:
    # bools are ints in Python; reject them as numbers
    if v is None or isinstance(v, bool):
        return None
    try:
        x = float(v)
    except (TypeError, ValueError):
        return None
    return x if math.isfinite(x) else None

def _validate_iana_tz(tz: str, loc: Optional[List[str]] = None) -> str:
    try:
        ZoneInfo(tz)
    except Exception:
        raise ValidationError(_err(loc or ["tz"], "must be a valid IANA zone like 'Europe/London'"))
    return tz


# ───────────────────────── atomic parsers ─────────────────────────

_TIME_RE = re.compile(r"^\s*(?P<h>\d{1,2}):(?P<m>\d{2})(?::(?P<s>\d{2})(?:\.(?P<f>\d+))?)?\s*$")

def parse_time_str(s: Any) -> str:
    """'HH:MM', 'HH:MM:SS' or 'HH:MM:SS.frac' → canonical 'HH:MM:SS[.frac]'."""
    m = _TIME_RE.match(s if isinstance(s, str) else "")
    if not m:
        raise ValidationError(_err("time", "time must be 'HH:MM' or 'HH:MM:SS[.frac]'", "value_error.time"))
    hh, mm, ss = int(m.group("h")), int(m.group("m")), int(m.group("s") or 0)
    frac = m.group("f") or ""
    if not (0 <= hh <= 23 and 0 <= mm <= 59 and 0 <= ss <= 59):
        raise ValidationError(_err("time", "time fields out of range", "value_error.time"))
    return f"{hh:02d}:{mm:02d}:{ss:02d}" + (f".{frac}" if frac else "")

def parse_date(s: Any) -> str:
    try:
        return datetime.strptime(str(s), "%Y-%m-%d").date().isoformat()
    except ValueError:
        raise ValidationError(_err("date", "date must be 'YYYY-MM-DD'", "value_error.date"))

def parse_latlon(lat: Any, lon: Any, lat_key="latitude", lon_key="longitude") -> Tuple[float, float]:
    lat_f = _as_float(lat); lon_f = _as_float(lon)
    if lat_f is None or lon_f is None:
        raise ValidationError(_err([lat_key, lon_key], "latitude/longitude must be finite numbers", "type_error.float"))
    if not (-90.0 <= lat_f <= 90.0):
        raise ValidationError(_err(lat_key, "latitude must be between -90 and 90"))
    if not (-180.0 <= lon_f <= 180.0):
        raise ValidationError(_err(lon_key, "longitude must be between -180 and 180"))
    return lat_f, lon_f

def parse_equatorial(raw: Any, loc: List[str]) -> EquatorialCoordinate:
    """{"ra":..,"dec":..} or [ra, dec]; RA 360 folds to 0."""
    if isinstance(raw, Mapping):
        ra, dec = raw.get("ra"), raw.get("dec")
    elif isinstance(raw, (list, tuple)) and len(raw) == 2:
        ra, dec = raw
    else:
        raise ValidationError(_err(loc, "expected {'ra': deg, 'dec': deg} or [ra, dec]", "type_error"))
    ra_f, dec_f = _as_float(ra), _as_float(dec)
    errs = []
    if ra_f is None or not (0.0 <= ra_f <= 360.0):
        errs.append(_err(loc + ["ra"], "ra must be a finite number in [0, 360)"))
    if dec_f is None or not (-90.0 <= dec_f <= 90.0):
        errs.append(_err(loc + ["dec"], "dec must be a finite number in [-90, 90]"))
    if errs:
        raise ValidationError(errs)
    return EquatorialCoordinate(ra=0.0 if ra_f == 360.0 else ra_f, dec=dec_f)  # type: ignore[arg-type]

def parse_positions(raw: Any) -> Dict[str, EquatorialCoordinate]:
    if not isinstance(raw, Mapping) or not raw:
        raise ValidationError(_err("positions", "positions must be a non-empty object keyed by body"))
    errs: List[Dict[str, Any]] = []
    out: Dict[str, EquatorialCoordinate] = {}
    for body, val in raw.items():
        try:
            out[str(body)] = parse_equatorial(val, ["positions", str(body)])
        except ValidationError as e:
            errs.extend(e.errors())
    if errs:
        raise ValidationError(errs)
    return out

def parse_weights(raw: Any) -> Dict[str, float]:
    """Per-body weights; absent bodies weigh 0. Negative or non-finite values are rejected."""
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise ValidationError(_err("weights", "weights must be an object keyed by body", "type_error"))
    errs: List[Dict[str, Any]] = []
    out: Dict[str, float] = {}
    for body, val in raw.items():
        w = _as_float(val)
        if w is None:
            errs.append(_err(["weights", str(body)], "weight must be a finite number", "type_error.float"))
        elif w < 0:
            errs.append(_err(["weights", str(body)], "weight must be >= 0"))
        else:
            out[str(body)] = w
    if errs:
        raise ValidationError(errs)
    return out

def parse_bodies(raw: Any) -> Tuple[str, ...]:
    if raw is None:
        return MAJORS
    if not isinstance(raw, (list, tuple)) or not raw or not all(isinstance(b, str) and b.strip() for b in raw):
        raise ValidationError(_err("bodies", "bodies must be a non-empty list of names"))
    return tuple(dict.fromkeys(b.strip() for b in raw))

def parse_grid_options(raw: Any, max_cells: int = MAX_GRID_CELLS) -> GridOptions:
    if raw is None:
        return GridOptions()
    if not isinstance(raw, Mapping):
        raise ValidationError(_err("grid_options", "grid_options must be an object", "type_error"))
    base = GridOptions().to_dict()
    errs: List[Dict[str, Any]] = []
    vals: Dict[str, Any] = {}
    for key, default in base.items():
        if key not in raw:
            vals[key] = default
            continue
        if key == "acg_metric":
            if raw[key] not in ("planar", "great_circle"):
                errs.append(_err(["grid_options", key], "acg_metric must be 'planar' or 'great_circle'"))
            vals[key] = raw[key]
            continue
        f = _as_float(raw[key])
        if f is None:
            errs.append(_err(["grid_options", key], "must be a finite number", "type_error.float"))
        vals[key] = f
    if errs:
        raise ValidationError(errs)

    for key in ("lat_step", "lon_step", "acg_orb", "paran_orb", "zenith_sigma"):
        if vals[key] <= 0:
            errs.append(_err(["grid_options", key], "must be > 0"))
    for key in ("lat_min", "lat_max"):
        if not -90.0 <= vals[key] <= 90.0:
            errs.append(_err(["grid_options", key], "must be within [-90, 90]"))
    for key in ("lon_min", "lon_max"):
        if not -180.0 <= vals[key] <= 180.0:
            errs.append(_err(["grid_options", key], "must be within [-180, 180]"))
    if vals["lat_min"] > vals["lat_max"]:
        errs.append(_err(["grid_options", "lat_min"], "lat_min must not exceed lat_max"))
    if vals["lon_min"] > vals["lon_max"]:
        errs.append(_err(["grid_options", "lon_min"], "lon_min must not exceed lon_max"))
    if errs:
        raise ValidationError(errs)

    opts = GridOptions(**vals)
    if opts.cell_count > max_cells:
        raise ValidationError(_err("grid_options", f"grid of {opts.cell_count} cells exceeds limit {max_cells}"))
    return opts

def parse_strength(raw: Any, loc: str = "threshold") -> Optional[float]:
    if raw is None:
        return None
    f = _as_float(raw)
    if f is None or not (0.0 <= f <= 1.0):
        raise ValidationError(_err(loc, "must be a number in [0, 1]"))
    return f

def parse_top_n(raw: Any, default: int = 10) -> int:
    if raw is None:
        return default
    f = _as_float(raw)
    if f is None or f < 1 or f != int(f):
        raise ValidationError(_err("top_n", "must be an integer >= 1"))
    return int(f)


# ───────────────────────── snapshot ─────────────────────────

class SnapshotPayload(TypedDict, total=False):
    jd_ut1: float
    jd_tt: float
    date: str
    time: str
    tz: str
    dut1: float

def parse_snapshot_payload(body: Mapping[str, Any]) -> SnapshotPayload:
    """
    Either explicit Julian days ({"jd"} or {"jd_ut1","jd_tt"}) or civil
    {"date","time","tz"[, "dut1"]}. Civil input is converted by the caller.
    """
    if not isinstance(body, Mapping):
        raise ValidationError("payload must be an object")

    if "jd" in body or "jd_ut1" in body:
        jd = _as_float(body.get("jd_ut1", body.get("jd")))
        if jd is None:
            raise ValidationError(_err("jd", "jd must be a finite number", "type_error.float"))
        jd_tt = _as_float(body.get("jd_tt")) if body.get("jd_tt") is not None else jd
        if jd_tt is None:
            raise ValidationError(_err("jd_tt", "jd_tt must be a finite number", "type_error.float"))
        return {"jd_ut1": jd, "jd_tt": jd_tt}

    errs = []
    for k in ("date", "time"):
        if not isinstance(body.get(k), str) or not body[k].strip():
            errs.append(_err(k, "required string"))
    if errs:
        raise ValidationError(errs + [_err("jd", "or provide 'jd' (UT1 Julian day)")])

    out: SnapshotPayload = {
        "date": parse_date(body["date"]),
        "time": parse_time_str(body["time"]),
        "tz": _validate_iana_tz(str(body.get("tz") or body.get("timezone") or "UTC").strip()),
    }
    if body.get("dut1") is not None:
        dut1 = _as_float(body["dut1"])
        if dut1 is None:
            raise ValidationError(_err("dut1", "must be a number (seconds)", "type_error.float"))
        out["dut1"] = dut1
    return out

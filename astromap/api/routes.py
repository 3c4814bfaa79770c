# astromap/api/routes.py
"""
astromap JSON API
- Timescales (ERFA-aligned)
- ACG lines, zenith bands, parans, scoring grid, full map
- Ops: /api/health, /api/config

Every compute endpoint takes a snapshot ({"jd"} or civil {"date","time","tz"})
and either explicit "positions" or, when absent, positions from the
configured ephemeris provider for "bodies" (default: the ten majors).
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Mapping, Tuple

from flask import Blueprint, current_app, jsonify, request

from astromap.version import VERSION
from astromap.core.acg import find_lines_near_location, group_lines_by_body, line_name
from astromap.core.constants import LINE_LABELS
from astromap.core.ephemeris import EphemerisError, EphemerisProvider, provider_from_env
from astromap.core.grid import grid_statistics, top_locations
from astromap.core.models import EquatorialCoordinate, GeoLocation, cells_to_dicts
from astromap.core.paran import (
    describe_paran,
    group_parans_by_event_type,
    group_parans_by_latitude,
    group_parans_by_pair,
    paran_statistics,
)
from astromap.core.pipeline import compute_acg_lines, compute_grid, compute_map, compute_parans
from astromap.core.sidereal import gmst_deg
from astromap.core.timescales import TimeSnapshot, build_snapshot, snapshot_from_jd
from astromap.core.validators import (
    ValidationError,
    _as_float,
    _err,
    parse_bodies,
    parse_grid_options,
    parse_latlon,
    parse_positions,
    parse_snapshot_payload,
    parse_strength,
    parse_top_n,
    parse_weights,
)
from astromap.core.zenith import (
    calculate_zenith_bands,
    calculate_zenith_lines,
    find_high_scoring_bands,
    find_optimal_zenith_latitudes,
    find_zenith_overlaps,
)
from astromap.utils.config import load_config

log = logging.getLogger(__name__)
api = Blueprint("api", __name__)


# ───────────────────────── helpers ─────────────────────────
def _json_error(code: str, details: Any = None, http: int = 400):
    out: Dict[str, Any] = {"ok": False, "error": code}
    if details is not None:
        out["details"] = details
    return jsonify(out), http


def _body() -> Dict[str, Any]:
    data = request.get_json(force=True, silent=True)
    if not isinstance(data, dict):
        raise ValidationError("JSON body must be an object")
    return data


def _cfg():
    cfg = getattr(current_app, "cfg", None)
    return cfg if cfg else load_config(None)


def _engine() -> Mapping[str, Any]:
    return _cfg()["engine"]


def _workers() -> int:
    return max(1, int(_engine().get("workers", 1)))


def _provider() -> EphemerisProvider:
    prov = current_app.extensions.get("astromap.ephemeris")
    if prov is None:
        prov = provider_from_env(_cfg()["ephemeris"]["kernel"])
        current_app.extensions["astromap.ephemeris"] = prov
    return prov


def _snapshot(body: Mapping[str, Any]) -> TimeSnapshot:
    snap = parse_snapshot_payload(body)
    if "jd_ut1" in snap:
        return snapshot_from_jd(snap["jd_ut1"], snap["jd_tt"])
    try:
        return build_snapshot(snap["date"], snap["time"], snap["tz"], snap.get("dut1", 0.0))
    except ValueError as e:
        raise ValidationError(_err("timescales", str(e)))


def _positions(body: Mapping[str, Any], snap: TimeSnapshot) -> Dict[str, EquatorialCoordinate]:
    if body.get("positions") is not None:
        return parse_positions(body["positions"])
    bodies = parse_bodies(body.get("bodies"))
    return _provider().equatorial_positions(snap.jd_tt, bodies)


def _inputs(body: Mapping[str, Any]) -> Tuple[TimeSnapshot, Dict[str, EquatorialCoordinate]]:
    snap = _snapshot(body)
    return snap, _positions(body, snap)


def _paran_args(body: Mapping[str, Any]) -> Dict[str, float]:
    eng = _engine()
    threshold = parse_strength(body.get("threshold"))
    lat_low = _as_float(body.get("lat_low", eng["paran_lat_low"]))
    lat_high = _as_float(body.get("lat_high", eng["paran_lat_high"]))
    if lat_low is None or lat_high is None or not (-90.0 <= lat_low < lat_high <= 90.0):
        raise ValidationError(_err(["lat_low", "lat_high"], "need -90 <= lat_low < lat_high <= 90"))
    return {
        "strength_threshold": eng["paran_strength_threshold"] if threshold is None else threshold,
        "lat_low": lat_low,
        "lat_high": lat_high,
    }


def _grid_options(body: Mapping[str, Any]):
    eng = _engine()
    raw = body.get("grid_options")
    if raw is not None and not isinstance(raw, Mapping):
        raise ValidationError(_err("grid_options", "grid_options must be an object", "type_error"))
    merged = {**eng["grid"], "zenith_sigma": eng["zenith_sigma"], **(raw or {})}
    return parse_grid_options(merged, int(eng["max_grid_cells"]))


@api.errorhandler(ValidationError)
def _validation_error(e: ValidationError):
    return _json_error("validation_error", e.errors(), 400)


@api.errorhandler(EphemerisError)
def _ephemeris_error(e: EphemerisError):
    log.warning("ephemeris failure at %s: %s", request.path, e)
    return _json_error("ephemeris_error", {"stage": e.stage, "message": e.message}, 503)


# ───────────────────────── health / ops ─────────────────────────
@api.get("/api/health")
def health():
    return jsonify({"ok": True, "status": "ok", "version": VERSION}), 200


@api.get("/api/config")
def config_info():
    cfg = _cfg()
    return jsonify({
        "ok": True,
        "engine": cfg["engine"],
        "ephemeris": {"kernel": os.path.basename(str(cfg["ephemeris"]["kernel"]))},
        "version": VERSION,
    }), 200


# ───────────────────────── timescales ─────────────────────────
@api.post("/api/timescales")
def timescales_endpoint():
    snap = _snapshot(_body())
    return jsonify({"ok": True, "timescales": snap.to_dict()}), 200


# ───────────────────────── lines ─────────────────────────
@api.post("/api/acg/lines")
def acg_lines():
    body = _body()
    snap, positions = _inputs(body)
    lines = compute_acg_lines(snap.jd_ut1, positions, _workers())
    out: Dict[str, Any] = {
        "ok": True,
        "jd_ut1": snap.jd_ut1,
        "gmst_deg": gmst_deg(snap.jd_ut1),
        "lines": [
            {**ln.to_dict(), "name": line_name(ln), "label": LINE_LABELS[ln.line_type]}
            for ln in lines
        ],
        "by_body": {
            b: {k: len(v.points) for k, v in kinds.items()}
            for b, kinds in group_lines_by_body(lines).items()
        },
    }
    near = body.get("near")
    if near is not None:
        if not isinstance(near, Mapping):
            raise ValidationError(_err("near", "near must be an object", "type_error"))
        lat, lon = parse_latlon(near.get("latitude"), near.get("longitude"))
        orb = _as_float(near.get("orb", 2.0))
        if orb is None or orb <= 0:
            raise ValidationError(_err(["near", "orb"], "orb must be > 0"))
        out["nearby"] = [
            {"name": line_name(ln), "body": ln.body, "line_type": ln.line_type, "distance": d}
            for ln, d in find_lines_near_location(GeoLocation(lat, lon), lines, orb)
        ]
    return jsonify(out), 200


@api.post("/api/zenith")
def zenith_endpoint():
    body = _body()
    _, positions = _inputs(body)
    weights = parse_weights(body.get("weights"))
    declinations = {b: p.dec for b, p in positions.items()}
    top_n = parse_top_n(body.get("top_n"))
    return jsonify({
        "ok": True,
        "zenith_lines": [z.to_dict() for z in calculate_zenith_lines(declinations)],
        "bands": [b.to_dict() for b in calculate_zenith_bands(declinations, weights)],
        "optimal_latitudes": [
            s.to_dict() for s in find_optimal_zenith_latitudes(
                declinations, weights, top_n=top_n, sigma=_engine()["zenith_sigma"])
        ],
        "overlaps": find_zenith_overlaps(declinations, weights),
        "high_scoring_bands": find_high_scoring_bands(declinations, weights, sigma=_engine()["zenith_sigma"]),
    }), 200


# ───────────────────────── parans ─────────────────────────
_GROUPERS = {
    "latitude": group_parans_by_latitude,
    "pair": group_parans_by_pair,
    "event": group_parans_by_event_type,
}


@api.post("/api/parans")
def parans_endpoint():
    body = _body()
    _, positions = _inputs(body)
    result = compute_parans(positions, workers=_workers(), **_paran_args(body))
    out: Dict[str, Any] = {
        "ok": True,
        "parans": [{**p.to_dict(), "description": describe_paran(p)} for p in result.points],
        "summary": result.summary.to_dict(),
        "statistics": paran_statistics(result),
    }
    group_by = body.get("group_by")
    if group_by is not None:
        grouper = _GROUPERS.get(str(group_by))
        if grouper is None:
            raise ValidationError(_err("group_by", f"group_by must be one of {sorted(_GROUPERS)}"))
        out["groups"] = {str(k): [p.to_dict() for p in v] for k, v in grouper(result).items()}
    return jsonify(out), 200


# ───────────────────────── grid / map ─────────────────────────
@api.post("/api/grid")
def grid_endpoint():
    body = _body()
    snap, positions = _inputs(body)
    weights = parse_weights(body.get("weights"))
    opts = _grid_options(body)
    top_n = parse_top_n(body.get("top_n"))
    workers = _workers()
    lines = compute_acg_lines(snap.jd_ut1, positions, workers)
    parans = compute_parans(positions, workers=workers, **_paran_args(body))
    cells = compute_grid({b: p.dec for b, p in positions.items()}, weights, lines, parans, opts, workers)
    return jsonify({
        "ok": True,
        "options": opts.to_dict(),
        "grid": cells_to_dicts(cells),
        "stats": grid_statistics(cells),
        "top": cells_to_dicts(top_locations(cells, top_n)),
        "paran_summary": parans.summary.to_dict(),
    }), 200


@api.post("/api/map")
def map_endpoint():
    body = _body()
    snap, positions = _inputs(body)
    weights = parse_weights(body.get("weights"))
    result = compute_map(
        snap.jd_ut1, positions, weights, _grid_options(body),
        workers=_workers(), **_paran_args(body),
    )
    return jsonify({"ok": True, "timescales": snap.to_dict(), **result.to_dict()}), 200

# tests/test_validators.py
from __future__ import annotations

import pytest

from astromap.core.constants import MAJORS
from astromap.core.validators import (
    ValidationError,
    parse_bodies,
    parse_date,
    parse_equatorial,
    parse_grid_options,
    parse_latlon,
    parse_positions,
    parse_snapshot_payload,
    parse_strength,
    parse_time_str,
    parse_top_n,
    parse_weights,
)


def _locs(e: ValidationError) -> list:
    return [tuple(d["loc"]) for d in e.errors()]


# ─────────────────────────────────────────────────────────────────────────────
# Atomic parsers
# ─────────────────────────────────────────────────────────────────────────────

@pytest.mark.parametrize("raw,expected", [
    ("7:05", "07:05:00"),
    ("23:59:59", "23:59:59"),
    ("00:00:00.25", "00:00:00.25"),
])
def test_time_accepts(raw: str, expected: str) -> None:
    assert parse_time_str(raw) == expected


@pytest.mark.parametrize("raw", ["24:00", "12:60", "12:00:60", "noon", None, 1200])
def test_time_rejects(raw) -> None:
    with pytest.raises(ValidationError):
        parse_time_str(raw)


def test_date() -> None:
    assert parse_date("2020-02-29") == "2020-02-29"
    with pytest.raises(ValidationError):
        parse_date("2021-02-29")


def test_latlon_bounds() -> None:
    assert parse_latlon("51.5", -0.12) == (51.5, -0.12)
    with pytest.raises(ValidationError):
        parse_latlon(91, 0)
    with pytest.raises(ValidationError):
        parse_latlon(0, True)


def test_equatorial_forms() -> None:
    assert parse_equatorial({"ra": 10, "dec": -5}, ["x"]).ra == 10.0
    assert parse_equatorial([360.0, 0.0], ["x"]).ra == 0.0
    with pytest.raises(ValidationError) as ei:
        parse_equatorial({"ra": 400, "dec": 95}, ["positions", "Sun"])
    assert _locs(ei.value) == [("positions", "Sun", "ra"), ("positions", "Sun", "dec")]


def test_positions_collects_every_error() -> None:
    with pytest.raises(ValidationError) as ei:
        parse_positions({"Sun": {"ra": "x", "dec": 0}, "Moon": [1, 2, 3]})
    assert len(ei.value.errors()) == 2
    with pytest.raises(ValidationError):
        parse_positions({})
    out = parse_positions({"Sun": [10, 20]})
    assert out["Sun"].dec == 20.0


def test_weights() -> None:
    assert parse_weights(None) == {}
    assert parse_weights({"Sun": 2, "Moon": "0.5"}) == {"Sun": 2.0, "Moon": 0.5}
    with pytest.raises(ValidationError) as ei:
        parse_weights({"Sun": -1, "Moon": float("nan")})
    assert _locs(ei.value) == [("weights", "Sun"), ("weights", "Moon")]


def test_bodies() -> None:
    assert parse_bodies(None) == MAJORS
    assert parse_bodies(["Sun", " Moon", "Sun"]) == ("Sun", "Moon")
    with pytest.raises(ValidationError):
        parse_bodies([])


def test_strength() -> None:
    assert parse_strength(None) is None
    assert parse_strength("0.7") == 0.7
    with pytest.raises(ValidationError):
        parse_strength(1.5)


# ─────────────────────────────────────────────────────────────────────────────
# Grid options
# ─────────────────────────────────────────────────────────────────────────────

def test_grid_options_defaults_and_overrides() -> None:
    opts = parse_grid_options({"lat_step": 10, "lon_step": 20, "lat_min": -80, "lat_max": 80})
    assert opts.cell_count == 323
    assert opts.acg_metric == "planar"
    assert parse_grid_options({"acg_metric": "great_circle"}).acg_metric == "great_circle"


@pytest.mark.parametrize("raw,loc", [
    ({"lat_step": 0}, ("grid_options", "lat_step")),
    ({"zenith_sigma": -1}, ("grid_options", "zenith_sigma")),
    ({"lat_min": 20, "lat_max": 10}, ("grid_options", "lat_min")),
    ({"lon_max": 200}, ("grid_options", "lon_max")),
    ({"acg_orb": "wide"}, ("grid_options", "acg_orb")),
    ({"acg_metric": "manhattan"}, ("grid_options", "acg_metric")),
])
def test_grid_options_rejects(raw: dict, loc: tuple) -> None:
    with pytest.raises(ValidationError) as ei:
        parse_grid_options(raw)
    assert loc in _locs(ei.value)


def test_grid_cell_limit() -> None:
    with pytest.raises(ValidationError):
        parse_grid_options({"lat_step": 1, "lon_step": 1}, max_cells=1000)


@pytest.mark.parametrize("raw", [
    {"lat_step": 1e-9},
    {"lat_step": 1e-6, "lon_step": 1e-6},
    {"lon_step": 1e-320},
])
def test_grid_cell_limit_with_tiny_steps(raw: dict) -> None:
    with pytest.raises(ValidationError) as ei:
        parse_grid_options(raw)
    assert ("grid_options",) in _locs(ei.value)


def test_top_n() -> None:
    assert parse_top_n(None) == 10
    assert parse_top_n(3) == 3
    assert parse_top_n("5") == 5
    for bad in (0, -2, 2.5, "many", True):
        with pytest.raises(ValidationError) as ei:
            parse_top_n(bad)
        assert ("top_n",) in _locs(ei.value)


# ─────────────────────────────────────────────────────────────────────────────
# Snapshot payload
# ─────────────────────────────────────────────────────────────────────────────

def test_snapshot_jd_forms() -> None:
    assert parse_snapshot_payload({"jd": 2451545.0}) == {"jd_ut1": 2451545.0, "jd_tt": 2451545.0}
    assert parse_snapshot_payload({"jd_ut1": 1.0, "jd_tt": 2.0}) == {"jd_ut1": 1.0, "jd_tt": 2.0}
    with pytest.raises(ValidationError):
        parse_snapshot_payload({"jd": "soon"})


def test_snapshot_civil_form() -> None:
    snap = parse_snapshot_payload({"date": "2020-06-01", "time": "12:00", "tz": "Europe/London", "dut1": 0.1})
    assert snap == {"date": "2020-06-01", "time": "12:00:00", "tz": "Europe/London", "dut1": 0.1}
    assert parse_snapshot_payload({"date": "2020-06-01", "time": "12:00"})["tz"] == "UTC"


def test_snapshot_requires_something() -> None:
    with pytest.raises(ValidationError) as ei:
        parse_snapshot_payload({})
    assert ("date",) in _locs(ei.value) and ("jd",) in _locs(ei.value)
    with pytest.raises(ValidationError):
        parse_snapshot_payload({"date": "2020-06-01", "time": "12:00", "tz": "Nowhere/Special"})

# tests/test_endpoints.py
from __future__ import annotations

import pytest

SMALL_GRID = {"lat_step": 20, "lon_step": 30, "lat_min": -60, "lat_max": 60}
PAIR = {"Sun": {"ra": 0.0, "dec": 0.0}, "Moon": [100.0, 20.0]}


# ─────────────────────────────────────────────────────────────────────────────
# Ops
# ─────────────────────────────────────────────────────────────────────────────

def test_health_endpoints(client) -> None:
    for path in ("/health", "/healthz", "/api/health"):
        r = client.get(path)
        assert r.status_code == 200
        assert r.get_json()["ok"] is True

def test_root_and_config(client) -> None:
    assert client.get("/").get_json()["service"] == "astromap-backend"
    cfg = client.get("/api/config").get_json()
    assert cfg["engine"]["workers"] >= 1
    assert cfg["ephemeris"]["kernel"].endswith(".bsp")

def test_unknown_route_is_json_404(client) -> None:
    r = client.get("/api/nope")
    assert r.status_code == 404
    assert r.get_json()["error"] == "http_error"

def test_metrics_requires_auth(client) -> None:
    assert client.get("/metrics").status_code == 401


# ─────────────────────────────────────────────────────────────────────────────
# Timescales & validation
# ─────────────────────────────────────────────────────────────────────────────

def test_timescales_civil(client) -> None:
    r = client.post("/api/timescales", json={"date": "2020-06-01", "time": "00:00", "tz": "UTC"})
    assert r.status_code == 200
    ts = r.get_json()["timescales"]
    assert ts["delta_t"] == pytest.approx(69.184, abs=1e-3)
    assert ts["warnings"] == []

def test_timescales_rejects_pre_1960(client) -> None:
    r = client.post("/api/timescales", json={"date": "1950-01-01", "time": "00:00"})
    assert r.status_code == 400
    assert r.get_json()["error"] == "validation_error"

def test_missing_snapshot_is_400(client) -> None:
    r = client.post("/api/acg/lines", json={})
    assert r.status_code == 400
    locs = [tuple(d["loc"]) for d in r.get_json()["details"]]
    assert ("jd",) in locs

def test_non_object_body_is_400(client) -> None:
    r = client.post("/api/zenith", data="[1, 2]", content_type="application/json")
    assert r.status_code == 400

def test_bad_positions_are_400(client) -> None:
    r = client.post("/api/acg/lines", json={"jd": 2451545.0, "positions": {"Sun": {"ra": 500, "dec": 0}}})
    assert r.status_code == 400
    assert r.get_json()["details"][0]["loc"] == ["positions", "Sun", "ra"]


# ─────────────────────────────────────────────────────────────────────────────
# Lines & zenith
# ─────────────────────────────────────────────────────────────────────────────

def test_acg_lines_from_ephemeris(client) -> None:
    r = client.post("/api/acg/lines", json={"jd": 2451545.0})
    assert r.status_code == 200
    body = r.get_json()
    assert len(body["lines"]) == 40
    assert body["lines"][0]["name"] == "Sun MC"
    assert body["lines"][0]["label"] == "Midheaven"
    assert set(body["by_body"]["Sun"]) == {"MC", "IC", "ASC", "DSC"}
    assert body["gmst_deg"] == pytest.approx(280.46061837, abs=1e-9)

def test_acg_lines_near_location(client) -> None:
    # Sun MC at ra 100 sits at longitude 179.539 at J2000
    r = client.post("/api/acg/lines", json={
        "jd": 2451545.0,
        "positions": {"Sun": [100.0, 20.0]},
        "near": {"latitude": 10.0, "longitude": 179.0, "orb": 1.0},
    })
    assert r.status_code == 200
    nearby = r.get_json()["nearby"]
    assert [n["name"] for n in nearby] == ["Sun MC"]
    assert nearby[0]["distance"] == pytest.approx(0.539, abs=1e-3)

def test_unknown_body_is_ephemeris_error(client) -> None:
    r = client.post("/api/acg/lines", json={"jd": 2451545.0, "bodies": ["Sun", "Chiron"]})
    assert r.status_code == 503
    body = r.get_json()
    assert body["error"] == "ephemeris_error"
    assert body["details"]["stage"] == "body"

def test_zenith(client) -> None:
    r = client.post("/api/zenith", json={
        "jd": 2451545.0,
        "positions": {"Sun": [0.0, 20.0], "Moon": [10.0, 21.0]},
        "weights": {"Sun": 2, "Moon": 1},
        "top_n": 3,
    })
    assert r.status_code == 200
    body = r.get_json()
    assert [z["body"] for z in body["zenith_lines"]] == ["Sun", "Moon"]
    assert len(body["optimal_latitudes"]) == 3
    assert body["overlaps"][0]["bodies"] == ["Sun", "Moon"]
    assert body["high_scoring_bands"]


# ─────────────────────────────────────────────────────────────────────────────
# Parans, grid, map
# ─────────────────────────────────────────────────────────────────────────────

def test_parans_grouped(client) -> None:
    r = client.post("/api/parans", json={"jd": 2451545.0, "positions": PAIR, "group_by": "pair"})
    assert r.status_code == 200
    body = r.get_json()
    assert body["summary"]["total"] == len(body["parans"]) > 0
    assert list(body["groups"]) == ["Sun-Moon"]
    assert any(p["description"].startswith("Sun culminating / Moon rising") for p in body["parans"])

def test_parans_bad_group_and_range(client) -> None:
    r = client.post("/api/parans", json={"jd": 2451545.0, "positions": PAIR, "group_by": "colour"})
    assert r.status_code == 400
    r = client.post("/api/parans", json={"jd": 2451545.0, "positions": PAIR, "lat_low": 10, "lat_high": 0})
    assert r.status_code == 400

def test_grid(client) -> None:
    r = client.post("/api/grid", json={
        "jd": 2451545.0, "positions": PAIR, "weights": {"Sun": 1, "Moon": 1},
        "grid_options": SMALL_GRID, "top_n": 5,
    })
    assert r.status_code == 200
    body = r.get_json()
    assert len(body["grid"]) == 7 * 13
    assert body["stats"]["total_cells"] == 7 * 13
    assert len(body["top"]) == 5
    assert body["options"]["lat_step"] == 20.0
    for c in body["grid"]:
        assert c["score"] == pytest.approx(
            c["zenith_contribution"] + c["acg_contribution"] + c["paran_contribution"])

def test_grid_too_large_is_400(client) -> None:
    r = client.post("/api/grid", json={
        "jd": 2451545.0, "positions": PAIR, "grid_options": {"lat_step": 0.01, "lon_step": 0.01},
    })
    assert r.status_code == 400

@pytest.mark.parametrize("path", ["/api/zenith", "/api/grid"])
@pytest.mark.parametrize("top_n", [0, -3])
def test_top_n_must_be_positive(client, path: str, top_n: int) -> None:
    r = client.post(path, json={
        "jd": 2451545.0, "positions": PAIR, "grid_options": SMALL_GRID, "top_n": top_n,
    })
    assert r.status_code == 400
    assert r.get_json()["details"][0]["loc"] == ["top_n"]

def test_grid_options_must_be_object(client) -> None:
    r = client.post("/api/grid", json={"jd": 2451545.0, "positions": PAIR, "grid_options": [1]})
    assert r.status_code == 400

def test_map(client) -> None:
    r = client.post("/api/map", json={
        "date": "2000-01-01", "time": "12:00", "tz": "UTC",
        "positions": PAIR, "weights": {"Sun": 2, "Moon": 1},
        "grid_options": SMALL_GRID,
    })
    assert r.status_code == 200
    body = r.get_json()
    assert body["ok"] is True
    assert body["timescales"]["timezone"] == "UTC"
    assert len(body["lines"]) == 8
    assert len(body["grid"]) == body["grid_stats"]["total_cells"] == 7 * 13
    assert body["parans"]["summary"]["total"] == len(body["parans"]["points"])

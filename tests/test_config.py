# tests/test_config.py
from __future__ import annotations

from astromap.utils.config import DEFAULTS, load_config


def test_defaults_without_file(tmp_path) -> None:
    cfg = load_config(str(tmp_path / "missing.yaml"))
    assert cfg.engine.workers == DEFAULTS["engine"]["workers"]
    assert cfg["engine"]["grid"]["lat_step"] == 5.0
    assert cfg.ephemeris.kernel == "de421.bsp"


def test_yaml_overlay_is_deep(tmp_path) -> None:
    p = tmp_path / "cfg.yaml"
    p.write_text("engine:\n  workers: 4\n  grid:\n    lat_step: 2.5\n", encoding="utf-8")
    cfg = load_config(str(p))
    assert cfg.engine.workers == 4
    assert cfg.engine.grid.lat_step == 2.5
    # siblings survive the merge
    assert cfg.engine.grid.lon_step == 10.0
    assert cfg.engine.paran_strength_threshold == 0.5


def test_env_overrides(monkeypatch) -> None:
    monkeypatch.setenv("ASTRO_WORKERS", "3")
    monkeypatch.setenv("ASTRO_EPHEMERIS", "de440s.bsp")
    monkeypatch.setenv("ASTRO_MAX_GRID_CELLS", "lots")
    cfg = load_config(None)
    assert cfg.engine.workers == 3
    assert cfg.ephemeris.kernel == "de440s.bsp"
    assert cfg.engine.max_grid_cells == DEFAULTS["engine"]["max_grid_cells"]


def test_defaults_not_mutated() -> None:
    cfg = load_config(None)
    cfg.engine.workers = 99
    assert DEFAULTS["engine"]["workers"] == 1

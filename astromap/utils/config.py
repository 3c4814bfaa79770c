# astromap/utils/config.py
import copy
import logging
import os

import yaml

log = logging.getLogger(__name__)

DEFAULTS = {
    "engine": {
        "workers": 1,
        "max_grid_cells": 200000,
        "zenith_sigma": 3.0,
        "paran_lat_low": -85.0,
        "paran_lat_high": 85.0,
        "paran_strength_threshold": 0.5,
        "grid": {
            "lat_step": 5.0,
            "lon_step": 10.0,
            "lat_min": -85.0,
            "lat_max": 85.0,
            "lon_min": -180.0,
            "lon_max": 180.0,
            "acg_orb": 2.0,
            "paran_orb": 1.0,
        },
    },
    "ephemeris": {"kernel": "de421.bsp"},
}

# env var → (section path, caster)
_ENV_OVERRIDES = {
    "ASTRO_WORKERS": (("engine", "workers"), int),
    "ASTRO_MAX_GRID_CELLS": (("engine", "max_grid_cells"), int),
    "ASTRO_EPHEMERIS": (("ephemeris", "kernel"), str),
}


class AttrDict(dict):
    """Dict that also supports attribute access: cfg.engine and cfg['engine'] both work."""
    def __getattr__(self, item):
        try:
            return self[item]
        except KeyError as e:
            raise AttributeError(item) from e
    def __setattr__(self, key, value):
        self[key] = value

def _to_attr(obj):
    if isinstance(obj, dict):
        return AttrDict({k: _to_attr(v) for k, v in obj.items()})
    if isinstance(obj, list):
        return [_to_attr(x) for x in obj]
    return obj

def _merge(base, extra):
    for k, v in (extra or {}).items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            _merge(base[k], v)
        else:
            base[k] = v
    return base

def load_config(path=None):
    """
    Built-in defaults, overlaid by the YAML file at `path` (if it exists),
    overlaid by environment variables:
      - ASTRO_WORKERS         (engine.workers)
      - ASTRO_MAX_GRID_CELLS  (engine.max_grid_cells)
      - ASTRO_EPHEMERIS       (ephemeris.kernel)
    Returns an AttrDict for convenient access.
    """
    data = copy.deepcopy(DEFAULTS)
    if path and os.path.exists(path):
        with open(path, "r", encoding="utf-8") as f:
            _merge(data, yaml.safe_load(f) or {})
    elif path:
        log.info("config file %s not found; using built-in defaults", path)

    for env, ((section, key), cast) in _ENV_OVERRIDES.items():
        raw = os.getenv(env)
        if raw:
            try:
                data[section][key] = cast(raw)
            except ValueError:
                log.warning("ignoring %s=%r (expected %s)", env, raw, cast.__name__)

    return _to_attr(data)

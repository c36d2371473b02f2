# astrocusp/utils/config.py
"""
Engine configuration: a YAML file overlaid with environment variables.

    ASTROCUSP_CONFIG              path to the YAML file (default config/defaults.yaml)
    ASTROCUSP_HOUSE_MODE          equal_offset | placidus_exact
    ASTROCUSP_OBLIQUITY_MODE      reference | true
    ASTROCUSP_PLACIDUS_TOL        fixed-point tolerance in radians
    ASTROCUSP_PLACIDUS_MAX_ITERS  fixed-point iteration budget
    ASTROCUSP_POLAR_EPSILON       degrees from a pole treated as singular
    ASTROCUSP_INCLUDE_SUN         1/0, true/false, yes/no, on/off
    ASTROCUSP_PROJECTED_MC        MC as the ecliptic point with RA = LST (default off: MC = LST)
    ASTROCUSP_VSOP87_PATH         alternative VSOP87 Earth dataset (JSON)

A missing YAML file is fine (defaults apply); an unreadable or malformed
one, or any invalid value, raises ValueError at load time.
"""
from __future__ import annotations

from dataclasses import dataclass, asdict, fields
from typing import Any, Dict, Mapping, Optional
import logging
import math
import os

import yaml

from astrocusp.core.ephemeris import DEFAULT_VSOP87_PATH
from astrocusp.core.errors import InvalidInputError
from astrocusp.core.houses import (
    DEFAULT_MAX_ITERATIONS,
    DEFAULT_POLAR_EPSILON_DEG,
    DEFAULT_TOLERANCE_RAD,
    EQUAL_OFFSET,
    normalize_house_mode,
)

__all__ = ["OBLIQUITY_MODES", "EngineConfig", "load_config", "DEFAULT_CONFIG_PATH"]

log = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "config/defaults.yaml"
OBLIQUITY_MODES = ("reference", "true")

_ENV_KEYS = {
    "house_mode": "ASTROCUSP_HOUSE_MODE",
    "obliquity_mode": "ASTROCUSP_OBLIQUITY_MODE",
    "placidus_tolerance_rad": "ASTROCUSP_PLACIDUS_TOL",
    "placidus_max_iterations": "ASTROCUSP_PLACIDUS_MAX_ITERS",
    "polar_epsilon_deg": "ASTROCUSP_POLAR_EPSILON",
    "include_sun": "ASTROCUSP_INCLUDE_SUN",
    "projected_mc": "ASTROCUSP_PROJECTED_MC",
    "vsop87_path": "ASTROCUSP_VSOP87_PATH",
}


def _bool(v: Any, key: str) -> bool:
    if isinstance(v, bool):
        return v
    s = str(v).strip().lower()
    if s in {"1", "true", "t", "yes", "y", "on"}:
        return True
    if s in {"0", "false", "f", "no", "n", "off"}:
        return False
    raise ValueError(f"{key}: expected a boolean, got {v!r}")


def _positive_float(v: Any, key: str) -> float:
    try:
        x = float(v)
    except (TypeError, ValueError) as e:
        raise ValueError(f"{key}: expected a number, got {v!r}") from e
    if not math.isfinite(x) or x <= 0.0:
        raise ValueError(f"{key}: must be a finite number > 0, got {v!r}")
    return x


@dataclass(frozen=True)
class EngineConfig:
    house_mode: str = EQUAL_OFFSET
    obliquity_mode: str = "reference"
    placidus_tolerance_rad: float = DEFAULT_TOLERANCE_RAD
    placidus_max_iterations: int = DEFAULT_MAX_ITERATIONS
    polar_epsilon_deg: float = DEFAULT_POLAR_EPSILON_DEG
    include_sun: bool = True
    projected_mc: bool = False
    vsop87_path: Optional[str] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "EngineConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"unknown config keys: {', '.join(unknown)}")
        d = dict(data)

        try:
            house_mode = normalize_house_mode(d.get("house_mode"))
        except InvalidInputError as e:
            raise ValueError(f"house_mode: {e.message}") from e

        obliquity_mode = str(d.get("obliquity_mode") or "reference").strip().lower()
        if obliquity_mode not in OBLIQUITY_MODES:
            raise ValueError(f"obliquity_mode: expected one of {OBLIQUITY_MODES}, got {obliquity_mode!r}")

        iters_raw = d.get("placidus_max_iterations", DEFAULT_MAX_ITERATIONS)
        try:
            iters = int(iters_raw)
        except (TypeError, ValueError) as e:
            raise ValueError(f"placidus_max_iterations: expected an integer, got {iters_raw!r}") from e
        if iters < 1:
            raise ValueError(f"placidus_max_iterations: must be ≥ 1, got {iters}")

        eps = _positive_float(d.get("polar_epsilon_deg", DEFAULT_POLAR_EPSILON_DEG), "polar_epsilon_deg")
        if eps >= 90.0:
            raise ValueError(f"polar_epsilon_deg: must be < 90, got {eps}")

        vsop = d.get("vsop87_path") or None
        return cls(
            house_mode=house_mode,
            obliquity_mode=obliquity_mode,
            placidus_tolerance_rad=_positive_float(
                d.get("placidus_tolerance_rad", DEFAULT_TOLERANCE_RAD), "placidus_tolerance_rad"
            ),
            placidus_max_iterations=iters,
            polar_epsilon_deg=eps,
            include_sun=_bool(d.get("include_sun", True), "include_sun"),
            projected_mc=_bool(d.get("projected_mc", False), "projected_mc"),
            vsop87_path=str(vsop) if vsop else None,
        )

    @property
    def resolved_vsop87_path(self) -> str:
        return self.vsop87_path or DEFAULT_VSOP87_PATH

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _read_yaml(path: str) -> Dict[str, Any]:
    if not os.path.exists(path):
        log.info("config file %s not found; using defaults", path)
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ValueError(f"cannot read config {path}: {e}") from e
    if not isinstance(data, dict):
        raise ValueError(f"config {path} must be a mapping at top level")
    return data


def load_config(path: Optional[str] = None, env: Optional[Mapping[str, str]] = None) -> EngineConfig:
    """
    Build an EngineConfig from YAML (`path`, else $ASTROCUSP_CONFIG, else
    config/defaults.yaml) with ASTROCUSP_* environment overrides on top.
    """
    env = os.environ if env is None else env
    cfg_path = path or env.get("ASTROCUSP_CONFIG") or DEFAULT_CONFIG_PATH
    data = _read_yaml(cfg_path)

    for key, var in _ENV_KEYS.items():
        val = env.get(var)
        if val is not None and val.strip() != "":
            data[key] = val.strip()

    cfg = EngineConfig.from_mapping(data)
    log.debug("config loaded from %s: %s", cfg_path, cfg.to_dict())
    return cfg

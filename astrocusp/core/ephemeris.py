# astrocusp/core/ephemeris.py
"""
Sun ephemeris from a truncated VSOP87 Earth series.

The packaged dataset holds the Earth's heliocentric L/B/R series (L0–L5,
B0–B2, R0–R4). The geocentric Sun is that vector reflected through the
origin:

    λ☉ = L + 180°     β☉ = −B     R☉ = R

Longitudes are tropical (equinox of date, no ayanāṁśa). The apparent
longitude adds the short nutation series and annual aberration; everything
else (FK5 frame tweak, light-time beyond aberration, planets other than the
Sun) is out of scope.

The dataset is loaded once per path and shared read-only; callers hold it
through a SunEphemeris instance rather than a module global.
"""
from __future__ import annotations

from dataclasses import dataclass, asdict
from functools import lru_cache
from typing import Any, Dict, Optional, Tuple
import json
import logging
import os

from astrocusp.core.angles import norm360, rad_to_deg, require_finite
from astrocusp.core.errors import InvalidInputError
from astrocusp.core.series import LeveledSeries
from astrocusp.core.timescales import julian_millennia, nutation

__all__ = [
    "DEFAULT_VSOP87_PATH",
    "Vsop87Dataset",
    "SunPosition",
    "SunEphemeris",
    "load_vsop87",
]

logger = logging.getLogger(__name__)

DEFAULT_VSOP87_PATH = os.path.join(os.path.dirname(__file__), "..", "data", "vsop87_earth.json")

ABERRATION_ARCSEC_AU = 20.4898

# polynomial levels per coordinate
_LEVEL_COUNTS = {"L": 6, "B": 3, "R": 5}


# ───────────────────────────── dataset ─────────────────────────────
@dataclass(frozen=True)
class Vsop87Dataset:
    name: str
    version: str
    L: LeveledSeries
    B: LeveledSeries
    R: LeveledSeries

    def describe(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "version": self.version,
            "levels": {"L": len(self.L), "B": len(self.B), "R": len(self.R)},
            "terms": {
                k: [len(t) for t in getattr(self, k).levels] for k in ("L", "B", "R")
            },
        }


def _dataset_from_mapping(raw: Dict[str, Any], source: str) -> Vsop87Dataset:
    try:
        scale = float(raw.get("units", {}).get("amplitude_scale", 1.0))
        series = {}
        for key, expected in _LEVEL_COUNTS.items():
            levels = raw[key]
            if not isinstance(levels, list) or len(levels) != expected:
                raise InvalidInputError(
                    f"{source}: series {key} must have {expected} levels, got "
                    f"{len(levels) if isinstance(levels, list) else type(levels).__name__}"
                )
            series[key] = LeveledSeries.from_levels(levels, scale=scale)
    except KeyError as e:
        raise InvalidInputError(f"{source}: missing series {e}") from e
    return Vsop87Dataset(
        name=str(raw.get("name", "vsop87")),
        version=str(raw.get("version", "unversioned")),
        **series,
    )


@lru_cache(maxsize=4)
def _load_cached(path: str) -> Vsop87Dataset:
    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)
    ds = _dataset_from_mapping(raw, path)
    logger.info("loaded VSOP87 dataset %s v%s from %s", ds.name, ds.version, path)
    return ds


def load_vsop87(path: Optional[str] = None) -> Vsop87Dataset:
    """Load (once per path) the VSOP87 Earth dataset; defaults to the packaged copy."""
    return _load_cached(os.path.abspath(path or DEFAULT_VSOP87_PATH))


# ───────────────────────────── Sun position ─────────────────────────
@dataclass(frozen=True)
class SunPosition:
    jd: float
    longitude: float            # geometric, degrees [0, 360)
    latitude: float             # degrees
    distance: float             # AU
    apparent_longitude: float   # + nutation in longitude + aberration, [0, 360)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class SunEphemeris:
    """Sun positions from an injected VSOP87 dataset (tropical, equinox of date)."""

    def __init__(self, dataset: Vsop87Dataset):
        if not isinstance(dataset, Vsop87Dataset):
            raise TypeError("SunEphemeris needs a Vsop87Dataset")
        self.dataset = dataset

    def heliocentric(self, jd: float) -> Tuple[float, float, float]:
        """Earth's heliocentric (L rad, B rad, R AU) for `jd` (TT)."""
        tau = julian_millennia(require_finite(jd, "jd"))
        L = self.dataset.L.evaluate(tau)
        B = self.dataset.B.evaluate(tau)
        R = self.dataset.R.evaluate(tau)
        if R <= 0.0:
            raise InvalidInputError(f"VSOP87 radius non-positive at jd={jd}: {R}")
        return L, B, R

    def compute_sun(self, jd: float) -> SunPosition:
        L, B, R = self.heliocentric(jd)
        lon = norm360(rad_to_deg(L) + 180.0)
        lat = -rad_to_deg(B)
        dpsi = nutation(jd).dpsi_arcsec
        apparent = norm360(lon + (dpsi - ABERRATION_ARCSEC_AU / R) / 3600.0)
        return SunPosition(
            jd=float(jd),
            longitude=lon,
            latitude=lat,
            distance=R,
            apparent_longitude=apparent,
        )

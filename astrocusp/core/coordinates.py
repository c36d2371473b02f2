# astrocusp/core/coordinates.py
"""Ecliptic ↔ equatorial rotation about the equinox axis (all angles in degrees)."""
from __future__ import annotations

from typing import Tuple
import math
import sys

from astrocusp.core.angles import norm360, sind, cosd, require_finite
from astrocusp.core.errors import InvalidInputError

__all__ = ["ecliptic_to_equatorial", "equatorial_to_ecliptic", "ecliptic_longitude_at_ra"]

EPS_NUM = 4.0 * sys.float_info.epsilon   # ULP-aware tolerance for asin domain checks


def _asin_strict_deg(x: float, ctx: str) -> float:
    if x < -1.0 - EPS_NUM or x > 1.0 + EPS_NUM:
        raise InvalidInputError(f"domain error asin({x:.16e}) in {ctx}")
    return math.degrees(math.asin(max(-1.0, min(1.0, x))))


def _check_latitude_like(v: float, name: str) -> float:
    v = require_finite(v, name)
    if not (-90.0 <= v <= 90.0):
        raise InvalidInputError(f"{name} must be within [-90, 90], got {v}")
    return v


def ecliptic_to_equatorial(longitude: float, latitude: float, obliquity: float) -> Tuple[float, float]:
    """(λ, β, ε) → (α, δ); α normalized to [0, 360)."""
    lam = require_finite(longitude, "longitude")
    beta = _check_latitude_like(latitude, "latitude")
    eps = require_finite(obliquity, "obliquity")
    # tan β multiplied through by cos β so β = ±90° stays finite
    y = sind(lam) * cosd(eps) * cosd(beta) - sind(beta) * sind(eps)
    x = cosd(lam) * cosd(beta)
    ra = norm360(math.degrees(math.atan2(y, x)))
    dec = _asin_strict_deg(sind(beta) * cosd(eps) + cosd(beta) * sind(eps) * sind(lam), "ecl→eq:dec")
    return ra, dec


def equatorial_to_ecliptic(ra: float, dec: float, obliquity: float) -> Tuple[float, float]:
    """(α, δ, ε) → (λ, β); λ normalized to [0, 360)."""
    alpha = require_finite(ra, "ra")
    delta = _check_latitude_like(dec, "dec")
    eps = require_finite(obliquity, "obliquity")
    y = sind(alpha) * cosd(eps) * cosd(delta) + sind(delta) * sind(eps)
    x = cosd(alpha) * cosd(delta)
    lon = norm360(math.degrees(math.atan2(y, x)))
    lat = _asin_strict_deg(sind(delta) * cosd(eps) - cosd(delta) * sind(eps) * sind(alpha), "eq→ecl:lat")
    return lon, lat


def ecliptic_longitude_at_ra(ra: float, obliquity: float) -> float:
    """Longitude of the ecliptic point whose right ascension is `ra`."""
    alpha = require_finite(ra, "ra")
    eps = require_finite(obliquity, "obliquity")
    return norm360(math.degrees(math.atan2(sind(alpha), cosd(alpha) * cosd(eps))))

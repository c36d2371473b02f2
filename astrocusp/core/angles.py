# astrocusp/core/angles.py
"""
Angle helpers shared by every engine module.

Conventions
-----------
- Degree angles normalize into [0, 360), radian angles into [0, 2π).
- ``norm360`` never returns 360.0: a remainder that rounds up to the period
  folds back to 0.0 (e.g. ``norm360(-1e-17)``).
- Sign index = floor(angle / 30) on a normalized angle, so it is always 0..11.
"""
from __future__ import annotations

from typing import Tuple
import math

from astrocusp.core.errors import InvalidInputError

__all__ = [
    "TAU", "DEG_R",
    "deg_to_rad", "rad_to_deg",
    "norm360", "norm2pi", "wrap180", "angular_distance",
    "deg_to_dm", "sign_index", "degree_in_sign",
    "sind", "cosd", "tand", "atan2d",
    "require_finite",
]

TAU = 2.0 * math.pi
DEG_R = math.pi / 180.0


def require_finite(x: float, name: str = "value") -> float:
    try:
        xf = float(x)
    except (TypeError, ValueError) as e:
        raise InvalidInputError(f"{name} must be a number, got {x!r}") from e
    if not math.isfinite(xf):
        raise InvalidInputError(f"{name} must be finite, got {xf!r}")
    return xf


# ───────────────────────────── conversions ─────────────────────────────
def deg_to_rad(a: float) -> float:
    return a * DEG_R


def rad_to_deg(a: float) -> float:
    return a / DEG_R


# ───────────────────────────── normalization ───────────────────────────
def _fold(x: float, period: float) -> float:
    r = math.fmod(x, period)
    if r < 0.0:
        r += period
    # r + period can round to exactly `period` for tiny negative r
    if r >= period or r == 0.0:
        return 0.0
    return r


def norm360(a: float) -> float:
    return _fold(require_finite(a, "angle"), 360.0)


def norm2pi(a: float) -> float:
    return _fold(require_finite(a, "angle"), TAU)


def wrap180(a: float) -> float:
    """Signed equivalent of `a` in [-180, 180)."""
    return norm360(a + 180.0) - 180.0


def angular_distance(a: float, b: float) -> float:
    """Smallest absolute separation |a-b| on the circle, in [0, 180]."""
    d = norm360(a - b)
    return d if d <= 180.0 else 360.0 - d


# ───────────────────────────── degree / minute ─────────────────────────
def deg_to_dm(a: float) -> Tuple[int, int]:
    """
    Split decimal degrees into (degrees, minutes) with minutes rounded.

    A rounded value of 60′ carries into the degree, so 10.999994° gives
    (11, 0) and never (10, 60).
    """
    a = require_finite(a, "angle")
    d = math.floor(a)
    m = int(round((a - d) * 60.0))
    if m == 60:
        d += 1
        m = 0
    return int(d), m


def sign_index(a: float) -> int:
    return int(norm360(a) // 30.0)


def degree_in_sign(a: float) -> float:
    return norm360(a) - 30.0 * sign_index(a)


# ───────────────────────────── degree-domain trig ──────────────────────
def sind(a: float) -> float: return math.sin(a * DEG_R)
def cosd(a: float) -> float: return math.cos(a * DEG_R)
def tand(a: float) -> float: return math.tan(a * DEG_R)


def atan2d(y: float, x: float) -> float:
    if x == 0.0 and y == 0.0:
        raise InvalidInputError("atan2(0, 0) undefined in angle computation")
    return norm360(math.degrees(math.atan2(y, x)))

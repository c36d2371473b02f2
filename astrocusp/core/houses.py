# astrocusp/core/houses.py
"""
Chart angles and house cusps.

Public helpers (all angles in degrees unless the name says otherwise):
  • check_latitude               InvalidInput vs SingularGeometry gate
  • ascendant_and_mc             spherical-trig ASC/MC from LST + latitude
                                 (MC = LST by default, ε-projected on request)
  • placidus_intermediate_cusp   fixed-point semi-arc solver (radians in, degrees out)
  • compute_cusps                both house modes, 12 cusps completed by opposition

House modes
-----------
"equal_offset"   Equal-house Placidus approximation (default). Intermediate
                 cusps are fixed offsets: H2 = ASC+30, H3 = ASC+60,
                 H5 = MC+120, H6 = ASC+150. No iteration, works at any
                 non-polar latitude.
"placidus_exact" Houses 11, 12, 2, 3 solved on the semi-arcs by fixed-point
                 iteration; 5 and 6 are the opposites of 11 and 12. Fails with
                 SingularGeometryError where a cusp is circumpolar (roughly
                 |lat| > 66.5°) and NonConvergenceError if the budget runs out.

Obliquity defaults to REFERENCE_OBLIQUITY_DEG (true obliquity near J2000);
pass true_obliquity(jd) for charts far from the reference epoch.
"""
from __future__ import annotations

from dataclasses import dataclass, asdict, field
from typing import Any, Dict, List, Optional, Tuple
import difflib
import logging
import math

from astrocusp.core.angles import norm360, norm2pi, require_finite
from astrocusp.core.coordinates import ecliptic_longitude_at_ra, ecliptic_to_equatorial
from astrocusp.core.errors import InvalidInputError, NonConvergenceError, SingularGeometryError

__all__ = [
    "REFERENCE_OBLIQUITY_DEG",
    "DEFAULT_POLAR_EPSILON_DEG",
    "HOUSE_MODES",
    "EQUAL_OFFSET",
    "PLACIDUS_EXACT",
    "PLACIDUS_FACTORS",
    "HouseCusps",
    "normalize_house_mode",
    "check_latitude",
    "ascendant_and_mc",
    "placidus_intermediate_cusp",
    "compute_cusps",
]

logger = logging.getLogger(__name__)

REFERENCE_OBLIQUITY_DEG = 23.439291
DEFAULT_POLAR_EPSILON_DEG = 1e-3
DEFAULT_TOLERANCE_RAD = 1e-8
DEFAULT_MAX_ITERATIONS = 50

EQUAL_OFFSET = "equal_offset"
PLACIDUS_EXACT = "placidus_exact"
HOUSE_MODES: Tuple[str, ...] = (EQUAL_OFFSET, PLACIDUS_EXACT)

# semi-arcs past the upper meridian: 0 = MC, 1 = ASC, 2 = IC
PLACIDUS_FACTORS: Dict[int, float] = {11: 1.0 / 3.0, 12: 2.0 / 3.0, 2: 4.0 / 3.0, 3: 5.0 / 3.0}

_EQUAL_OFFSETS: Dict[int, Tuple[str, float]] = {
    2: ("asc", 30.0),
    3: ("asc", 60.0),
    5: ("mc", 120.0),
    6: ("asc", 150.0),
}


# ───────────────────────────── mode aliases ─────────────────────────────
def _slug(s: str) -> str:
    """Lowercase + strip non-alphanumerics → compact, stable alias token."""
    return "".join(ch for ch in s.lower() if ch.isalnum())


_MODE_FROM_SLUG = {
    "equaloffset": EQUAL_OFFSET,
    "equal": EQUAL_OFFSET,
    "approx": EQUAL_OFFSET,
    "placidusapprox": EQUAL_OFFSET,
    "equalhouseplacidusapproximation": EQUAL_OFFSET,
    "placidusexact": PLACIDUS_EXACT,
    "placidus": PLACIDUS_EXACT,
    "exact": PLACIDUS_EXACT,
}


def normalize_house_mode(mode: Optional[str]) -> str:
    if not mode:
        return EQUAL_OFFSET
    canon = _MODE_FROM_SLUG.get(_slug(str(mode)))
    if canon is None:
        hits = difflib.get_close_matches(str(mode).lower(), list(HOUSE_MODES), n=2, cutoff=0.5)
        hint = f" Try one of: {', '.join(hits)}." if hits else ""
        raise InvalidInputError(f"unsupported house mode '{mode}'.{hint}")
    return canon


# ───────────────────────────── latitude gate ────────────────────────────
def check_latitude(latitude_deg: float, polar_epsilon: float = DEFAULT_POLAR_EPSILON_DEG) -> float:
    lat = require_finite(latitude_deg, "latitude")
    if not (-90.0 <= lat <= 90.0):
        raise InvalidInputError(f"latitude must be within [-90, 90], got {lat}")
    if abs(lat) >= 90.0 - float(polar_epsilon):
        raise SingularGeometryError(
            f"latitude {lat} is within {polar_epsilon}° of a pole; the ascendant is undefined there"
        )
    return lat


# ───────────────────────────── ASC / MC ─────────────────────────────────
def ascendant_and_mc(
    lst_deg: float,
    latitude_deg: float,
    obliquity_deg: float = REFERENCE_OBLIQUITY_DEG,
    *,
    polar_epsilon: float = DEFAULT_POLAR_EPSILON_DEG,
    projected_mc: bool = False,
) -> Tuple[float, float]:
    """
    (ASC, MC) ecliptic longitudes for local sidereal time `lst_deg`.

      ASC = atan2(cos LST, −sin LST·cos ε − tan φ·sin ε)
      MC  = atan2(sin LST, cos LST)               (default; equals LST)
      MC  = atan2(sin LST, cos LST·cos ε)         (projected_mc=True; RA of MC = LST)
    """
    lat = check_latitude(latitude_deg, polar_epsilon)
    lst = math.radians(require_finite(lst_deg, "lst"))
    eps = math.radians(require_finite(obliquity_deg, "obliquity"))
    phi = math.radians(lat)

    y = math.cos(lst)
    x = -math.sin(lst) * math.cos(eps) - math.tan(phi) * math.sin(eps)
    if abs(x) < 1e-15 and abs(y) < 1e-15:
        raise SingularGeometryError(
            f"ascendant undefined: horizon coincides with the ecliptic (lst={lst_deg}, lat={lat})"
        )
    asc = norm360(math.degrees(math.atan2(y, x)))
    if projected_mc:
        mc = ecliptic_longitude_at_ra(lst_deg, obliquity_deg)
    else:
        mc = norm360(math.degrees(math.atan2(math.sin(lst), math.cos(lst))))
    return asc, mc


# ───────────────────────────── Placidus fixed point ─────────────────────
def _wrap_pi(x: float) -> float:
    return norm2pi(x + math.pi) - math.pi


def placidus_intermediate_cusp(
    lst_rad: float,
    lat_rad: float,
    eps_rad: float,
    factor: float,
    *,
    tolerance: float = DEFAULT_TOLERANCE_RAD,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
    diagnostics: Optional[Dict[str, Any]] = None,
) -> float:
    """
    Placidus cusp at `factor` semi-arcs past the upper meridian, in degrees.

    Iterates on the cusp's right ascension x, starting from x₀ = LST + factor·90°:

        λ  = atan2(sin x, cos x·cos ε)          ecliptic point with RA x
        δ  = asin(sin ε·sin λ)
        AD = asin(tan φ·tan δ)                  ascensional difference
        DSA = 90° + AD, NSA = 180° − DSA
        x ← LST + factor·DSA                    (factor ≤ 1, above the horizon)
        x ← LST + DSA + (factor − 1)·NSA        (factor > 1, below the horizon)

    until |Δx| < tolerance. Raises NonConvergenceError when `max_iterations`
    is exhausted and SingularGeometryError when the cusp degree never
    rises or sets (|tan φ·tan δ| > 1).
    """
    lst = require_finite(lst_rad, "lst_rad")
    phi = require_finite(lat_rad, "lat_rad")
    eps = require_finite(eps_rad, "eps_rad")
    f = require_finite(factor, "factor")
    if not (0.0 < f < 2.0) or f == 1.0:
        raise InvalidInputError(f"placidus factor must be in (0, 2) excluding 1, got {f}")
    if tolerance <= 0.0 or max_iterations < 1:
        raise InvalidInputError("placidus tolerance must be > 0 and max_iterations ≥ 1")
    if abs(phi) >= math.pi / 2:
        raise SingularGeometryError(f"placidus cusps undefined at latitude {math.degrees(phi)}°")

    tan_phi = math.tan(phi)
    eps_deg = math.degrees(eps)
    x = lst + f * math.pi / 2
    step = float("inf")

    for it in range(1, int(max_iterations) + 1):
        lam_deg = ecliptic_longitude_at_ra(math.degrees(x), eps_deg)
        _, dec_deg = ecliptic_to_equatorial(lam_deg, 0.0, eps_deg)
        t = tan_phi * math.tan(math.radians(dec_deg))
        if abs(t) > 1.0:
            raise SingularGeometryError(
                f"placidus cusp (factor={f:.4f}) is circumpolar at latitude {math.degrees(phi):.4f}°"
            )
        dsa = math.pi / 2 + math.asin(t)
        if f <= 1.0:
            x_new = lst + f * dsa
        else:
            x_new = lst + dsa + (f - 1.0) * (math.pi - dsa)
        step = abs(_wrap_pi(x_new - x))
        x = x_new
        if step < tolerance:
            if diagnostics is not None:
                diagnostics.update({
                    "iterations": it,
                    "last_step_rad": step,
                    "converged": True,
                    "ra_deg": norm360(math.degrees(x)),
                })
            return ecliptic_longitude_at_ra(math.degrees(x), eps_deg)

    if diagnostics is not None:
        diagnostics.update({"iterations": int(max_iterations), "last_step_rad": step, "converged": False})
    logger.warning(
        "placidus solver did not converge: factor=%.4f lat=%.6f° iters=%d last_step=%.3e rad",
        f, math.degrees(phi), max_iterations, step,
    )
    raise NonConvergenceError(
        f"placidus cusp (factor={f:.4f}) did not converge within {max_iterations} iterations "
        f"(last step {step:.3e} rad, tolerance {tolerance:.1e})",
        iterations=int(max_iterations),
        last_step=step,
    )


# ───────────────────────────── cusp sets ────────────────────────────────
@dataclass(frozen=True)
class HouseCusps:
    mode: str
    ascendant: float
    midheaven: float
    intermediate: Dict[int, float]       # houses 2, 3, 5, 6
    cusps: List[float]                   # index 0 = house 1 … index 11 = house 12
    solver_stats: Optional[Dict[str, Any]] = field(default=None)

    def cusp(self, house: int) -> float:
        if not (1 <= int(house) <= 12):
            raise InvalidInputError(f"house number must be 1..12, got {house}")
        return self.cusps[int(house) - 1]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _fill_opposites(known: Dict[int, float]) -> List[float]:
    """Complete 12 cusps from one side of each axis (house n ↔ n+6)."""
    out: List[Optional[float]] = [None] * 12
    for house, lon in known.items():
        out[house - 1] = norm360(lon)
    for i in range(6):
        a, b = out[i], out[i + 6]
        if a is not None and b is None:
            out[i + 6] = norm360(a + 180.0)
        elif b is not None and a is None:
            out[i] = norm360(b + 180.0)
    missing = [i + 1 for i, c in enumerate(out) if c is None]
    if missing:
        raise InvalidInputError(f"cannot complete cusps; houses {missing} have no opposite")
    return [float(c) for c in out]  # type: ignore[arg-type]


def _equal_offset(asc: float, mc: float) -> Dict[int, float]:
    base = {"asc": asc, "mc": mc}
    return {h: norm360(base[src] + off) for h, (src, off) in _EQUAL_OFFSETS.items()}


def compute_cusps(
    lst_deg: float,
    latitude_deg: float,
    obliquity_deg: float = REFERENCE_OBLIQUITY_DEG,
    mode: str = EQUAL_OFFSET,
    *,
    polar_epsilon: float = DEFAULT_POLAR_EPSILON_DEG,
    tolerance: float = DEFAULT_TOLERANCE_RAD,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
    diagnostics: bool = False,
    projected_mc: bool = False,
) -> HouseCusps:
    mode = normalize_house_mode(mode)
    asc, mc = ascendant_and_mc(
        lst_deg, latitude_deg, obliquity_deg, polar_epsilon=polar_epsilon, projected_mc=projected_mc
    )
    stats: Optional[Dict[str, Any]] = None

    if mode == EQUAL_OFFSET:
        inter = _equal_offset(asc, mc)
        cusps = _fill_opposites({1: asc, 10: mc, **inter})
    else:
        stats = {} if diagnostics else None
        lst_r = math.radians(lst_deg)
        lat_r = math.radians(latitude_deg)
        eps_r = math.radians(obliquity_deg)
        solved: Dict[int, float] = {}
        for house, factor in PLACIDUS_FACTORS.items():
            diag: Optional[Dict[str, Any]] = {} if stats is not None else None
            solved[house] = placidus_intermediate_cusp(
                lst_r, lat_r, eps_r, factor,
                tolerance=tolerance, max_iterations=max_iterations, diagnostics=diag,
            )
            if stats is not None:
                stats[f"H{house}"] = diag
        cusps = _fill_opposites({1: asc, 10: mc, **solved})
        inter = {h: cusps[h - 1] for h in (2, 3, 5, 6)}

    return HouseCusps(
        mode=mode,
        ascendant=asc,
        midheaven=mc,
        intermediate=inter,
        cusps=cusps,
        solver_stats=stats,
    )

# astrocusp/core/formatting.py
"""Human-readable renderings of ecliptic longitudes (tropical signs, degree°minute′)."""
from __future__ import annotations

from typing import Tuple

from astrocusp.core.angles import deg_to_dm, norm360, require_finite

__all__ = ["SIGNS", "zodiac_sign", "sign_and_dm", "format_dm", "format_astro"]

SIGNS: Tuple[str, ...] = (
    "Aries", "Taurus", "Gemini", "Cancer", "Leo", "Virgo",
    "Libra", "Scorpio", "Sagittarius", "Capricorn", "Aquarius", "Pisces",
)


def zodiac_sign(angle: float) -> str:
    return SIGNS[int(norm360(require_finite(angle, "angle")) // 30.0) % 12]


def sign_and_dm(angle: float) -> Tuple[int, int, int]:
    """
    (sign index, whole degrees in sign, minutes). The sign is always
    floor(angle/30); a minute carry at the end of a sign reads 30°00′.
    """
    a = norm360(require_finite(angle, "angle"))
    idx = int(a // 30.0) % 12
    d, m = deg_to_dm(a - 30.0 * idx)
    return idx, d, m


def format_dm(angle: float) -> str:
    d, m = deg_to_dm(norm360(require_finite(angle, "angle")))
    if d >= 360:
        d -= 360
    return f"{d}°{m:02d}′"


def format_astro(angle: float) -> str:
    idx, d, m = sign_and_dm(angle)
    return f"{d}°{m:02d}′ {SIGNS[idx]}"

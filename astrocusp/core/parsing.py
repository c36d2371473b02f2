# astrocusp/core/parsing.py
"""
Geographic coordinate strings → signed decimal degrees.

Accepted forms (whitespace optional, case-insensitive hemisphere):
    "-33.9"   "2.35E"   "48.85 N"
    "48°51'N"   "12° 34' 56\" S"   "12d34m"
    "3h 21m 10s E"          (hours → 15° per hour; parse_hours_angle only)

N and E are positive, S and W negative. A leading sign and a hemisphere
letter together are rejected, as are minutes or seconds ≥ 60.
"""
from __future__ import annotations

from typing import Any, Optional
import math
import re

from astrocusp.core.errors import InvalidInputError

__all__ = ["parse_angle", "parse_hours_angle", "parse_latitude", "parse_longitude"]

_NUM = r"\d+(?:\.\d+)?"
_DMS_RE = re.compile(
    rf"^\s*(?P<sign>[+-])?\s*(?P<d>{_NUM})\s*(?:°|º|d|deg)?"
    rf"\s*(?:(?P<m>{_NUM})\s*(?:'|′|m|min))?"
    rf"\s*(?:(?P<s>{_NUM})\s*(?:\"|″|s|sec))?"
    r"\s*(?P<hem>[NSEWnsew])?\s*$"
)
_HMS_RE = re.compile(
    rf"^\s*(?P<sign>[+-])?\s*(?P<h>{_NUM})\s*h"
    rf"\s*(?:(?P<m>{_NUM})\s*m)?"
    rf"\s*(?:(?P<s>{_NUM})\s*s)?"
    r"\s*(?P<hem>[EWew])?\s*$"
)

_HEMI_SIGN = {"N": 1.0, "E": 1.0, "S": -1.0, "W": -1.0}


def _combine(text: str, sign: Optional[str], hem: Optional[str], whole: str,
             minutes: Optional[str], seconds: Optional[str], allowed: str) -> float:
    if sign and hem:
        raise InvalidInputError(f"'{text}': give a sign or a hemisphere letter, not both")
    if (minutes or seconds) and "." in whole:
        raise InvalidInputError(f"'{text}': fractional value cannot be followed by minutes/seconds")
    if seconds and not minutes:
        raise InvalidInputError(f"'{text}': seconds given without minutes")
    m = float(minutes) if minutes else 0.0
    s = float(seconds) if seconds else 0.0
    if m >= 60.0 or s >= 60.0:
        raise InvalidInputError(f"'{text}': minutes and seconds must be < 60")
    value = float(whole) + m / 60.0 + s / 3600.0
    if hem:
        h = hem.upper()
        if h not in allowed:
            raise InvalidInputError(f"'{text}': hemisphere '{h}' not allowed here (expected one of {allowed})")
        value *= _HEMI_SIGN[h]
    elif sign == "-":
        value = -value
    return value


def _as_number(value: Any, what: str) -> Optional[float]:
    if isinstance(value, bool):
        raise InvalidInputError(f"{what} must be a number or coordinate string")
    if isinstance(value, (int, float)):
        x = float(value)
        if not math.isfinite(x):
            raise InvalidInputError(f"{what} must be finite, got {value!r}")
        return x
    if not isinstance(value, str):
        raise InvalidInputError(f"{what} must be a number or coordinate string, got {type(value).__name__}")
    return None


def parse_angle(value: Any, *, allowed_hemispheres: str = "NSEW") -> float:
    x = _as_number(value, "angle")
    if x is not None:
        return x
    m = _DMS_RE.match(value)
    if not m:
        raise InvalidInputError(f"unrecognized angle '{value}'")
    return _combine(value, m.group("sign"), m.group("hem"), m.group("d"),
                    m.group("m"), m.group("s"), allowed_hemispheres)


def parse_hours_angle(value: Any) -> float:
    """'3h 21m 10s E' → 50.2917; plain numbers are taken as degrees already."""
    x = _as_number(value, "hours angle")
    if x is not None:
        return x
    m = _HMS_RE.match(value)
    if not m:
        raise InvalidInputError(f"unrecognized hours angle '{value}'")
    return 15.0 * _combine(value, m.group("sign"), m.group("hem"), m.group("h"),
                           m.group("m"), m.group("s"), "EW")


def parse_latitude(value: Any) -> float:
    lat = parse_angle(value, allowed_hemispheres="NS")
    if not (-90.0 <= lat <= 90.0):
        raise InvalidInputError(f"latitude must be within [-90, 90], got {lat}")
    return lat


def parse_longitude(value: Any) -> float:
    if isinstance(value, str) and "h" in value.lower():
        lon = parse_hours_angle(value)
    else:
        lon = parse_angle(value, allowed_hemispheres="EW")
    if not (-180.0 <= lon <= 180.0):
        raise InvalidInputError(f"longitude must be within [-180, 180], got {lon}")
    return lon

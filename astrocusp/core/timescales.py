# astrocusp/core/timescales.py
# -----------------------------------------------------------------------------
# Civil time → Julian Day → sidereal time, plus the obliquity of the ecliptic.
#
# Public API:
#   julian_day(y, m, d, hh, mm, ss)          -> float   (UTC calendar → JD)
#   julian_day_from_datetime(dt)             -> float
#   civil_to_utc(date_str, time_str, ...)    -> (datetime, warnings)
#   mean_obliquity(jd) / true_obliquity(jd)  -> degrees
#   nutation(jd)                             -> Nutation (arc-seconds)
#   gmst0(jd)                                -> seconds in [0, 86400)
#   local_sidereal_time(jd, lon_deg)         -> seconds in [0, 86400)
#   build_timescales(...)                    -> TimeScales
#
# Notes:
#   • Gregorian calendar only (Meeus ch. 7). Inputs to julian_day are UTC;
#     no time-zone handling happens there.
#   • True obliquity uses a 4-term nutation series (Ω, L, L′). It sits within
#     a few arc-seconds of the IAU 2000A value; that truncation is deliberate.
#   • Any non-finite Julian Day raises InvalidInputError.
# -----------------------------------------------------------------------------
from __future__ import annotations

from dataclasses import dataclass, asdict, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
import math
import re

from astrocusp.core.angles import norm360, sind, cosd, require_finite
from astrocusp.core.errors import InvalidInputError

__all__ = [
    "J2000",
    "SIDEREAL_RATE",
    "SECONDS_PER_DAY",
    "Nutation",
    "TimeScales",
    "julian_day",
    "julian_day_from_datetime",
    "civil_to_utc",
    "julian_centuries",
    "julian_millennia",
    "mean_obliquity",
    "nutation",
    "true_obliquity",
    "gmst0",
    "local_sidereal_time",
    "sidereal_seconds_to_degrees",
    "build_timescales",
]

J2000 = 2451545.0
SECONDS_PER_DAY = 86400.0
SIDEREAL_RATE = 1.00273790935       # sidereal seconds per solar second
SECONDS_PER_DEGREE_LON = 240.0      # 86400 s / 360°


# ───────────────────────────── Julian Day ─────────────────────────────
def julian_day(
    year: int,
    month: int,
    day: int,
    hour: int = 0,
    minute: int = 0,
    second: float = 0.0,
) -> float:
    """Gregorian UTC calendar date/time to Julian Day (Meeus, Astronomical Algorithms 7.1)."""
    if not (1 <= int(month) <= 12):
        raise InvalidInputError(f"month out of range: {month}")
    second = require_finite(second, "second")
    Y, M = int(year), int(month)
    if M <= 2:
        Y -= 1
        M += 12
    A = math.floor(Y / 100)
    B = 2 - A + math.floor(A / 4)
    jd0 = math.floor(365.25 * (Y + 4716)) + math.floor(30.6001 * (M + 1)) + int(day) + B - 1524.5
    frac = (int(hour) * 3600 + int(minute) * 60 + second) / SECONDS_PER_DAY
    return float(jd0 + frac)


def julian_day_from_datetime(dt: datetime) -> float:
    """Aware datetimes are converted to UTC first; naive ones are taken as UTC."""
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)
    sec = dt.second + dt.microsecond / 1e6
    return julian_day(dt.year, dt.month, dt.day, dt.hour, dt.minute, sec)


# ───────────────────────────── civil → UTC ────────────────────────────
_DATE_RE = re.compile(r"^\s*(\d{4})-(\d{2})-(\d{2})\s*$")
_TIME_RE = re.compile(r"^\s*(?P<h>\d{1,2}):(?P<m>\d{2})(?::(?P<s>\d{2})(?:\.(?P<f>\d+))?)?\s*$")


def _parse_date(date_str: str) -> Tuple[int, int, int]:
    m = _DATE_RE.match(date_str or "")
    if not m:
        raise InvalidInputError(f"invalid date '{date_str}': expected YYYY-MM-DD")
    y, mo, d = int(m.group(1)), int(m.group(2)), int(m.group(3))
    try:
        datetime(y, mo, d)
    except ValueError as e:
        raise InvalidInputError(f"invalid date '{date_str}': {e}") from e
    return y, mo, d


def _parse_time(time_str: str) -> Tuple[int, int, int, int]:
    m = _TIME_RE.match(time_str or "")
    if not m:
        raise InvalidInputError(f"invalid time '{time_str}': expected HH:MM[:SS[.frac]]")
    hh, mm = int(m.group("h")), int(m.group("m"))
    ss = int(m.group("s") or 0)
    if not (0 <= hh <= 23 and 0 <= mm <= 59 and 0 <= ss <= 59):
        raise InvalidInputError(f"time fields out of range: {time_str}")
    frac = m.group("f") or ""
    micro = int(round(float("0." + frac) * 1_000_000)) if frac else 0
    return hh, mm, ss, min(micro, 999_999)


def civil_to_utc(
    date_str: str,
    time_str: str,
    *,
    utc_offset_minutes: Optional[float] = None,
    tz_name: Optional[str] = None,
) -> Tuple[datetime, List[str]]:
    """
    Resolve a local civil instant to an aware UTC datetime.

    Exactly one of `utc_offset_minutes` (east positive) or `tz_name` (IANA)
    should be given; with neither, the civil time is taken as UTC. DST
    ambiguity in `tz_name` resolves to fold=0 and adds a "dst_ambiguous" warning.
    """
    warnings: List[str] = []
    y, mo, d = _parse_date(date_str)
    hh, mm, ss, us = _parse_time(time_str)
    naive = datetime(y, mo, d, hh, mm, ss, us)

    if utc_offset_minutes is not None and tz_name:
        raise InvalidInputError("give either utc_offset_minutes or tz_name, not both")

    if tz_name:
        try:
            z = ZoneInfo(tz_name)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise InvalidInputError(f"unknown IANA time zone '{tz_name}'") from e
        off0 = naive.replace(tzinfo=z, fold=0).utcoffset()
        off1 = naive.replace(tzinfo=z, fold=1).utcoffset()
        if off0 != off1:
            warnings.append("dst_ambiguous")
        return naive.replace(tzinfo=z, fold=0).astimezone(timezone.utc), warnings

    offset = require_finite(utc_offset_minutes or 0.0, "utc_offset_minutes")
    if abs(offset) > 18 * 60:
        raise InvalidInputError(f"utc_offset_minutes out of range (±1080): {offset}")
    local = naive.replace(tzinfo=timezone(timedelta(minutes=offset)))
    return local.astimezone(timezone.utc), warnings


# ───────────────────────────── epochs ─────────────────────────────────
def julian_centuries(jd: float) -> float:
    return (require_finite(jd, "jd") - J2000) / 36525.0


def julian_millennia(jd: float) -> float:
    return (require_finite(jd, "jd") - J2000) / 365250.0


# ───────────────────────────── obliquity & nutation ───────────────────
@dataclass(frozen=True)
class Nutation:
    dpsi_arcsec: float   # nutation in longitude
    deps_arcsec: float   # nutation in obliquity


def mean_obliquity(jd: float) -> float:
    T = julian_centuries(jd)
    eps_arcsec = 84381.448 - 46.8150 * T - 0.00059 * T**2 + 0.001813 * T**3
    return eps_arcsec / 3600.0


def nutation(jd: float) -> Nutation:
    # Meeus ch. 22, low-accuracy form (≈0.5″ in Δψ, ≈0.1″ in Δε)
    T = julian_centuries(jd)
    omega = norm360(125.04452 - 1934.136261 * T + 0.0020708 * T**2 + T**3 / 450000.0)
    L_sun = norm360(280.4665 + 36000.7698 * T)
    L_moon = norm360(218.3165 + 481267.8813 * T)
    dpsi = (-17.20 * sind(omega) - 1.32 * sind(2 * L_sun)
            - 0.23 * sind(2 * L_moon) + 0.21 * sind(2 * omega))
    deps = (9.20 * cosd(omega) + 0.57 * cosd(2 * L_sun)
            + 0.10 * cosd(2 * L_moon) - 0.09 * cosd(2 * omega))
    return Nutation(dpsi_arcsec=dpsi, deps_arcsec=deps)


def true_obliquity(jd: float) -> float:
    return mean_obliquity(jd) + nutation(jd).deps_arcsec / 3600.0


# ───────────────────────────── sidereal time ──────────────────────────
def _wrap_day_seconds(s: float) -> float:
    r = math.fmod(s, SECONDS_PER_DAY)
    if r < 0.0:
        r += SECONDS_PER_DAY
    return 0.0 if r >= SECONDS_PER_DAY else r


def _jd_at_0h(jd: float) -> float:
    return math.floor(jd - 0.5) + 0.5


def gmst0(jd: float) -> float:
    """Greenwich mean sidereal time at 0h UT of the day containing `jd`, in seconds."""
    jd = require_finite(jd, "jd")
    T = (_jd_at_0h(jd) - J2000) / 36525.0
    s = 24110.54841 + 8640184.812866 * T + 0.093104 * T**2 - 6.2e-6 * T**3
    return _wrap_day_seconds(s)


def local_sidereal_time(jd: float, longitude_deg: float) -> float:
    """Local mean sidereal time in seconds [0, 86400); longitude east-positive."""
    jd = require_finite(jd, "jd")
    longitude_deg = require_finite(longitude_deg, "longitude")
    ut_seconds = (jd - _jd_at_0h(jd)) * SECONDS_PER_DAY
    s = gmst0(jd) + SIDEREAL_RATE * ut_seconds + longitude_deg * SECONDS_PER_DEGREE_LON
    return _wrap_day_seconds(s)


def sidereal_seconds_to_degrees(seconds: float) -> float:
    return norm360(seconds * 360.0 / SECONDS_PER_DAY)


# ───────────────────────────── bundle ─────────────────────────────────
@dataclass(frozen=True)
class TimeScales:
    jd: float
    julian_centuries: float
    julian_millennia: float
    gmst0_seconds: float
    lst_seconds: float
    lst_degrees: float
    mean_obliquity: float
    true_obliquity: float
    nutation: Nutation
    utc_iso: Optional[str] = None
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def build_timescales(
    jd: float,
    longitude_deg: float,
    *,
    utc_iso: Optional[str] = None,
    warnings: Optional[List[str]] = None,
) -> TimeScales:
    """Every time-derived quantity a chart needs, computed once per request."""
    lst = local_sidereal_time(jd, longitude_deg)
    nut = nutation(jd)
    eps0 = mean_obliquity(jd)
    return TimeScales(
        jd=float(jd),
        julian_centuries=julian_centuries(jd),
        julian_millennia=julian_millennia(jd),
        gmst0_seconds=gmst0(jd),
        lst_seconds=lst,
        lst_degrees=sidereal_seconds_to_degrees(lst),
        mean_obliquity=eps0,
        true_obliquity=eps0 + nut.deps_arcsec / 3600.0,
        nutation=nut,
        utc_iso=utc_iso,
        warnings=list(warnings or []),
    )

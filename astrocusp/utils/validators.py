# astrocusp/utils/validators.py
"""
Request payload validation for the HTTP layer.

Every parser collects problems as {loc, msg, type} entries and raises one
ValidationError carrying all of them, so a client sees every bad field at once.
"""
from __future__ import annotations

import math
import re
from typing import Any, Dict, List, Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from astrocusp.core.chart import ChartInput
from astrocusp.core.errors import InvalidInputError
from astrocusp.core.houses import normalize_house_mode
from astrocusp.core.parsing import parse_latitude, parse_longitude
from astrocusp.utils.config import OBLIQUITY_MODES

__all__ = [
    "ValidationError",
    "parse_chart_payload",
    "parse_jd_payload",
    "MAX_UTC_OFFSET_MINUTES",
]

MAX_UTC_OFFSET_MINUTES = 18 * 60


# ───────────────────────── errors ─────────────────────────

class ValidationError(ValueError):
    """Structured validator error (has .errors())."""
    def __init__(self, details: Union[str, Dict[str, Any], List[Dict[str, Any]]]):
        if isinstance(details, str):
            self._details = [{"loc": [], "msg": details, "type": "value_error"}]
        elif isinstance(details, dict):
            self._details = [details]
        else:
            self._details = list(details)
        msg = self._details[0]["msg"] if self._details else "validation_error"
        super().__init__(msg)

    def errors(self) -> List[Dict[str, Any]]:
        return list(self._details)


def _err(loc: Union[List[str], str], msg: str, typ: str = "value_error") -> Dict[str, Any]:
    return {"loc": [loc] if isinstance(loc, str) else loc, "msg": msg, "type": typ}


# ───────────────────────── atomic checks ─────────────────────────

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_TIME_RE = re.compile(r"^\d{1,2}:\d{2}(:\d{2}(\.\d+)?)?$")


def _as_finite(v: Any) -> Optional[float]:
    if isinstance(v, bool) or v is None:
        return None
    try:
        x = float(v)
    except (TypeError, ValueError):
        return None
    return x if math.isfinite(x) else None


def _truthy(val: Any) -> Optional[bool]:
    if isinstance(val, bool):
        return val
    if val is None:
        return None
    s = str(val).strip().lower()
    if s in {"1", "true", "t", "yes", "y", "on"}:
        return True
    if s in {"0", "false", "f", "no", "n", "off"}:
        return False
    return None


def _check_date(v: Any, errs: List[Dict[str, Any]]) -> Optional[str]:
    if not isinstance(v, str) or not _DATE_RE.match(v.strip()):
        errs.append(_err("date", "date must be 'YYYY-MM-DD'", "value_error.date"))
        return None
    return v.strip()


def _check_time(v: Any, errs: List[Dict[str, Any]]) -> Optional[str]:
    if not isinstance(v, str) or not _TIME_RE.match(v.strip()):
        errs.append(_err("time", "time must be 'HH:MM' or 'HH:MM:SS'", "value_error.time"))
        return None
    return v.strip()


def _check_zone(body: Dict[str, Any], errs: List[Dict[str, Any]]):
    tz = body.get("tz_name") or body.get("tz") or body.get("timezone")
    off_raw = body.get("utc_offset_minutes")
    if tz is not None and off_raw is not None:
        errs.append(_err(["tz_name", "utc_offset_minutes"], "give either tz_name or utc_offset_minutes, not both"))
        return None, None
    if tz is not None:
        if not isinstance(tz, str) or not tz.strip():
            errs.append(_err("tz_name", "must be an IANA zone like 'Europe/Paris'"))
            return None, None
        try:
            ZoneInfo(tz.strip())
        except (ZoneInfoNotFoundError, ValueError):
            errs.append(_err("tz_name", f"unknown IANA zone '{tz}'", "value_error.tz"))
            return None, None
        return None, tz.strip()
    if off_raw is None:
        return 0.0, None
    off = _as_finite(off_raw)
    if off is None:
        errs.append(_err("utc_offset_minutes", "must be a finite number", "type_error.float"))
        return None, None
    if abs(off) > MAX_UTC_OFFSET_MINUTES:
        errs.append(_err("utc_offset_minutes", f"must be within ±{MAX_UTC_OFFSET_MINUTES} minutes"))
        return None, None
    return off, None


def _check_coord(body: Dict[str, Any], key: str, alias: str, parser, errs: List[Dict[str, Any]]) -> Optional[float]:
    raw = body.get(key, body.get(alias))
    if raw is None:
        errs.append(_err(key, "field required", "value_error.missing"))
        return None
    try:
        return parser(raw)
    except InvalidInputError as e:
        errs.append(_err(key, e.message))
        return None


# ───────────────────────── payloads ─────────────────────────

def parse_chart_payload(body: Any, *, require_latitude: bool = True) -> ChartInput:
    """
    Validate a chart request body:
        {date, time, latitude|lat, longitude|lon,
         utc_offset_minutes | tz_name|tz|timezone,
         house_mode?, obliquity_mode?, include_sun?}

    With require_latitude=False a missing latitude defaults to 0; time-only
    endpoints need the longitude but not the latitude.
    """
    if not isinstance(body, dict):
        raise ValidationError("JSON body must be an object")
    errs: List[Dict[str, Any]] = []

    date = _check_date(body.get("date"), errs)
    time_ = _check_time(body.get("time"), errs)
    offset, tz_name = _check_zone(body, errs)
    if require_latitude or body.get("latitude", body.get("lat")) is not None:
        lat = _check_coord(body, "latitude", "lat", parse_latitude, errs)
    else:
        lat = 0.0
    lon = _check_coord(body, "longitude", "lon", parse_longitude, errs)

    house_mode = body.get("house_mode")
    if house_mode is not None:
        try:
            house_mode = normalize_house_mode(str(house_mode))
        except InvalidInputError as e:
            errs.append(_err("house_mode", e.message, "value_error.enum"))

    obliquity_mode = body.get("obliquity_mode")
    if obliquity_mode is not None:
        obliquity_mode = str(obliquity_mode).strip().lower()
        if obliquity_mode not in OBLIQUITY_MODES:
            errs.append(_err("obliquity_mode", f"must be one of {list(OBLIQUITY_MODES)}", "value_error.enum"))

    include_sun = None
    if "include_sun" in body:
        include_sun = _truthy(body.get("include_sun"))
        if include_sun is None:
            errs.append(_err("include_sun", "must be a boolean", "type_error.bool"))

    if errs:
        raise ValidationError(errs)
    return ChartInput(
        date=date,  # type: ignore[arg-type]
        time=time_,  # type: ignore[arg-type]
        longitude=lon,  # type: ignore[arg-type]
        latitude=lat,  # type: ignore[arg-type]
        utc_offset_minutes=None if tz_name else offset,
        tz_name=tz_name,
        house_mode=house_mode,
        obliquity_mode=obliquity_mode,
        include_sun=include_sun,
    )


def parse_jd_payload(body: Any) -> float:
    if not isinstance(body, dict):
        raise ValidationError("JSON body must be an object")
    jd = _as_finite(body.get("jd"))
    if jd is None:
        raise ValidationError(_err("jd", "jd must be a finite number", "type_error.float"))
    return jd

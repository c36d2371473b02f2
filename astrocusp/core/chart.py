# astrocusp/core/chart.py
"""
Chart engine: civil time + place → Julian Day → LST → ASC/MC and house cusps
(and optionally the Sun).

The engine is built once per process from an EngineConfig and a SunEphemeris
and is safe to share between threads: every call is a pure function of its
input, the config and the read-only dataset.
"""
from __future__ import annotations

from dataclasses import dataclass, asdict, field
from typing import Any, Dict, List, Optional
import logging

from astrocusp.core.angles import degree_in_sign, require_finite, sign_index
from astrocusp.core.ephemeris import SunEphemeris, SunPosition, load_vsop87
from astrocusp.core.errors import InvalidInputError, SingularGeometryError
from astrocusp.core.formatting import SIGNS, format_astro
from astrocusp.core.houses import REFERENCE_OBLIQUITY_DEG, check_latitude, compute_cusps, normalize_house_mode
from astrocusp.core.timescales import TimeScales, build_timescales, civil_to_utc, julian_day_from_datetime
from astrocusp.utils.config import OBLIQUITY_MODES, EngineConfig

__all__ = ["ChartInput", "CuspPosition", "ChartResult", "ChartEngine"]

log = logging.getLogger(__name__)


def _check_longitude(value: float) -> float:
    lon = require_finite(value, "longitude")
    if not (-180.0 <= lon <= 180.0):
        raise InvalidInputError(f"longitude must be within [-180, 180], got {lon}")
    return lon


@dataclass(frozen=True)
class ChartInput:
    date: str                                   # YYYY-MM-DD, local civil
    time: str                                   # HH:MM[:SS], local civil
    longitude: float                            # degrees, east positive
    latitude: float                             # degrees, north positive
    utc_offset_minutes: Optional[float] = None  # east positive; exclusive with tz_name
    tz_name: Optional[str] = None               # IANA zone
    house_mode: Optional[str] = None            # None → engine default
    obliquity_mode: Optional[str] = None        # None → engine default
    include_sun: Optional[bool] = None          # None → engine default


@dataclass(frozen=True)
class CuspPosition:
    house: int
    longitude: float
    sign_index: int
    sign: str
    degree_in_sign: float
    formatted: str

    @classmethod
    def at(cls, house: int, longitude: float) -> "CuspPosition":
        idx = sign_index(longitude)
        return cls(
            house=house,
            longitude=longitude,
            sign_index=idx,
            sign=SIGNS[idx],
            degree_in_sign=degree_in_sign(longitude),
            formatted=format_astro(longitude),
        )


@dataclass(frozen=True)
class ChartResult:
    julian_day: float
    utc: str
    lst_seconds: float
    lst_degrees: float
    obliquity: float
    obliquity_mode: str
    house_mode: str
    ascendant: float
    midheaven: float
    houses: Dict[int, float]
    cusps: List[CuspPosition]
    sun: Optional[SunPosition] = None
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["houses"] = {str(k): v for k, v in sorted(self.houses.items())}
        out["ascendant_formatted"] = format_astro(self.ascendant)
        out["midheaven_formatted"] = format_astro(self.midheaven)
        if self.sun is not None:
            out["sun"]["formatted"] = format_astro(self.sun.apparent_longitude)
        return out


class ChartEngine:
    def __init__(self, config: Optional[EngineConfig] = None, ephemeris: Optional[SunEphemeris] = None):
        self.config = config or EngineConfig()
        if ephemeris is None:
            ephemeris = SunEphemeris(load_vsop87(self.config.resolved_vsop87_path))
        self.ephemeris = ephemeris
        log.info(
            "chart engine ready: house_mode=%s obliquity_mode=%s polar_epsilon=%.4g° "
            "placidus_tol=%.1e placidus_max_iters=%d projected_mc=%s dataset=%s",
            self.config.house_mode, self.config.obliquity_mode, self.config.polar_epsilon_deg,
            self.config.placidus_tolerance_rad, self.config.placidus_max_iterations,
            self.config.projected_mc, self.ephemeris.dataset.name,
        )

    def _obliquity_mode(self, requested: Optional[str]) -> str:
        mode = (requested or self.config.obliquity_mode).strip().lower()
        if mode not in OBLIQUITY_MODES:
            raise InvalidInputError(f"obliquity_mode must be one of {OBLIQUITY_MODES}, got {requested!r}")
        return mode

    def timescales(self, chart: ChartInput) -> TimeScales:
        """Civil instant + longitude → JD, GMST0, LST, obliquities (latitude unused)."""
        lon = _check_longitude(chart.longitude)
        utc, warnings = civil_to_utc(
            chart.date, chart.time,
            utc_offset_minutes=chart.utc_offset_minutes,
            tz_name=chart.tz_name,
        )
        return build_timescales(julian_day_from_datetime(utc), lon, utc_iso=utc.isoformat(), warnings=warnings)

    def sun(self, jd: float) -> SunPosition:
        return self.ephemeris.compute_sun(jd)

    def compute(self, chart: ChartInput) -> ChartResult:
        lon = _check_longitude(chart.longitude)
        try:
            lat = check_latitude(chart.latitude, self.config.polar_epsilon_deg)
        except SingularGeometryError:
            log.warning("rejected polar latitude %s (epsilon %.4g°)", chart.latitude, self.config.polar_epsilon_deg)
            raise

        house_mode = normalize_house_mode(chart.house_mode or self.config.house_mode)
        obliquity_mode = self._obliquity_mode(chart.obliquity_mode)
        include_sun = self.config.include_sun if chart.include_sun is None else bool(chart.include_sun)

        utc, warnings = civil_to_utc(
            chart.date, chart.time,
            utc_offset_minutes=chart.utc_offset_minutes,
            tz_name=chart.tz_name,
        )
        jd = julian_day_from_datetime(utc)
        ts = build_timescales(jd, lon, utc_iso=utc.isoformat(), warnings=warnings)
        eps = REFERENCE_OBLIQUITY_DEG if obliquity_mode == "reference" else ts.true_obliquity

        cusps = compute_cusps(
            ts.lst_degrees, lat, eps, house_mode,
            polar_epsilon=self.config.polar_epsilon_deg,
            tolerance=self.config.placidus_tolerance_rad,
            max_iterations=self.config.placidus_max_iterations,
            projected_mc=self.config.projected_mc,
        )
        sun = self.ephemeris.compute_sun(jd) if include_sun else None

        log.debug(
            "chart jd=%.6f lst=%.6f° eps=%.6f° mode=%s asc=%.6f mc=%.6f sun=%s",
            jd, ts.lst_degrees, eps, house_mode, cusps.ascendant, cusps.midheaven,
            f"{sun.apparent_longitude:.6f}" if sun else "-",
        )
        return ChartResult(
            julian_day=jd,
            utc=utc.isoformat(),
            lst_seconds=ts.lst_seconds,
            lst_degrees=ts.lst_degrees,
            obliquity=eps,
            obliquity_mode=obliquity_mode,
            house_mode=house_mode,
            ascendant=cusps.ascendant,
            midheaven=cusps.midheaven,
            houses=dict(cusps.intermediate),
            cusps=[CuspPosition.at(i + 1, c) for i, c in enumerate(cusps.cusps)],
            sun=sun,
            warnings=list(ts.warnings),
        )

# tests/test_ephemeris.py
from __future__ import annotations

import json
import math

import pytest
from hypothesis import given, strategies as st

from astrocusp.core.angles import angular_distance
from astrocusp.core.ephemeris import (
    DEFAULT_VSOP87_PATH,
    SunEphemeris,
    Vsop87Dataset,
    load_vsop87,
)
from astrocusp.core.errors import InvalidInputError


# Meeus, Astronomical Algorithms, example 25.b: 1992-10-13 0h TD
MEEUS_JDE = 2448908.5


@pytest.fixture(scope="module")
def sun_eph(dataset) -> SunEphemeris:
    return SunEphemeris(dataset)


def test_dataset_shape(dataset: Vsop87Dataset) -> None:
    info = dataset.describe()
    assert info["levels"] == {"L": 6, "B": 3, "R": 5}
    assert info["terms"]["L"][0] == 64
    assert info["terms"]["B"][2] == 0
    assert info["terms"]["R"][0] == 40


def test_dataset_loaded_once() -> None:
    assert load_vsop87() is load_vsop87(DEFAULT_VSOP87_PATH)


def test_meeus_example_heliocentric(sun_eph: SunEphemeris) -> None:
    L, B, R = sun_eph.heliocentric(MEEUS_JDE)
    assert math.degrees(L) % 360.0 == pytest.approx(19.907372, abs=1e-4)
    assert math.degrees(B) == pytest.approx(-0.000179, abs=2e-5)
    assert R == pytest.approx(0.99760775, abs=1e-6)


def test_meeus_example_sun(sun_eph: SunEphemeris) -> None:
    sun = sun_eph.compute_sun(MEEUS_JDE)
    assert sun.longitude == pytest.approx(199.907372, abs=1e-4)
    assert sun.latitude == pytest.approx(0.000179, abs=2e-5)
    assert sun.distance == pytest.approx(0.99760775, abs=1e-6)
    # Meeus: apparent λ = 199°54′21.818″ with the full nutation series
    assert sun.apparent_longitude == pytest.approx(199.906060, abs=1e-3)


def test_sun_near_equinox_2000(sun_eph: SunEphemeris) -> None:
    # 2000-03-20 07:35 UT vernal equinox
    sun = sun_eph.compute_sun(2451623.816)
    assert angular_distance(sun.apparent_longitude, 0.0) < 0.01


@given(st.floats(min_value=2415020.5, max_value=2488069.5, allow_nan=False))
def test_sun_ranges(sun_eph: SunEphemeris, jd: float) -> None:
    sun = sun_eph.compute_sun(jd)
    assert 0.0 <= sun.longitude < 360.0
    assert 0.0 <= sun.apparent_longitude < 360.0
    assert abs(sun.latitude) < 0.001
    assert 0.983 < sun.distance < 1.017
    # aberration (−20.5″) plus nutation (|Δψ| < 18″)
    assert angular_distance(sun.apparent_longitude, sun.longitude) < 40.0 / 3600.0


def test_sun_advances_about_one_degree_per_day(sun_eph: SunEphemeris) -> None:
    a = sun_eph.compute_sun(2451545.0).longitude
    b = sun_eph.compute_sun(2451546.0).longitude
    assert 0.95 < (b - a) % 360.0 < 1.03


def test_non_finite_jd_rejected(sun_eph: SunEphemeris) -> None:
    with pytest.raises(InvalidInputError):
        sun_eph.compute_sun(float("inf"))


def test_constructor_requires_dataset() -> None:
    with pytest.raises(TypeError):
        SunEphemeris({"L": []})  # type: ignore[arg-type]


def test_malformed_dataset_rejected(tmp_path) -> None:
    bad = {"name": "broken", "L": [[]] * 6, "B": [[]] * 2, "R": [[]] * 5}
    p = tmp_path / "bad.json"
    p.write_text(json.dumps(bad), encoding="utf-8")
    with pytest.raises(InvalidInputError):
        load_vsop87(str(p))


def test_missing_series_rejected(tmp_path) -> None:
    p = tmp_path / "missing.json"
    p.write_text(json.dumps({"L": [[]] * 6, "B": [[]] * 3}), encoding="utf-8")
    with pytest.raises(InvalidInputError):
        load_vsop87(str(p))

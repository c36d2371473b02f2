# tests/test_formatting_parsing.py
from __future__ import annotations

import pytest
from hypothesis import given, strategies as st

from astrocusp.core.angles import norm360
from astrocusp.core.errors import InvalidInputError
from astrocusp.core.formatting import SIGNS, format_astro, format_dm, sign_and_dm, zodiac_sign
from astrocusp.core.parsing import parse_angle, parse_hours_angle, parse_latitude, parse_longitude


# ─────────────────────────────────────────────────────────────────────────────
# formatting
# ─────────────────────────────────────────────────────────────────────────────

def test_twelve_signs() -> None:
    assert len(SIGNS) == 12
    assert SIGNS[0] == "Aries" and SIGNS[11] == "Pisces"


@pytest.mark.parametrize("angle,sign", [
    (0.0, "Aries"), (29.999, "Aries"), (30.0, "Taurus"), (95.0, "Cancer"),
    (359.9, "Pisces"), (-10.0, "Pisces"), (725.0, "Aries"),
])
def test_zodiac_sign(angle: float, sign: str) -> None:
    assert zodiac_sign(angle) == sign


@pytest.mark.parametrize("angle,text", [
    (0.0, "0°00′"),
    (123.5, "123°30′"),
    (10.999994, "11°00′"),
    (359.9999, "0°00′"),
])
def test_format_dm(angle: float, text: str) -> None:
    assert format_dm(angle) == text


@pytest.mark.parametrize("angle,text", [
    (0.0, "0°00′ Aries"),
    (45.25, "15°15′ Taurus"),
    (29.99999, "30°00′ Aries"),
    (359.9999, "30°00′ Pisces"),
    (280.5, "10°30′ Capricorn"),
])
def test_format_astro(angle: float, text: str) -> None:
    assert format_astro(angle) == text


@given(st.floats(min_value=-720.0, max_value=720.0, allow_nan=False))
def test_sign_and_dm_ranges(angle: float) -> None:
    idx, d, m = sign_and_dm(angle)
    assert idx == int(norm360(angle) // 30.0)
    assert 0 <= d <= 30
    assert 0 <= m <= 59
    if d == 30:
        assert m == 0
    assert format_astro(angle).endswith(SIGNS[idx])


# ─────────────────────────────────────────────────────────────────────────────
# parsing
# ─────────────────────────────────────────────────────────────────────────────

@pytest.mark.parametrize("text,value", [
    ("-33.9", -33.9),
    ("2.35E", 2.35),
    ("2.35 w", -2.35),
    ("48°51'N", 48.85),
    ("12° 34' S", -(12 + 34 / 60)),
    ("12d34m", 12 + 34 / 60),
    ("10°30′15″E", 10 + 30 / 60 + 15 / 3600),
    ("+7", 7.0),
])
def test_parse_angle(text: str, value: float) -> None:
    assert parse_angle(text) == pytest.approx(value, abs=1e-12)


def test_parse_angle_passes_numbers_through() -> None:
    assert parse_angle(12) == 12.0
    assert parse_angle(-0.5) == -0.5


@pytest.mark.parametrize("bad", [
    "-10 N",          # sign and hemisphere
    "12°61'N",        # minutes ≥ 60
    "12.5° 30'",      # fraction then minutes
    "north",
    "",
    True,
    None,
    float("nan"),
])
def test_parse_angle_rejects(bad) -> None:
    with pytest.raises(InvalidInputError):
        parse_angle(bad)


def test_parse_hours_angle() -> None:
    assert parse_hours_angle("3h 21m 10s E") == pytest.approx(15.0 * (3 + 21 / 60 + 10 / 3600))
    assert parse_hours_angle("0h 30m W") == pytest.approx(-7.5)
    with pytest.raises(InvalidInputError):
        parse_hours_angle("3h 21m N")


def test_parse_latitude_and_longitude() -> None:
    assert parse_latitude("48°51'N") == pytest.approx(48.85)
    assert parse_longitude("2°21'E") == pytest.approx(2.35)
    assert parse_longitude("3h 21m 10s W") == pytest.approx(-50.2916666667)
    with pytest.raises(InvalidInputError):
        parse_latitude("91N")
    with pytest.raises(InvalidInputError):
        parse_latitude("10E")
    with pytest.raises(InvalidInputError):
        parse_longitude("10N")
    with pytest.raises(InvalidInputError):
        parse_longitude(181.0)

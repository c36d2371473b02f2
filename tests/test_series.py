# tests/test_series.py
from __future__ import annotations

import math

import pytest
from hypothesis import given, strategies as st

from astrocusp.core.errors import InvalidInputError
from astrocusp.core.series import (
    LeveledSeries,
    SeriesTable,
    evaluate_leveled_series,
    evaluate_series,
)

T_values = st.floats(min_value=-2.0, max_value=2.0, allow_nan=False)


def test_single_term() -> None:
    assert evaluate_series([(2.0, 0.0, 0.0)], 0.7) == pytest.approx(2.0)
    assert evaluate_series([(1.0, math.pi / 2, 0.0)], 1.0) == pytest.approx(0.0, abs=1e-15)
    assert evaluate_series([(1.0, 0.0, math.pi)], 1.0) == pytest.approx(-1.0)


def test_empty_table_is_zero() -> None:
    assert evaluate_series([], 1.3) == 0.0
    assert evaluate_leveled_series([[], []], 1.3) == 0.0


@given(T_values)
def test_order_independent(T: float) -> None:
    rows = [(1e5, 0.3, 12.0), (1e-3, 1.1, 600.0), (-42.0, 4.0, 3.5), (7.5, 2.0, 0.0)]
    assert evaluate_series(rows, T) == evaluate_series(list(reversed(rows)), T)


def test_level_zero_at_T_zero() -> None:
    # only level 0 survives at T == 0
    levels = [[(3.0, 0.0, 0.0)], [(100.0, 0.0, 0.0)], [(1000.0, 0.0, 0.0)]]
    assert evaluate_leveled_series(levels, 0.0) == pytest.approx(3.0)


@given(T_values)
def test_levels_weighted_by_powers(T: float) -> None:
    levels = [[(1.0, 0.0, 0.0)], [(2.0, 0.0, 0.0)], [(3.0, 0.0, 0.0)]]
    assert evaluate_leveled_series(levels, T) == pytest.approx(1.0 + 2.0 * T + 3.0 * T * T, abs=1e-12)


def test_scale_applied_once() -> None:
    ls = LeveledSeries.from_levels([[(100.0, 0.0, 0.0)], [(50.0, 0.0, 0.0)]], scale=1e-2)
    assert ls.evaluate(2.0) == pytest.approx(1.0 + 1.0)
    assert len(ls) == 2


@pytest.mark.parametrize("rows", [
    [(1.0, 2.0)],
    [(1.0, float("nan"), 0.0)],
    [(float("inf"), 0.0, 0.0)],
])
def test_table_validation(rows) -> None:
    with pytest.raises(InvalidInputError):
        SeriesTable.from_rows(rows)


def test_non_finite_T_rejected() -> None:
    with pytest.raises(InvalidInputError):
        evaluate_series([(1.0, 0.0, 0.0)], float("nan"))


@given(st.lists(st.tuples(
    st.floats(min_value=-1e6, max_value=1e6, allow_nan=False),
    st.floats(min_value=-7.0, max_value=7.0, allow_nan=False),
    st.floats(min_value=0.0, max_value=1e5, allow_nan=False),
), max_size=8))
def test_leveled_at_T_zero_equals_level_zero(level0) -> None:
    levels = [level0, [(5.0, 1.0, 2.0)], [(7.0, 0.5, 3.0)]]
    assert evaluate_leveled_series(levels, 0.0) == evaluate_series(level0, 0.0)

# astrocusp/core/series.py
"""
VSOP87-style periodic series.

A table is a sequence of (A, B, C) triplets evaluated as Σ A·cos(B + C·T);
a leveled series multiplies level n by T**n and sums the levels:

    value = scale · Σ_n T**n · Σ_k A_nk · cos(B_nk + C_nk · T)

T is Julian millennia from J2000 for the planetary tables. Sums go through
math.fsum, so results do not depend on term order beyond last-ulp rounding.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence, Tuple, Union
import math

from astrocusp.core.angles import require_finite
from astrocusp.core.errors import InvalidInputError

__all__ = ["Term", "SeriesTable", "LeveledSeries", "evaluate_series", "evaluate_leveled_series"]

Term = Tuple[float, float, float]


@dataclass(frozen=True)
class SeriesTable:
    terms: Tuple[Term, ...]

    @classmethod
    def from_rows(cls, rows: Iterable[Sequence[float]]) -> "SeriesTable":
        out = []
        for i, row in enumerate(rows):
            if len(row) != 3:
                raise InvalidInputError(f"series row {i} must be (amplitude, phase, frequency), got {row!r}")
            a, b, c = (float(v) for v in row)
            if not (math.isfinite(a) and math.isfinite(b) and math.isfinite(c)):
                raise InvalidInputError(f"series row {i} has non-finite values: {row!r}")
            out.append((a, b, c))
        return cls(tuple(out))

    def __len__(self) -> int:
        return len(self.terms)


@dataclass(frozen=True)
class LeveledSeries:
    levels: Tuple[SeriesTable, ...]
    scale: float = 1.0

    @classmethod
    def from_levels(cls, levels: Iterable[Iterable[Sequence[float]]], scale: float = 1.0) -> "LeveledSeries":
        return cls(tuple(SeriesTable.from_rows(lv) for lv in levels), float(scale))

    def __len__(self) -> int:
        return len(self.levels)

    def evaluate(self, T: float) -> float:
        return evaluate_leveled_series(self, T)


def evaluate_series(table: Union[SeriesTable, Iterable[Sequence[float]]], T: float) -> float:
    T = require_finite(T, "T")
    terms = table.terms if isinstance(table, SeriesTable) else table
    return math.fsum(a * math.cos(b + c * T) for a, b, c in terms)


def evaluate_leveled_series(
    levels: Union[LeveledSeries, Sequence[Union[SeriesTable, Iterable[Sequence[float]]]]],
    T: float,
) -> float:
    T = require_finite(T, "T")
    if isinstance(levels, LeveledSeries):
        tables, scale = levels.levels, levels.scale
    else:
        tables, scale = levels, 1.0
    # level 0 is multiplied by T**0 == 1 even at T == 0
    total = math.fsum(evaluate_series(tbl, T) * T**n for n, tbl in enumerate(tables))
    return total * scale

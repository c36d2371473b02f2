# astrocusp/core/errors.py
"""
Engine error taxonomy.

Every failure carries a stable ``code`` so the HTTP layer can map it to a
status without string matching:

  invalid_input       non-finite numbers, latitude outside [-90, 90]
  singular_geometry   latitude at a pole, circumpolar Placidus cusp
  non_convergence     Placidus fixed point exhausted its iteration budget
"""
from __future__ import annotations

from typing import Optional

__all__ = [
    "CuspEngineError",
    "InvalidInputError",
    "SingularGeometryError",
    "NonConvergenceError",
]


class CuspEngineError(ValueError):
    code = "engine_error"

    def __init__(self, message: str, *, code: Optional[str] = None):
        if code:
            self.code = code
        self.message = message
        super().__init__(f"{self.code}: {message}")


class InvalidInputError(CuspEngineError):
    code = "invalid_input"


class SingularGeometryError(CuspEngineError):
    code = "singular_geometry"


class NonConvergenceError(CuspEngineError):
    code = "non_convergence"

    def __init__(self, message: str, *, iterations: int, last_step: float):
        self.iterations = int(iterations)
        self.last_step = float(last_step)
        super().__init__(message)

"""Boundary value functions."""

from __future__ import annotations

from typing import Callable, Sequence

import numpy as np


class Constant:
    """Spatially constant vector value."""

    def __init__(self, values: Sequence[float]):
        self.values = np.atleast_1d(np.asarray(values, dtype=float)).copy()

    @property
    def value_size(self) -> int:
        return int(self.values.size)

    def __call__(self, x: np.ndarray) -> np.ndarray:
        return self.values

    def __repr__(self) -> str:
        return f"Constant({self.values.tolist()})"


class Expression:
    """Vector value given by a Python function of the point.

    ``t`` is passed as a keyword when the expression is time dependent;
    solvers advance it between applications by assigning ``expr.t``.

    Parameters
    ----------
    fn:
        ``fn(x)`` or ``fn(x, t)`` returning ``value_size`` floats.
    value_size:
        Expected length of the returned vector.
    t:
        Initial time, or None for a steady expression.
    """

    def __init__(self, fn: Callable, value_size: int = 1, t=None):
        self.fn = fn
        self._value_size = int(value_size)
        self.t = t

    @property
    def value_size(self) -> int:
        return self._value_size

    def __call__(self, x: np.ndarray) -> np.ndarray:
        if self.t is None:
            v = self.fn(x)
        else:
            v = self.fn(x, self.t)
        v = np.atleast_1d(np.asarray(v, dtype=float))
        if v.size != self._value_size:
            raise ValueError(f"Expression returned {v.size} values, expected {self._value_size}")
        return v

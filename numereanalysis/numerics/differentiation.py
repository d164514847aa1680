"""Derivatives of expressions and of sampled data."""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence

import numpy as np

from numereanalysis.evaluator import Evaluator

logger = logging.getLogger(__name__)


def differentiate_expression(
    evaluator: Evaluator,
    expression: str,
    variable: str,
    points: Sequence[float],
    step: float = 0.0,
) -> list[float]:
    """Derivative of the first component of ``expression`` at every point.

    A ``step`` of 0 lets the evaluator choose a step relative to the point.
    """
    with evaluator.arena.bind(variable) as bound:
        evaluator.set_expression(expression)
        return [evaluator.derivative(bound, float(p), step) for p in points]


def differentiate_data(
    values: Sequence[float] | np.ndarray,
    positions: Sequence[float] | np.ndarray,
) -> list[float] | None:
    """Central differences of a series, one-sided at both ends.

    A NaN neighbour or two samples at the same position give NaN for that
    sample. Returns None for fewer than two samples.
    """
    values = np.asarray(values, dtype=float)
    positions = np.asarray(positions, dtype=float)
    size = values.size
    if size < 2:
        return None

    result = []
    for i in range(size):
        lo = max(i - 1, 0)
        hi = min(i + 1, size - 1)
        dx = positions[hi] - positions[lo]
        if dx == 0.0 or math.isnan(dx):
            result.append(math.nan)
            continue
        result.append(float((values[hi] - values[lo]) / dx))
    return result

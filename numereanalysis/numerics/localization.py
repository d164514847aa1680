"""Recursive refinement of a bracket to a single position.

Each level resamples the bracket at 101 points, picks the first sign change
and recurses into it until the sub-bracket is narrower than the tolerance or
the depth cap of the convergence budget is reached. The final position comes
from linear interpolation between the two samples of the last bracket.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from numereanalysis.config import EvalKind
from numereanalysis.errors import InvalidOrMissingRange
from numereanalysis.evaluator import BoundVariable, Evaluator
from numereanalysis.numerics.sampling import Bracket, detect_brackets, probe

logger = logging.getLogger(__name__)

SUBDIVISIONS = 100


@dataclass(frozen=True)
class ConvergenceBudget:
    """Tolerance and recursion cap for the localizer."""

    eps: float

    def __post_init__(self) -> None:
        if not (self.eps > 0.0 and math.isfinite(self.eps)):
            raise InvalidOrMissingRange(
                "The precision must be a positive number", context={"eps": self.eps}
            )

    @property
    def max_depth(self) -> int:
        return int(math.floor(abs(math.log10(self.eps)))) + 1


def linearize(x0: float, y0: float, x1: float, y1: float) -> float:
    """Root of the straight line through ``(x0, y0)`` and ``(x1, y1)``."""
    if y1 == y0:
        return (x0 + x1) / 2.0
    return x0 - y0 * (x1 - x0) / (y1 - y0)


def _clamp(position: float, bracket: Bracket) -> float:
    low, high = sorted((bracket.left, bracket.right))
    return min(max(position, low), high)


def localize(
    evaluator: Evaluator,
    variable: BoundVariable,
    bracket: Bracket,
    kind: EvalKind,
    budget: ConvergenceBudget,
    depth: int = 0,
) -> float:
    """Refine ``bracket`` to one position.

    Args:
        evaluator: Evaluator with the target expression set.
        variable: Bound variable swept by the search.
        bracket: The bracket to refine.
        kind: Whether to look at values (roots) or derivatives (extrema).
        budget: Tolerance and depth cap.
        depth: Current recursion depth.

    Returns:
        The refined position. A flat or tangent bracket without any sign
        change falls back to interpolating between the bracket end values.
    """
    exact = bracket.exact_position
    if exact is not None:
        return exact

    left, right = bracket.left, bracket.right
    width = (right - left) / SUBDIVISIONS
    positions = [left + i * width for i in range(SUBDIVISIONS + 1)]
    positions[-1] = right
    values = [probe(evaluator, variable, position, kind) for position in positions]

    for sub in detect_brackets(positions, values):
        exact = sub.exact_position
        if exact is not None:
            return exact
        if abs(width) <= budget.eps or depth >= budget.max_depth:
            return sub.left + linearize(0.0, sub.left_value, sub.right - sub.left, sub.right_value)
        return localize(evaluator, variable, sub, kind, budget, depth + 1)

    logger.debug("No sign change inside [%g, %g] at depth %d, interpolating", left, right, depth)
    if math.isnan(bracket.left_value) or math.isnan(bracket.right_value):
        return (left + right) / 2.0
    position = left + linearize(0.0, bracket.left_value, right - left, bracket.right_value)
    return _clamp(position, bracket)

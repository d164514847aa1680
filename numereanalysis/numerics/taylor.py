"""Truncated Taylor series from a difference pyramid.

The expression is sampled at ``4n + 1`` points spaced ``spacing`` apart and
centred on ``x0``. Each level of the pyramid divides the differences of the
level below by the spacing, so level ``k`` approximates the k-th derivative
and is one point narrower than level ``k - 1``. Entry ``j`` of level ``k``
sits at ``j + k/2``; for odd ``k`` the two entries straddling ``x0`` are
averaged, which makes every order a central difference.
"""

from __future__ import annotations

import logging
import math

from numereanalysis.errors import InvalidOrMissingRange
from numereanalysis.evaluator import Evaluator

logger = logging.getLogger(__name__)

# Coefficients smaller than this fraction of the largest one count as zero.
ZERO_TOLERANCE = 1e-12


def taylor_coefficients(
    evaluator: Evaluator,
    expression: str,
    variable: str,
    x0: float,
    order: int,
    spacing: float = 0.1,
) -> list[float]:
    """Coefficients ``c_k = f^(k)(x0) / k!`` for ``k = 0..order``."""
    if order < 0:
        raise InvalidOrMissingRange("The order must not be negative", context={"order": order})
    if not (spacing > 0.0 and math.isfinite(spacing)):
        raise InvalidOrMissingRange("The spacing must be positive", context={"spacing": spacing})
    if not math.isfinite(x0):
        raise InvalidOrMissingRange("The expansion point must be finite", context={"x0": x0})

    centre = 2 * order
    with evaluator.arena.bind(variable) as bound:
        evaluator.set_expression(expression)
        samples = []
        for i in range(4 * order + 1):
            bound.value = x0 + (i - centre) * spacing
            samples.append(evaluator.eval())

    coefficients = [samples[centre]]
    level = samples
    for k in range(1, order + 1):
        level = [(level[i + 1] - level[i]) / spacing for i in range(len(level) - 1)]
        if k % 2 == 0:
            derivative = level[centre - k // 2]
        else:
            derivative = (level[centre - (k + 1) // 2] + level[centre - (k - 1) // 2]) / 2.0
        coefficients.append(derivative / math.factorial(k))
    return coefficients


def _format_number(value: float) -> str:
    return f"{value:.12g}"


def taylor_polynomial(coefficients: list[float], variable: str, x0: float) -> str:
    """Render ``sum c_k * (variable - x0)^k``, skipping zero coefficients."""
    if x0 == 0.0:
        base = variable
    elif x0 > 0.0:
        base = f"({variable}-{_format_number(x0)})"
    else:
        base = f"({variable}+{_format_number(-x0)})"

    largest = max((abs(c) for c in coefficients if math.isfinite(c)), default=0.0)
    terms: list[str] = []
    for k, c in enumerate(coefficients):
        if math.isfinite(c) and abs(c) <= ZERO_TOLERANCE * largest:
            continue
        magnitude = _format_number(abs(c)) if math.isfinite(c) else _format_number(c)
        if k == 0:
            body = magnitude
        elif k == 1:
            body = f"{magnitude}*{base}"
        else:
            body = f"{magnitude}*{base}^{k}"
        negative = math.isfinite(c) and c < 0.0
        if not terms:
            terms.append(f"-{body}" if negative else body)
        else:
            terms.append(f"- {body}" if negative else f"+ {body}")
    return " ".join(terms) if terms else "0"

"""Sampling sweeps and bracket detection.

A sweep moves a bound variable across an interval at a fixed step and probes
either the expression value (root search) or its finite-difference
derivative (extremum search). Adjacent probes with opposite signs form a
bracket. Exact zeros are absorbed into a run until a signed neighbour is
seen on each side, so a root that falls exactly on a sample is reported once.

Positions are always visited monotonically in the direction from ``a`` to
``b``; the detection keeps the previous signed sample as state.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass

from numereanalysis.config import EvalKind, Target
from numereanalysis.errors import InvalidOrMissingRange
from numereanalysis.evaluator import BoundVariable, Evaluator

logger = logging.getLogger(__name__)

# Extra probes just outside the interval catch roots sitting on an endpoint.
BOUNDARY_OFFSET = 1e-10
# Difference step for the derivative probe.
DERIVATIVE_STEP = 1e-7
# Boundary margin of derivative sweeps, as a fraction of the sample spacing.
# The derivative must rise above the rounding noise of DERIVATIVE_STEP there.
DERIVATIVE_MARGIN = 1e-4


@dataclass(frozen=True)
class Bracket:
    """Two positions enclosing a sign change.

    ``left`` is the position visited first, so for a descending sweep
    ``left > right``. For a run of exact zeros the bracket spans the signed
    neighbours of the run (or the run itself where a neighbour is missing,
    with NaN as the missing value) and ``zero_run`` lists the run positions.
    """

    left: float
    right: float
    left_value: float
    right_value: float
    zero_run: tuple[float, ...] = ()

    @property
    def width(self) -> float:
        return abs(self.right - self.left)

    @property
    def exact_position(self) -> float | None:
        """Centre of the zero run, None for a plain sign change."""
        if not self.zero_run:
            return None
        return (self.zero_run[0] + self.zero_run[-1]) / 2.0

    @property
    def transition(self) -> int:
        """+1 for negative to positive in increasing x, -1 for the reverse, 0 if unknown."""
        if math.isnan(self.left_value) or math.isnan(self.right_value):
            return 0
        if self.left_value * self.right_value >= 0.0:
            return 0
        lower_value = self.left_value if self.left < self.right else self.right_value
        return 1 if lower_value < 0.0 else -1


def probe(evaluator: Evaluator, variable: BoundVariable, position: float, kind: EvalKind) -> float:
    """Evaluate the current expression (or its derivative) at ``position``."""
    if kind is EvalKind.DERIVATIVE:
        return evaluator.derivative(variable, position, DERIVATIVE_STEP)
    variable.value = position
    return evaluator.eval()


def sweep_positions(
    a: float, b: float, samples: int, extend: bool = True, offset: float = BOUNDARY_OFFSET
) -> list[float]:
    """Equidistant positions from ``a`` to ``b`` (inclusive), optionally
    with one boundary probe ``offset`` before ``a`` and after ``b``."""
    if samples < 2:
        raise InvalidOrMissingRange(
            "At least two samples are required", context={"samples": samples}
        )
    step = (b - a) / (samples - 1)
    positions = [a + i * step for i in range(samples)]
    positions[-1] = b
    if extend:
        direction = 1.0 if b >= a else -1.0
        positions.insert(0, a - direction * offset)
        positions.append(b + direction * offset)
    return positions


def boundary_offset(a: float, b: float, samples: int, kind: EvalKind) -> float:
    """Distance of the boundary probes from the interval ends."""
    if kind is EvalKind.VALUE or samples < 2:
        return BOUNDARY_OFFSET
    return max(BOUNDARY_OFFSET, DERIVATIVE_MARGIN * abs(b - a) / (samples - 1))


def detect_brackets(positions: Sequence[float], values: Sequence[float]) -> list[Bracket]:
    """All sign changes and zero runs in one ordered pass.

    NaN samples break adjacency: no bracket spans a NaN.
    """
    brackets: list[Bracket] = []
    previous: int | None = None
    run_start: int | None = None

    def close_run(end: int, right: int | None) -> None:
        left_pos = positions[previous] if previous is not None else positions[run_start]
        left_val = values[previous] if previous is not None else math.nan
        right_pos = positions[right] if right is not None else positions[end - 1]
        right_val = values[right] if right is not None else math.nan
        brackets.append(
            Bracket(
                left=left_pos,
                right=right_pos,
                left_value=left_val,
                right_value=right_val,
                zero_run=tuple(positions[run_start:end]),
            )
        )

    for i, value in enumerate(values):
        if math.isnan(value):
            if run_start is not None:
                close_run(i, None)
                run_start = None
            previous = None
            continue
        if value == 0.0:
            if run_start is None:
                run_start = i
            continue
        if run_start is not None:
            close_run(i, i)
            run_start = None
        elif previous is not None and values[previous] * value < 0.0:
            brackets.append(
                Bracket(
                    left=positions[previous],
                    right=positions[i],
                    left_value=values[previous],
                    right_value=value,
                )
            )
        previous = i

    if run_start is not None:
        close_run(len(values), None)
    return brackets


def accepts(target: Target, bracket: Bracket) -> bool:
    """Whether ``bracket`` is a candidate for ``target``.

    A zero run between same-signed neighbours is a root but not an extremum
    of the underlying function.
    """
    if target is Target.ZERO:
        return True
    transition = bracket.transition
    if target is Target.EXTREMUM_ANY:
        return transition != 0
    if target is Target.EXTREMUM_MIN:
        return transition > 0
    return transition < 0


def scan_brackets(
    evaluator: Evaluator,
    variable: BoundVariable,
    a: float,
    b: float,
    samples: int,
    target: Target,
) -> list[Bracket]:
    """Sweep ``[a, b]`` and return the brackets matching ``target``.

    The current expression of ``evaluator`` is probed; the caller owns the
    binding of ``variable``.
    """
    kind = EvalKind.DERIVATIVE if target.uses_derivative else EvalKind.VALUE
    positions = sweep_positions(a, b, samples, offset=boundary_offset(a, b, samples, kind))
    values = [probe(evaluator, variable, position, kind) for position in positions]
    brackets = [br for br in detect_brackets(positions, values) if accepts(target, br)]
    logger.debug(
        "Sweep [%g, %g] with %d samples for %s: %d bracket(s)",
        a, b, samples, target.value, len(brackets),
    )
    return brackets

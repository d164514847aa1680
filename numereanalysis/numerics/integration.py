"""Fixed-step quadrature in one and two dimensions.

The 1D integrator sweeps the bound variable from ``a`` to ``b`` and
accumulates trapezoidal (``h*(f0+f1)/2``) or Simpson (``h/6*(f0+4*fm+f1)``)
panels for every component of a vector expression. Values sampled past
``b`` that come out NaN are treated as 0, which keeps integrands defined on
a closed interval (``sqrt(1-x^2)`` on ``[-1, 1]``) from turning the whole
sum into NaN because of rounding in the last step.

Integrands that do not reference the integration variable take a
closed-form path: each additive term is multiplied by the variable to form
the antiderivative ``F`` and the result is ``F(b) - F(a)``.

The 2D integrator nests the 1D sweep; the inner bounds are expressions that
may depend on the outer variable.

Cost guard: more than ``MAX_STEPS`` steps are refused before any sampling.
In 2D the count is the outer steps times the inner steps of the widest inner
interval over all outer samples. Closed-form and area shortcuts check the
steps too. From ``PROGRESS_STEPS`` steps on, progress is reported and the
abort flag is polled once per step.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass, field

import numpy as np

from numereanalysis.config import IntegrationOutput, QuadratureMethod
from numereanalysis.control import ProgressMonitor
from numereanalysis.errors import EmptyTarget, InvalidIntegrationPrecision, InvalidOrMissingRange
from numereanalysis.evaluator import Evaluator, describe

logger = logging.getLogger(__name__)

MAX_STEPS = 1e10
PROGRESS_STEPS = 9.9e6

_OPEN = "([{"
_CLOSE = ")]}"
_OPERATORS = "+-*/^,(=<>!&|"


# === Textual helpers for the closed-form path ===


def split_components(text: str) -> list[str]:
    """Split a vector expression at its top-level commas."""
    parts: list[str] = []
    depth = 0
    current: list[str] = []
    for char in text:
        if char in _OPEN:
            depth += 1
        elif char in _CLOSE:
            depth -= 1
        if char == "," and depth == 0:
            parts.append("".join(current).strip())
            current = []
        else:
            current.append(char)
    parts.append("".join(current).strip())
    return parts


def _is_exponent_sign(text: str, index: int) -> bool:
    """True if the sign at ``index`` belongs to a number like ``1.5e-3``."""
    if index < 2 or text[index - 1] not in "eE":
        return False
    j = index - 2
    if not (text[j].isdigit() or text[j] == "."):
        return False
    while j >= 0 and (text[j].isdigit() or text[j] == "."):
        j -= 1
    return j < 0 or not (text[j].isalpha() or text[j] == "_")


def split_additive_terms(text: str) -> list[str]:
    """Split an expression at its top-level binary ``+`` and ``-``.

    Each term keeps its sign: ``"2*a-sin(b)+1"`` gives
    ``["2*a", "-sin(b)", "+1"]``.
    """
    terms: list[str] = []
    depth = 0
    start = 0
    last = ""
    for index, char in enumerate(text):
        if char in _OPEN:
            depth += 1
        elif char in _CLOSE:
            depth -= 1
        elif (
            char in "+-"
            and depth == 0
            and last
            and last not in _OPERATORS
            and not _is_exponent_sign(text, index)
        ):
            terms.append(text[start:index].strip())
            start = index
        if not char.isspace():
            last = char
    terms.append(text[start:].strip())
    return [term for term in terms if term]


def antiderivative_text(text: str, variable: str) -> str:
    """Antiderivative of an expression that does not depend on ``variable``."""
    components = []
    for component in split_components(text):
        terms = split_additive_terms(component) or ["0"]
        components.append(" + ".join(f"{variable}*({term})" for term in terms))
    return ", ".join(components)


# === Shared sweep ===


def validate_step(step: float | None, a: float, b: float, fraction: float = 1e-3) -> float:
    """Check ``0 < step`` for the ascending interval ``[a, b]``.

    A missing step becomes ``fraction * (b - a)``; a step wider than the
    interval is clamped to it.

    Raises:
        InvalidIntegrationPrecision: For a non-positive or non-finite step.
    """
    length = b - a
    if step is None:
        return length * fraction
    if not (step > 0.0 and math.isfinite(step)):
        raise InvalidIntegrationPrecision(
            f"Invalid integration step {step!r}", context={"step": step}
        )
    if step > length:
        logger.warning("Step %g exceeds interval length %g, clamping", step, length)
        return length
    return step


def step_count(a: float, b: float, step: float) -> int:
    """Number of panels needed to cover ``[a, b]``.

    Raises:
        InvalidIntegrationPrecision: If more than ``MAX_STEPS`` panels are needed.
    """
    ratio = (b - a) / step
    if ratio > MAX_STEPS:
        raise InvalidIntegrationPrecision(
            f"Integration step {step:g} is too small for the interval [{a:g}, {b:g}]",
            context={"a": a, "b": b, "step": step, "ratio": ratio},
        )
    return max(1, math.ceil(ratio - 1e-9 * ratio))


def _sweep(
    sample: Callable[[float], list[float]],
    a: float,
    b: float,
    step: float,
    steps: int,
    size: int,
    method: QuadratureMethod,
    monitor: ProgressMonitor | None = None,
    collect: bool = False,
) -> tuple[list[float], list[float], list[float]]:
    """Accumulate panels over ascending ``[a, b]``.

    Returns:
        Final sums per component, the visited grid and the running integral
        of the first component (the last two only if ``collect``).
    """

    def at(x: float) -> list[float]:
        values = sample(x)
        if x > b:
            return [0.0 if math.isnan(v) else v for v in values]
        return values

    sums = [0.0] * size
    grid = [a]
    running = [0.0]
    x0 = a
    f0 = at(x0)
    simpson = method is QuadratureMethod.SIMPSON

    for k in range(steps):
        width = step if k < steps - 1 else max(b - x0, 0.0)
        if simpson:
            fm = at(x0 + width / 2.0)
            f1 = at(x0 + width)
            for j in range(size):
                sums[j] += width / 6.0 * (f0[j] + 4.0 * fm[j] + f1[j])
        else:
            f1 = at(x0 + width)
            for j in range(size):
                sums[j] += width * (f0[j] + f1[j]) / 2.0
        x0 += width
        f0 = f1
        if collect:
            grid.append(x0)
            running.append(sums[0])
        if monitor is not None:
            monitor.tick(k + 1, steps)

    return sums, grid, running


def _visited(a: float, b: float, step: float, steps: int, method: QuadratureMethod) -> Iterator[float]:
    """Positions ``_sweep`` samples for the same arguments, in order."""
    yield a
    x0 = a
    for k in range(steps):
        width = step if k < steps - 1 else max(b - x0, 0.0)
        if method is QuadratureMethod.SIMPSON:
            yield x0 + width / 2.0
        x0 += width
        yield x0


def _check_bounds(a: float, b: float) -> None:
    if not (math.isfinite(a) and math.isfinite(b)):
        raise InvalidOrMissingRange(
            f"Integration bounds must be finite, got [{a}, {b}]", context={"a": a, "b": b}
        )


def _check_step(step: float | None, a: float, b: float) -> None:
    """Apply the step checks of a sweep over [a, b] that is never run."""
    low, high = min(a, b), max(a, b)
    if low < high:
        step_count(low, high, validate_step(step, low, high, fraction=1e-2))


def _monitor_for(steps: float, monitor: ProgressMonitor | None) -> ProgressMonitor | None:
    if steps < PROGRESS_STEPS:
        return None
    monitor = monitor if monitor is not None else ProgressMonitor()
    monitor.start(f"integration over {steps:.3g} steps")
    return monitor


# === 1D ===


def closed_form(evaluator: Evaluator, expression: str, variable: str, a: float, b: float) -> list[float]:
    """``F(b) - F(a)`` for an integrand that does not reference ``variable``."""
    antiderivative = antiderivative_text(expression, variable)
    logger.debug("Closed form for %r: F = %s", expression, antiderivative)
    with evaluator.arena.bind(variable) as bound:
        evaluator.set_expression(antiderivative)
        bound.value = b
        upper = evaluator.eval_vector()
        bound.value = a
        lower = evaluator.eval_vector()
    return [u - l for u, l in zip(upper, lower)]


@dataclass(frozen=True)
class Quadrature:
    """Outcome of one 1D sweep.

    Attributes:
        sums: Integral per component.
        grid: Visited positions in ascending order (with ``collect``).
        running: Running integral of the first component at every grid
            position (with ``collect``).
    """

    sums: list[float]
    grid: list[float] = field(default_factory=list)
    running: list[float] = field(default_factory=list)


def quadrature(
    evaluator: Evaluator,
    expression: str,
    variable: str,
    a: float,
    b: float,
    step: float | None = None,
    method: QuadratureMethod = QuadratureMethod.TRAPEZOIDAL,
    collect: bool = False,
    monitor: ProgressMonitor | None = None,
) -> Quadrature:
    """Integrate ``expression`` over ``variable`` from ``a`` to ``b``.

    Args:
        evaluator: Evaluator used for all samples.
        expression: Integrand, possibly a vector expression.
        variable: Integration variable.
        a: Lower bound.
        b: Upper bound. ``b < a`` integrates ``[b, a]`` and flips the sign.
        step: Panel width; ``1e-3 * |b - a|`` when omitted.
        method: Trapezoidal or Simpson panels.
        collect: Also record the grid and the running integral. Without it,
            integrands that do not reference ``variable`` take the
            closed-form path.
        monitor: Progress sink and abort flag for long integrations.

    Raises:
        EmptyTarget: If the expression is empty.
        InvalidOrMissingRange: If a bound is not finite.
        InvalidIntegrationPrecision: If the step is invalid or too small.
        ProcessAbortedByUser: If ``monitor`` was aborted.
    """
    if not expression.strip():
        raise EmptyTarget("No integrand given")
    _check_bounds(a, b)
    variables, size = describe(evaluator, expression)

    sign = 1.0
    if b < a:
        a, b = b, a
        sign = -1.0

    if a == b:
        return Quadrature([0.0] * size, [a], [0.0])

    step = validate_step(step, a, b)
    steps = step_count(a, b, step)

    if not collect and variable not in variables:
        return Quadrature([sign * v for v in closed_form(evaluator, expression, variable, a, b)])

    monitor = _monitor_for(steps, monitor)

    with evaluator.arena.bind(variable) as bound:
        evaluator.set_expression(expression)

        def sample(x: float) -> list[float]:
            bound.value = x
            return evaluator.eval_vector()

        sums, grid, running = _sweep(
            sample, a, b, step, steps, size, method, monitor, collect=collect
        )

    logger.debug("Integrated %r over [%g, %g] in %d %s step(s)", expression, a, b, steps, method.value)
    return Quadrature(
        sums=[sign * v for v in sums],
        grid=grid if collect else [],
        running=[sign * v for v in running] if collect else [],
    )


def integrate_1d(
    evaluator: Evaluator,
    expression: str,
    variable: str,
    a: float,
    b: float,
    step: float | None = None,
    method: QuadratureMethod = QuadratureMethod.TRAPEZOIDAL,
    output: IntegrationOutput = IntegrationOutput.SUM,
    monitor: ProgressMonitor | None = None,
) -> list[float]:
    """Definite integral of ``expression`` from ``a`` to ``b``.

    SUM returns one value per component, POINTS the running integral of the
    first component at every grid position and XVALS the grid, both in
    ascending order. See ``quadrature`` for the other arguments.
    """
    result = quadrature(
        evaluator, expression, variable, a, b, step, method,
        collect=output is not IntegrationOutput.SUM, monitor=monitor,
    )
    if output is IntegrationOutput.XVALS:
        return result.grid
    if output is IntegrationOutput.POINTS:
        return result.running
    return result.sums


# === 2D ===


def _evaluate_text(evaluator: Evaluator, text: str) -> float:
    evaluator.set_expression(text)
    return evaluator.eval()


def integrate_2d(
    evaluator: Evaluator,
    expression: str,
    x_variable: str,
    y_variable: str,
    x_bounds: tuple[float, float],
    y_lower: str,
    y_upper: str,
    step: float | None = None,
    step_y: float | None = None,
    method: QuadratureMethod = QuadratureMethod.TRAPEZOIDAL,
    monitor: ProgressMonitor | None = None,
) -> list[float]:
    """Integral of ``expression`` over ``x`` in ``x_bounds`` and ``y`` between
    the bound expressions ``y_lower`` and ``y_upper``.

    The inner bounds are re-evaluated at every outer sample when they
    reference ``x_variable``. Constant integrands over constant bounds are
    returned as ``c * (bx-ax) * (by-ay)``; integrands that only depend on
    ``y`` over constant bounds swap the axes so the inner integral becomes
    closed-form.
    """
    if not expression.strip():
        raise EmptyTarget("No integrand given")
    if not y_lower.strip() or not y_upper.strip():
        raise InvalidOrMissingRange("Both inner integration bounds are required")
    ax, bx = x_bounds
    _check_bounds(ax, bx)

    variables, size = describe(evaluator, expression)
    lower_variables, _ = describe(evaluator, y_lower)
    upper_variables, _ = describe(evaluator, y_upper)
    bounds_vary = x_variable in lower_variables or x_variable in upper_variables
    uses_x = x_variable in variables
    uses_y = y_variable in variables

    if ax == bx:
        return [0.0] * size

    if not bounds_vary:
        ay = _evaluate_text(evaluator, y_lower)
        by = _evaluate_text(evaluator, y_upper)
        _check_bounds(ay, by)
        if not uses_x and not uses_y:
            _check_step(step, ax, bx)
            _check_step(step_y, ay, by)
            evaluator.set_expression(expression)
            constant = evaluator.eval_vector()
            logger.debug("Constant integrand over a rectangle: area shortcut")
            return [c * (bx - ax) * (by - ay) for c in constant]
        if uses_y and not uses_x:
            logger.debug("Integrand depends on %s only, swapping axes", y_variable)
            return _nested(
                evaluator, expression, y_variable, (ay, by), x_variable,
                repr(ax), repr(bx), step_y, step, method, monitor,
            )

    return _nested(
        evaluator, expression, x_variable, (ax, bx), y_variable,
        y_lower, y_upper, step, step_y, method, monitor,
    )


def _nested(
    evaluator: Evaluator,
    expression: str,
    outer: str,
    outer_bounds: tuple[float, float],
    inner: str,
    inner_lower: str,
    inner_upper: str,
    step: float | None,
    step_inner: float | None,
    method: QuadratureMethod,
    monitor: ProgressMonitor | None,
) -> list[float]:
    a, b = outer_bounds
    sign = 1.0
    if b < a:
        a, b = b, a
        sign = -1.0
    _, size = describe(evaluator, expression)
    if a == b:
        return [0.0] * size

    step = validate_step(step, a, b, fraction=1e-2)
    steps = step_count(a, b, step)

    if step_inner is not None and not (step_inner > 0.0 and math.isfinite(step_inner)):
        raise InvalidIntegrationPrecision(
            f"Invalid integration step {step_inner!r}", context={"step": step_inner}
        )
    lower_variables, _ = describe(evaluator, inner_lower)
    upper_variables, _ = describe(evaluator, inner_upper)
    varying = outer in lower_variables or outer in upper_variables

    with evaluator.arena.bind(outer) as bound:
        inner_steps = 100.0
        if step_inner is not None:
            # The widest inner interval over every outer sample sets the cost.
            widest = 0.0
            for x in _visited(a, b, step, steps, method) if varying else (a,):
                bound.value = x
                low = _evaluate_text(evaluator, inner_lower)
                high = _evaluate_text(evaluator, inner_upper)
                if math.isfinite(low) and math.isfinite(high):
                    widest = max(widest, abs(high - low))
                inner_steps = max(1.0, widest / step_inner)
                if steps * inner_steps > MAX_STEPS:
                    raise InvalidIntegrationPrecision(
                        "Integration steps are too small for the domain",
                        context={"outer_steps": steps, "inner_steps": inner_steps, "at": x},
                    )
        active = _monitor_for(steps * inner_steps, monitor)

        def sample(x: float) -> list[float]:
            bound.value = x
            low = _evaluate_text(evaluator, inner_lower)
            high = _evaluate_text(evaluator, inner_upper)
            if not (math.isfinite(low) and math.isfinite(high)):
                return [math.nan] * size
            inner_step = None
            if step_inner is not None and low != high:
                inner_step = min(step_inner, abs(high - low))
            elif low != high:
                inner_step = abs(high - low) * 1e-2
            return integrate_1d(evaluator, expression, inner, low, high, inner_step, method)

        sums, _, _ = _sweep(sample, a, b, step, steps, size, method, active)

    logger.debug("Nested integral over %s in [%g, %g]: %d outer step(s)", outer, a, b, steps)
    return [sign * v for v in sums]


# === Data ===


def integrate_data(
    values: Sequence[float] | np.ndarray,
    positions: Sequence[float] | np.ndarray,
    output: IntegrationOutput = IntegrationOutput.SUM,
) -> list[float] | None:
    """Trapezoidal integral over the valid samples of a data column.

    Samples whose value or position is NaN are dropped before pairing.

    Returns:
        The integral, the running integral or the positions depending on
        ``output``; None if fewer than two valid samples remain.
    """
    values = np.asarray(values, dtype=float)
    positions = np.asarray(positions, dtype=float)
    valid = ~(np.isnan(values) | np.isnan(positions))
    v = values[valid]
    p = positions[valid]
    if v.size < 2:
        return None
    if output is IntegrationOutput.XVALS:
        return [float(x) for x in p]
    panels = (p[1:] - p[:-1]) * (v[1:] + v[:-1]) / 2.0
    running = np.concatenate(([0.0], np.cumsum(panels)))
    if output is IntegrationOutput.POINTS:
        return [float(x) for x in running]
    return [float(running[-1])]

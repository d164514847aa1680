"""Top-level analysis algorithms.

Each function takes an already parsed configuration, validates it before
doing any sampling work, runs the algorithm and returns a complete
AnalysisResult (or raises). When the configuration carries a name, the
result is published on the evaluator under that name.

Example::

    from numereanalysis import SympyEvaluator, ZeroSearchConfig, find_zeroes

    result = find_zeroes(ZeroSearchConfig("x^2-4", interval=(0, 5), samples=21))
    result.as_list()  # [2.0]
"""

from __future__ import annotations

import logging
import math

import numpy as np

from numereanalysis.config import (
    CrossingDirection,
    DataRange,
    DerivativeConfig,
    EvalKind,
    ExtremaSearchConfig,
    Integration2DConfig,
    IntegrationConfig,
    IntegrationOutput,
    Target,
    TaylorConfig,
    ZeroSearchConfig,
)
from numereanalysis.control import ProgressMonitor
from numereanalysis.data import DataSource
from numereanalysis.errors import (
    DataUnavailable,
    EmptyTarget,
    InvalidOrMissingRange,
    VariableNotFound,
)
from numereanalysis.evaluator import Evaluator, SympyEvaluator, describe
from numereanalysis.numerics import (
    ConvergenceBudget,
    differentiate_data,
    differentiate_expression,
    find_data_extrema,
    find_data_zeroes,
    integrate_2d as _integrate_2d,
    integrate_data,
    localize,
    quadrature,
    scan_brackets,
    sweep_positions,
    taylor_coefficients,
    taylor_polynomial,
)
from numereanalysis.result import AnalysisResult, TaylorResult

logger = logging.getLogger(__name__)

DEFAULT_VARIABLE = "x"

__all__ = [
    "differentiate",
    "find_extrema",
    "find_zeroes",
    "integrate",
    "integrate_2d",
    "taylor",
]


# === Validation helpers ===


def _require_expression(expression: str) -> str:
    if not expression or not expression.strip():
        raise EmptyTarget()
    return expression.strip()


def _resolve_variable(evaluator: Evaluator, expression: str, name: str | None, strict: bool) -> str:
    """Pick the analysis variable.

    An explicit name must occur in the expression when ``strict``. Without a
    name, the expression's only variable is used, ``x`` if it has none or
    several including ``x``.
    """
    used, _ = describe(evaluator, expression)
    if name:
        if strict and name not in used:
            raise VariableNotFound(
                f"Variable '{name}' does not occur in '{expression}'",
                context={"variable": name, "expression": expression},
            )
        return name
    if not used or DEFAULT_VARIABLE in used:
        return DEFAULT_VARIABLE
    if len(used) == 1:
        return used[0]
    raise VariableNotFound(
        f"Cannot choose the analysis variable among {', '.join(used)}",
        context={"expression": expression},
    )


def _require_interval(interval: tuple[float, float] | None, allow_empty: bool = False) -> tuple[float, float]:
    if interval is None:
        raise InvalidOrMissingRange()
    a, b = (float(v) for v in interval)
    if not (math.isfinite(a) and math.isfinite(b)):
        raise InvalidOrMissingRange(f"Interval [{a}, {b}] is not finite", context={"a": a, "b": b})
    if a == b and not allow_empty:
        raise InvalidOrMissingRange(f"Interval [{a}, {b}] is empty", context={"a": a, "b": b})
    return a, b


def _require_samples(samples: int) -> int:
    if samples < 2:
        raise InvalidOrMissingRange(
            "At least two samples are required", context={"samples": samples}
        )
    return samples


def _read_data(source: DataSource | None, selection: DataRange) -> tuple[np.ndarray, np.ndarray]:
    """Values and positions of the selected rows, invalid cells as NaN."""
    if source is None:
        raise DataUnavailable("No data source given")
    rows = selection.rows if selection.rows is not None else range(source.row_count)
    if source.row_count == 0 or len(rows) == 0:
        raise DataUnavailable("The data source holds no rows")

    values = np.empty(len(rows), dtype=float)
    positions = np.empty(len(rows), dtype=float)
    for k, row in enumerate(rows):
        value, valid = source.cell(row, selection.value_column)
        if selection.position_column is not None:
            position, position_valid = source.cell(row, selection.position_column)
            valid = valid and position_valid
        else:
            position = float(row)
        values[k] = value if valid else math.nan
        positions[k] = position

    if np.all(np.isnan(values)):
        raise DataUnavailable(
            "The selected data holds no valid samples",
            context={"column": selection.value_column},
        )
    return values, positions


def _data_window(
    source: DataSource, selection: DataRange, interval: tuple[float, float] | None
) -> tuple[float, float] | None:
    """Restriction of the results to ``interval``, checked against the data range."""
    if interval is None:
        return None
    a, b = _require_interval(interval)
    low, high = min(a, b), max(a, b)
    if selection.position_column is not None:
        first = source.min(selection.position_column, selection.rows)
        last = source.max(selection.position_column, selection.rows)
    else:
        rows = selection.rows if selection.rows is not None else range(source.row_count)
        first, last = float(min(rows)), float(max(rows))
    if high < first or low > last:
        raise InvalidOrMissingRange(
            f"Interval [{low:g}, {high:g}] lies outside the data [{first:g}, {last:g}]",
            context={"a": low, "b": high, "first": first, "last": last},
        )
    return low, high


def _within(found: list[float], window: tuple[float, float] | None) -> list[float]:
    if window is None:
        return found
    low, high = window
    return [p for p in found if low <= p <= high]


def _on_interval(position: float, a: float, b: float, tolerance: float) -> float | None:
    """Clamp a position found within ``tolerance`` of the interval, else None."""
    low, high = min(a, b), max(a, b)
    if not low - tolerance <= position <= high + tolerance:
        return None
    return min(max(position, low), high)


def _finish(result: AnalysisResult, evaluator: Evaluator | None) -> AnalysisResult:
    if result.name and evaluator is not None:
        evaluator.publish_vector(result.name, result.as_list())
    logger.info("%s", result)
    return result


# === Root and extremum search ===


def find_zeroes(
    config: ZeroSearchConfig,
    evaluator: Evaluator | None = None,
    data: DataSource | None = None,
) -> AnalysisResult:
    """Roots of an expression on an interval, or zero crossings of data.

    Raises:
        EmptyTarget: Neither an expression nor a data range was given.
        InvalidOrMissingRange: The interval is missing or invalid.
        VariableNotFound: The named variable is not used by the expression.
        DataUnavailable: The data source is missing or empty.
    """
    if config.data is not None:
        values, positions = _read_data(data, config.data)
        window = _data_window(data, config.data, config.interval)
        found = _within(find_data_zeroes(values, positions, config.direction), window)
        return _finish(AnalysisResult.of(found, config.name), evaluator)

    expression = _require_expression(config.expression)
    a, b = _require_interval(config.interval)
    budget = ConvergenceBudget(config.precision)
    evaluator = evaluator if evaluator is not None else SympyEvaluator()
    name = _resolve_variable(evaluator, expression, config.variable, strict=config.variable is not None)
    _require_samples(config.samples)

    found = []
    with evaluator.arena.bind(name) as variable:
        evaluator.set_expression(expression)
        for bracket in scan_brackets(evaluator, variable, a, b, config.samples, Target.ZERO):
            if config.direction is CrossingDirection.UP and bracket.transition <= 0:
                continue
            if config.direction is CrossingDirection.DOWN and bracket.transition >= 0:
                continue
            found.append(localize(evaluator, variable, bracket, EvalKind.VALUE, budget))

    logger.debug("Zeroes of %r on [%g, %g]: %s", expression, a, b, found)
    return _finish(AnalysisResult.of(found, config.name), evaluator)


def find_extrema(
    config: ExtremaSearchConfig,
    evaluator: Evaluator | None = None,
    data: DataSource | None = None,
) -> AnalysisResult:
    """Extrema of an expression on an interval, or of a data column.

    Expressions are searched through the sign changes of their derivative;
    data columns through reversals of a running median.
    """
    if config.data is not None:
        values, positions = _read_data(data, config.data)
        window = _data_window(data, config.data, config.interval)
        found = _within(find_data_extrema(values, positions, config.window, config.kind), window)
        return _finish(AnalysisResult.of(found, config.name), evaluator)

    expression = _require_expression(config.expression)
    a, b = _require_interval(config.interval)
    budget = ConvergenceBudget(config.precision)
    evaluator = evaluator if evaluator is not None else SympyEvaluator()
    name = _resolve_variable(evaluator, expression, config.variable, strict=config.variable is not None)
    _require_samples(config.samples)

    found = []
    with evaluator.arena.bind(name) as variable:
        evaluator.set_expression(expression)
        for bracket in scan_brackets(evaluator, variable, a, b, config.samples, config.kind.target):
            position = localize(evaluator, variable, bracket, EvalKind.DERIVATIVE, budget)
            position = _on_interval(position, a, b, budget.eps)
            if position is not None:
                found.append(position)

    logger.debug("Extrema (%s) of %r on [%g, %g]: %s", config.kind.value, expression, a, b, found)
    return _finish(AnalysisResult.of(found, config.name), evaluator)


# === Integration ===


def integrate(
    config: IntegrationConfig,
    evaluator: Evaluator | None = None,
    data: DataSource | None = None,
    monitor: ProgressMonitor | None = None,
) -> AnalysisResult:
    """Definite integral of an expression, or of a data column.

    For POINTS output, ``result.grid`` holds the sample positions of the
    running integral.
    """
    if config.data is not None:
        values, positions = _read_data(data, config.data)
        result = integrate_data(values, positions, config.output)
        if result is None:
            raise DataUnavailable("At least two valid samples are required for an integral")
        grid = None
        if config.output is IntegrationOutput.POINTS:
            grid = integrate_data(values, positions, IntegrationOutput.XVALS)
        return _finish(AnalysisResult.of(result, config.name, grid), evaluator)

    expression = _require_expression(config.expression)
    a, b = _require_interval(config.interval, allow_empty=True)
    evaluator = evaluator if evaluator is not None else SympyEvaluator()
    swept = quadrature(
        evaluator, expression, config.variable, a, b,
        step=config.step, method=config.method,
        collect=config.output is not IntegrationOutput.SUM, monitor=monitor,
    )
    if config.output is IntegrationOutput.POINTS:
        result = AnalysisResult.of(swept.running, config.name, swept.grid)
    elif config.output is IntegrationOutput.XVALS:
        result = AnalysisResult.of(swept.grid, config.name)
    else:
        result = AnalysisResult.of(swept.sums, config.name)
    return _finish(result, evaluator)


def integrate_2d(
    config: Integration2DConfig,
    evaluator: Evaluator | None = None,
    monitor: ProgressMonitor | None = None,
) -> AnalysisResult:
    """Integral over a region bounded by constants in x and expressions in y."""
    expression = _require_expression(config.expression)
    ax, bx = _require_interval(config.x_interval, allow_empty=True)
    evaluator = evaluator if evaluator is not None else SympyEvaluator()
    values = _integrate_2d(
        evaluator, expression, config.x_variable, config.y_variable, (ax, bx),
        config.y_lower, config.y_upper,
        step=config.step, step_y=config.step_y, method=config.method, monitor=monitor,
    )
    return _finish(AnalysisResult.of(values, config.name), evaluator)


# === Derivatives ===


def differentiate(
    config: DerivativeConfig,
    evaluator: Evaluator | None = None,
    data: DataSource | None = None,
) -> AnalysisResult:
    """Derivative at given points, across an interval, or of a data column."""
    if config.data is not None:
        values, positions = _read_data(data, config.data)
        derivative = differentiate_data(values, positions)
        if derivative is None:
            raise DataUnavailable("At least two samples are required for a derivative")
        return _finish(AnalysisResult.of(derivative, config.name, positions.tolist()), evaluator)

    expression = _require_expression(config.expression)
    if config.points:
        points = [float(p) for p in config.points]
    else:
        a, b = _require_interval(config.interval)
        points = sweep_positions(a, b, config.samples, extend=False)
    evaluator = evaluator if evaluator is not None else SympyEvaluator()
    name = _resolve_variable(evaluator, expression, config.variable, strict=False)
    derivative = differentiate_expression(evaluator, expression, name, points, config.step)
    return _finish(AnalysisResult.of(derivative, config.name, points), evaluator)


def taylor(config: TaylorConfig, evaluator: Evaluator | None = None) -> TaylorResult:
    """Taylor polynomial of an expression around ``config.x0``."""
    expression = _require_expression(config.expression)
    evaluator = evaluator if evaluator is not None else SympyEvaluator()
    coefficients = taylor_coefficients(
        evaluator, expression, config.variable, config.x0, config.order, config.spacing
    )
    polynomial = taylor_polynomial(coefficients, config.variable, config.x0)
    logger.info("Taylor expansion of %s around %g: %s", expression, config.x0, polynomial)
    return TaylorResult(
        variable=config.variable,
        x0=config.x0,
        coefficients=tuple(coefficients),
        polynomial=polynomial,
    )

"""Typed configuration for the analysis entry points.

The command layer that turns user input into parameters lives outside this
package; it hands over one of these frozen dataclasses. Validation of the
values happens in the algorithms so that errors carry the right kind.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

DEFAULT_SAMPLES = 100
DEFAULT_PRECISION = 1e-7
DEFAULT_WINDOW = 5
DEFAULT_TAYLOR_ORDER = 6
DEFAULT_TAYLOR_SPACING = 0.1
# Integration step as a fraction of the interval length when none is given.
DEFAULT_STEP_FRACTION = 1e-3


class Target(Enum):
    """What the bracket detector looks for."""

    ZERO = "zero"
    EXTREMUM_ANY = "extremum"
    EXTREMUM_MIN = "min"
    EXTREMUM_MAX = "max"

    @property
    def uses_derivative(self) -> bool:
        return self is not Target.ZERO


class ExtremumKind(Enum):
    ANY = "any"
    MIN = "min"
    MAX = "max"

    @property
    def target(self) -> Target:
        return {
            ExtremumKind.ANY: Target.EXTREMUM_ANY,
            ExtremumKind.MIN: Target.EXTREMUM_MIN,
            ExtremumKind.MAX: Target.EXTREMUM_MAX,
        }[self]


class CrossingDirection(Enum):
    """Zero-crossing filter: UP is negative to positive."""

    ANY = "any"
    UP = "up"
    DOWN = "down"


class EvalKind(Enum):
    VALUE = "value"
    DERIVATIVE = "derivative"


class QuadratureMethod(Enum):
    TRAPEZOIDAL = "trapezoidal"
    SIMPSON = "simpson"


class IntegrationOutput(Enum):
    """SUM returns the integral, POINTS the running integral, XVALS the grid."""

    SUM = "sum"
    POINTS = "points"
    XVALS = "xvals"


@dataclass(frozen=True)
class DataRange:
    """Columns of a DataSource to analyze.

    Attributes:
        value_column: Column holding the samples.
        position_column: Optional column holding the sample positions. Row
            indices are used when omitted.
        rows: Rows to read; all rows when omitted.
    """

    value_column: int = 0
    position_column: int | None = None
    rows: range | None = None


@dataclass(frozen=True)
class ZeroSearchConfig:
    expression: str = ""
    variable: str | None = None
    interval: tuple[float, float] | None = None
    samples: int = DEFAULT_SAMPLES
    precision: float = DEFAULT_PRECISION
    direction: CrossingDirection = CrossingDirection.ANY
    data: DataRange | None = None
    name: str | None = "zeroes"


@dataclass(frozen=True)
class ExtremaSearchConfig:
    expression: str = ""
    variable: str | None = None
    interval: tuple[float, float] | None = None
    samples: int = DEFAULT_SAMPLES
    precision: float = DEFAULT_PRECISION
    kind: ExtremumKind = ExtremumKind.ANY
    window: int = DEFAULT_WINDOW
    data: DataRange | None = None
    name: str | None = "extrema"


@dataclass(frozen=True)
class IntegrationConfig:
    """One-dimensional integral of ``expression`` over ``interval``.

    ``step`` of None selects ``DEFAULT_STEP_FRACTION`` of the interval. With
    ``data`` set, the data column is integrated instead of the expression.
    """

    expression: str = ""
    variable: str = "x"
    interval: tuple[float, float] | None = None
    step: float | None = None
    method: QuadratureMethod = QuadratureMethod.TRAPEZOIDAL
    output: IntegrationOutput = IntegrationOutput.SUM
    data: DataRange | None = None
    name: str | None = "integral"


@dataclass(frozen=True)
class Integration2DConfig:
    """Integral over ``x`` in ``x_interval`` and ``y`` in ``[y_lower, y_upper]``.

    The inner bounds are expression texts and may reference ``x_variable``.
    """

    expression: str = ""
    x_variable: str = "x"
    y_variable: str = "y"
    x_interval: tuple[float, float] | None = None
    y_lower: str = ""
    y_upper: str = ""
    step: float | None = None
    step_y: float | None = None
    method: QuadratureMethod = QuadratureMethod.TRAPEZOIDAL
    name: str | None = "integral"


@dataclass(frozen=True)
class DerivativeConfig:
    """Derivative at ``points``, or at ``samples`` points across ``interval``.

    A ``step`` of 0 lets the evaluator pick the difference step.
    """

    expression: str = ""
    variable: str | None = None
    points: tuple[float, ...] | None = None
    interval: tuple[float, float] | None = None
    samples: int = DEFAULT_SAMPLES
    step: float = 0.0
    data: DataRange | None = None
    name: str | None = "derivative"


@dataclass(frozen=True)
class TaylorConfig:
    expression: str = ""
    variable: str = "x"
    x0: float = 0.0
    order: int = DEFAULT_TAYLOR_ORDER
    spacing: float = DEFAULT_TAYLOR_SPACING

"""Tests for the top-level analysis entry points."""

import math

import pytest

from numereanalysis import (
    CrossingDirection,
    DataRange,
    DataUnavailable,
    DerivativeConfig,
    EmptyTarget,
    ExtremaSearchConfig,
    ExtremumKind,
    Integration2DConfig,
    IntegrationConfig,
    IntegrationOutput,
    InvalidIntegrationPrecision,
    InvalidOrMissingRange,
    ProcessAbortedByUser,
    ProgressMonitor,
    QuadratureMethod,
    TableDataSource,
    TaylorConfig,
    VariableNotFound,
    ZeroSearchConfig,
    differentiate,
    find_extrema,
    find_zeroes,
    integrate,
    integrate_2d,
    taylor,
)
from numereanalysis.evaluator import Evaluator, SympyEvaluator
from numereanalysis.numerics import integration


class MinimalEvaluator:
    """Implements nothing beyond the Evaluator protocol."""

    def __init__(self):
        self._inner = SympyEvaluator()

    @property
    def arena(self):
        return self._inner.arena

    @property
    def expression(self):
        return self._inner.expression

    def set_expression(self, text):
        self._inner.set_expression(text)

    def eval(self):
        return self._inner.eval()

    def eval_vector(self):
        return self._inner.eval_vector()

    def derivative(self, variable, at, step=0.0):
        return self._inner.derivative(variable, at, step)

    def used_variables(self):
        return self._inner.used_variables()

    def publish_vector(self, name, values):
        self._inner.publish_vector(name, values)


# -------------------------------------------------------
# Roots
# -------------------------------------------------------


class TestFindZeroes:
    """Tests for find_zeroes on expressions."""

    def test_parabola(self, evaluator):
        """x^2-4 on [0, 5] with 21 samples has the single root 2."""
        result = find_zeroes(ZeroSearchConfig("x^2-4", interval=(0, 5), samples=21), evaluator)

        assert result.as_list() == pytest.approx([2.0], abs=1e-6)
        assert evaluator.get_vector("zeroes") == result.as_list()

    def test_single_sign_change_gives_a_small_residual(self, evaluator):
        (root,) = find_zeroes(ZeroSearchConfig("x^3-2*x-5", interval=(0, 3)), evaluator)

        assert abs(root**3 - 2 * root - 5) < 1e-6

    def test_monotonic_function_has_one_root(self):
        result = find_zeroes(ZeroSearchConfig("x^3+x", interval=(-2, 3)))

        assert result.as_list() == pytest.approx([0.0], abs=1e-6)

    def test_roots_in_scan_order(self):
        expected = [math.pi, 2 * math.pi, 3 * math.pi]

        ascending = find_zeroes(ZeroSearchConfig("sin(x)", interval=(0.5, 10)))
        descending = find_zeroes(ZeroSearchConfig("sin(x)", interval=(10, 0.5)))

        assert ascending.as_list() == pytest.approx(expected, abs=1e-6)
        assert descending.as_list() == pytest.approx(expected[::-1], abs=1e-6)

    def test_crossing_direction(self):
        up = find_zeroes(ZeroSearchConfig("sin(x)", interval=(0.5, 10), direction=CrossingDirection.UP))
        down = find_zeroes(
            ZeroSearchConfig("sin(x)", interval=(0.5, 10), direction=CrossingDirection.DOWN)
        )

        assert up.as_list() == pytest.approx([2 * math.pi], abs=1e-6)
        assert down.as_list() == pytest.approx([math.pi, 3 * math.pi], abs=1e-6)

    def test_root_on_the_interval_end(self):
        result = find_zeroes(ZeroSearchConfig("x-1", interval=(1, 2), samples=11))

        assert result.as_list() == [1.0]

    def test_nothing_found_is_nan(self, evaluator):
        result = find_zeroes(ZeroSearchConfig("x^2+1", interval=(-1, 1)), evaluator)

        assert not result.found
        assert math.isnan(result.as_list()[0])
        assert math.isnan(evaluator.get_vector("zeroes")[0])

    def test_variable_is_restored(self, evaluator):
        evaluator.arena.set("x", 7.0)

        find_zeroes(ZeroSearchConfig("x^2-4", interval=(0, 5)), evaluator)

        assert evaluator.arena.get("x") == 7.0

    def test_reruns_are_identical(self, evaluator):
        config = ZeroSearchConfig("cos(x)-x/3", interval=(-5, 5))

        assert find_zeroes(config, evaluator) == find_zeroes(config, evaluator)

    def test_unpublished_result(self, evaluator):
        find_zeroes(ZeroSearchConfig("x-1", interval=(0, 2), name=None), evaluator)

        assert evaluator.published == {}


class TestVariableResolution:
    """Tests for choosing the swept variable."""

    def test_single_other_variable(self):
        result = find_zeroes(ZeroSearchConfig("t^2-4", interval=(0, 5), samples=21))

        assert result.as_list() == pytest.approx([2.0])

    def test_x_wins_among_several(self, evaluator):
        evaluator.arena.set("a", 2.0)

        result = find_zeroes(ZeroSearchConfig("a*x-1", interval=(0, 1)), evaluator)

        assert result.as_list() == pytest.approx([0.5], abs=1e-7)

    def test_ambiguous_variables(self):
        with pytest.raises(VariableNotFound, match="Cannot choose"):
            find_zeroes(ZeroSearchConfig("a*t-1", interval=(0, 1)))

    def test_explicit_variable_must_occur(self):
        with pytest.raises(VariableNotFound):
            find_zeroes(ZeroSearchConfig("x^2-4", variable="t", interval=(0, 5)))

    def test_explicit_variable(self, evaluator):
        evaluator.arena.set("x", 3.0)

        result = find_zeroes(ZeroSearchConfig("x*t-6", variable="t", interval=(0, 5), samples=11), evaluator)

        assert result.as_list() == pytest.approx([2.0])


class TestValidation:
    """Errors are raised before any sampling."""

    def test_empty_expression(self):
        with pytest.raises(EmptyTarget):
            find_zeroes(ZeroSearchConfig("", interval=(0, 1)))

    @pytest.mark.parametrize("interval", [None, (1.0, 1.0), (0.0, math.inf)])
    def test_invalid_interval(self, interval):
        with pytest.raises(InvalidOrMissingRange):
            find_extrema(ExtremaSearchConfig("x^2", interval=interval))

    def test_too_few_samples(self):
        with pytest.raises(InvalidOrMissingRange, match="two samples"):
            find_zeroes(ZeroSearchConfig("x", interval=(0, 1), samples=1))

    def test_invalid_precision(self):
        with pytest.raises(InvalidOrMissingRange, match="precision"):
            find_zeroes(ZeroSearchConfig("x", interval=(0, 1), precision=0.0))


# -------------------------------------------------------
# Extrema
# -------------------------------------------------------


class TestFindExtrema:
    """Tests for find_extrema on expressions."""

    def test_sine_maximum(self):
        result = find_extrema(
            ExtremaSearchConfig("sin(x)", interval=(0, 2 * math.pi), kind=ExtremumKind.MAX)
        )

        assert result.as_list() == pytest.approx([math.pi / 2], abs=1e-6)

    def test_sine_minimum_and_both(self):
        minimum = find_extrema(
            ExtremaSearchConfig("sin(x)", interval=(0, 2 * math.pi), kind=ExtremumKind.MIN)
        )
        both = find_extrema(ExtremaSearchConfig("sin(x)", interval=(0, 2 * math.pi)))

        assert minimum.as_list() == pytest.approx([3 * math.pi / 2], abs=1e-6)
        assert both.as_list() == pytest.approx([math.pi / 2, 3 * math.pi / 2], abs=1e-6)

    def test_extrema_on_the_endpoints(self):
        """Critical points on both interval ends are found and reported inside it."""
        result = find_extrema(ExtremaSearchConfig("cos(x)", interval=(0, 2 * math.pi), samples=5))

        found = result.as_list()
        assert found == pytest.approx([0.0, math.pi, 2 * math.pi], abs=1e-6)
        assert all(0.0 <= p <= 2 * math.pi for p in found)

    def test_saddle_is_not_an_extremum(self):
        assert not find_extrema(ExtremaSearchConfig("x^3", interval=(-1, 1))).found

    def test_published_under_extrema(self, evaluator):
        find_extrema(ExtremaSearchConfig("(x-1)^2", interval=(0, 3)), evaluator)

        assert evaluator.get_vector("extrema") == pytest.approx([1.0], abs=1e-6)


# -------------------------------------------------------
# Data mode
# -------------------------------------------------------


class TestDataMode:
    """Root and extremum search over data columns."""

    def test_zero_crossings(self):
        source = TableDataSource.from_columns([1, 2, math.nan, 0, -2, -3])

        result = find_zeroes(ZeroSearchConfig(data=DataRange(value_column=0)), data=source)

        assert result.as_list() == [2.5, 3.0]

    def test_extrema_with_position_column(self, parabola_table):
        result = find_extrema(
            ExtremaSearchConfig(data=DataRange(value_column=1, position_column=0)),
            data=parabola_table,
        )

        assert result.as_list() == [15.0]

    def test_large_window_is_clamped(self, parabola_table):
        result = find_extrema(
            ExtremaSearchConfig(window=1000, data=DataRange(value_column=1)), data=parabola_table
        )

        assert result.as_list() == [15.0]

    def test_short_series_gives_the_sentinel(self):
        source = TableDataSource.from_columns([1, 3, 1, 3, 1, 3, 1, 3])

        result = find_extrema(ExtremaSearchConfig(data=DataRange()), data=source)

        assert not result.found
        assert math.isnan(result.scalar())

    def test_interval_restricts_results(self):
        source = TableDataSource.from_columns([-1, 1, -1, 1, -1])

        result = find_zeroes(ZeroSearchConfig(interval=(1, 3), data=DataRange()), data=source)

        assert result.as_list() == [1.5, 2.5]

    def test_interval_outside_the_data(self):
        source = TableDataSource.from_columns([-1, 1, -1])

        with pytest.raises(InvalidOrMissingRange, match="outside the data"):
            find_zeroes(ZeroSearchConfig(interval=(10, 20), data=DataRange()), data=source)

    def test_missing_source(self):
        with pytest.raises(DataUnavailable):
            find_zeroes(ZeroSearchConfig(data=DataRange()))

    def test_column_without_valid_samples(self):
        source = TableDataSource.from_columns([math.nan, math.nan])

        with pytest.raises(DataUnavailable, match="no valid samples"):
            find_extrema(ExtremaSearchConfig(data=DataRange()), data=source)


# -------------------------------------------------------
# Integration
# -------------------------------------------------------


class TestIntegrate:
    """Tests for integrate and integrate_2d."""

    def test_constant_is_exact(self, evaluator):
        result = integrate(IntegrationConfig("3", interval=(1, 4)), evaluator)

        assert result.as_list() == [9.0]
        assert evaluator.get_vector("integral") == [9.0]

    def test_reversed_bounds_negate(self):
        forward = integrate(IntegrationConfig("x^2", interval=(0, 2))).scalar()
        backward = integrate(IntegrationConfig("x^2", interval=(2, 0))).scalar()

        assert backward == -forward

    def test_simpson(self):
        result = integrate(
            IntegrationConfig("x^3", interval=(0, 2), step=0.1, method=QuadratureMethod.SIMPSON)
        )

        assert result.scalar() == pytest.approx(4.0, abs=1e-10)

    def test_points_carry_the_grid(self):
        result = integrate(
            IntegrationConfig("x", interval=(0, 1), step=0.25, output=IntegrationOutput.POINTS)
        )

        assert result.as_list() == pytest.approx([0.0, 0.03125, 0.125, 0.28125, 0.5])
        assert result.grid == pytest.approx((0.0, 0.25, 0.5, 0.75, 1.0))

    def test_xvals(self):
        result = integrate(
            IntegrationConfig("x", interval=(0, 1), step=0.5, output=IntegrationOutput.XVALS)
        )

        assert result.as_list() == [0.0, 0.5, 1.0]

    def test_empty_interval(self):
        assert integrate(IntegrationConfig("x", interval=(2, 2))).as_list() == [0.0]

    @pytest.mark.parametrize("expression", ["x", "3"])
    @pytest.mark.parametrize("step", [-1.0, 1e-12])
    def test_invalid_step(self, expression, step):
        with pytest.raises(InvalidIntegrationPrecision):
            integrate(IntegrationConfig(expression, interval=(0, 1), step=step))

    def test_abort(self, evaluator, monkeypatch):
        monkeypatch.setattr(integration, "PROGRESS_STEPS", 1)
        monitor = ProgressMonitor()
        monitor.request_abort()

        with pytest.raises(ProcessAbortedByUser):
            integrate(IntegrationConfig("x", interval=(0, 1), step=0.25), evaluator, monitor=monitor)
        assert "integral" not in evaluator.published

    def test_data_column(self):
        source = TableDataSource.from_columns([0, 1, 3], [1, 1, 1])

        total = integrate(IntegrationConfig(data=DataRange(value_column=1, position_column=0)), data=source)
        points = integrate(
            IntegrationConfig(output=IntegrationOutput.POINTS, data=DataRange(value_column=1, position_column=0)),
            data=source,
        )

        assert total.as_list() == [3.0]
        assert points.as_list() == [0.0, 1.0, 3.0]
        assert points.grid == (0.0, 1.0, 3.0)

    def test_data_column_too_short(self):
        source = TableDataSource.from_columns([1])

        with pytest.raises(DataUnavailable):
            integrate(IntegrationConfig(data=DataRange()), data=source)

    def test_2d_constant(self, evaluator):
        """A constant 4 over [0,5] x [0,4] integrates to 80."""
        result = integrate_2d(
            Integration2DConfig("4", x_interval=(0, 5), y_lower="0", y_upper="4"), evaluator
        )

        assert result.as_list() == [80.0]

    def test_2d_triangle(self):
        result = integrate_2d(Integration2DConfig("x+y", x_interval=(0, 1), y_lower="0", y_upper="x"))

        # integral of x^2 + x^2/2 over [0, 1]
        assert result.scalar() == pytest.approx(0.5, abs=1e-3)

    def test_2d_requires_an_interval(self):
        with pytest.raises(InvalidOrMissingRange):
            integrate_2d(Integration2DConfig("x", y_lower="0", y_upper="1"))


# -------------------------------------------------------
# Derivatives and Taylor series
# -------------------------------------------------------


class TestDifferentiate:
    """Tests for differentiate."""

    def test_at_points(self, evaluator):
        result = differentiate(DerivativeConfig("x^2", points=(1, 2, 3)), evaluator)

        assert result.as_list() == pytest.approx([2.0, 4.0, 6.0], abs=1e-6)
        assert result.grid == (1.0, 2.0, 3.0)
        assert evaluator.get_vector("derivative") == result.as_list()

    def test_across_an_interval(self):
        result = differentiate(DerivativeConfig("x^2", interval=(0, 1), samples=3))

        assert result.grid == (0.0, 0.5, 1.0)
        assert result.as_list() == pytest.approx([0.0, 1.0, 2.0], abs=1e-6)

    def test_data_column(self):
        source = TableDataSource.from_columns([0, 1, 4, 9])

        result = differentiate(DerivativeConfig(data=DataRange()), data=source)

        assert result.as_list() == [1.0, 2.0, 4.0, 5.0]

    def test_requires_points_or_interval(self):
        with pytest.raises(InvalidOrMissingRange):
            differentiate(DerivativeConfig("x^2"))


class TestTaylor:
    """Tests for taylor."""

    def test_parabola(self):
        result = taylor(TaylorConfig("x^2", order=2))

        assert result.polynomial == "1*x^2"
        assert result.order == 2

    def test_shifted_expansion(self):
        result = taylor(TaylorConfig("x", x0=1.0, order=1))

        assert result.polynomial == "1 + 1*(x-1)"
        assert result.coefficients == pytest.approx((1.0, 1.0))

    def test_constant(self):
        assert taylor(TaylorConfig("5", order=3)).polynomial == "5"

    def test_empty_expression(self):
        with pytest.raises(EmptyTarget):
            taylor(TaylorConfig(""))


# -------------------------------------------------------
# Protocol-only evaluators
# -------------------------------------------------------


class TestProtocolEvaluator:
    """Every entry point works with an evaluator that only has the protocol."""

    def test_is_an_evaluator(self):
        assert isinstance(MinimalEvaluator(), Evaluator)

    def test_roots_and_extrema(self):
        evaluator = MinimalEvaluator()

        zeroes = find_zeroes(ZeroSearchConfig("x^2-4", interval=(0, 5), samples=21), evaluator)
        extrema = find_extrema(ExtremaSearchConfig("(x-1)^2", interval=(0, 3)), evaluator)

        assert zeroes.as_list() == pytest.approx([2.0], abs=1e-6)
        assert extrema.as_list() == pytest.approx([1.0], abs=1e-6)

    def test_integrals(self):
        evaluator = MinimalEvaluator()

        (line,) = integrate(IntegrationConfig("x", interval=(0, 1)), evaluator).as_list()
        (constant,) = integrate(IntegrationConfig("3", interval=(0, 2)), evaluator).as_list()
        (area,) = integrate_2d(
            Integration2DConfig("x*y", x_interval=(0, 1), y_lower="0", y_upper="1"), evaluator
        ).as_list()

        assert line == pytest.approx(0.5)
        assert constant == pytest.approx(6.0)
        assert area == pytest.approx(0.25, abs=1e-9)

    def test_derivative_and_taylor(self):
        evaluator = MinimalEvaluator()

        derivative = differentiate(DerivativeConfig("x^2", points=(1.0,)), evaluator)
        series = taylor(TaylorConfig("x^2", x0=0.0, order=2), evaluator)

        assert derivative.as_list() == pytest.approx([2.0], abs=1e-6)
        assert series.coefficients[2] == pytest.approx(1.0, rel=1e-9)

"""Unit tests for the recursive bracket localizer."""

import math

import pytest

from numereanalysis.config import EvalKind
from numereanalysis.errors import InvalidOrMissingRange
from numereanalysis.numerics.localization import ConvergenceBudget, linearize, localize
from numereanalysis.numerics.sampling import Bracket


class TestConvergenceBudget:
    """Tests for ConvergenceBudget."""

    def test_depth_follows_the_decimal_exponent(self):
        assert ConvergenceBudget(1e-7).max_depth == 8
        assert ConvergenceBudget(0.5).max_depth == 1

    @pytest.mark.parametrize("eps", [0.0, -1e-3, math.nan, math.inf])
    def test_rejects_invalid_precision(self, eps):
        with pytest.raises(InvalidOrMissingRange, match="precision"):
            ConvergenceBudget(eps)


class TestLinearize:
    """Tests for linearize."""

    def test_root_of_secant(self):
        assert linearize(0.0, -1.0, 2.0, 1.0) == 1.0

    def test_flat_line_gives_midpoint(self):
        assert linearize(0.0, 3.0, 2.0, 3.0) == 1.0


class TestLocalize:
    """Tests for localize."""

    def test_converges_to_sqrt2(self, evaluator):
        evaluator.set_expression("x^2-2")
        with evaluator.arena.bind("x") as x:
            root = localize(
                evaluator, x, Bracket(1.0, 2.0, -1.0, 2.0), EvalKind.VALUE, ConvergenceBudget(1e-9)
            )

        assert root == pytest.approx(math.sqrt(2.0), abs=1e-9)

    def test_descending_bracket(self, evaluator):
        evaluator.set_expression("x^2-2")
        with evaluator.arena.bind("x") as x:
            root = localize(
                evaluator, x, Bracket(2.0, 1.0, 2.0, -1.0), EvalKind.VALUE, ConvergenceBudget(1e-9)
            )

        assert root == pytest.approx(math.sqrt(2.0), abs=1e-9)

    def test_derivative_kind_finds_extremum(self, evaluator):
        evaluator.set_expression("-(x-0.25)^2")
        with evaluator.arena.bind("x") as x:
            position = localize(
                evaluator, x, Bracket(0.0, 1.0, 0.5, -1.5), EvalKind.DERIVATIVE, ConvergenceBudget(1e-7)
            )

        assert position == pytest.approx(0.25, abs=1e-6)

    def test_zero_run_returns_its_centre(self, evaluator):
        bracket = Bracket(0.0, 3.0, 1.0, -1.0, zero_run=(1.0, 2.0))
        with evaluator.arena.bind("x") as x:
            assert localize(evaluator, x, bracket, EvalKind.VALUE, ConvergenceBudget(1e-7)) == 1.5

    def test_no_sign_change_falls_back_to_interpolation(self, evaluator):
        """A bracket whose interior never changes sign stays within its ends."""
        evaluator.set_expression("1")
        with evaluator.arena.bind("x") as x:
            position = localize(
                evaluator, x, Bracket(0.0, 1.0, 1.0, -1.0), EvalKind.VALUE, ConvergenceBudget(1e-7)
            )

        assert position == pytest.approx(0.5)

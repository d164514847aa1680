"""Unit tests for the sampling sweep and bracket detection."""

import math

import pytest

from numereanalysis import numerics
from numereanalysis.config import EvalKind, Target
from numereanalysis.errors import InvalidOrMissingRange
from numereanalysis.numerics.sampling import (
    BOUNDARY_OFFSET,
    DERIVATIVE_MARGIN,
    Bracket,
    accepts,
    boundary_offset,
    detect_brackets,
    scan_brackets,
    sweep_positions,
)


class TestSweepPositions:
    """Tests for sweep_positions."""

    def test_exported_from_the_numerics_package(self):
        assert numerics.sweep_positions is sweep_positions
        assert "sweep_positions" in numerics.__all__

    def test_includes_both_endpoints(self):
        assert sweep_positions(0.0, 1.0, 3, extend=False) == [0.0, 0.5, 1.0]

    def test_boundary_probes_follow_the_scan_direction(self):
        ascending = sweep_positions(0.0, 1.0, 3)
        descending = sweep_positions(1.0, 0.0, 3)

        assert ascending[0] == -BOUNDARY_OFFSET
        assert ascending[-1] == 1.0 + BOUNDARY_OFFSET
        assert descending[0] == 1.0 + BOUNDARY_OFFSET
        assert descending[-1] == -BOUNDARY_OFFSET
        assert descending == sorted(descending, reverse=True)

    def test_custom_offset(self):
        positions = sweep_positions(0.0, 1.0, 3, offset=0.25)

        assert positions == [-0.25, 0.0, 0.5, 1.0, 1.25]

    def test_boundary_offset_per_sweep_kind(self):
        assert boundary_offset(0.0, 1.0, 11, EvalKind.VALUE) == BOUNDARY_OFFSET
        assert boundary_offset(0.0, 1.0, 11, EvalKind.DERIVATIVE) == pytest.approx(DERIVATIVE_MARGIN * 0.1)
        assert boundary_offset(1.0, 0.0, 11, EvalKind.DERIVATIVE) == pytest.approx(DERIVATIVE_MARGIN * 0.1)

    def test_requires_two_samples(self):
        with pytest.raises(InvalidOrMissingRange, match="two samples"):
            sweep_positions(0.0, 1.0, 1)


class TestDetectBrackets:
    """Tests for detect_brackets."""

    def test_sign_changes_in_scan_order(self):
        brackets = detect_brackets([0.0, 1.0, 2.0, 3.0], [1.0, -1.0, -2.0, 3.0])

        assert [(b.left, b.right) for b in brackets] == [(0.0, 1.0), (2.0, 3.0)]
        assert [b.transition for b in brackets] == [-1, 1]

    def test_zero_run_is_absorbed_into_one_bracket(self):
        """A run of exact zeros spans from the signed neighbour on each side."""
        (bracket,) = detect_brackets([0.0, 1.0, 2.0, 3.0], [1.0, 0.0, 0.0, -1.0])

        assert (bracket.left, bracket.right) == (0.0, 3.0)
        assert bracket.zero_run == (1.0, 2.0)
        assert bracket.exact_position == 1.5
        assert bracket.transition == -1

    def test_nan_breaks_adjacency(self):
        assert detect_brackets([0.0, 1.0, 2.0], [1.0, math.nan, -1.0]) == []

    def test_trailing_zero_run_has_unknown_transition(self):
        (bracket,) = detect_brackets([0.0, 1.0], [1.0, 0.0])

        assert bracket.zero_run == (1.0,)
        assert math.isnan(bracket.right_value)
        assert bracket.transition == 0

    def test_descending_transition_is_measured_in_increasing_x(self):
        """Scanning 1 -> 0 over a function rising in x is still a +1 transition."""
        bracket = Bracket(left=1.0, right=0.0, left_value=2.0, right_value=-1.0)

        assert bracket.transition == 1
        assert bracket.width == 1.0
        assert bracket.exact_position is None


class TestAccepts:
    """Tests for the bracket filter per target."""

    def test_touching_zero_run_is_a_root_but_not_an_extremum(self):
        (saddle,) = detect_brackets([0.0, 1.0, 2.0], [1.0, 0.0, 1.0])

        assert accepts(Target.ZERO, saddle)
        assert not accepts(Target.EXTREMUM_ANY, saddle)

    def test_directed_extremum_targets(self):
        falling = Bracket(left=0.0, right=1.0, left_value=1.0, right_value=-1.0)
        rising = Bracket(left=0.0, right=1.0, left_value=-1.0, right_value=1.0)

        assert accepts(Target.EXTREMUM_MAX, falling)
        assert not accepts(Target.EXTREMUM_MIN, falling)
        assert accepts(Target.EXTREMUM_MIN, rising)
        assert accepts(Target.EXTREMUM_ANY, rising)


class TestScanBrackets:
    """Tests for scan_brackets against a real evaluator."""

    def test_roots_on_samples_become_zero_runs(self, evaluator):
        evaluator.set_expression("x^2-4")
        with evaluator.arena.bind("x") as x:
            brackets = scan_brackets(evaluator, x, -3.0, 3.0, 13, Target.ZERO)

        assert [b.exact_position for b in brackets] == [-2.0, 2.0]

    def test_root_on_the_endpoint_is_caught(self, evaluator):
        evaluator.set_expression("x-1")
        with evaluator.arena.bind("x") as x:
            brackets = scan_brackets(evaluator, x, 1.0, 2.0, 11, Target.ZERO)

        assert [b.exact_position for b in brackets] == [1.0]

    def test_minimum_is_found_through_the_derivative(self, evaluator):
        evaluator.set_expression("(x-0.3)^2")
        with evaluator.arena.bind("x") as x:
            minima = scan_brackets(evaluator, x, -1.0, 2.0, 20, Target.EXTREMUM_MIN)
            maxima = scan_brackets(evaluator, x, -1.0, 2.0, 20, Target.EXTREMUM_MAX)

        assert len(minima) == 1
        low, high = sorted((minima[0].left, minima[0].right))
        assert low <= 0.3 <= high
        assert maxima == []

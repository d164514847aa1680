"""Numerical algorithms of the analysis engine.

- Sampling sweeps and bracket detection
- Recursive bracket localization
- Fixed-step quadrature in 1D and 2D, and over data
- Median-filtered trend analysis of sampled data
- Taylor coefficients and finite-difference derivatives
"""

from numereanalysis.numerics.differentiation import differentiate_data, differentiate_expression
from numereanalysis.numerics.integration import (
    Quadrature,
    integrate_1d,
    integrate_2d,
    integrate_data,
    quadrature,
)
from numereanalysis.numerics.localization import ConvergenceBudget, linearize, localize
from numereanalysis.numerics.sampling import Bracket, detect_brackets, scan_brackets, sweep_positions
from numereanalysis.numerics.taylor import taylor_coefficients, taylor_polynomial
from numereanalysis.numerics.trend import effective_window, find_data_extrema, find_data_zeroes

__all__ = [
    "Bracket",
    "ConvergenceBudget",
    "Quadrature",
    "detect_brackets",
    "differentiate_data",
    "differentiate_expression",
    "effective_window",
    "find_data_extrema",
    "find_data_zeroes",
    "integrate_1d",
    "integrate_2d",
    "integrate_data",
    "linearize",
    "localize",
    "quadrature",
    "scan_brackets",
    "sweep_positions",
    "taylor_coefficients",
    "taylor_polynomial",
]

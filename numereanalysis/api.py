"""Curated public API surface for end-users.

Keeps consumer imports short and stable:

    from numereanalysis.api import SympyEvaluator, ZeroSearchConfig, find_zeroes

Only the commonly used symbols are re-exported. The building blocks in
``numereanalysis.numerics`` stay importable from their own modules.
"""

from __future__ import annotations

# Analysis
from numereanalysis.analysis import (
    differentiate,
    find_extrema,
    find_zeroes,
    integrate,
    integrate_2d,
    taylor,
)

# Configuration
from numereanalysis.config import (
    DataRange,
    DerivativeConfig,
    ExtremaSearchConfig,
    Integration2DConfig,
    IntegrationConfig,
    TaylorConfig,
    ZeroSearchConfig,
)

# Evaluation and data
from numereanalysis.data import TableDataSource
from numereanalysis.evaluator import SympyEvaluator

# Results and control
from numereanalysis.control import ProgressMonitor
from numereanalysis.result import AnalysisResult, TaylorResult

__all__ = [
    # Analysis
    "differentiate",
    "find_extrema",
    "find_zeroes",
    "integrate",
    "integrate_2d",
    "taylor",
    # Configuration
    "DataRange",
    "DerivativeConfig",
    "ExtremaSearchConfig",
    "Integration2DConfig",
    "IntegrationConfig",
    "TaylorConfig",
    "ZeroSearchConfig",
    # Evaluation and data
    "SympyEvaluator",
    "TableDataSource",
    # Results and control
    "AnalysisResult",
    "ProgressMonitor",
    "TaylorResult",
]

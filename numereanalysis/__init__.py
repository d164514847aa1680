"""Numerical analysis engine: roots, extrema, integrals, derivatives and
Taylor expansions of expressions and of sampled data.

Logging is silent unless enabled, see ``numereanalysis.logging_config``.
"""

import logging

logging.getLogger(__name__).addHandler(logging.NullHandler())

from numereanalysis.analysis import (
    differentiate,
    find_extrema,
    find_zeroes,
    integrate,
    integrate_2d,
    taylor,
)
from numereanalysis.config import (
    CrossingDirection,
    DataRange,
    DerivativeConfig,
    ExtremaSearchConfig,
    ExtremumKind,
    Integration2DConfig,
    IntegrationConfig,
    IntegrationOutput,
    QuadratureMethod,
    TaylorConfig,
    ZeroSearchConfig,
)
from numereanalysis.control import ProgressMonitor
from numereanalysis.data import DataSource, TableDataSource
from numereanalysis.errors import (
    AnalysisError,
    DataUnavailable,
    EmptyTarget,
    ExpressionError,
    InvalidIndex,
    InvalidIntegrationPrecision,
    InvalidOrMissingRange,
    ProcessAbortedByUser,
    VariableNotFound,
)
from numereanalysis.evaluator import BoundVariable, Evaluator, SympyEvaluator, VariableArena
from numereanalysis.logging_config import (
    configure_from_env,
    disable_logging,
    enable_console_logging,
    enable_file_logging,
    enable_json_file_logging,
    enable_json_logging,
    enable_timed_file_logging,
    set_level,
    set_module_level,
)
from numereanalysis.result import AnalysisResult, TaylorResult

__version__ = "0.1.0"

__all__ = [
    # Analysis
    "differentiate",
    "find_extrema",
    "find_zeroes",
    "integrate",
    "integrate_2d",
    "taylor",
    # Configuration
    "CrossingDirection",
    "DataRange",
    "DerivativeConfig",
    "ExtremaSearchConfig",
    "ExtremumKind",
    "Integration2DConfig",
    "IntegrationConfig",
    "IntegrationOutput",
    "QuadratureMethod",
    "TaylorConfig",
    "ZeroSearchConfig",
    # Results
    "AnalysisResult",
    "TaylorResult",
    # Evaluation and data
    "BoundVariable",
    "DataSource",
    "Evaluator",
    "SympyEvaluator",
    "TableDataSource",
    "VariableArena",
    "ProgressMonitor",
    # Errors
    "AnalysisError",
    "DataUnavailable",
    "EmptyTarget",
    "ExpressionError",
    "InvalidIndex",
    "InvalidIntegrationPrecision",
    "InvalidOrMissingRange",
    "ProcessAbortedByUser",
    "VariableNotFound",
    # Logging
    "configure_from_env",
    "disable_logging",
    "enable_console_logging",
    "enable_file_logging",
    "enable_json_file_logging",
    "enable_json_logging",
    "enable_timed_file_logging",
    "set_level",
    "set_module_level",
]

"""Typed errors raised by the analysis engine.

Every top-level algorithm either returns a complete AnalysisResult or raises
one of these. Validation failures are raised before any sampling work, so an
error never travels together with a partially filled result.

Validation errors also derive from ValueError and the abort from RuntimeError,
so code written against the builtin exception types keeps working.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

__all__ = [
    "AnalysisError",
    "DataUnavailable",
    "EmptyTarget",
    "ExpressionError",
    "InvalidIndex",
    "InvalidIntegrationPrecision",
    "InvalidOrMissingRange",
    "ProcessAbortedByUser",
    "VariableNotFound",
]


def _normalise_context(context: Mapping[str, Any] | None) -> dict[str, Any]:
    if not context:
        return {}
    payload: dict[str, Any] = {}
    for key, value in context.items():
        if isinstance(value, (str, int, float, bool)) or value is None:
            payload[key] = value
        else:
            payload[key] = str(value)
    return payload


class AnalysisError(Exception):
    """Base class for all analysis engine failures.

    Attributes:
        message: Human readable description.
        context: Flat mapping of the values that led to the failure, suitable
            for structured logging.
    """

    default_message = "Analysis failed"

    def __init__(self, message: str | None = None, *, context: Mapping[str, Any] | None = None):
        self.message = message or self.default_message
        self.context = _normalise_context(context)
        super().__init__(self.message)

    @property
    def kind(self) -> str:
        """Error kind name, e.g. ``"InvalidIndex"``."""
        return type(self).__name__

    def as_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "message": self.message, "context": dict(self.context)}


class EmptyTarget(AnalysisError, ValueError):
    """No expression or data target was given."""

    default_message = "No target expression or data set was specified"


class DataUnavailable(AnalysisError, ValueError):
    """The data source is missing or holds no valid samples."""

    default_message = "The requested data is not available"


class InvalidIndex(AnalysisError, ValueError):
    """A row or column index lies outside the data source."""

    default_message = "Index out of range"


class InvalidOrMissingRange(AnalysisError, ValueError):
    """An interval is missing, empty, non-finite or has too few samples."""

    default_message = "Invalid or missing interval"


class InvalidIntegrationPrecision(AnalysisError, ValueError):
    """The integration step is invalid or would require too many samples."""

    default_message = "Invalid integration precision"


class VariableNotFound(AnalysisError, ValueError):
    """The named analysis variable does not occur in the expression."""

    default_message = "The analysis variable does not occur in the expression"


class ExpressionError(AnalysisError, ValueError):
    """The expression text could not be compiled."""

    default_message = "The expression could not be compiled"


class ProcessAbortedByUser(AnalysisError, RuntimeError):
    """A long-running computation observed the abort flag."""

    default_message = "Process aborted by user"

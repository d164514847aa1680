"""Tabular data read by the discrete-data analyzers.

The analyzers only need a per-cell accessor that tells valid values from
holes, plus range aggregates. TableDataSource provides both over a pandas
DataFrame; non-numeric and missing cells read as invalid.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from typing import Protocol, runtime_checkable

import numpy as np
import pandas as pd

from numereanalysis.errors import DataUnavailable, InvalidIndex

logger = logging.getLogger(__name__)


@runtime_checkable
class DataSource(Protocol):
    """Read-only access to a table of samples."""

    @property
    def row_count(self) -> int: ...

    @property
    def column_count(self) -> int: ...

    def cell(self, row: int, col: int) -> tuple[float, bool]: ...

    def min(self, col: int, rows: range | None = None) -> float: ...

    def max(self, col: int, rows: range | None = None) -> float: ...


class TableDataSource:
    """DataSource over a pandas DataFrame.

    Args:
        frame: The table. Columns are addressed by position.
    """

    def __init__(self, frame: pd.DataFrame):
        self._frame = frame
        self._numeric = frame.apply(pd.to_numeric, errors="coerce").to_numpy(dtype=float)

    @classmethod
    def from_columns(cls, *columns: Sequence[float], names: Sequence[str] | None = None) -> TableDataSource:
        """Build a source from equally long columns."""
        if not columns:
            raise DataUnavailable("No columns given")
        names = list(names) if names is not None else [f"col{i + 1}" for i in range(len(columns))]
        return cls(pd.DataFrame({name: list(col) for name, col in zip(names, columns)}))

    @property
    def frame(self) -> pd.DataFrame:
        return self._frame

    @property
    def row_count(self) -> int:
        return self._numeric.shape[0]

    @property
    def column_count(self) -> int:
        return self._numeric.shape[1] if self._numeric.ndim == 2 else 0

    def column_index(self, name: str) -> int:
        try:
            return self._frame.columns.get_loc(name)
        except KeyError as exc:
            raise InvalidIndex(f"Unknown column '{name}'", context={"column": name}) from exc

    def _check(self, row: int | None, col: int) -> None:
        if not 0 <= col < self.column_count:
            raise InvalidIndex(
                f"Column {col} out of range", context={"col": col, "columns": self.column_count}
            )
        if row is not None and not 0 <= row < self.row_count:
            raise InvalidIndex(f"Row {row} out of range", context={"row": row, "rows": self.row_count})

    def cell(self, row: int, col: int) -> tuple[float, bool]:
        self._check(row, col)
        value = float(self._numeric[row, col])
        return value, not math.isnan(value)

    def _slice(self, col: int, rows: range | None) -> np.ndarray:
        self._check(None, col)
        rows = rows if rows is not None else range(self.row_count)
        if len(rows) and not (0 <= rows[0] < self.row_count and 0 <= rows[-1] < self.row_count):
            raise InvalidIndex("Row range out of bounds", context={"rows": rows, "row_count": self.row_count})
        return self._numeric[rows.start : rows.stop : rows.step, col]

    def column(self, col: int, rows: range | None = None) -> np.ndarray:
        """Copy of a column slice with invalid cells as NaN."""
        return np.array(self._slice(col, rows), dtype=float)

    def min(self, col: int, rows: range | None = None) -> float:
        values = self._slice(col, rows)
        if values.size == 0 or np.all(np.isnan(values)):
            return math.nan
        return float(np.nanmin(values))

    def max(self, col: int, rows: range | None = None) -> float:
        values = self._slice(col, rows)
        if values.size == 0 or np.all(np.isnan(values)):
            return math.nan
        return float(np.nanmax(values))

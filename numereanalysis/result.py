"""Result containers returned by the analysis entry points.

Internally "nothing found" is ``values is None``. At the external boundary it
is rendered as a single-element list holding NaN, which is the convention
callers of the engine rely on.
"""

from __future__ import annotations

import math
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field


@dataclass(frozen=True)
class AnalysisResult:
    """Ordered scalars produced by one analysis call.

    Attributes:
        values: Positions or integral values, or None when nothing was found.
        name: Optional publication name for the evaluator.
        grid: Optional sample positions paired with ``values``.
    """

    values: tuple[float, ...] | None
    name: str | None = None
    grid: tuple[float, ...] | None = field(default=None, compare=False)

    @classmethod
    def of(
        cls,
        values: Sequence[float] | None,
        name: str | None = None,
        grid: Sequence[float] | None = None,
    ) -> AnalysisResult:
        """Build a result, mapping an empty sequence to "nothing found"."""
        if values is None or len(values) == 0:
            return cls(values=None, name=name)
        return cls(
            values=tuple(float(v) for v in values),
            name=name,
            grid=tuple(float(g) for g in grid) if grid is not None else None,
        )

    @classmethod
    def nothing_found(cls, name: str | None = None) -> AnalysisResult:
        return cls(values=None, name=name)

    @property
    def found(self) -> bool:
        return self.values is not None

    def as_list(self) -> list[float]:
        """Values as a list, ``[nan]`` when nothing was found."""
        if self.values is None:
            return [math.nan]
        return list(self.values)

    def scalar(self) -> float:
        """First value, NaN when nothing was found."""
        return self.as_list()[0]

    def __iter__(self) -> Iterator[float]:
        return iter(self.as_list())

    def __len__(self) -> int:
        return len(self.as_list())

    def __getitem__(self, index: int) -> float:
        return self.as_list()[index]

    def __str__(self) -> str:
        values = ", ".join(f"{v:.10g}" for v in self.as_list())
        if self.name:
            return f"{self.name} = {{{values}}}"
        return f"{{{values}}}"


@dataclass(frozen=True)
class TaylorResult:
    """Taylor expansion of an expression around ``x0``.

    Attributes:
        variable: Expansion variable name.
        x0: Expansion point.
        coefficients: ``c_k = f^(k)(x0) / k!`` for k = 0..order.
        polynomial: The polynomial in ``(variable - x0)`` with zero terms omitted.
    """

    variable: str
    x0: float
    coefficients: tuple[float, ...]
    polynomial: str

    @property
    def order(self) -> int:
        return len(self.coefficients) - 1

    def __str__(self) -> str:
        return self.polynomial

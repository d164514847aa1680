"""Expression evaluator used by the analysis algorithms.

The algorithms only depend on the Evaluator protocol: set the current
expression, evaluate it (scalar or vector), take a finite-difference
derivative with respect to a bound variable, list the variables the
expression uses and publish named result vectors.

SympyEvaluator implements the protocol on top of sympy. Expressions use the
muParser dialect: ``^`` is the power operator, ``ln`` is the natural
logarithm, ``log`` is base 10 and a comma separates the components of a
vector expression::

    evaluator = SympyEvaluator()
    evaluator.set_expression("x^2 - 4, sin(x)")
    evaluator.arena.set("x", 2.0)
    evaluator.eval_vector()   # [0.0, 0.909...]

The evaluator keeps "current expression" state and is not reentrant. Use
``clone()`` to give each concurrent analysis its own instance.
"""

from __future__ import annotations

import logging
import math
import tokenize
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

import numpy as np
import sympy as sp
from sympy.core.sympify import SympifyError

from numereanalysis.errors import EmptyTarget, ExpressionError
from numereanalysis.evaluator.variables import BoundVariable, VariableArena

logger = logging.getLogger(__name__)

_FREE_NAMES = frozenset({"beta", "gamma", "zeta", "lerchphi", "li"})

# Single letters and a few special functions must stay free symbols so that
# expressions like "N*t" or "gamma*x" refer to variables.
_LOCALS: dict[str, object] = {
    name: sp.Symbol(name) for name in sp.__all__ if len(name) == 1 or name in _FREE_NAMES
}
_LOCALS.update({
    "ln": sp.log,
    "log": lambda arg: sp.log(arg, 10),
    "log10": lambda arg: sp.log(arg, 10),
    "log2": lambda arg: sp.log(arg, 2),
    "abs": sp.Abs,
    "sign": sp.sign,
    "rint": lambda arg: sp.floor(arg + sp.Rational(1, 2)),
    "_pi": sp.pi,
    "pi": sp.pi,
    "_e": sp.E,
})


def _real(value: object) -> float:
    """Convert an evaluation result to float; complex results become NaN."""
    if isinstance(value, (complex, np.complexfloating)):
        return float(value.real) if value.imag == 0 else math.nan
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


@dataclass(frozen=True)
class CompiledExpression:
    """A parsed and lambdified expression.

    Attributes:
        text: Source text.
        components: One sympy expression per output.
        variables: Names of the free symbols, sorted.
        slots: Arena slots of ``variables``.
        function: Numeric callable taking the variable values positionally.
    """

    text: str
    components: tuple[sp.Expr, ...]
    variables: tuple[str, ...]
    slots: tuple[int, ...]
    function: Callable[..., object]

    @property
    def size(self) -> int:
        return len(self.components)


@runtime_checkable
class Evaluator(Protocol):
    """Contract the analysis algorithms consume."""

    @property
    def arena(self) -> VariableArena: ...

    @property
    def expression(self) -> str: ...

    def set_expression(self, text: str) -> None: ...

    def eval(self) -> float: ...

    def eval_vector(self) -> list[float]: ...

    def derivative(self, variable: BoundVariable, at: float, step: float = 0.0) -> float: ...

    def used_variables(self) -> dict[str, BoundVariable]: ...

    def publish_vector(self, name: str, values: Sequence[float]) -> None: ...


def describe(evaluator: Evaluator, text: str) -> tuple[tuple[str, ...], int]:
    """Variables used by ``text`` and its number of components.

    Only the protocol is used: ``text`` is made current, inspected through
    ``used_variables()`` and ``eval_vector()`` and the previously current
    expression is restored afterwards.

    Raises:
        EmptyTarget: If ``text`` is empty.
        ExpressionError: If ``text`` cannot be parsed.
    """
    previous = evaluator.expression
    evaluator.set_expression(text)
    try:
        names = tuple(sorted(evaluator.used_variables()))
        size = len(evaluator.eval_vector())
    finally:
        if previous:
            evaluator.set_expression(previous)
    return names, size


class SympyEvaluator:
    """Evaluator backed by sympy parsing and numpy evaluation.

    Args:
        arena: Variable storage. A new empty arena is created if omitted.
        cache_size: Maximum number of compiled expressions kept.
    """

    def __init__(self, arena: VariableArena | None = None, cache_size: int = 128):
        self._arena = arena if arena is not None else VariableArena()
        self._cache: dict[str, CompiledExpression] = {}
        self._cache_size = cache_size
        self._current: CompiledExpression | None = None
        self._vectors: dict[str, list[float]] = {}

    @property
    def arena(self) -> VariableArena:
        return self._arena

    @property
    def expression(self) -> str:
        return self._current.text if self._current is not None else ""

    @property
    def compiled(self) -> CompiledExpression:
        if self._current is None:
            raise EmptyTarget("No expression has been set")
        return self._current

    def compile(self, text: str) -> CompiledExpression:
        """Parse ``text`` without making it the current expression."""
        key = text.strip()
        if not key:
            raise EmptyTarget("The expression is empty")
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        try:
            parsed = sp.sympify(key, locals=dict(_LOCALS))
        except (SyntaxError, TypeError, SympifyError, tokenize.TokenError) as exc:
            raise ExpressionError(
                f"Cannot compile expression '{key}': {exc}", context={"expression": key}
            ) from exc

        components = tuple(parsed) if isinstance(parsed, (tuple, list, sp.Tuple)) else (parsed,)
        components = tuple(sp.sympify(c) for c in components)
        symbols = sorted(
            set().union(*(c.free_symbols for c in components)), key=lambda s: s.name
        )
        names = tuple(s.name for s in symbols)
        slots = tuple(self._arena.ensure(name) for name in names)
        function = sp.lambdify(symbols, list(components), modules="numpy")

        compiled = CompiledExpression(
            text=key, components=components, variables=names, slots=slots, function=function
        )
        if len(self._cache) >= self._cache_size:
            self._cache.pop(next(iter(self._cache)))
        self._cache[key] = compiled
        logger.debug("Compiled %r: %d component(s), variables=%s", key, compiled.size, names)
        return compiled

    def set_expression(self, text: str) -> None:
        self._current = self.compile(text)

    def _evaluate(self) -> list[float]:
        compiled = self.compiled
        args = [np.float64(v) for v in self._arena.values_at(compiled.slots)]
        with np.errstate(all="ignore"):
            try:
                raw = compiled.function(*args)
            except (ZeroDivisionError, OverflowError, ValueError):
                return [math.nan] * compiled.size
        return [_real(v) for v in raw]

    def eval(self) -> float:
        """Value of the first component."""
        return self._evaluate()[0]

    def eval_vector(self) -> list[float]:
        return self._evaluate()

    def _difference(self, variable: BoundVariable, at: float, step: float) -> list[float]:
        if step == 0.0:
            step = 1e-10 if at == 0.0 else 1e-7 * abs(at)
        saved = variable.value
        try:
            samples = []
            for offset in (2.0, 1.0, -1.0, -2.0):
                variable.value = at + offset * step
                samples.append(self._evaluate())
        finally:
            variable.value = saved
        f2, f1, fm1, fm2 = samples
        return [
            (-a + 8.0 * b - 8.0 * c + d) / (12.0 * step)
            for a, b, c, d in zip(f2, f1, fm1, fm2)
        ]

    def derivative(self, variable: BoundVariable, at: float, step: float = 0.0) -> float:
        """Fourth-order central difference of the first component.

        A step of 0 selects ``1e-7 * |at|`` (``1e-10`` at the origin). The
        variable keeps its value.
        """
        return self._difference(variable, at, step)[0]

    def derivative_vector(self, variable: BoundVariable, at: float, step: float = 0.0) -> list[float]:
        return self._difference(variable, at, step)

    def used_variables(self) -> dict[str, BoundVariable]:
        compiled = self.compiled
        return {name: self._arena.handle(name) for name in compiled.variables}

    def uses(self, name: str, text: str | None = None) -> bool:
        """Whether ``name`` occurs free in ``text`` (or the current expression)."""
        compiled = self.compile(text) if text is not None else self.compiled
        return name in compiled.variables

    def publish_vector(self, name: str, values: Sequence[float]) -> None:
        self._vectors[name] = [float(v) for v in values]
        logger.debug("Published %s with %d value(s)", name, len(values))

    def get_vector(self, name: str) -> list[float]:
        return list(self._vectors[name])

    @property
    def published(self) -> dict[str, list[float]]:
        return {name: list(values) for name, values in self._vectors.items()}

    def clone(self) -> SympyEvaluator:
        """Independent evaluator with a copy of the variables and vectors."""
        twin = SympyEvaluator(self._arena.copy(), self._cache_size)
        twin._cache = dict(self._cache)
        twin._current = self._current
        twin._vectors = {name: list(values) for name, values in self._vectors.items()}
        return twin

"""Expression evaluation and variable binding."""

from numereanalysis.evaluator.adapter import CompiledExpression, Evaluator, SympyEvaluator, describe
from numereanalysis.evaluator.variables import BoundVariable, VariableArena

__all__ = [
    "BoundVariable",
    "CompiledExpression",
    "Evaluator",
    "SympyEvaluator",
    "VariableArena",
    "describe",
]

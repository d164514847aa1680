"""Named scalar cells shared between the evaluator and the algorithms.

The arena owns every variable value. Algorithms never hold the value itself;
they borrow a BoundVariable handle for the duration of a call through
``VariableArena.bind``, which restores the previous value on exit.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

logger = logging.getLogger(__name__)


class BoundVariable:
    """Handle to one slot of a VariableArena."""

    __slots__ = ("_arena", "_slot", "name")

    def __init__(self, arena: VariableArena, slot: int, name: str):
        self._arena = arena
        self._slot = slot
        self.name = name

    @property
    def slot(self) -> int:
        return self._slot

    @property
    def value(self) -> float:
        return self._arena._values[self._slot]

    @value.setter
    def value(self, value: float) -> None:
        self._arena._values[self._slot] = float(value)

    def __repr__(self) -> str:
        return f"BoundVariable({self.name}={self.value!r})"


class VariableArena:
    """Ordered collection of named scalar values."""

    def __init__(self, initial: dict[str, float] | None = None):
        self._values: list[float] = []
        self._slots: dict[str, int] = {}
        for name, value in (initial or {}).items():
            self.define(name, value)

    def __contains__(self, name: str) -> bool:
        return name in self._slots

    def __len__(self) -> int:
        return len(self._slots)

    @property
    def names(self) -> list[str]:
        return list(self._slots)

    def define(self, name: str, value: float = 0.0) -> BoundVariable:
        """Create the variable if missing and set its value."""
        slot = self._slots.get(name)
        if slot is None:
            slot = len(self._values)
            self._values.append(float(value))
            self._slots[name] = slot
        else:
            self._values[slot] = float(value)
        return BoundVariable(self, slot, name)

    def ensure(self, name: str) -> int:
        """Slot of ``name``, creating the variable with value 0 if needed."""
        slot = self._slots.get(name)
        if slot is None:
            slot = self.define(name, 0.0).slot
            logger.debug("Declared variable %s", name)
        return slot

    def handle(self, name: str) -> BoundVariable:
        return BoundVariable(self, self.ensure(name), name)

    def get(self, name: str) -> float:
        return self._values[self._slots[name]]

    def set(self, name: str, value: float) -> None:
        self._values[self.ensure(name)] = float(value)

    def values_at(self, slots: tuple[int, ...]) -> list[float]:
        values = self._values
        return [values[s] for s in slots]

    @contextmanager
    def bind(self, name: str) -> Iterator[BoundVariable]:
        """Borrow ``name`` for a computation.

        The value the variable had before the block is restored on exit,
        also when the block raises.
        """
        variable = self.handle(name)
        saved = variable.value
        try:
            yield variable
        finally:
            variable.value = saved

    def copy(self) -> VariableArena:
        clone = VariableArena()
        clone._values = list(self._values)
        clone._slots = dict(self._slots)
        return clone

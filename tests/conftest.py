"""
Shared pytest fixtures for the numereanalysis tests.
"""

import logging

import pytest

from numereanalysis import SympyEvaluator, TableDataSource


@pytest.fixture
def evaluator() -> SympyEvaluator:
    """A fresh evaluator with an empty variable arena."""
    return SympyEvaluator()


@pytest.fixture
def parabola_table() -> TableDataSource:
    """30 samples of -(x-15)^2 with the positions in the first column."""
    positions = [float(i) for i in range(30)]
    values = [-((i - 15.0) ** 2) for i in range(30)]
    return TableDataSource.from_columns(positions, values, names=["x", "y"])


@pytest.fixture(autouse=True)
def reset_numereanalysis_logging():
    """Reset logging state before each test.

    Ensures tests start with a clean logging configuration:
    - Removes all handlers except NullHandler
    - Resets level to NOTSET (inherit from parent)
    """
    logger = logging.getLogger("numereanalysis")

    def reset():
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)
            if not isinstance(handler, logging.NullHandler):
                handler.close()
        logger.addHandler(logging.NullHandler())
        logger.setLevel(logging.NOTSET)

    reset()
    yield
    reset()

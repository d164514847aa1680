"""Extrema and zero crossings in sampled data.

Extrema are found on a running median rather than on the raw samples, so a
single noisy sample does not register as a turning point. The median only
locates the neighbourhood of an extremum; the raw samples around it are
searched for the actual extreme value.

Zero crossings are read from the raw samples. NaN samples are skipped
without interrupting the scan.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence

import numpy as np

from numereanalysis.config import CrossingDirection, ExtremumKind

logger = logging.getLogger(__name__)

MIN_WINDOW = 3


def effective_window(window: int, size: int) -> int:
    """Window actually used for ``size`` samples: ``min(max(3, window), size // 3)``.

    A result below 3 means the series is too short for trend analysis.
    """
    return min(max(MIN_WINDOW, window), size // 3)


def _window_median(values: np.ndarray, start: int, window: int) -> tuple[float | None, list[int]]:
    """Median of the first ``window`` valid samples from ``start`` on.

    NaN samples widen the window so that it always holds ``window`` values.
    """
    indices: list[int] = []
    j = start
    while j < values.size and len(indices) < window:
        if not math.isnan(values[j]):
            indices.append(j)
        j += 1
    if len(indices) < window:
        return None, indices
    return float(np.median(values[indices])), indices


def _true_extreme(values: np.ndarray, first: int, last: int, maximum: bool) -> int | None:
    """Index of the extreme raw sample in ``[first, last]``, scanning backwards."""
    best: int | None = None
    for j in range(last, first - 1, -1):
        value = values[j]
        if math.isnan(value):
            continue
        if best is None or (value > values[best] if maximum else value < values[best]):
            best = j
    return best


def find_data_extrema(
    values: Sequence[float] | np.ndarray,
    positions: Sequence[float] | np.ndarray,
    window: int = 5,
    kind: ExtremumKind = ExtremumKind.ANY,
) -> list[float]:
    """Positions of local extrema in a data series.

    Args:
        values: Samples, NaN marks a missing sample.
        positions: Position of every sample.
        window: Median window, clamped by ``effective_window``.
        kind: Report minima, maxima or both.

    Returns:
        Positions in scan order; empty if the series is too short or the
        median trend never reverses.
    """
    values = np.asarray(values, dtype=float)
    positions = np.asarray(positions, dtype=float)
    size = values.size
    width = effective_window(window, size)
    if width < MIN_WINDOW:
        logger.debug("Series of %d samples is too short for a median window", size)
        return []

    found: list[float] = []
    previous_median: float | None = None
    previous_start = 0
    trend = 0
    i = 0
    while i < size:
        median, indices = _window_median(values, i, width)
        if median is None:
            break
        if previous_median is not None:
            delta = median - previous_median
            direction = (delta > 0) - (delta < 0)
            if direction != 0:
                if trend != 0 and direction != trend:
                    maximum = trend > 0
                    wanted = (
                        kind is ExtremumKind.ANY
                        or (kind is ExtremumKind.MAX and maximum)
                        or (kind is ExtremumKind.MIN and not maximum)
                    )
                    if wanted:
                        index = _true_extreme(values, previous_start, indices[-1], maximum)
                        if index is not None:
                            found.append(float(positions[index]))
                            logger.debug(
                                "%s at sample %d (position %g)",
                                "Maximum" if maximum else "Minimum", index, positions[index],
                            )
                            i = index + width
                            previous_median = None
                            trend = 0
                            continue
                trend = direction
        previous_median = median
        previous_start = i
        i += 1
    return found


def find_data_zeroes(
    values: Sequence[float] | np.ndarray,
    positions: Sequence[float] | np.ndarray,
    direction: CrossingDirection = CrossingDirection.ANY,
) -> list[float]:
    """Positions where a data series crosses or touches zero.

    A sign change between two valid non-zero samples reports the linearly
    interpolated position. Samples that are exactly zero are reported
    verbatim once the run of zeros ends. UP and DOWN keep only crossings
    from negative to positive or positive to negative; a zero run whose
    transition is unknown (touching zero, or at the series boundary) is only
    reported in ANY mode.

    The result follows the direction of the position column.
    """
    values = np.asarray(values, dtype=float)
    positions = np.asarray(positions, dtype=float)

    def wanted(transition: int) -> bool:
        if direction is CrossingDirection.ANY:
            return True
        if direction is CrossingDirection.UP:
            return transition > 0
        return transition < 0

    found: list[float] = []
    reference: int | None = None
    run: list[int] = []

    for i in range(values.size):
        value = values[i]
        if math.isnan(value):
            continue
        if value == 0.0:
            run.append(i)
            continue

        if run:
            transition = 0
            if reference is not None and values[reference] * value < 0.0:
                transition = 1 if value > 0.0 else -1
            if wanted(transition):
                found.extend(float(positions[j]) for j in run)
            run = []

        if reference is not None and values[reference] * value < 0.0:
            transition = 1 if value > 0.0 else -1
            if wanted(transition):
                v0, p0 = values[reference], positions[reference]
                found.append(float(p0 + (positions[i] - p0) * (0.0 - v0) / (value - v0)))
        reference = i

    if run and direction is CrossingDirection.ANY:
        found.extend(float(positions[j]) for j in run)

    valid = positions[~np.isnan(values)]
    descending = bool(valid.size > 1 and valid[0] > valid[-1])
    return sorted(found, reverse=descending)

"""Progress reporting and cooperative cancellation for long computations.

Only integrations whose step count crosses a threshold report progress; they
call ``ProgressMonitor.tick`` once per step, which polls the abort flag and
forwards whole-percent progress to an optional callback.

Example::

    monitor = ProgressMonitor(callback=lambda fraction: print(f"{fraction:.0%}"))
    # from another thread (e.g. a UI): monitor.request_abort()
"""

from __future__ import annotations

import logging
import threading
from typing import Callable

from numereanalysis.errors import ProcessAbortedByUser

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]


class ProgressMonitor:
    """Shared abort flag plus progress sink.

    Args:
        callback: Called with the completed fraction (0..1) whenever a new
            whole percent is reached.
        abort_event: Existing event to share with other monitors. A fresh
            one is created if omitted.
    """

    def __init__(
        self,
        callback: ProgressCallback | None = None,
        abort_event: threading.Event | None = None,
    ):
        self._callback = callback
        self._abort = abort_event if abort_event is not None else threading.Event()
        self._last_percent = -1

    @property
    def abort_requested(self) -> bool:
        return self._abort.is_set()

    def request_abort(self) -> None:
        """Ask the running computation to stop at its next tick."""
        self._abort.set()

    def clear(self) -> None:
        """Reset the abort flag and the progress state."""
        self._abort.clear()
        self._last_percent = -1

    def start(self, label: str) -> None:
        self._last_percent = -1
        logger.info("%s: started", label)

    def tick(self, done: int, total: int, label: str = "integration") -> None:
        """Record progress and raise if an abort was requested.

        Raises:
            ProcessAbortedByUser: If the abort flag is set.
        """
        if self._abort.is_set():
            logger.warning("%s: aborted at step %d of %d", label, done, total)
            raise ProcessAbortedByUser(context={"step": done, "total": total, "label": label})

        if total <= 0:
            return
        percent = int(100 * done / total)
        if percent > self._last_percent:
            self._last_percent = percent
            if percent % 10 == 0:
                logger.info("%s: %d %%", label, percent)
            if self._callback is not None:
                self._callback(done / total)

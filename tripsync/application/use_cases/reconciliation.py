"""One pass of the periodic reconciliation work."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime

from tripsync.application.use_cases.notifications import NotificationDispatchEngine
from tripsync.application.use_cases.polls import ClosureSummary, PollClosureEngine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TickReport:
    """Result of a reconciliation tick."""

    now: datetime
    dispatched: int = 0
    closure: ClosureSummary = field(default_factory=ClosureSummary)


class ReconciliationTick:
    """Run the dispatch engine and then the closure engine for a point in time.

    A mutex keeps two ticks of the same process from overlapping; a tick that
    finds it held is skipped. Overlap between processes is handled by the
    store's conditional writes.
    """

    def __init__(
        self,
        dispatch_engine: NotificationDispatchEngine,
        closure_engine: PollClosureEngine,
    ) -> None:
        self._dispatch_engine = dispatch_engine
        self._closure_engine = closure_engine
        self._lock = threading.Lock()

    def run(self, now: datetime) -> TickReport | None:
        if not self._lock.acquire(blocking=False):
            logger.warning("Previous reconciliation tick still running; skipping tick at %s", now.isoformat())
            return None
        try:
            logger.debug("Reconciliation tick at %s", now.isoformat())
            dispatched = self._dispatch_engine.run(now)
            closure = self._closure_engine.run(now)
            return TickReport(now=now, dispatched=dispatched, closure=closure)
        finally:
            self._lock.release()


__all__ = ["ReconciliationTick", "TickReport"]

"""
Alert Session Tracker
Decides which alerts are newly appearing since the previous cycle.

Only the previous cycle's ids are kept (full replacement, never a union),
so history stays bounded: an alert that persists is announced once, one
that disappears and comes back with a new id is announced again.
"""

import threading
from typing import Iterable, List, Set

from .models import Alert


class AlertSessionTracker:
    """
    Usage:
        tracker = AlertSessionTracker()
        tracker.observe(alerts)   # first cycle: seeds, returns []
        new = tracker.observe(alerts_next_cycle)
    """

    def __init__(self):
        self._previous_ids: Set[str] = set()
        self._seeded = False
        self._lock = threading.Lock()

    @property
    def seeded(self) -> bool:
        return self._seeded

    @property
    def previous_ids(self) -> Set[str]:
        return set(self._previous_ids)

    def observe(self, alerts: Iterable[Alert]) -> List[Alert]:
        """
        Record this cycle's alerts and return the newly-appeared ones.

        The first cycle after creation only seeds the tracker: conditions
        already active when the session starts are never announced.
        """
        alerts = list(alerts)
        with self._lock:
            newly = [a for a in alerts if a.id not in self._previous_ids]
            self._previous_ids = {a.id for a in alerts}
            if not self._seeded:
                self._seeded = True
                return []
            return newly

    def reset(self) -> None:
        """Forget everything; the next cycle seeds again"""
        with self._lock:
            self._previous_ids = set()
            self._seeded = False

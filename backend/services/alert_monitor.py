"""
Alert Monitor
Polls the reading source and drives the alert pipeline.

One cycle:
    source.fetch_latest → extract_series → compute_alerts (current rules)
        → tracker.observe → for each newly-appeared alert:
              toasts.push + email.dispatch (fire-and-forget)

Usage:
    monitor = AlertMonitor(source, config_store, read_store, toasts, email)
    handle = monitor.start()     # background polling
    ...
    handle.cancel()              # no callbacks fire after this returns
"""

import logging
import threading
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from alerts import Alert, AlertSessionTracker, ToastManager, compute_alerts
from sensors import DEFAULT_SERIES_LIMIT, Reading, ReadingSource, ReadingSourceError, extract_series
from storage import ReadStateStore, ThresholdConfigStore

from .email import EmailDispatcher

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 5 * 60  # seconds
DEFAULT_BATCH_SIZE = 150


class PollHandle:
    """
    Owns one polling thread.

    Cancelling stops the timer, drops the config subscription and waits
    for an in-flight cycle, so nothing fires once cancel() returns.
    """

    def __init__(self, monitor: "AlertMonitor", interval: float):
        self._monitor = monitor
        self.interval = interval
        self._stop = threading.Event()
        self._wake = threading.Event()
        self._unsubscribe: Optional[Callable[[], None]] = None
        self._thread = threading.Thread(target=self._run, name="alert-monitor", daemon=True)

    @property
    def cancelled(self) -> bool:
        return self._stop.is_set()

    @property
    def is_running(self) -> bool:
        return self._thread.is_alive() and not self.cancelled

    def start(self) -> "PollHandle":
        self._unsubscribe = self._monitor.config_store.subscribe(lambda _: self.wake())
        self._thread.start()
        return self

    def wake(self) -> None:
        """Run the next cycle now instead of at the end of the interval"""
        self._wake.set()

    def cancel(self, timeout: Optional[float] = None) -> None:
        if self._unsubscribe:
            self._unsubscribe()
            self._unsubscribe = None
        self._stop.set()
        self._wake.set()
        if self._thread.is_alive() and threading.current_thread() is not self._thread:
            self._thread.join(timeout)

    def _run(self) -> None:
        while not self._stop.is_set():
            self._wake.clear()
            try:
                self._monitor.run_cycle(cancelled=self._stop.is_set)
            except Exception:
                logger.exception("Alert cycle crashed; continuing on next interval")
            self._wake.wait(self.interval)


class AlertMonitor:
    def __init__(
        self,
        source: ReadingSource,
        config_store: ThresholdConfigStore,
        read_store: ReadStateStore,
        toasts: ToastManager,
        email: Optional[EmailDispatcher] = None,
        tracker: Optional[AlertSessionTracker] = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
        series_limit: int = DEFAULT_SERIES_LIMIT,
        poll_interval: float = DEFAULT_POLL_INTERVAL
    ):
        self.source = source
        self.config_store = config_store
        self.read_store = read_store
        self.toasts = toasts
        self.email = email
        self.tracker = tracker or AlertSessionTracker()
        self.batch_size = batch_size
        self.series_limit = series_limit
        self.poll_interval = poll_interval

        self._alerts: List[Alert] = []
        self._error: Optional[str] = None
        self._loading = True
        self._last_cycle_at: Optional[datetime] = None
        self._cycle_lock = threading.Lock()
        self._state_lock = threading.Lock()
        self._handle: Optional[PollHandle] = None
        self._stats = {
            "cycles": 0,
            "failed_cycles": 0,
            "overlaps_skipped": 0,
            "alerts_announced": 0,
            "start_time": datetime.now()
        }

    # =========================================================================
    # State
    # =========================================================================

    @property
    def alerts(self) -> List[Alert]:
        with self._state_lock:
            return list(self._alerts)

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def last_cycle_at(self) -> Optional[datetime]:
        return self._last_cycle_at

    @property
    def is_running(self) -> bool:
        return self._handle is not None and self._handle.is_running

    def unread_count(self) -> int:
        return self.read_store.unread_count(self.alerts)

    def mark_all_read(self) -> int:
        """Acknowledge every active alert; returns how many ids were marked"""
        alerts = self.alerts
        self.read_store.mark_all_read(alerts)
        return len(alerts)

    # =========================================================================
    # Cycle
    # =========================================================================

    def process_readings(self, readings: List[Reading]) -> List[Alert]:
        """
        Evaluate one batch and announce what is new.

        Returns the newly-appeared alerts (always empty on the first cycle).
        """
        dataset = extract_series(readings, self.series_limit)
        alerts = compute_alerts(dataset, self.config_store.load())
        newly = self.tracker.observe(alerts)

        with self._state_lock:
            self._alerts = alerts

        for alert in newly:
            self.toasts.push(alert)
            if self.email:
                self.email.dispatch(alert)

        if newly:
            self._stats["alerts_announced"] += len(newly)
            logger.info(f"{len(newly)} new alert(s): {', '.join(a.id for a in newly)}")
        return newly

    def run_cycle(self, cancelled: Optional[Callable[[], bool]] = None) -> bool:
        """
        Fetch and evaluate once. Overlapping calls are skipped.

        A failed fetch clears active alerts (never stale) and records the
        error; the tracker keeps its ids so recovery does not re-announce.
        """
        if not self._cycle_lock.acquire(blocking=False):
            with self._state_lock:
                self._stats["overlaps_skipped"] += 1
            logger.debug("Alert cycle already in flight; skipping")
            return False

        try:
            try:
                readings = self.source.fetch_latest(self.batch_size)
            except ReadingSourceError as e:
                logger.error(f"Failed to check alerts: {e}")
                with self._state_lock:
                    self._alerts = []
                self._error = str(e) or "Failed to check alerts"
                self._stats["failed_cycles"] += 1
                return False

            if cancelled and cancelled():
                return False

            self.process_readings(readings)
            self._error = None
            self._stats["cycles"] += 1
            logger.debug(f"Alert cycle done: {len(readings)} readings, {len(self._alerts)} active alerts")
            return True
        finally:
            self._loading = False
            self._last_cycle_at = datetime.now()
            self._cycle_lock.release()

    # =========================================================================
    # Polling
    # =========================================================================

    def start(self, interval: Optional[float] = None) -> PollHandle:
        """Start polling; returns the existing handle if already running"""
        if self.is_running:
            return self._handle
        self._handle = PollHandle(self, interval or self.poll_interval).start()
        logger.info(f"Alert polling started (every {self._handle.interval:.0f}s)")
        return self._handle

    def stop(self, timeout: Optional[float] = None) -> None:
        if self._handle:
            self._handle.cancel(timeout)
            self._handle = None
            logger.info("Alert polling stopped")

    def refresh(self) -> bool:
        """
        Re-check now (navigation, manual refresh).

        Wakes the loop when polling, otherwise runs a cycle inline.
        """
        if self.is_running:
            self._handle.wake()
            return True
        return self.run_cycle()

    def status(self) -> Dict[str, Any]:
        alerts = self.alerts
        read = self.read_store.load()
        return {
            "count": len(alerts),
            "unread_count": sum(1 for a in alerts if a.id not in read),
            "loading": self._loading,
            "error": self._error,
            "last_cycle_at": self._last_cycle_at.isoformat() if self._last_cycle_at else None,
            "alerts": [{**a.to_dict(), "unread": a.id not in read} for a in alerts],
        }

    def stats(self) -> Dict[str, Any]:
        uptime = (datetime.now() - self._stats["start_time"]).total_seconds()
        return {
            **{k: v for k, v in self._stats.items() if k != "start_time"},
            "uptime_seconds": round(uptime, 2),
            "polling": self.is_running,
            "active_alerts": len(self.alerts),
            "toasts": len(self.toasts),
        }

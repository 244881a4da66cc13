"""
Toast Manager
Ephemeral notification cards with a bounded lifetime.

Lifecycle per toast:
    CREATED ──render()──▶ VISIBLE ──timeout──▶ EXPIRED
       │                     │
       └──────dismiss()──────┴──────────────▶ DISMISSED

Expired and dismissed toasts leave the active list. Nothing is persisted.
"""

import logging
import threading
import time
from typing import Callable, List, Optional

from .models import Alert, Toast, ToastState

logger = logging.getLogger(__name__)

TOAST_DURATION_MS = 5000
MAX_TOASTS = 5

Clock = Callable[[], float]


def _now_ms() -> float:
    return time.time() * 1000


class ToastManager:
    def __init__(
        self,
        duration_ms: int = TOAST_DURATION_MS,
        max_toasts: Optional[int] = MAX_TOASTS,
        clock: Clock = _now_ms
    ):
        self.duration_ms = duration_ms
        self.max_toasts = max_toasts
        self._clock = clock
        self._toasts: List[Toast] = []
        self._lock = threading.Lock()

    def push(self, alert: Alert) -> Toast:
        """Queue a toast for a newly-appeared alert. Oldest are evicted past the cap."""
        now = self._clock()
        toast = Toast(id=f"toast-{alert.id}-{int(now)}", alert=alert, created_at=now)
        with self._lock:
            self._expire(now)
            self._toasts.append(toast)
            if self.max_toasts and len(self._toasts) > self.max_toasts:
                evicted = self._toasts[:-self.max_toasts]
                self._toasts = self._toasts[-self.max_toasts:]
                for old in evicted:
                    old.state = ToastState.EXPIRED
                logger.debug(f"Evicted {len(evicted)} toast(s) over cap of {self.max_toasts}")
        return toast

    def render(self) -> List[Toast]:
        """
        A render opportunity: drop expired toasts, return the live ones.

        Toasts are returned in their current state, then CREATED ones
        become VISIBLE.
        """
        with self._lock:
            self._expire(self._clock())
            snapshot = [Toast(t.id, t.alert, t.created_at, t.state) for t in self._toasts]
            for toast in self._toasts:
                if toast.state is ToastState.CREATED:
                    toast.state = ToastState.VISIBLE
            return snapshot

    def active(self) -> List[Toast]:
        """Live toasts without advancing their state"""
        with self._lock:
            self._expire(self._clock())
            return list(self._toasts)

    def dismiss(self, toast_id: str) -> bool:
        with self._lock:
            for toast in self._toasts:
                if toast.id == toast_id:
                    toast.state = ToastState.DISMISSED
                    self._toasts.remove(toast)
                    return True
        return False

    def clear(self) -> None:
        with self._lock:
            for toast in self._toasts:
                toast.state = ToastState.DISMISSED
            self._toasts.clear()

    def __len__(self) -> int:
        return len(self.active())

    def _expire(self, now: float) -> None:
        kept = []
        for toast in self._toasts:
            if now - toast.created_at >= self.duration_ms:
                toast.state = ToastState.EXPIRED
            else:
                kept.append(toast)
        self._toasts = kept

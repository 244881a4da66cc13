"""
Change Notification Bus
Typed publish/subscribe with named topics.

Stores publish after every persisted mutation; mounted views and the
polling loop subscribe instead of re-reading storage on a timer.

Usage:
    bus = EventBus()
    unsubscribe = bus.subscribe(Topic.RULE_CONFIG_CHANGED, on_change)
    bus.publish(Topic.RULE_CONFIG_CHANGED, config)
    unsubscribe()
"""

import logging
import threading
from enum import Enum
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)


class Topic(str, Enum):
    RULE_CONFIG_CHANGED = "rule-config-changed"
    READ_STATE_CHANGED = "read-state-changed"
    EMAIL_SETTINGS_CHANGED = "email-settings-changed"


Subscriber = Callable[[Any], None]


class EventBus:
    def __init__(self):
        self._subscribers: Dict[Topic, List[Subscriber]] = {topic: [] for topic in Topic}
        self._lock = threading.Lock()

    def subscribe(self, topic: Topic, callback: Subscriber) -> Callable[[], None]:
        """Register a callback; returns a function that removes it"""
        with self._lock:
            self._subscribers[topic].append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers[topic]:
                    self._subscribers[topic].remove(callback)

        return unsubscribe

    def publish(self, topic: Topic, payload: Any = None) -> int:
        """Deliver to every subscriber. A failing subscriber never blocks the rest."""
        with self._lock:
            callbacks = list(self._subscribers[topic])
        for callback in callbacks:
            try:
                callback(payload)
            except Exception:
                logger.exception(f"Subscriber failed on {topic.value}")
        return len(callbacks)

    def subscriber_count(self, topic: Topic) -> int:
        with self._lock:
            return len(self._subscribers[topic])

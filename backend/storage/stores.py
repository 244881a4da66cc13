"""
Persisted Stores
Explicitly owned stores with load/save/subscribe, flushed on every mutation.

    ThresholdConfigStore  → per-metric rules (deep-merged onto defaults)
    ReadStateStore        → acknowledged alert ids
    EmailSettingsStore    → email notification settings

Corrupt or missing documents silently fall back to defaults.
"""

import json
import logging
import threading
from typing import Any, Callable, Dict, Iterable, List, Optional, Set

from alerts import (
    Alert,
    EmailNotificationSettings,
    EventBus,
    ThresholdConfig,
    Topic,
    default_thresholds,
)

from .sqlite import SQLiteStorage

logger = logging.getLogger(__name__)

THRESHOLDS_KEY = "garden-threshold-config"
READ_ALERTS_KEY = "garden-read-alert-ids"
EMAIL_SETTINGS_KEY = "garden-email-notification-settings"


class _Store:
    """Shared JSON load/save over one storage key"""

    key: str = ""
    topic: Topic

    def __init__(self, storage: SQLiteStorage, bus: EventBus):
        self.storage = storage
        self.bus = bus
        # guards read-modify-write of the stored document
        self._lock = threading.Lock()

    def subscribe(self, callback: Callable[[Any], None]) -> Callable[[], None]:
        return self.bus.subscribe(self.topic, callback)

    def _read_json(self) -> Optional[Any]:
        raw = self.storage.get(self.key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"Corrupt document under {self.key}, using defaults: {e}")
            return None

    def _write_json(self, data: Any) -> None:
        self.storage.set(self.key, json.dumps(data, ensure_ascii=False))


# =============================================================================
# Threshold Config
# =============================================================================

class ThresholdConfigStore(_Store):
    key = THRESHOLDS_KEY
    topic = Topic.RULE_CONFIG_CHANGED

    def load(self) -> ThresholdConfig:
        """Stored overrides deep-merged onto defaults"""
        defaults = default_thresholds()
        data = self._read_json()
        if not data:
            return defaults
        if not isinstance(data, dict):
            logger.warning(f"Ignoring non-object threshold config under {self.key}")
            return defaults
        try:
            return defaults.merged(data)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Invalid threshold config, using defaults: {e}")
            return defaults

    def save(self, config: ThresholdConfig) -> ThresholdConfig:
        with self._lock:
            self._write_json(config.to_dict())
        self.bus.publish(self.topic, config)
        return config

    def update(self, overrides: Dict[str, Any]) -> ThresholdConfig:
        """
        Merge a partial override onto the current config and save.

        Raises:
            KeyError, TypeError, ValueError: on malformed overrides
        """
        with self._lock:
            config = self.load().merged(overrides)
            self._write_json(config.to_dict())
        self.bus.publish(self.topic, config)
        return config

    def reset(self) -> ThresholdConfig:
        with self._lock:
            self.storage.delete(self.key)
        config = default_thresholds()
        self.bus.publish(self.topic, config)
        return config


# =============================================================================
# Read State
# =============================================================================

class ReadStateStore(_Store):
    """
    Acknowledged alert ids. Grows monotonically until reset().

    Unread = active alerts whose id is not in the read set.
    """

    key = READ_ALERTS_KEY
    topic = Topic.READ_STATE_CHANGED

    def load(self) -> Set[str]:
        data = self._read_json()
        if not isinstance(data, list):
            return set()
        return {str(i) for i in data}

    def mark_read(self, ids: Iterable[str]) -> Set[str]:
        ids = [i for i in ids if i]
        with self._lock:
            read = self.load()
            read.update(ids)
            self._write_json(sorted(read))
        self.bus.publish(self.topic, read)
        return read

    def mark_all_read(self, alerts: Iterable[Alert]) -> Set[str]:
        return self.mark_read([a.id for a in alerts])

    def is_unread(self, alert: Alert, read: Optional[Set[str]] = None) -> bool:
        read = self.load() if read is None else read
        return alert.id not in read

    def unread(self, alerts: Iterable[Alert]) -> List[Alert]:
        read = self.load()
        return [a for a in alerts if a.id not in read]

    def unread_count(self, alerts: Iterable[Alert]) -> int:
        return len(self.unread(alerts))

    def reset(self) -> None:
        with self._lock:
            self.storage.delete(self.key)
        self.bus.publish(self.topic, set())


# =============================================================================
# Email Settings
# =============================================================================

class EmailSettingsStore(_Store):
    key = EMAIL_SETTINGS_KEY
    topic = Topic.EMAIL_SETTINGS_CHANGED

    def load(self) -> EmailNotificationSettings:
        data = self._read_json()
        if not isinstance(data, dict):
            return EmailNotificationSettings()
        return EmailNotificationSettings.from_dict(data)

    def save(self, settings: EmailNotificationSettings) -> EmailNotificationSettings:
        self._write_json(settings.to_dict())
        self.bus.publish(self.topic, settings)
        return settings

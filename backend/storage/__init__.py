"""
Storage Layer
Durable key-value storage and the settings stores built on it.
"""

from .sqlite import SQLiteStorage
from .stores import ThresholdConfigStore, ReadStateStore, EmailSettingsStore

__all__ = [
    "SQLiteStorage",
    "ThresholdConfigStore",
    "ReadStateStore",
    "EmailSettingsStore",
]

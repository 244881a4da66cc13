"""
Alert System
Threshold rules evaluated against the latest reading of each metric.

Structure:
    alerts/
    ├── models.py     → ThresholdRule, ThresholdConfig, Alert, Toast
    ├── evaluator.py  → compute_alerts (pure)
    ├── tracker.py    → AlertSessionTracker (newly-appeared detection)
    ├── toasts.py     → ToastManager (ephemeral notifications)
    └── events.py     → EventBus, Topic (change notifications)

Usage:
    from alerts import compute_alerts, default_thresholds, AlertSessionTracker

    alerts = compute_alerts(dataset, default_thresholds())
    new = tracker.observe(alerts)
    for alert in new:
        toasts.push(alert)
"""

from .models import (
    Alert,
    AlertSeverity,
    Direction,
    ThresholdRule,
    MetricThresholds,
    ThresholdConfig,
    default_thresholds,
    Toast,
    ToastState,
    EmailNotificationSettings,
    format_value,
)

from .evaluator import compute_alerts, evaluate_metric
from .tracker import AlertSessionTracker
from .toasts import ToastManager
from .events import EventBus, Topic

__all__ = [
    # Models
    "Alert",
    "AlertSeverity",
    "Direction",
    "ThresholdRule",
    "MetricThresholds",
    "ThresholdConfig",
    "default_thresholds",
    "Toast",
    "ToastState",
    "EmailNotificationSettings",
    "format_value",
    # Evaluation
    "compute_alerts",
    "evaluate_metric",
    "AlertSessionTracker",
    "ToastManager",
    # Notifications
    "EventBus",
    "Topic",
]

"""
Alert Models
Data structures for threshold rules, alerts, toasts and notification settings.
"""

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from sensors import Metric


def format_value(value: float) -> str:
    """Full-precision display; integral floats drop the trailing .0"""
    value = float(value)
    return str(int(value)) if value.is_integer() else repr(value)


class AlertSeverity(str, Enum):
    """Alert severity levels"""
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


class Direction(str, Enum):
    """Which side of the threshold breaches"""
    ABOVE = "above"  # value >= threshold
    BELOW = "below"  # value <= threshold


# =============================================================================
# Threshold Rules
# =============================================================================

@dataclass
class ThresholdRule:
    """
    One boundary condition on a metric.

    Example:
        "Alert (critical) when Temperature >= 35"
    """
    value: float
    message: str = ""
    severity: AlertSeverity = AlertSeverity.WARNING
    enabled: bool = True

    def breached(self, reading: float, direction: Direction) -> bool:
        """Inclusive comparison in both directions"""
        if not self.enabled:
            return False
        if direction is Direction.ABOVE:
            return reading >= self.value
        return reading <= self.value

    def to_dict(self) -> Dict[str, Any]:
        return {
            "value": self.value,
            "message": self.message,
            "severity": self.severity.value,
            "enabled": self.enabled,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ThresholdRule":
        return cls(
            value=float(data["value"]),
            message=str(data.get("message", "")),
            severity=AlertSeverity(data.get("severity", AlertSeverity.WARNING.value)),
            enabled=bool(data.get("enabled", True)),
        )


@dataclass
class MetricThresholds:
    """Independent above/below rules for one metric"""
    above: Optional[ThresholdRule] = None
    below: Optional[ThresholdRule] = None

    def rule(self, direction: Direction) -> Optional[ThresholdRule]:
        return self.above if direction is Direction.ABOVE else self.below

    def to_dict(self) -> Dict[str, Any]:
        data = {}
        if self.above:
            data["above"] = self.above.to_dict()
        if self.below:
            data["below"] = self.below.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MetricThresholds":
        return cls(
            above=ThresholdRule.from_dict(data["above"]) if data.get("above") else None,
            below=ThresholdRule.from_dict(data["below"]) if data.get("below") else None,
        )


@dataclass
class ThresholdConfig:
    """Per-metric rules. Only metrics present here are alerted on."""
    metrics: Dict[Metric, MetricThresholds] = field(default_factory=dict)

    def get(self, metric: Metric) -> Optional[MetricThresholds]:
        return self.metrics.get(metric)

    def to_dict(self) -> Dict[str, Any]:
        return {metric.value: rules.to_dict() for metric, rules in self.metrics.items()}

    def merged(self, overrides: Dict[str, Any]) -> "ThresholdConfig":
        """
        Deep-merge partial overrides onto this config.

        Keyed by metric name; each rule merges field by field. Metrics
        not already configured are ignored.

        Raises:
            KeyError, ValueError, TypeError: on malformed overrides
        """
        result = copy.deepcopy(self)
        for metric, rules in result.metrics.items():
            override = overrides.get(metric.value)
            if not override:
                continue
            if not isinstance(override, dict):
                raise TypeError(f"Thresholds for {metric.value} must be an object")
            for direction in Direction:
                partial = override.get(direction.value)
                if not partial:
                    continue
                base = rules.rule(direction)
                data = {**(base.to_dict() if base else {}), **partial}
                setattr(rules, direction.value, ThresholdRule.from_dict(data))
        return result


def default_thresholds() -> ThresholdConfig:
    """Pre-defined thresholds, restorable via reset"""
    S = AlertSeverity
    return ThresholdConfig(metrics={
        Metric.TEMPERATURE: MetricThresholds(
            above=ThresholdRule(35, "Temperature too high", S.CRITICAL),
            below=ThresholdRule(5, "Temperature too low", S.WARNING),
        ),
        Metric.HUMIDITY: MetricThresholds(
            above=ThresholdRule(95, "Humidity too high", S.INFO),
            below=ThresholdRule(20, "Humidity too low (dry)", S.WARNING),
        ),
        Metric.SOIL_MOISTURE: MetricThresholds(
            below=ThresholdRule(15, "Soil moisture too low – plants may need water", S.CRITICAL),
        ),
        Metric.SOIL_PH: MetricThresholds(
            above=ThresholdRule(8.5, "Soil pH too alkaline", S.WARNING),
            below=ThresholdRule(5, "Soil pH too acidic", S.WARNING),
        ),
        Metric.WATER_DEPTH: MetricThresholds(
            below=ThresholdRule(5, "Water level too low – reservoir needs refill", S.CRITICAL),
        ),
    })


# =============================================================================
# Alerts
# =============================================================================

@dataclass(frozen=True)
class Alert:
    """
    A concrete breach: one metric, one direction, one reading timestamp.

    The id is derived from metric + direction + received_at, so the same
    breach seen on repeated polls always has the same id.
    """
    id: str
    metric: str
    direction: Direction
    message: str
    severity: AlertSeverity
    value: float
    received_at: str
    unit: Optional[str] = None
    threshold: Optional[str] = None

    @staticmethod
    def make_id(metric: str, direction: Direction, received_at: str) -> str:
        return f"{metric}-{direction.value}-{received_at}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "metric": self.metric,
            "direction": self.direction.value,
            "message": self.message,
            "severity": self.severity.value,
            "value": self.value,
            "unit": self.unit,
            "threshold": self.threshold,
            "received_at": self.received_at,
        }


# =============================================================================
# Toasts
# =============================================================================

class ToastState(str, Enum):
    CREATED = "created"
    VISIBLE = "visible"
    EXPIRED = "expired"
    DISMISSED = "dismissed"


@dataclass
class Toast:
    """Ephemeral notification card for a newly-appeared alert"""
    id: str
    alert: Alert
    created_at: float  # ms, toast manager clock
    state: ToastState = ToastState.CREATED

    @property
    def is_live(self) -> bool:
        return self.state in (ToastState.CREATED, ToastState.VISIBLE)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "alert": self.alert.to_dict(),
            "created_at": self.created_at,
            "state": self.state.value,
        }


# =============================================================================
# Email Settings
# =============================================================================

@dataclass
class EmailNotificationSettings:
    enabled: bool = False
    recipient_email: str = ""

    @property
    def active(self) -> bool:
        return self.enabled and bool(self.recipient_email.strip())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "enabled": self.enabled,
            "recipient_email": self.recipient_email,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EmailNotificationSettings":
        return cls(
            enabled=bool(data.get("enabled", False)),
            recipient_email=str(data.get("recipient_email") or ""),
        )

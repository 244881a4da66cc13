"""
Alert Evaluator
Pure functions: (series, rules) → alerts.

Only the most recent point of each series is checked, so historical
breaches never resurface. Above and below rules are evaluated
independently; a misconfigured pair can fire both.
"""

from typing import List, Optional, Sequence

from sensors import ALERT_METRICS, Metric, MetricDataset, MetricPoint

from .models import Alert, Direction, MetricThresholds, ThresholdConfig, ThresholdRule, format_value


def threshold_label(rule: ThresholdRule, direction: Direction, unit: Optional[str]) -> str:
    """Display string, e.g. "> 35°C" """
    symbol = ">" if direction is Direction.ABOVE else "<"
    return f"{symbol} {format_value(rule.value)}{unit or ''}"


def build_alert(
    metric: Metric,
    rule: ThresholdRule,
    direction: Direction,
    point: MetricPoint
) -> Alert:
    return Alert(
        id=Alert.make_id(metric.value, direction, point.received_at),
        metric=metric.value,
        direction=direction,
        message=rule.message,
        severity=rule.severity,
        value=point.value,
        received_at=point.received_at,
        unit=metric.unit,
        threshold=threshold_label(rule, direction, metric.unit),
    )


def evaluate_metric(
    metric: Metric,
    points: Sequence[MetricPoint],
    thresholds: Optional[MetricThresholds]
) -> List[Alert]:
    """
    Check the latest point of one series against its rule pair.

    Returns 0, 1 or 2 alerts. Empty series or no rules → [].
    """
    if not thresholds or not points:
        return []

    latest = points[-1]
    alerts = []
    for direction in (Direction.ABOVE, Direction.BELOW):
        rule = thresholds.rule(direction)
        if rule and rule.breached(latest.value, direction):
            alerts.append(build_alert(metric, rule, direction, latest))
    return alerts


def compute_alerts(dataset: MetricDataset, config: ThresholdConfig) -> List[Alert]:
    """Evaluate every alertable metric; ordering follows ALERT_METRICS"""
    alerts: List[Alert] = []
    for metric in ALERT_METRICS:
        alerts.extend(evaluate_metric(metric, dataset.get(metric, []), config.get(metric)))
    return alerts

"""
Tests for threshold evaluation
"""

import pytest

from alerts import (
    AlertSeverity,
    Direction,
    MetricThresholds,
    ThresholdConfig,
    ThresholdRule,
    compute_alerts,
    default_thresholds,
    evaluate_metric,
)
from alerts.evaluator import threshold_label
from sensors import Metric, MetricPoint, extract_series

from conftest import reading


def point(value, received_at="T1"):
    return MetricPoint("12:00", value, received_at)


def test_only_latest_point_is_checked():
    rules = MetricThresholds(above=ThresholdRule(35, "hot", AlertSeverity.CRITICAL))
    assert evaluate_metric(Metric.TEMPERATURE, [point(40, "T0"), point(20, "T1")], rules) == []

    alerts = evaluate_metric(Metric.TEMPERATURE, [point(20, "T0"), point(40, "T1")], rules)
    assert [a.received_at for a in alerts] == ["T1"]


@pytest.mark.parametrize("value, direction, fires", [
    (35, Direction.ABOVE, True),
    (34.999, Direction.ABOVE, False),
    (5, Direction.BELOW, True),
    (5.001, Direction.BELOW, False),
])
def test_boundaries_are_inclusive(value, direction, fires):
    rule = ThresholdRule(35 if direction is Direction.ABOVE else 5)
    assert rule.breached(value, direction) is fires


def test_disabled_rule_never_fires():
    rule = ThresholdRule(10, enabled=False)
    assert not rule.breached(100, Direction.ABOVE)


def test_both_directions_can_fire():
    rules = MetricThresholds(above=ThresholdRule(10, "high"), below=ThresholdRule(20, "low"))
    alerts = evaluate_metric(Metric.SOIL_PH, [point(15)], rules)
    assert [a.direction for a in alerts] == [Direction.ABOVE, Direction.BELOW]


def test_empty_series_or_no_rules():
    rules = MetricThresholds(below=ThresholdRule(5))
    assert evaluate_metric(Metric.SOIL_PH, [], rules) == []
    assert evaluate_metric(Metric.SOIL_PH, [point(1)], None) == []


def test_alert_fields():
    rules = MetricThresholds(above=ThresholdRule(35, "Temperature too high", AlertSeverity.CRITICAL))
    alert = evaluate_metric(Metric.TEMPERATURE, [point(36, "2024-06-01T12:00:00+00:00")], rules)[0]

    assert alert.id == "Temperature-above-2024-06-01T12:00:00+00:00"
    assert alert.metric == "Temperature"
    assert alert.message == "Temperature too high"
    assert alert.severity is AlertSeverity.CRITICAL
    assert alert.value == 36
    assert alert.unit == "°C"
    assert alert.threshold == "> 35°C"


def test_threshold_label_without_unit():
    assert threshold_label(ThresholdRule(5.5), Direction.BELOW, None) == "< 5.5"


def test_water_flow_never_alerts():
    config = ThresholdConfig(metrics={Metric.WATER_FLOW: MetricThresholds(above=ThresholdRule(0))})
    data = extract_series([reading("waterflow", {"Water_flow_value": 99})])
    assert compute_alerts(data, config) == []


def test_end_to_end_defaults():
    data = extract_series([
        reading("temp-humid", {"temperature": 36, "humidity": 19.9999}, "T1"),
    ])
    alerts = compute_alerts(data, default_thresholds())

    assert [a.id for a in alerts] == ["Temperature-above-T1", "Humidity-below-T1"]
    assert alerts[0].severity is AlertSeverity.CRITICAL
    assert alerts[1].severity is AlertSeverity.WARNING
    # no soil readings, so no Soil pH alert despite the below-5 rule
    assert not any(a.metric == "Soil pH" for a in alerts)


def test_unparsable_soil_ph_alerts_as_zero():
    data = extract_series([reading("soil", {"PH1_SOIL": "err", "TEMP_SOIL": 20}, "T2")])
    alerts = compute_alerts(data, default_thresholds())
    assert [a.id for a in alerts] == ["Soil pH-below-T2"]
    assert alerts[0].value == 0


def test_compute_is_deterministic():
    data = extract_series([reading("analog", {"Water_deep_cm": 2}, "T3")])
    config = default_thresholds()
    assert compute_alerts(data, config) == compute_alerts(data, config)


@pytest.mark.parametrize("rule, direction, expected", [
    (ThresholdRule(1234567), Direction.ABOVE, "> 1234567cm"),
    (ThresholdRule(12.3456789), Direction.BELOW, "< 12.3456789cm"),
    (ThresholdRule(35.0), Direction.ABOVE, "> 35cm"),
])
def test_threshold_label_keeps_full_precision(rule, direction, expected):
    assert threshold_label(rule, direction, "cm") == expected

"""
Tests for the persisted stores and change notifications
"""

import threading

import pytest

from alerts import AlertSeverity, EmailNotificationSettings, Topic, default_thresholds
from sensors import Metric
from storage import ReadStateStore, ThresholdConfigStore
from storage.stores import READ_ALERTS_KEY, THRESHOLDS_KEY

from conftest import make_alert


# =============================================================================
# Threshold Config
# =============================================================================

def test_missing_config_loads_defaults(config_store):
    assert config_store.load() == default_thresholds()


def test_partial_update_deep_merges(config_store):
    config = config_store.update({"Temperature": {"above": {"value": 32}}})
    rule = config.get(Metric.TEMPERATURE).above
    assert rule.value == 32
    assert rule.message == "Temperature too high"
    assert rule.severity is AlertSeverity.CRITICAL
    # untouched rules keep their defaults
    assert config.get(Metric.TEMPERATURE).below.value == 5
    assert config.get(Metric.HUMIDITY) == default_thresholds().get(Metric.HUMIDITY)


def test_update_persists_across_instances(config_store, storage, bus):
    config_store.update({"Soil pH": {"below": {"enabled": False}}})
    reloaded = ThresholdConfigStore(storage, bus).load()
    assert reloaded.get(Metric.SOIL_PH).below.enabled is False


def test_update_can_add_missing_direction(config_store):
    config = config_store.update({"Water depth": {"above": {"value": 100, "message": "Overflow"}}})
    assert config.get(Metric.WATER_DEPTH).above.message == "Overflow"


@pytest.mark.parametrize("raw", ["{not json", "[1, 2]", '{"Temperature": {"above": {"value": "hot"}}}'])
def test_corrupt_config_falls_back_to_defaults(config_store, storage, raw):
    storage.set(THRESHOLDS_KEY, raw)
    assert config_store.load() == default_thresholds()


def test_invalid_update_raises(config_store):
    with pytest.raises(ValueError):
        config_store.update({"Temperature": {"above": {"severity": "catastrophic"}}})


def test_reset_restores_defaults(config_store, storage):
    config_store.update({"Temperature": {"above": {"value": 1}}})
    assert config_store.reset() == default_thresholds()
    assert storage.get(THRESHOLDS_KEY) is None


def test_save_publishes_change(config_store, bus):
    received = []
    bus.subscribe(Topic.RULE_CONFIG_CHANGED, received.append)
    config = config_store.update({"Temperature": {"above": {"value": 30}}})
    assert received == [config]


def test_concurrent_updates_keep_every_metric(config_store):
    overrides = [
        {"Temperature": {"above": {"value": 31}}},
        {"Humidity": {"below": {"value": 25}}},
        {"Soil moisture": {"below": {"value": 12}}},
        {"Soil pH": {"above": {"value": 8}}},
        {"Water depth": {"below": {"value": 7}}},
    ]
    threads = [threading.Thread(target=config_store.update, args=(o,)) for o in overrides * 4]
    for t in threads:
        t.start()
    for t in threads:
        t.join(5)

    config = config_store.load()
    assert config.get(Metric.TEMPERATURE).above.value == 31
    assert config.get(Metric.HUMIDITY).below.value == 25
    assert config.get(Metric.SOIL_MOISTURE).below.value == 12
    assert config.get(Metric.SOIL_PH).above.value == 8
    assert config.get(Metric.WATER_DEPTH).below.value == 7


# =============================================================================
# Read State
# =============================================================================

def test_mark_all_read_clears_unread(read_store):
    alerts = [make_alert("Temperature"), make_alert("Humidity")]
    assert read_store.unread_count(alerts) == 2
    read_store.mark_all_read(alerts)
    assert read_store.unread_count(alerts) == 0


def test_new_alert_unread_after_mark_all(read_store):
    read_store.mark_all_read([make_alert(received_at="T1")])
    newer = make_alert(received_at="T2")
    assert read_store.is_unread(newer)
    assert read_store.unread([make_alert(received_at="T1"), newer]) == [newer]


def test_read_ids_accumulate_and_persist(read_store, storage, bus):
    read_store.mark_read(["a"])
    read_store.mark_read(["b", ""])
    assert ReadStateStore(storage, bus).load() == {"a", "b"}


def test_read_state_corrupt_document(read_store, storage):
    storage.set(READ_ALERTS_KEY, '{"a": 1}')
    assert read_store.load() == set()


def test_read_state_reset_and_notify(read_store, bus):
    events = []
    read_store.subscribe(events.append)
    read_store.mark_read(["a"])
    read_store.reset()
    assert read_store.load() == set()
    assert events == [{"a"}, set()]


# =============================================================================
# Email Settings
# =============================================================================

def test_email_settings_default_disabled(email_store):
    settings = email_store.load()
    assert settings == EmailNotificationSettings()
    assert not settings.active


def test_email_settings_round_trip(email_store, bus):
    events = []
    bus.subscribe(Topic.EMAIL_SETTINGS_CHANGED, events.append)
    email_store.save(EmailNotificationSettings(True, "grower@example.com"))
    loaded = email_store.load()
    assert loaded.active
    assert loaded.recipient_email == "grower@example.com"
    assert len(events) == 1


def test_blank_recipient_is_inactive():
    assert not EmailNotificationSettings(True, "   ").active


# =============================================================================
# Event Bus
# =============================================================================

def test_unsubscribe_and_failing_subscriber(bus):
    calls = []

    def boom(_):
        raise RuntimeError("subscriber failure")

    bus.subscribe(Topic.READ_STATE_CHANGED, boom)
    unsubscribe = bus.subscribe(Topic.READ_STATE_CHANGED, calls.append)
    assert bus.publish(Topic.READ_STATE_CHANGED, 1) == 2
    assert calls == [1]

    unsubscribe()
    bus.publish(Topic.READ_STATE_CHANGED, 2)
    assert calls == [1]
    assert bus.subscriber_count(Topic.READ_STATE_CHANGED) == 1
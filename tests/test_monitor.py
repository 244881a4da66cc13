"""
Tests for the polling alert pipeline
"""

import threading

import pytest

from alerts import EmailNotificationSettings
from services import AlertMonitor, EmailDispatcher

from conftest import FakeSource, reading


def hot(ts):
    return reading("temp-humid", {"temperature": 36, "humidity": 50}, ts)


def mild(ts):
    return reading("temp-humid", {"temperature": 20, "humidity": 50}, ts)


class RecordingSender:
    def __init__(self):
        self.messages = []

    def __call__(self, message):
        self.messages.append(message)
        return True


@pytest.fixture
def monitor(source, config_store, read_store, toasts):
    return AlertMonitor(source, config_store, read_store, toasts, poll_interval=60)


def test_first_cycle_announces_nothing(monitor, source, toasts):
    source.readings = [hot("T1")]
    assert monitor.run_cycle()
    assert [a.id for a in monitor.alerts] == ["Temperature-above-T1"]
    assert toasts.active() == []
    assert not monitor.loading


def test_new_breach_creates_one_toast(monitor, source, toasts):
    source.readings = [mild("T0")]
    monitor.run_cycle()

    source.readings = [mild("T0"), hot("T1")]
    monitor.run_cycle()
    monitor.run_cycle()

    live = toasts.active()
    assert len(live) == 1
    assert live[0].alert.id == "Temperature-above-T1"


def test_reappearing_alert_announced_again(monitor, source, toasts, clock):
    source.readings = [mild("T0")]
    monitor.run_cycle()
    source.readings = [hot("T1")]
    monitor.run_cycle()
    source.readings = [mild("T2")]
    monitor.run_cycle()
    clock.advance(10)
    source.readings = [hot("T1")]
    monitor.run_cycle()
    assert [t.alert.id for t in toasts.active()] == ["Temperature-above-T1"] * 2


def test_fetch_error_clears_alerts_and_keeps_tracker(monitor, source, toasts):
    source.readings = [hot("T1")]
    monitor.run_cycle()

    source.error = "connection refused"
    assert monitor.run_cycle() is False
    assert monitor.alerts == []
    assert monitor.error == "connection refused"

    # recovery with the same breach is not re-announced
    source.error = None
    monitor.run_cycle()
    assert monitor.error is None
    assert [a.id for a in monitor.alerts] == ["Temperature-above-T1"]
    assert toasts.active() == []


def test_rule_change_applies_next_cycle(monitor, source, config_store):
    source.readings = [mild("T1")]
    monitor.run_cycle()
    assert monitor.alerts == []

    config_store.update({"Temperature": {"above": {"value": 18}}})
    monitor.run_cycle()
    assert [a.id for a in monitor.alerts] == ["Temperature-above-T1"]


def test_unread_count_and_mark_all_read(monitor, source):
    source.readings = [hot("T1")]
    monitor.run_cycle()
    assert monitor.unread_count() == 1

    assert monitor.mark_all_read() == 1
    assert monitor.unread_count() == 0
    status = monitor.status()
    assert status["count"] == 1
    assert status["alerts"][0]["unread"] is False

    source.readings = [hot("T2")]
    monitor.run_cycle()
    assert monitor.unread_count() == 1


def test_overlapping_cycle_is_skipped(monitor, source):
    entered = threading.Event()
    release = threading.Event()

    class SlowSource(FakeSource):
        def fetch_latest(self, limit=150):
            entered.set()
            release.wait(5)
            return []

    monitor.source = SlowSource()
    worker = threading.Thread(target=monitor.run_cycle)
    worker.start()
    assert entered.wait(5)

    assert monitor.run_cycle() is False
    assert monitor.stats()["overlaps_skipped"] == 1

    release.set()
    worker.join(5)


def test_cancelled_cycle_does_not_publish(monitor, source, toasts):
    source.readings = [mild("T0")]
    monitor.run_cycle()
    source.readings = [hot("T1")]
    assert monitor.run_cycle(cancelled=lambda: True) is False
    assert monitor.alerts == []
    assert toasts.active() == []


def test_email_dispatched_for_new_alerts(source, config_store, read_store, toasts, email_store):
    email_store.save(EmailNotificationSettings(True, "grower@example.com"))
    sender = RecordingSender()
    email = EmailDispatcher(email_store, sender)
    monitor = AlertMonitor(source, config_store, read_store, toasts, email=email)

    source.readings = [mild("T0")]
    monitor.run_cycle()
    source.readings = [hot("T1")]
    monitor.run_cycle()
    email.shutdown(wait=True)

    assert [m["subject"] for m in sender.messages] == ["[SEMP Alert] Temperature: Temperature too high"]


def test_polling_runs_and_stops(monitor, source):
    cycles = []
    done = threading.Event()

    class CountingSource(FakeSource):
        def fetch_latest(self, limit=150):
            cycles.append(limit)
            done.set()
            return []

    monitor.source = CountingSource()
    handle = monitor.start()
    assert done.wait(5)
    assert monitor.is_running
    assert monitor.start() is handle

    monitor.stop(timeout=5)
    assert not monitor.is_running
    count = len(cycles)
    handle.wake()
    assert len(cycles) == count


def test_config_change_wakes_loop(monitor, config_store):
    first = threading.Event()
    woke = threading.Event()
    calls = []

    class CountingSource(FakeSource):
        def fetch_latest(self, limit=150):
            calls.append(limit)
            first.set()
            if len(calls) >= 2:
                woke.set()
            return []

    monitor.source = CountingSource()
    monitor.start()
    try:
        assert first.wait(5)
        config_store.update({"Temperature": {"above": {"value": 30}}})
        assert woke.wait(5)
    finally:
        monitor.stop(timeout=5)


def test_refresh_inline_when_not_polling(monitor, source):
    source.readings = [hot("T1")]
    assert monitor.refresh()
    assert len(monitor.alerts) == 1


def test_first_cycle_sends_no_email(source, config_store, read_store, toasts, email_store):
    email_store.save(EmailNotificationSettings(True, "grower@example.com"))
    sender = RecordingSender()
    email = EmailDispatcher(email_store, sender)
    monitor = AlertMonitor(source, config_store, read_store, toasts, email=email)

    source.readings = [hot("T1")]
    assert monitor.run_cycle()
    email.shutdown(wait=True)

    assert sender.messages == []
    assert toasts.active() == []
    assert [a.id for a in monitor.alerts] == ["Temperature-above-T1"]


def test_concurrent_overlaps_all_counted(monitor):
    entered = threading.Event()
    release = threading.Event()

    class SlowSource(FakeSource):
        def fetch_latest(self, limit=150):
            entered.set()
            release.wait(5)
            return []

    monitor.source = SlowSource()
    worker = threading.Thread(target=monitor.run_cycle)
    worker.start()
    assert entered.wait(5)

    callers = [threading.Thread(target=monitor.run_cycle) for _ in range(16)]
    for t in callers:
        t.start()
    for t in callers:
        t.join(5)

    assert monitor.stats()["overlaps_skipped"] == 16
    release.set()
    worker.join(5)
    assert monitor.stats()["cycles"] == 1

"""
Tests for the toast lifecycle
"""

from alerts import ToastState

from conftest import make_alert


def test_push_then_render_promotes_to_visible(toasts):
    toast = toasts.push(make_alert())
    assert toast.state is ToastState.CREATED

    first = toasts.render()
    assert [t.state for t in first] == [ToastState.CREATED]
    second = toasts.render()
    assert [t.state for t in second] == [ToastState.VISIBLE]


def test_toast_expires_after_duration(toasts, clock):
    toast = toasts.push(make_alert())
    clock.advance(4999)
    assert len(toasts.render()) == 1
    clock.advance(1)
    assert toasts.render() == []
    assert toast.state is ToastState.EXPIRED


def test_dismiss(toasts):
    toast = toasts.push(make_alert())
    assert toasts.dismiss(toast.id)
    assert toast.state is ToastState.DISMISSED
    assert len(toasts) == 0
    assert not toasts.dismiss(toast.id)


def test_oldest_evicted_past_cap(toasts, clock):
    pushed = []
    for i in range(7):
        pushed.append(toasts.push(make_alert(received_at=f"T{i}")))
        clock.advance(1)

    live = toasts.active()
    assert [t.id for t in live] == [t.id for t in pushed[2:]]
    assert pushed[0].state is ToastState.EXPIRED


def test_toast_id_includes_alert_and_time(toasts, clock):
    alert = make_alert()
    toast = toasts.push(alert)
    assert toast.id == f"toast-{alert.id}-{int(clock.now)}"
    assert toast.to_dict()["alert"]["id"] == alert.id


def test_clear(toasts):
    toasts.push(make_alert())
    toasts.clear()
    assert toasts.render() == []

import streamlit as st
import pandas as pd
from datetime import datetime
import time

from utils.api_client import APIClient

st.set_page_config(
    page_title="Garden Monitoring",
    page_icon="🌱",
    layout="wide",
    initial_sidebar_state="expanded"
)


def init_session_state():
    defaults = {
        'backend_url': 'http://localhost:8000',
        'connected': False,
        'current_page': 'Overview',
        'previous_page': None,
        'shown_toasts': set(),
        'auto_refresh': False,
        'last_refresh': None,
    }
    for key, value in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = value

init_session_state()


SIDEBAR_PAGES = ["Overview", "Metric Detail", "Alerts", "Settings"]

SEVERITY_ICONS = {
    "critical": "⚠️",
    "warning": "⚡",
    "info": "ℹ️",
}

SEVERITY_COLORS = {
    "critical": "#ef4444",
    "warning": "#f59e0b",
    "info": "#3b82f6",
}

TIME_RANGES = {
    "24 hours": "24h",
    "1 week": "1w",
    "1 month": "1m",
    "3 months": "3m",
    "1 year": "1y",
    "Custom": "custom",
}

client = APIClient(st.session_state.backend_url)


def check_backend_connection():
    st.session_state.connected = client.is_connected()
    return st.session_state.connected


def format_time(iso: str, fmt: str = "%H:%M") -> str:
    try:
        return pd.to_datetime(iso).strftime(fmt)
    except (ValueError, TypeError):
        return iso or ""


# =============================================================================
# Notifications
# =============================================================================

def show_toasts():
    """Surface toasts queued by the backend; each is shown once per session"""
    for toast in client.get_toasts():
        if toast["id"] in st.session_state.shown_toasts:
            continue
        st.session_state.shown_toasts.add(toast["id"])
        alert = toast["alert"]
        st.toast(
            f"**{alert['metric']}** · {alert['message']}  \n"
            f"Current: {alert['value']}{alert.get('unit') or ''}",
            icon=SEVERITY_ICONS.get(alert["severity"], "🔔")
        )


def render_notification_bell(state: dict):
    unread = state.get("unread_count", 0)
    badge = "99+" if unread > 99 else str(unread)
    label = f"🔔 Alerts ({badge} unread)" if unread else "🔔 Alerts"

    with st.popover(label, use_container_width=True):
        alerts = state.get("alerts", [])
        if not alerts:
            st.caption("No alerts")
            return
        if st.button("Mark all read", key="bell_mark_all"):
            client.mark_all_read()
            st.rerun()
        for a in alerts:
            icon = SEVERITY_ICONS.get(a["severity"], "•")
            weight = "**" if a.get("unread") else ""
            st.markdown(
                f"{icon} {weight}{a['metric']}:{weight} {a['message']}  \n"
                f"<span style='font-size: 11px; color: #64748b;'>{a['value']}{a.get('unit') or ''} • "
                f"{format_time(a['received_at'], '%Y-%m-%d %H:%M')}</span>",
                unsafe_allow_html=True
            )


# =============================================================================
# Sidebar
# =============================================================================

def render_sidebar() -> dict:
    with st.sidebar:
        st.markdown("## 🌱 Garden Monitoring")

        st.markdown("### CONNECTION")
        backend_url = st.text_input("Backend URL", value=st.session_state.backend_url, label_visibility="collapsed")
        if st.button("Connect", use_container_width=True):
            st.session_state.backend_url = backend_url
            st.rerun()

        if not st.session_state.connected:
            st.error("Backend offline")
            return {}

        state = client.get_alerts()
        render_notification_bell(state)

        st.markdown("### PAGES")
        st.session_state.current_page = st.radio(
            "Page", SIDEBAR_PAGES,
            index=SIDEBAR_PAGES.index(st.session_state.current_page),
            label_visibility="collapsed"
        )

        st.session_state.auto_refresh = st.toggle("Auto refresh (60s)", value=st.session_state.auto_refresh)
        if st.session_state.last_refresh:
            st.caption(f"Last refresh: {st.session_state.last_refresh}")
        return state


# =============================================================================
# Pages
# =============================================================================

def render_overview_page():
    st.header("Overview")
    overview = client.get_overview()
    if not overview:
        st.warning("No readings available.")
        return

    cols = st.columns(3)
    for i, (metric, df) in enumerate(overview.items()):
        with cols[i % 3]:
            if df.empty:
                st.metric(metric, "N/A")
                continue
            latest = df["value"].iloc[-1]
            delta = latest - df["value"].iloc[-2] if len(df) > 1 else None
            st.metric(metric, f"{latest:g}", None if delta is None else f"{delta:+.1f}")

    analysis = client.get_analysis()
    if "error" not in analysis and analysis.get("metrics"):
        st.subheader(analysis.get("period_label", "Last 24 hours"))
        for m in analysis["metrics"]:
            st.markdown(f"- {m['summary']}")


def render_metric_page():
    st.header("Metric Detail")
    metrics = client.get_metrics()
    if not metrics:
        st.warning("Connect to backend to view metrics.")
        return

    titles = {m["title"]: m for m in metrics}
    col1, col2 = st.columns([2, 3])
    with col1:
        title = st.selectbox("Metric", list(titles))
    with col2:
        range_label = st.radio("Range", list(TIME_RANGES), horizontal=True)

    start = end = None
    if TIME_RANGES[range_label] == "custom":
        c1, c2 = st.columns(2)
        with c1:
            start_dt = st.date_input("From")
        with c2:
            end_dt = st.date_input("To")
        start = datetime.combine(start_dt, datetime.min.time()).isoformat()
        end = datetime.combine(end_dt, datetime.max.time()).isoformat()

    meta = titles[title]
    df = client.get_metric_series(meta["key"], TIME_RANGES[range_label], start, end)
    if df.empty:
        st.info("No data for this range.")
        return
    st.dataframe(
        df[["received_at", "value"]].rename(columns={"value": f"{title} ({meta['unit'] or '-'})"}),
        use_container_width=True,
        hide_index=True
    )


def render_alerts_page(state: dict):
    st.header("Alerts")
    if state.get("error"):
        st.error(state["error"])

    alerts = state.get("alerts", [])
    col1, col2 = st.columns([3, 1])
    with col1:
        st.caption(f"{len(alerts)} active • {state.get('unread_count', 0)} unread")
    with col2:
        if alerts and st.button("Mark all read", use_container_width=True):
            client.mark_all_read()
            st.rerun()

    if not alerts:
        st.info("No active alerts. All readings are within thresholds.")
        return

    for a in alerts:
        color = SEVERITY_COLORS.get(a["severity"], "#64748b")
        unread_dot = "●" if a.get("unread") else ""
        st.markdown(f"""
        <div style="border-left: 4px solid {color}; background: rgba(100, 116, 139, 0.08); border-radius: 6px; padding: 10px 14px; margin-bottom: 8px;">
            <div style="display: flex; justify-content: space-between;">
                <span style="font-weight: 600;">{SEVERITY_ICONS.get(a['severity'], '')} {a['metric']} <span style="color: {color};">{unread_dot}</span></span>
                <span style="font-size: 11px; color: #64748b;">{format_time(a['received_at'], '%Y-%m-%d %H:%M')}</span>
            </div>
            <div style="font-size: 13px;">{a['message']}</div>
            <div style="font-size: 12px; color: #94a3b8;">Current: {a['value']}{a.get('unit') or ''} • Threshold: {a.get('threshold') or 'N/A'}</div>
        </div>
        """, unsafe_allow_html=True)


def render_settings_page():
    st.header("Settings")

    st.subheader("Alert thresholds")
    thresholds = client.get_thresholds()
    overrides = {}
    for metric, rules in thresholds.items():
        with st.expander(metric):
            overrides[metric] = {}
            for direction in ("above", "below"):
                rule = rules.get(direction)
                if not rule:
                    continue
                label = "Alert if ≥" if direction == "above" else "Alert if ≤"
                c1, c2, c3, c4 = st.columns([1, 3, 1, 1])
                with c1:
                    value = st.number_input(label, value=float(rule["value"]), key=f"{metric}_{direction}_value")
                with c2:
                    message = st.text_input("Message", value=rule["message"], key=f"{metric}_{direction}_msg")
                with c3:
                    severity = st.selectbox(
                        "Severity", ["critical", "warning", "info"],
                        index=["critical", "warning", "info"].index(rule["severity"]),
                        key=f"{metric}_{direction}_sev"
                    )
                with c4:
                    enabled = st.checkbox("Enabled", value=rule["enabled"], key=f"{metric}_{direction}_on")
                overrides[metric][direction] = {
                    "value": value, "message": message, "severity": severity, "enabled": enabled
                }

    col1, col2 = st.columns(2)
    with col1:
        if st.button("Save thresholds", type="primary", use_container_width=True):
            result = client.update_thresholds(overrides)
            if "error" in result:
                st.error(result["error"])
            else:
                st.success("Thresholds saved")
    with col2:
        if st.button("Restore defaults", use_container_width=True):
            client.reset_thresholds()
            st.rerun()

    st.subheader("Email notifications")
    email = client.get_email_settings()
    enabled = st.checkbox("Email me when a new alert appears", value=email.get("enabled", False))
    recipient = st.text_input("Recipient email", value=email.get("recipient_email", ""))
    if st.button("Save email settings"):
        result = client.save_email_settings(enabled, recipient)
        if "error" in result:
            st.error(result["error"])
        else:
            st.success("Email settings saved")


def main():
    check_backend_connection()

    state = render_sidebar()
    if not st.session_state.connected:
        st.warning("Connect to backend to view the dashboard.")
        return

    # navigation re-checks alerts
    page = st.session_state.current_page
    if page != st.session_state.previous_page:
        st.session_state.previous_page = page
        client.refresh_alerts()

    show_toasts()

    if page == "Overview":
        render_overview_page()
    elif page == "Metric Detail":
        render_metric_page()
    elif page == "Alerts":
        render_alerts_page(state)
    else:
        render_settings_page()

    st.session_state.last_refresh = datetime.now().strftime("%H:%M:%S")

    if st.session_state.auto_refresh:
        time.sleep(60)
        st.rerun()


if __name__ == "__main__":
    main()

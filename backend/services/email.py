"""
Email Dispatcher
Best-effort outbound email for newly-appeared alerts.

Fire-and-forget: requests run on a worker pool, failures are logged and
swallowed, nothing is retried and nothing blocks toast display.
"""

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Dict, Optional

import requests

from alerts import Alert, format_value
from sensors.models import parse_timestamp
from storage import EmailSettingsStore

logger = logging.getLogger(__name__)

SUBJECT_PREFIX = "[SEMP Alert]"

# {"to", "subject", "body"} → success
EmailSender = Callable[[Dict[str, str]], bool]


class FunctionEmailSender:
    """Posts to a hosted function endpoint (e.g. /functions/v1/send-alert-email)"""

    def __init__(
        self,
        endpoint: str,
        api_key: str,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None
    ):
        self.endpoint = endpoint
        self.api_key = api_key
        self.timeout = timeout
        self.session = session or requests.Session()

    def __call__(self, message: Dict[str, str]) -> bool:
        resp = self.session.post(
            self.endpoint,
            json=message,
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {self.api_key}",
            },
            timeout=self.timeout,
        )
        return resp.ok


def format_time(received_at: str) -> str:
    ts = parse_timestamp(received_at)
    if ts is None:
        return received_at
    if ts.tzinfo is not None:
        ts = ts.astimezone()
    return ts.strftime("%Y-%m-%d %H:%M:%S")


def build_message(alert: Alert, recipient: str) -> Dict[str, str]:
    """Subject and plain-text body for one alert"""
    subject = f"{SUBJECT_PREFIX} {alert.metric}: {alert.message}"
    body = (
        f"{alert.message}\n\n"
        f"Metric: {alert.metric}\n"
        f"Current value: {format_value(alert.value)}{alert.unit or ''}\n"
        f"Threshold: {alert.threshold or 'N/A'}\n"
        f"Time: {format_time(alert.received_at)}"
    )
    return {"to": recipient, "subject": subject, "body": body}


class EmailDispatcher:
    """
    Usage:
        dispatcher = EmailDispatcher(settings_store, sender)
        dispatcher.dispatch(alert)   # returns immediately
        dispatcher.shutdown()
    """

    def __init__(
        self,
        settings_store: EmailSettingsStore,
        sender: Optional[EmailSender] = None,
        max_workers: int = 2
    ):
        self.settings_store = settings_store
        self.sender = sender
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="alert-email")
        self._stats = {"queued": 0, "sent": 0, "failed": 0, "skipped": 0}

    def dispatch(self, alert: Alert) -> Optional[Future]:
        """
        Queue an email for the alert if notifications are enabled.

        Returns the pending Future, or None when gated off.
        """
        settings = self.settings_store.load()
        if not settings.active or self.sender is None:
            self._stats["skipped"] += 1
            return None

        message = build_message(alert, settings.recipient_email.strip())
        self._stats["queued"] += 1
        try:
            return self._executor.submit(self._send, message)
        except RuntimeError:
            # executor already shut down
            self._stats["failed"] += 1
            return None

    def _send(self, message: Dict[str, str]) -> bool:
        try:
            ok = bool(self.sender(message))
        except requests.exceptions.RequestException as e:
            logger.warning(f"Alert email to {message['to']} failed: {e}")
            ok = False
        except Exception as e:
            logger.warning(f"Alert email sender error: {e}")
            ok = False
        self._stats["sent" if ok else "failed"] += 1
        if ok:
            logger.info(f"Alert email sent to {message['to']}: {message['subject']}")
        return ok

    def stats(self) -> Dict[str, int]:
        return dict(self._stats)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

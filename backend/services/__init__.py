"""
Services
Long-running pieces: the alert polling loop and outbound email.
"""

from .email import EmailDispatcher, FunctionEmailSender, build_message
from .alert_monitor import AlertMonitor, PollHandle

__all__ = [
    "EmailDispatcher",
    "FunctionEmailSender",
    "build_message",
    "AlertMonitor",
    "PollHandle",
]

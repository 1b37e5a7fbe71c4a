"""
scamshield/notifier.py
Notification sink. Turns a CombinedAnalysis into the (severity, title,
message, urgent) tuple the desktop notification integration shows.
Only suspicious, non-low analyses produce a notification.
"""

import logging
from typing import Callable, Optional, Protocol

from scamshield.models.record import CombinedAnalysis, Notification, Severity

logger = logging.getLogger(__name__)

TITLES = {
    Severity.LOW:      'Potential Scam Detected',
    Severity.MEDIUM:   'Suspicious Message Detected',
    Severity.HIGH:     'Warning: Likely Scam',
    Severity.CRITICAL: 'DANGER: Scam Detected',
}

MESSAGES = {
    Severity.LOW:      'This message shows some suspicious signs.',
    Severity.MEDIUM:   'This message contains multiple scam indicators.',
    Severity.HIGH:     'This message is very likely a scam attempt.',
    Severity.CRITICAL: 'This message is almost certainly a scam. Do not respond!',
}


class NotificationSink(Protocol):
    def send(self, notification: Notification) -> None: ...


def build_notification(analysis: CombinedAnalysis) -> Optional[Notification]:
    severity = analysis.overall_severity
    if not analysis.is_suspicious or severity is Severity.LOW:
        return None
    return Notification(
        severity = severity,
        title    = TITLES[severity],
        message  = MESSAGES[severity],
        urgent   = severity is Severity.CRITICAL,
    )


class LogNotifier:
    """Default sink — writes notifications to the log."""

    def send(self, notification: Notification) -> None:
        level = logging.WARNING if notification.urgent else logging.INFO
        logger.log(level, f"[{notification.severity.value.upper()}] {notification.title} — {notification.message}")


class CallbackNotifier:
    """Adapts any callable(notification) into a sink."""

    def __init__(self, callback: Callable[[Notification], None]):
        self.callback = callback

    def send(self, notification: Notification) -> None:
        self.callback(notification)

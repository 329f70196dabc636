"""Outbound notification sink.

Delivery itself is Django's mail backend; the clinic code only decides *what*
to send. Jobs call ``NotificationSink.send`` and treat a False return as
"not delivered, try again on the next sweep".
"""

from __future__ import annotations

import logging

from django.conf import settings
from django.core.mail import send_mail

logger = logging.getLogger(__name__)


class NotificationSink:
    """Sends a plain-text email. Subclass or replace in tests."""

    def __init__(self, from_email: str | None = None):
        self.from_email = from_email or getattr(settings, 'DEFAULT_FROM_EMAIL', None)

    def send(self, *, to: str, subject: str, body: str) -> bool:
        if not to:
            return False
        try:
            sent = send_mail(subject, body, self.from_email, [to], fail_silently=False)
        except Exception:
            logger.exception('notification send failed to=%s subject=%s', to, subject)
            return False
        return sent > 0


def get_notification_sink() -> NotificationSink:
    return NotificationSink()

"""Celery tasks for appointment reminders.

The beat entry ``send-appointment-reminders`` runs every
``APPOINTMENT_REMINDER_SWEEP_MINUTES``; the scheduler's reminder window is
sized from the same setting.
"""

import logging

from celery import shared_task
from django.conf import settings
from django.utils import timezone

from clinic_backend.appointments.services.scheduling import AppointmentScheduler
from clinic_backend.core.notifications import get_notification_sink

logger = logging.getLogger(__name__)


def render_reminder(appointment) -> tuple[str, str]:
    clinic = getattr(settings, 'CLINIC_NAME', 'Clinic')
    start = timezone.localtime(appointment.start_time)
    subject = f"{clinic}: appointment reminder"
    body = "\n".join([
        f"Dear {appointment.patient.name},",
        "",
        f"This is a reminder of your appointment with {appointment.doctor.display_name()}",
        f"on {start:%Y-%m-%d} at {start:%H:%M}.",
    ])
    return subject, body


def deliver_reminder(appointment, sink=None) -> bool:
    """Send one reminder email. Returns the sink's delivered flag."""
    sink = sink or get_notification_sink()
    subject, body = render_reminder(appointment)
    return sink.send(to=appointment.patient.email, subject=subject, body=body)


@shared_task
def send_appointment_reminders(now=None, using='default'):
    """Send reminders for every current candidate. Returns counters."""
    scheduler = AppointmentScheduler(using=using)
    sink = get_notification_sink()
    stats = {'candidates': 0, 'sent': 0, 'skipped': 0, 'failed': 0}

    for appointment in scheduler.reminder_candidates(now):
        stats['candidates'] += 1
        email = appointment.patient.email
        if not email:
            stats['skipped'] += 1
            logger.info('reminder skipped: patient has no email appointment_id=%s', appointment.pk)
            continue

        if not deliver_reminder(appointment, sink):
            stats['failed'] += 1
            logger.warning('reminder delivery failed appointment_id=%s', appointment.pk)
            continue

        if scheduler.mark_reminder_sent(appointment.pk):
            stats['sent'] += 1

    logger.info(
        'reminder sweep done candidates=%s sent=%s skipped=%s failed=%s',
        stats['candidates'], stats['sent'], stats['skipped'], stats['failed'],
    )
    return stats

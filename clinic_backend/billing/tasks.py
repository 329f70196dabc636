"""Celery tasks for billing notifications.

``send_invoice_notification`` is enqueued once the creating transaction
commits (see ``InvoiceListCreateView``).
"""

import logging

from celery import shared_task

from clinic_backend.billing.models import Invoice
from clinic_backend.billing.services.billing import BillingService
from clinic_backend.core.notifications import get_notification_sink

logger = logging.getLogger(__name__)


def render_invoice_body(payload) -> str:
    lines = [
        f"Dear {payload['patient_name']},",
        "",
        f"Invoice {payload['invoice_number']} issued on {payload['issue_date']}.",
        f"Total: {payload['total_amount_display']}",
        f"Paid: {payload['paid_amount_display']}",
        f"Balance due: {payload['balance_due_display']}",
    ]
    if payload['due_date']:
        lines.append(f"Due date: {payload['due_date']}")
    return "\n".join(lines)


@shared_task
def send_invoice_notification(invoice_id, using='default'):
    """Email the invoice summary to the patient. Returns True when sent."""
    invoice = Invoice.objects.using(using).select_related('patient').filter(pk=invoice_id).first()
    if invoice is None:
        logger.warning('invoice notification skipped: invoice_id=%s not found', invoice_id)
        return False

    payload = BillingService(using=using).reminder_notification_payload(invoice)
    if not payload['patient_email']:
        logger.info('invoice notification skipped: no email number=%s', payload['invoice_number'])
        return False

    sent = get_notification_sink().send(
        to=payload['patient_email'],
        subject=payload['subject'],
        body=render_invoice_body(payload),
    )
    logger.info('invoice notification number=%s sent=%s', payload['invoice_number'], sent)
    return sent

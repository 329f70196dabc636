"""Invoice number allocation: ``INV-YYYYMMDD-NNNN``.

Each calendar day owns one ``InvoiceSequence`` row. ``allocate`` locks that
row, increments it with an ``F()`` expression and returns the new value, all
inside the caller's transaction. The invoice insert that follows commits or
rolls back together with the increment, so numbers have neither duplicates
nor gaps.

A day's row is seeded from the highest number already present for that day
the first time it is touched, so invoices created before the counter existed
(or imported from elsewhere) are never reissued. The unique constraint on
``Invoice.invoice_number`` stays as the last line; ``BillingService`` retries
on a collision.
"""

from __future__ import annotations

import logging
from datetime import date

from django.db import transaction
from django.db.models import F

from clinic_backend.billing.models import Invoice, InvoiceSequence

logger = logging.getLogger(__name__)

PREFIX = 'INV'
SEQUENCE_WIDTH = 4


def bucket_for(day: date) -> str:
    return day.strftime('%Y%m%d')


def format_invoice_number(day: date, sequence: int) -> str:
    if sequence < 1:
        raise ValueError('Invoice sequence starts at 1.')
    return f"{PREFIX}-{bucket_for(day)}-{str(sequence).zfill(SEQUENCE_WIDTH)}"


def parse_sequence(invoice_number: str, day: date) -> int | None:
    """Return the NNNN part of ``invoice_number`` if it belongs to ``day``."""
    prefix = f"{PREFIX}-{bucket_for(day)}-"
    if not invoice_number.startswith(prefix):
        return None
    suffix = invoice_number[len(prefix):]
    if not suffix.isdigit():
        return None
    return int(suffix)


class InvoiceNumberAllocator:
    """Hands out invoice numbers from the per-day counter.

    ``allocate`` must run inside ``transaction.atomic()``; the row lock is
    held until the caller's transaction ends.
    """

    def __init__(self, using: str = 'default'):
        self.using = using

    def highest_existing(self, day: date) -> int:
        prefix = f"{PREFIX}-{bucket_for(day)}-"
        numbers = (
            Invoice.objects.using(self.using)
            .filter(invoice_number__startswith=prefix)
            .values_list('invoice_number', flat=True)
        )
        highest = 0
        for number in numbers:
            seq = parse_sequence(number, day)
            if seq is not None and seq > highest:
                highest = seq
        return highest

    def allocate(self, on_date: date) -> str:
        conn = transaction.get_connection(self.using)
        if not conn.in_atomic_block:
            raise RuntimeError('InvoiceNumberAllocator.allocate() requires an atomic block.')

        counters = InvoiceSequence.objects.using(self.using).select_for_update()
        counter, created = counters.get_or_create(
            day=on_date,
            defaults={'last_value': self.highest_existing(on_date)},
        )
        InvoiceSequence.objects.using(self.using).filter(pk=counter.pk).update(
            last_value=F('last_value') + 1,
        )
        counter.refresh_from_db(using=self.using, fields=['last_value'])

        number = format_invoice_number(on_date, counter.last_value)
        if created:
            logger.info('invoice sequence opened day=%s seeded_from=%s', bucket_for(on_date), counter.last_value - 1)
        logger.debug('invoice number allocated number=%s', number)
        return number

    def skip_past(self, on_date: date) -> None:
        """Move the day's counter past every number already taken.

        Used after a unique-constraint collision: someone wrote an invoice
        number without going through the counter.
        """
        highest = self.highest_existing(on_date)
        InvoiceSequence.objects.using(self.using).filter(
            day=on_date,
            last_value__lt=highest,
        ).update(last_value=highest)

"""Invoice models.

``Invoice.status`` is not a column. It is computed from ``paid_amount`` and
``total_amount`` (plus ``cancelled_at``) on every read, so a stored status can
never drift from the amounts.
"""

from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import Case, F, Q, Value, When

from clinic_backend.billing.services.ledger import (
    STATUS_CANCELLED,
    STATUS_PAID,
    STATUS_PARTIAL,
    STATUS_PENDING,
    derive_invoice_status,
)


class InvoiceQuerySet(models.QuerySet):
    def with_status(self):
        """Annotate ``derived_status`` with the same rule as ``Invoice.status``."""
        return self.annotate(
            derived_status=Case(
                When(cancelled_at__isnull=False, then=Value(STATUS_CANCELLED)),
                When(paid_amount=0, then=Value(STATUS_PENDING)),
                When(paid_amount__gte=F('total_amount'), then=Value(STATUS_PAID)),
                default=Value(STATUS_PARTIAL),
                output_field=models.CharField(),
            )
        )


class Invoice(models.Model):
    invoice_number = models.CharField(max_length=32, unique=True)
    patient = models.ForeignKey(
        'patients.Patient',
        on_delete=models.PROTECT,
        related_name='invoices',
    )
    total_amount = models.DecimalField(max_digits=10, decimal_places=2)
    paid_amount = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal('0.00'))
    issue_date = models.DateField(db_index=True)
    due_date = models.DateField(null=True, blank=True)
    notes = models.TextField(blank=True, default='')
    cancelled_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = InvoiceQuerySet.as_manager()

    class Meta:
        db_table = 'billing_invoice'
        ordering = ['-issue_date', '-id']
        verbose_name = 'Invoice'
        verbose_name_plural = 'Invoices'
        constraints = [
            models.CheckConstraint(
                condition=Q(paid_amount__gte=0),
                name='invoice_paid_non_negative',
            ),
            models.CheckConstraint(
                condition=Q(paid_amount__lte=F('total_amount')),
                name='invoice_paid_within_total',
            ),
        ]

    def __str__(self) -> str:
        return self.invoice_number

    @property
    def status(self) -> str:
        if self.cancelled_at is not None:
            return STATUS_CANCELLED
        return derive_invoice_status(self.paid_amount, self.total_amount)

    @property
    def is_cancelled(self) -> bool:
        return self.cancelled_at is not None


class InvoiceItem(models.Model):
    """Snapshot of one treatment at the moment the invoice was issued."""

    invoice = models.ForeignKey(
        Invoice,
        on_delete=models.CASCADE,
        related_name='items',
    )
    treatment = models.ForeignKey(
        'medical.Treatment',
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name='invoice_items',
    )
    doctor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='invoice_items',
    )
    treatment_type = models.CharField(max_length=200)
    cost = models.DecimalField(max_digits=10, decimal_places=2)

    class Meta:
        db_table = 'billing_invoiceitem'
        ordering = ['id']
        verbose_name = 'Invoice item'
        verbose_name_plural = 'Invoice items'

    def __str__(self) -> str:
        return f"{self.treatment_type} {self.cost}"


class InvoiceSequence(models.Model):
    """Per-day counter behind ``INV-YYYYMMDD-NNNN`` numbers."""

    day = models.DateField(unique=True)
    last_value = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = 'billing_invoicesequence'
        ordering = ['-day']

    def __str__(self) -> str:
        return f"{self.day:%Y%m%d}={self.last_value}"

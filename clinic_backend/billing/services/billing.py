"""Invoice lifecycle: create, record payment, cancel, delete, read.

Amounts are frozen at creation. ``create`` copies each treatment's type,
doctor and cost into ``InvoiceItem`` rows and sums them into
``total_amount``; later treatment edits never touch an issued invoice.

Status is never accepted as input. ``record_payment`` validates the new paid
amount against the total and the status follows from the amounts.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Any, Iterable

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone

from clinic_backend.billing.exceptions import InvalidInvoiceData, InvoiceNumberExhausted
from clinic_backend.billing.models import Invoice, InvoiceItem
from clinic_backend.billing.services import ledger
from clinic_backend.billing.services.numbering import InvoiceNumberAllocator
from clinic_backend.core.exceptions import InvalidData, NotFound
from clinic_backend.core.models import Role
from clinic_backend.core.scope import INVOICE, TREATMENT, AuthorizationScope, Identity
from clinic_backend.core.utils import log_patient_action
from clinic_backend.medical.models import Treatment
from clinic_backend.patients.models import Patient

logger = logging.getLogger(__name__)

_UNSET = object()


def _normalize_ids(values: Iterable[Any] | None, *, field: str) -> list[int]:
    """Validate a list of primary keys, dropping duplicates but keeping order."""
    if values is None or isinstance(values, (str, bytes)):
        raise InvalidInvoiceData(f'{field} must be a list of ids.', field=field)
    result: list[int] = []
    seen = set()
    for raw in values:
        try:
            pk = int(raw)
        except (TypeError, ValueError):
            raise InvalidInvoiceData(f'{field} contains an invalid id: {raw!r}.', field=field) from None
        if pk <= 0:
            raise InvalidInvoiceData(f'{field} contains an invalid id: {raw!r}.', field=field)
        if pk not in seen:
            seen.add(pk)
            result.append(pk)
    return result


class BillingService:
    """Invoice operations for one database alias and one scope policy."""

    def __init__(
        self,
        using: str = 'default',
        scope: AuthorizationScope | None = None,
        allocator: InvoiceNumberAllocator | None = None,
        max_attempts: int | None = None,
    ):
        self.using = using
        self.scope = scope or AuthorizationScope()
        self.allocator = allocator or InvoiceNumberAllocator(using=using)
        if max_attempts is None:
            max_attempts = getattr(settings, 'INVOICE_NUMBER_MAX_ATTEMPTS', 5)
        self.max_attempts = max(1, int(max_attempts))

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def base_queryset(self):
        return (
            Invoice.objects.using(self.using)
            .select_related('patient')
            .prefetch_related('items__doctor')
        )

    def list(self, identity: Identity, patient_id=None, status: str | None = None):
        qs = self.scope.filter(identity, INVOICE, self.base_queryset())
        if patient_id is not None:
            qs = qs.filter(patient_id=patient_id)
        if status:
            if status not in ledger.STATUSES:
                raise InvalidData(f'Unknown invoice status: {status}.', field='status')
            qs = qs.with_status().filter(derived_status=status)
        return qs.order_by('-issue_date', '-id')

    def get(self, identity: Identity, invoice_id) -> Invoice:
        return self.scope.get_object(identity, INVOICE, self.base_queryset(), invoice_id)

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create(
        self,
        identity: Identity,
        patient_id,
        treatment_ids,
        *,
        due_date: date | None = None,
        notes: str | None = None,
        issue_date: date | None = None,
    ) -> Invoice:
        self.scope.require_role(identity, Role.ADMIN, Role.RECEPTIONIST)

        ids = _normalize_ids(treatment_ids, field='treatment_ids')
        if not ids:
            raise InvalidInvoiceData('At least one treatment is required.', field='treatment_ids')

        patient = Patient.objects.using(self.using).filter(pk=patient_id).first()
        if patient is None:
            raise NotFound('Patient not found.')

        treatments = self._resolve_treatments(identity, patient, ids)
        total = sum((t.cost for t in treatments), Decimal('0.00'))

        if issue_date is None:
            issue_date = timezone.localdate()
        if due_date is not None and due_date < issue_date:
            raise InvalidInvoiceData('Due date cannot be before the issue date.', field='due_date')

        invoice = self._insert_with_number(
            patient=patient,
            treatments=treatments,
            total=total,
            issue_date=issue_date,
            due_date=due_date,
            notes=notes or '',
        )

        logger.info(
            'invoice created number=%s patient_id=%s total=%s items=%s by=%s',
            invoice.invoice_number, patient.pk, total, len(treatments), identity.id,
        )
        log_patient_action(
            identity,
            'invoice_created',
            patient_id=patient.pk,
            meta={'invoice_id': invoice.pk, 'invoice_number': invoice.invoice_number},
            using=self.using,
        )
        return self.get(identity, invoice.pk)

    def _resolve_treatments(self, identity: Identity, patient: Patient, ids: list[int]) -> list[Treatment]:
        # Billing reads treatments for receptionists too; only the treatment
        # endpoints are closed to them, so the row rule applies but not
        # ensure_access.
        qs = self.scope.filter(identity, TREATMENT, Treatment.objects.using(self.using).all())
        found = {t.pk: t for t in qs.filter(pk__in=ids)}

        missing = [pk for pk in ids if pk not in found]
        if missing:
            logger.info('invoice create rejected missing_treatments=%s by=%s', missing, identity.id)
            raise NotFound('Some treatments were not found.')

        foreign = [pk for pk in ids if found[pk].patient_id != patient.pk]
        if foreign:
            raise InvalidInvoiceData(
                'All treatments must belong to the invoiced patient.',
                field='treatment_ids',
            )
        return [found[pk] for pk in ids]

    def _insert_with_number(self, *, patient, treatments, total, issue_date, due_date, notes) -> Invoice:
        for attempt in range(1, self.max_attempts + 1):
            number = None
            try:
                with transaction.atomic(using=self.using):
                    number = self.allocator.allocate(issue_date)
                    invoice = Invoice.objects.using(self.using).create(
                        invoice_number=number,
                        patient=patient,
                        total_amount=total,
                        paid_amount=Decimal('0.00'),
                        issue_date=issue_date,
                        due_date=due_date,
                        notes=notes,
                    )
                    InvoiceItem.objects.using(self.using).bulk_create([
                        InvoiceItem(
                            invoice=invoice,
                            treatment=t,
                            doctor_id=t.doctor_id,
                            treatment_type=t.treatment_type,
                            cost=t.cost,
                        )
                        for t in treatments
                    ])
                return invoice
            except IntegrityError:
                if number is None or not Invoice.objects.using(self.using).filter(invoice_number=number).exists():
                    raise
                logger.warning('invoice number collision number=%s attempt=%s/%s', number, attempt, self.max_attempts)
                with transaction.atomic(using=self.using):
                    self.allocator.skip_past(issue_date)

        logger.error('invoice number allocation exhausted day=%s attempts=%s', issue_date, self.max_attempts)
        raise InvoiceNumberExhausted(self.max_attempts)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def record_payment(self, identity: Identity, invoice_id, paid_amount=_UNSET, notes=_UNSET) -> Invoice:
        """Set the invoice's paid amount and/or notes.

        ``paid_amount`` is the new running total paid, not an increment.
        """
        self.scope.require_role(identity, Role.ADMIN, Role.RECEPTIONIST)

        with transaction.atomic(using=self.using):
            invoice = self.get(identity, invoice_id)
            invoice = Invoice.objects.using(self.using).select_for_update().get(pk=invoice.pk)

            update_fields = ['updated_at']
            if paid_amount is not _UNSET and paid_amount is not None:
                if invoice.is_cancelled:
                    raise InvalidInvoiceData('Cannot record a payment on a cancelled invoice.', field='paid_amount')
                invoice.paid_amount = ledger.validate_payment(paid_amount, invoice.total_amount)
                update_fields.append('paid_amount')
            if notes is not _UNSET and notes is not None:
                invoice.notes = notes
                update_fields.append('notes')

            invoice.save(using=self.using, update_fields=update_fields)

        logger.info(
            'invoice payment recorded number=%s paid=%s total=%s status=%s by=%s',
            invoice.invoice_number, invoice.paid_amount, invoice.total_amount, invoice.status, identity.id,
        )
        log_patient_action(
            identity,
            'invoice_updated',
            patient_id=invoice.patient_id,
            meta={'invoice_id': invoice.pk, 'paid_amount': str(invoice.paid_amount)},
            using=self.using,
        )
        return self.get(identity, invoice.pk)

    def cancel(self, identity: Identity, invoice_id) -> Invoice:
        self.scope.require_role(identity, Role.ADMIN)
        invoice = self.get(identity, invoice_id)
        if not invoice.is_cancelled:
            invoice.cancelled_at = timezone.now()
            invoice.save(using=self.using, update_fields=['cancelled_at', 'updated_at'])
            logger.info('invoice cancelled number=%s by=%s', invoice.invoice_number, identity.id)
            log_patient_action(
                identity,
                'invoice_cancelled',
                patient_id=invoice.patient_id,
                meta={'invoice_id': invoice.pk},
                using=self.using,
            )
        return invoice

    def delete(self, identity: Identity, invoice_id) -> None:
        self.scope.require_role(identity, Role.ADMIN)
        invoice = self.get(identity, invoice_id)
        number, patient_id, pk = invoice.invoice_number, invoice.patient_id, invoice.pk
        invoice.delete(using=self.using)
        logger.info('invoice deleted number=%s by=%s', number, identity.id)
        log_patient_action(
            identity,
            'invoice_deleted',
            patient_id=patient_id,
            meta={'invoice_id': pk, 'invoice_number': number},
            using=self.using,
        )

    # ------------------------------------------------------------------
    # Notification payload
    # ------------------------------------------------------------------

    def reminder_notification_payload(self, invoice: Invoice) -> dict[str, Any]:
        """Amounts and text the notifier sends for an open invoice.

        The balance is computed here so every consumer shows the same number.
        """
        symbol = getattr(settings, 'BILLING_CURRENCY_SYMBOL', '$')
        clinic = getattr(settings, 'CLINIC_NAME', 'Clinic')
        balance = ledger.balance_due(invoice.paid_amount, invoice.total_amount)
        patient = invoice.patient

        return {
            'invoice_id': invoice.pk,
            'invoice_number': invoice.invoice_number,
            'status': invoice.status,
            'patient_id': patient.pk,
            'patient_name': patient.name,
            'patient_email': patient.email or None,
            'issue_date': invoice.issue_date.isoformat(),
            'due_date': invoice.due_date.isoformat() if invoice.due_date else None,
            'total_amount': invoice.total_amount,
            'paid_amount': invoice.paid_amount,
            'balance_due': balance,
            'total_amount_display': ledger.format_currency(invoice.total_amount, symbol),
            'paid_amount_display': ledger.format_currency(invoice.paid_amount, symbol),
            'balance_due_display': ledger.format_currency(balance, symbol),
            'subject': f"{clinic}: invoice {invoice.invoice_number}",
        }

"""Patient records, file metadata and the admin-only cascade delete."""

from __future__ import annotations

import logging

from django.core.exceptions import SuspiciousFileOperation
from django.db import transaction
from django.db.models import Q
from django.utils import timezone
from django.utils.text import get_valid_filename

from clinic_backend.appointments.models import Appointment
from clinic_backend.billing.models import Invoice, InvoiceItem
from clinic_backend.core.exceptions import AccessDenied, ConflictError, InvalidData, NotFound
from clinic_backend.core.models import Role
from clinic_backend.core.scope import PATIENT, AuthorizationScope, Identity
from clinic_backend.core.utils import log_patient_action
from clinic_backend.medical.models import Treatment
from clinic_backend.patients.models import Patient, PatientFile

logger = logging.getLogger(__name__)

WRITABLE_FIELDS = ('name', 'age', 'gender', 'contact', 'email', 'address', 'medical_history')
ALLOWED_MIME_TYPES = ('image/jpeg', 'image/png', 'image/gif', 'application/pdf')


class PatientService:
    def __init__(self, using: str = 'default', scope: AuthorizationScope | None = None):
        self.using = using
        self.scope = scope or AuthorizationScope()

    def base_queryset(self):
        return Patient.objects.using(self.using).all()

    def list(self, identity: Identity, search: str | None = None):
        qs = self.scope.filter(identity, PATIENT, self.base_queryset())
        if search:
            qs = qs.filter(
                Q(name__icontains=search)
                | Q(contact__icontains=search)
                | Q(email__icontains=search)
            )
        return qs.order_by('-created_at', '-id')

    def get(self, identity: Identity, patient_id) -> Patient:
        return self.scope.get_object(identity, PATIENT, self.base_queryset(), patient_id)

    def create(self, identity: Identity, **fields) -> Patient:
        self.scope.require_role(identity, Role.ADMIN, Role.RECEPTIONIST)
        self._check_fields(fields)
        patient = Patient.objects.using(self.using).create(**fields)
        log_patient_action(identity, 'patient_created', patient_id=patient.pk, using=self.using)
        return patient

    def update(self, identity: Identity, patient_id, **fields) -> Patient:
        self.scope.require_role(identity, Role.ADMIN, Role.RECEPTIONIST)
        self._check_fields(fields)
        patient = self.get(identity, patient_id)
        for field, value in fields.items():
            setattr(patient, field, value)
        patient.save(using=self.using)
        log_patient_action(identity, 'patient_updated', patient_id=patient.pk, using=self.using)
        return patient

    def files(self, identity: Identity, patient_id):
        patient = self.get(identity, patient_id)
        return PatientFile.objects.using(self.using).filter(patient=patient).select_related('uploaded_by')

    def add_file(
        self,
        identity: Identity,
        patient_id,
        *,
        file_name: str,
        mime_type: str,
        file_size: int,
        file_type: str = PatientFile.TYPE_OTHER,
        storage_key: str | None = None,
    ) -> PatientFile:
        """Record metadata of a document already placed in object storage.

        Any role may attach files; dentists only to their own patients.
        Without a ``storage_key`` one is derived from the patient and name.
        """
        patient = self.get(identity, patient_id)
        if mime_type not in ALLOWED_MIME_TYPES:
            raise InvalidData('Only JPEG, PNG, GIF and PDF files are allowed.', field='mime_type')
        if file_size > PatientFile.MAX_FILE_SIZE:
            raise InvalidData('File exceeds the 10 MiB limit.', field='file_size')

        try:
            file_name = get_valid_filename(file_name)
        except SuspiciousFileOperation:
            raise InvalidData('Invalid file name.', field='file_name') from None
        key = storage_key or f"patients/{patient.pk}/{timezone.now():%Y%m%d%H%M%S%f}-{file_name}"
        files = PatientFile.objects.using(self.using)
        if files.filter(storage_key=key).exists():
            raise ConflictError('A file with this storage key already exists.', field='storage_key')

        record = files.create(
            patient=patient,
            file_name=file_name,
            file_type=file_type,
            mime_type=mime_type,
            file_size=file_size,
            storage_key=key,
            uploaded_by_id=identity.id,
        )
        log_patient_action(identity, 'file_uploaded', patient_id=patient.pk, meta={'file_id': record.pk}, using=self.using)
        return record

    def delete_file(self, identity: Identity, patient_id, file_id) -> None:
        """Admins delete any file, everyone else only what they uploaded."""
        patient = self.get(identity, patient_id)
        record = PatientFile.objects.using(self.using).filter(patient=patient, pk=file_id).first()
        if record is None:
            raise NotFound('File not found.')
        if not identity.is_admin and record.uploaded_by_id != identity.id:
            logger.info('file delete denied id=%s identity=%s', record.pk, identity.id)
            raise AccessDenied()

        record.delete(using=self.using)
        log_patient_action(identity, 'file_deleted', patient_id=patient.pk, meta={'file_id': file_id}, using=self.using)

    def delete(self, identity: Identity, patient_id) -> dict[str, int]:
        """Hard delete the patient and everything recorded for them.

        Dependents go first, the patient last, all in one transaction: either
        everything is gone or nothing is.
        """
        self.scope.require_role(identity, Role.ADMIN)
        patient = self.get(identity, patient_id)
        pk = patient.pk

        with transaction.atomic(using=self.using):
            invoices = Invoice.objects.using(self.using).filter(patient_id=pk)
            counts = {
                'invoice_items': InvoiceItem.objects.using(self.using).filter(invoice__patient_id=pk).delete()[0],
                'invoices': invoices.delete()[0],
                'treatments': Treatment.objects.using(self.using).filter(patient_id=pk).delete()[0],
                'appointments': Appointment.objects.using(self.using).filter(patient_id=pk).delete()[0],
                'files': PatientFile.objects.using(self.using).filter(patient_id=pk).delete()[0],
            }
            Patient.objects.using(self.using).filter(pk=pk).delete()

        logger.info('patient deleted id=%s by=%s cascade=%s', pk, identity.id, counts)
        log_patient_action(identity, 'patient_deleted', patient_id=pk, meta=counts, using=self.using)
        return counts

    @staticmethod
    def _check_fields(fields) -> None:
        unknown = set(fields) - set(WRITABLE_FIELDS)
        if unknown:
            raise InvalidData(f"Unknown patient field(s): {', '.join(sorted(unknown))}.")

"""Treatment records, scoped per caller.

Receptionists are refused at every entry point (``ensure_access``). Dentists
see and edit only their own treatments and are always recorded as the
treating doctor on the ones they create.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from django.db import transaction

from clinic_backend.appointments.models import Appointment
from clinic_backend.core.exceptions import AccessDenied, InvalidData, NotFound
from clinic_backend.core.models import Role, User
from clinic_backend.core.scope import TREATMENT, AuthorizationScope, Identity
from clinic_backend.core.utils import log_patient_action
from clinic_backend.medical.models import Treatment
from clinic_backend.patients.models import Patient

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ('treatment_type', 'description', 'disease', 'cost', 'treatment_date')


class TreatmentService:
    def __init__(self, using: str = 'default', scope: AuthorizationScope | None = None):
        self.using = using
        self.scope = scope or AuthorizationScope()

    def base_queryset(self):
        return Treatment.objects.using(self.using).select_related('patient', 'doctor')

    def list(self, identity: Identity, patient_id=None, doctor_id=None, treatment_type: str | None = None):
        self.scope.ensure_access(identity, TREATMENT)
        qs = self.scope.filter(identity, TREATMENT, self.base_queryset())
        if patient_id is not None:
            qs = qs.filter(patient_id=patient_id)
        if doctor_id is not None:
            qs = qs.filter(doctor_id=doctor_id)
        if treatment_type:
            qs = qs.filter(treatment_type__icontains=treatment_type)
        return qs.order_by('-treatment_date', '-id')

    def get(self, identity: Identity, treatment_id) -> Treatment:
        self.scope.ensure_access(identity, TREATMENT)
        return self.scope.get_object(identity, TREATMENT, self.base_queryset(), treatment_id)

    def create(
        self,
        identity: Identity,
        *,
        patient_id,
        treatment_type: str,
        cost: Decimal,
        treatment_date,
        doctor_id=None,
        appointment_id=None,
        description: str = '',
        disease: str = '',
    ) -> Treatment:
        self.scope.ensure_access(identity, TREATMENT)
        self.scope.require_role(identity, Role.ADMIN, Role.DENTIST)

        if identity.is_dentist:
            if doctor_id is not None and int(doctor_id) != identity.id:
                raise AccessDenied('Dentists can only record their own treatments.')
            doctor_id = identity.id
        elif doctor_id is None:
            raise InvalidData('Doctor is required.', field='doctor_id')

        if cost is None or cost < 0:
            raise InvalidData('Cost must be a non-negative amount.', field='cost')

        patient = Patient.objects.using(self.using).filter(pk=patient_id).first()
        if patient is None:
            raise NotFound('Patient not found.')

        doctor = User.objects.using(self.using).select_related('role').filter(pk=doctor_id).first()
        if doctor is None or not doctor.is_practitioner:
            raise NotFound('Doctor not found.')

        if appointment_id is not None:
            appointment = Appointment.objects.using(self.using).filter(pk=appointment_id).first()
            if appointment is None:
                raise NotFound('Appointment not found.')
            if appointment.patient_id != patient.pk:
                raise InvalidData('Appointment belongs to another patient.', field='appointment_id')

        treatment = Treatment.objects.using(self.using).create(
            patient=patient,
            doctor=doctor,
            appointment_id=appointment_id,
            treatment_type=treatment_type,
            description=description or '',
            disease=disease or '',
            cost=cost,
            treatment_date=treatment_date,
        )
        logger.info('treatment created id=%s patient_id=%s doctor_id=%s by=%s', treatment.pk, patient.pk, doctor.pk, identity.id)
        log_patient_action(identity, 'treatment_created', patient_id=patient.pk, meta={'treatment_id': treatment.pk}, using=self.using)
        return treatment

    def update(self, identity: Identity, treatment_id, **changes) -> Treatment:
        """Edit clinical fields. Issued invoices keep their snapshotted cost."""
        unknown = set(changes) - set(UPDATABLE_FIELDS)
        if unknown:
            raise InvalidData(f"Field(s) cannot be changed: {', '.join(sorted(unknown))}.")

        with transaction.atomic(using=self.using):
            treatment = self.get(identity, treatment_id)
            if 'cost' in changes and (changes['cost'] is None or changes['cost'] < 0):
                raise InvalidData('Cost must be a non-negative amount.', field='cost')
            for field, value in changes.items():
                setattr(treatment, field, value)
            treatment.save(using=self.using)

        log_patient_action(identity, 'treatment_updated', patient_id=treatment.patient_id, meta={'treatment_id': treatment.pk}, using=self.using)
        return treatment

    def delete(self, identity: Identity, treatment_id) -> None:
        self.scope.ensure_access(identity, TREATMENT)
        self.scope.require_role(identity, Role.ADMIN)
        treatment = self.get(identity, treatment_id)
        patient_id, pk = treatment.patient_id, treatment.pk
        treatment.delete(using=self.using)
        logger.info('treatment deleted id=%s by=%s', pk, identity.id)
        log_patient_action(identity, 'treatment_deleted', patient_id=patient_id, meta={'treatment_id': pk}, using=self.using)

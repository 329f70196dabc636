"""
Scheduling engine for the clinic.

All booking rules live here: conflict detection, create/update/cancel,
calendar materialization and the reminder sweep's candidate rule. Views and
Celery tasks delegate to ``AppointmentScheduler`` instead of touching
``Appointment`` rows directly.

Rules:
- Two appointments conflict when they belong to the same doctor, the
  existing one is ``scheduled``, and the intervals overlap half-open:
  ``existing.start < proposed.end AND existing.end > proposed.start``.
  Back-to-back bookings (one ends at T, the next starts at T) are legal.
- Conflict check and write run in one transaction that first locks the
  doctor's user row, so two concurrent bookings for the same doctor are
  serialized and the second one sees the first.
- A status-only update never runs the conflict check.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from clinic_backend.appointments.exceptions import (
    Conflict,
    InvalidSchedulingData,
    SchedulingConflictError,
)
from clinic_backend.appointments.models import Appointment
from clinic_backend.core.exceptions import AccessDenied, NotFound
from clinic_backend.core.models import Role, User
from clinic_backend.core.scope import APPOINTMENT, AuthorizationScope, Identity
from clinic_backend.core.utils import log_patient_action
from clinic_backend.patients.models import Patient

logger = logging.getLogger(__name__)

BLOCKING_STATUSES = (Appointment.STATUS_SCHEDULED,)

_UNSET = object()


# ---------------------------------------------------------------------------
# Helper Functions
# ---------------------------------------------------------------------------

def _ensure_aware(dt: datetime | None, *, field: str) -> datetime:
    if dt is None:
        raise InvalidSchedulingData(f'{field} is required', field=field)
    if not isinstance(dt, datetime):
        raise InvalidSchedulingData(f'{field} must be a datetime', field=field)
    if timezone.is_naive(dt):
        return timezone.make_aware(dt, timezone.get_current_timezone())
    return dt


def _validate_interval(start_time: datetime, end_time: datetime) -> None:
    if end_time <= start_time:
        raise InvalidSchedulingData('end_time must be after start_time', field='end_time')


def _day_bounds(day: date) -> tuple[datetime, datetime]:
    tz = timezone.get_current_timezone()
    start = timezone.make_aware(datetime.combine(day, datetime.min.time()), tz)
    return start, start + timedelta(days=1)


def reminder_lead() -> timedelta:
    return timedelta(hours=getattr(settings, 'APPOINTMENT_REMINDER_LEAD_HOURS', 24))


def reminder_sweep() -> timedelta:
    return timedelta(minutes=getattr(settings, 'APPOINTMENT_REMINDER_SWEEP_MINUTES', 60))


# ---------------------------------------------------------------------------
# Conflict detection
# ---------------------------------------------------------------------------

class ConflictDetector:
    """Decides whether a proposed interval is free on a doctor's slate.

    Looks at the doctor's whole slate, not the caller's scoped view: a
    receptionist booking for a doctor must see every blocking appointment,
    and a dentist can only book for their own slate anyway.
    """

    def __init__(self, using: str = 'default'):
        self.using = using

    def overlapping(self, doctor_id, start_time: datetime, end_time: datetime, exclude_id=None):
        qs = Appointment.objects.using(self.using).filter(
            doctor_id=doctor_id,
            status__in=BLOCKING_STATUSES,
            start_time__lt=end_time,
            end_time__gt=start_time,
        )
        if exclude_id is not None:
            qs = qs.exclude(pk=exclude_id)
        return qs.order_by('start_time', 'id')

    def has_conflict(self, doctor_id, start_time: datetime, end_time: datetime, exclude_id=None) -> bool:
        return self.overlapping(doctor_id, start_time, end_time, exclude_id).exists()

    def find_conflicts(self, doctor_id, start_time: datetime, end_time: datetime, exclude_id=None) -> list[Conflict]:
        return [
            Conflict(
                appointment_id=appt.pk,
                doctor_id=appt.doctor_id,
                start_time=appt.start_time,
                end_time=appt.end_time,
            )
            for appt in self.overlapping(doctor_id, start_time, end_time, exclude_id)
        ]

    def ensure_free(self, doctor_id, start_time: datetime, end_time: datetime, exclude_id=None) -> None:
        conflicts = self.find_conflicts(doctor_id, start_time, end_time, exclude_id)
        if conflicts:
            logger.info(
                'booking conflict doctor_id=%s start=%s end=%s conflicting_ids=%s',
                doctor_id, start_time.isoformat(), end_time.isoformat(),
                [c.appointment_id for c in conflicts],
            )
            raise SchedulingConflictError(conflicts)


# ---------------------------------------------------------------------------
# Scheduler
# ---------------------------------------------------------------------------

class AppointmentScheduler:
    """Appointment operations for one database alias and one scope policy."""

    def __init__(
        self,
        using: str = 'default',
        scope: AuthorizationScope | None = None,
        detector: ConflictDetector | None = None,
    ):
        self.using = using
        self.scope = scope or AuthorizationScope()
        self.detector = detector or ConflictDetector(using=using)

    def base_queryset(self):
        return Appointment.objects.using(self.using).select_related('patient', 'doctor')

    def _lock_doctor(self, doctor_id) -> User | None:
        """Lock the doctor row for the rest of the current transaction."""
        return User.objects.using(self.using).select_for_update().filter(pk=doctor_id).first()

    # -- reads ---------------------------------------------------------------

    def get(self, identity: Identity, appointment_id) -> Appointment:
        return self.scope.get_object(identity, APPOINTMENT, self.base_queryset(), appointment_id)

    def list(self, identity: Identity, doctor_id=None, patient_id=None, day: date | None = None, status: str | None = None):
        qs = self.scope.filter(identity, APPOINTMENT, self.base_queryset())
        if doctor_id is not None:
            qs = qs.filter(doctor_id=doctor_id)
        if patient_id is not None:
            qs = qs.filter(patient_id=patient_id)
        if status:
            if status not in Appointment.STATUSES:
                raise InvalidSchedulingData(f'Unknown appointment status: {status}', field='status')
            qs = qs.filter(status=status)
        if day is not None:
            day_start, day_end = _day_bounds(day)
            qs = qs.filter(start_time__gte=day_start, start_time__lt=day_end)
        return qs.order_by('start_time', 'id')

    def list_for_calendar(self, identity: Identity, range_start: datetime, range_end: datetime, doctor_id=None) -> list[dict]:
        """Flattened events overlapping the closed range ``[range_start, range_end]``."""
        range_start = _ensure_aware(range_start, field='start')
        range_end = _ensure_aware(range_end, field='end')
        if range_end < range_start:
            raise InvalidSchedulingData('end must not be before start', field='end')

        qs = self.scope.filter(identity, APPOINTMENT, self.base_queryset())
        if doctor_id is not None:
            qs = qs.filter(doctor_id=doctor_id)
        qs = qs.filter(start_time__lte=range_end, end_time__gte=range_start).order_by('start_time', 'id')

        return [
            {
                'id': appt.pk,
                'title': appt.patient.name,
                'start': appt.start_time,
                'end': appt.end_time,
                'doctor_id': appt.doctor_id,
                'doctor_name': appt.doctor.display_name(),
                'doctor_color': appt.doctor.calendar_color,
                'patient_id': appt.patient_id,
                'status': appt.status,
                'notes': appt.notes,
            }
            for appt in qs
        ]

    # -- writes --------------------------------------------------------------

    def create(
        self,
        identity: Identity,
        patient_id,
        doctor_id,
        start_time: datetime,
        end_time: datetime,
        notes: str = '',
    ) -> Appointment:
        self.scope.require_role(identity, Role.ADMIN, Role.RECEPTIONIST, Role.DENTIST)

        if patient_id is None:
            raise InvalidSchedulingData('patient_id is required', field='patient_id')
        if doctor_id is None:
            raise InvalidSchedulingData('doctor_id is required', field='doctor_id')
        start_time = _ensure_aware(start_time, field='start_time')
        end_time = _ensure_aware(end_time, field='end_time')
        _validate_interval(start_time, end_time)

        if identity.is_dentist and int(doctor_id) != identity.id:
            logger.info('dentist booking for other doctor denied identity=%s doctor_id=%s', identity.id, doctor_id)
            raise AccessDenied('Dentists can only book their own appointments.')

        patient = Patient.objects.using(self.using).filter(pk=patient_id).first()
        if patient is None:
            raise NotFound('Patient not found.')

        with transaction.atomic(using=self.using):
            doctor = self._lock_doctor(doctor_id)
            if doctor is None or not doctor.is_practitioner:
                raise NotFound('Doctor not found.')

            self.detector.ensure_free(doctor.pk, start_time, end_time)

            appointment = Appointment.objects.using(self.using).create(
                patient=patient,
                doctor=doctor,
                start_time=start_time,
                end_time=end_time,
                status=Appointment.STATUS_SCHEDULED,
                notes=notes or '',
                reminder_sent=False,
            )

        logger.info(
            'appointment created id=%s doctor_id=%s start=%s end=%s by=%s',
            appointment.pk, doctor.pk, start_time.isoformat(), end_time.isoformat(), identity.id,
        )
        log_patient_action(identity, 'appointment_create', patient_id=patient.pk, meta={'appointment_id': appointment.pk}, using=self.using)
        return appointment

    def update(
        self,
        identity: Identity,
        appointment_id,
        start_time: datetime | None = None,
        end_time: datetime | None = None,
        status: str | None = None,
        notes=_UNSET,
    ) -> Appointment:
        """Move, re-status or annotate an appointment.

        A time change is a supplied bound that differs from the stored one;
        the other bound falls back to the stored value. A ``scheduled``
        appointment whose time changes becomes ``rescheduled`` unless
        ``status`` is given explicitly in the same call.
        """
        self.scope.require_role(identity, Role.ADMIN, Role.RECEPTIONIST, Role.DENTIST)

        if status is not None and status not in Appointment.STATUSES:
            raise InvalidSchedulingData(f'Unknown appointment status: {status}', field='status')
        if start_time is not None:
            start_time = _ensure_aware(start_time, field='start_time')
        if end_time is not None:
            end_time = _ensure_aware(end_time, field='end_time')

        with transaction.atomic(using=self.using):
            current = self.get(identity, appointment_id)
            self._lock_doctor(current.doctor_id)
            appointment = Appointment.objects.using(self.using).select_for_update().get(pk=current.pk)

            new_start = start_time if start_time is not None else appointment.start_time
            new_end = end_time if end_time is not None else appointment.end_time
            time_changed = new_start != appointment.start_time or new_end != appointment.end_time

            if time_changed:
                _validate_interval(new_start, new_end)

            if status is not None:
                new_status = status
            elif time_changed and appointment.status == Appointment.STATUS_SCHEDULED:
                new_status = Appointment.STATUS_RESCHEDULED
            else:
                new_status = appointment.status

            reactivated = (
                new_status == Appointment.STATUS_SCHEDULED
                and appointment.status != Appointment.STATUS_SCHEDULED
            )
            if time_changed or reactivated:
                self.detector.ensure_free(appointment.doctor_id, new_start, new_end, exclude_id=appointment.pk)

            previous_status = appointment.status
            appointment.start_time = new_start
            appointment.end_time = new_end
            appointment.status = new_status
            if notes is not _UNSET and notes is not None:
                appointment.notes = notes
            appointment.save(using=self.using)

        logger.info(
            'appointment updated id=%s time_changed=%s status=%s->%s by=%s',
            appointment.pk, time_changed, previous_status, new_status, identity.id,
        )
        log_patient_action(identity, 'appointment_update', patient_id=appointment.patient_id, meta={'appointment_id': appointment.pk}, using=self.using)
        return self.get(identity, appointment.pk)

    def cancel(self, identity: Identity, appointment_id) -> Appointment:
        """Soft cancel; the row stays for history."""
        self.scope.require_role(identity, Role.ADMIN, Role.RECEPTIONIST)
        appointment = self.get(identity, appointment_id)
        if appointment.status != Appointment.STATUS_CANCELLED:
            appointment.status = Appointment.STATUS_CANCELLED
            appointment.save(using=self.using, update_fields=['status', 'updated_at'])
            logger.info('appointment cancelled id=%s by=%s', appointment.pk, identity.id)
            log_patient_action(identity, 'appointment_cancel', patient_id=appointment.patient_id, meta={'appointment_id': appointment.pk}, using=self.using)
        return appointment

    # -- reminder sweep ------------------------------------------------------

    def reminder_window(self, now: datetime | None = None) -> tuple[datetime, datetime]:
        """``[now + lead - sweep, now + lead + sweep]``.

        The beat schedule runs every ``sweep`` minutes, so consecutive runs
        overlap and no appointment falls between two sweeps.
        """
        now = _ensure_aware(now or timezone.now(), field='now')
        center = now + reminder_lead()
        return center - reminder_sweep(), center + reminder_sweep()

    def reminder_candidates(self, now: datetime | None = None):
        window_start, window_end = self.reminder_window(now)
        return (
            self.base_queryset()
            .filter(
                status=Appointment.STATUS_SCHEDULED,
                reminder_sent=False,
                start_time__gte=window_start,
                start_time__lte=window_end,
            )
            .order_by('start_time', 'id')
        )

    def reminder_target(self, identity: Identity, appointment_id) -> Appointment:
        """Resolve an appointment for an on-demand reminder.

        Only scheduled appointments of patients with an email qualify. An
        earlier reminder does not block a resend.
        """
        self.scope.require_role(identity, Role.ADMIN, Role.RECEPTIONIST)
        appointment = self.get(identity, appointment_id)
        if appointment.status != Appointment.STATUS_SCHEDULED:
            raise InvalidSchedulingData('Only scheduled appointments can be reminded.', field='status')
        if not appointment.patient.email:
            raise InvalidSchedulingData('Patient does not have an email address.', field='email')
        return appointment

    def mark_reminder_sent(self, appointment_id, identity: Identity | None = None) -> bool:
        """Flip ``reminder_sent`` once. Returns False if it was already set.

        ``identity`` is None for the reminder job; API callers pass theirs
        and get the usual scope check.
        """
        if identity is not None:
            self.scope.require_role(identity, Role.ADMIN, Role.RECEPTIONIST)
            self.get(identity, appointment_id)
        elif not Appointment.objects.using(self.using).filter(pk=appointment_id).exists():
            raise NotFound('Appointment not found.')

        updated = Appointment.objects.using(self.using).filter(
            pk=appointment_id,
            reminder_sent=False,
        ).update(reminder_sent=True, updated_at=timezone.now())
        if updated:
            logger.info('appointment reminder marked sent id=%s', appointment_id)
        return bool(updated)

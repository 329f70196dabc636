"""Domain models for appointment scheduling.

Only ``scheduled`` appointments hold a practitioner's time; cancelled,
completed and rescheduled rows stay in the table as history.

Architectural note:

- All ORM access goes through ``AppointmentScheduler`` with an explicit
	database alias (``using``), never through module-level state.
"""

from django.conf import settings
from django.db import models


class Appointment(models.Model):
	"""A booked slot of a practitioner's time for one patient.

	``reminder_sent`` flips from False to True exactly once, after the
	reminder job confirmed delivery.
	"""
	STATUS_SCHEDULED = 'scheduled'
	STATUS_COMPLETED = 'completed'
	STATUS_CANCELLED = 'cancelled'
	STATUS_RESCHEDULED = 'rescheduled'

	STATUS_CHOICES = (
		(STATUS_SCHEDULED, STATUS_SCHEDULED),
		(STATUS_COMPLETED, STATUS_COMPLETED),
		(STATUS_CANCELLED, STATUS_CANCELLED),
		(STATUS_RESCHEDULED, STATUS_RESCHEDULED),
	)

	STATUSES = frozenset(s for s, _ in STATUS_CHOICES)

	patient = models.ForeignKey(
		'patients.Patient',
		on_delete=models.PROTECT,
		related_name='appointments',
	)
	doctor = models.ForeignKey(
		settings.AUTH_USER_MODEL,
		on_delete=models.PROTECT,
		related_name='appointments',
	)
	start_time = models.DateTimeField()
	end_time = models.DateTimeField()
	status = models.CharField(
		max_length=20,
		choices=STATUS_CHOICES,
		default=STATUS_SCHEDULED,
		db_index=True,
	)
	notes = models.TextField(blank=True, default='')
	reminder_sent = models.BooleanField(default=False)
	created_at = models.DateTimeField(auto_now_add=True)
	updated_at = models.DateTimeField(auto_now=True)

	class Meta:
		db_table = 'appointments_appointment'
		ordering = ['start_time', 'id']
		indexes = [
			models.Index(fields=['doctor', 'start_time'], name='appt_doctor_start_idx'),
			models.Index(fields=['start_time'], name='appt_start_idx'),
		]
		constraints = [
			models.CheckConstraint(
				condition=models.Q(end_time__gt=models.F('start_time')),
				name='appt_end_after_start',
			),
		]

	def __str__(self) -> str:
		return f"Appointment #{self.id} (patient_id={self.patient_id}, doctor_id={self.doctor_id})"

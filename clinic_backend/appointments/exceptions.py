"""
Scheduling-specific exceptions for the appointments app.

These exceptions are raised by the scheduling services and rendered by
``clinic_backend.core.exception_handler``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from clinic_backend.core.exceptions import ConflictError, FatalError, InvalidData


@dataclass
class Conflict:
    """One existing appointment that overlaps a proposed interval.

    Kept server-side for logs and tests; the wire error never lists these so
    other patients' bookings do not leak.
    """
    appointment_id: int
    doctor_id: int
    start_time: datetime
    end_time: datetime


class SchedulingConflictError(ConflictError):
    """
    Raised when a booking overlaps a scheduled appointment of the same doctor.

    ``conflicts`` holds the overlapping appointments for logging only.
    """

    default_message = 'Doctor has a conflicting appointment at this time.'

    def __init__(self, conflicts: list[Conflict] | None = None, message: str | None = None):
        self.conflicts = list(conflicts or [])
        super().__init__(message)


class InvalidSchedulingData(InvalidData):
    """
    Raised when scheduling input is invalid (end before start, unknown status).
    """
    pass


class ReminderDeliveryFailed(FatalError):
    """The notification sink did not accept an on-demand reminder."""

    kind = 'delivery_failed'
    default_message = 'Reminder could not be delivered. Try again later.'

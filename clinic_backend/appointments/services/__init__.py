"""
Appointments Services Module.

This package contains service-layer logic for the appointments app:
- scheduling: conflict detection, booking operations, calendar and reminders
"""

from clinic_backend.appointments.services.scheduling import (
    BLOCKING_STATUSES,
    AppointmentScheduler,
    ConflictDetector,
    reminder_lead,
    reminder_sweep,
)

__all__ = [
    'BLOCKING_STATUSES',
    'AppointmentScheduler',
    'ConflictDetector',
    'reminder_lead',
    'reminder_sweep',
]

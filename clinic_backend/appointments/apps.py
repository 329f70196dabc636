"""
Appointments App Configuration
"""

from django.apps import AppConfig


class AppointmentsConfig(AppConfig):
    """App configuration for booking, calendar and reminders."""
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'clinic_backend.appointments'
    verbose_name = 'Appointments (Scheduling)'

"""
Patients App Configuration
"""

from django.apps import AppConfig


class PatientsConfig(AppConfig):
    """App configuration for patient records and file metadata."""
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'clinic_backend.patients'
    verbose_name = 'Patients'

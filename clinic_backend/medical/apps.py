"""
Medical App Configuration
"""

from django.apps import AppConfig


class MedicalConfig(AppConfig):
    """App configuration for clinical records (treatments)."""
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'clinic_backend.medical'
    verbose_name = 'Medical (Treatments)'

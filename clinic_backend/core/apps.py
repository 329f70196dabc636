"""
Core App Configuration
"""

from django.apps import AppConfig


class CoreConfig(AppConfig):
    """App configuration for users, roles, audit log and access scope."""
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'clinic_backend.core'
    verbose_name = 'Core (Users & Roles)'

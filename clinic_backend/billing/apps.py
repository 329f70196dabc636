"""
Billing App Configuration
"""

from django.apps import AppConfig


class BillingConfig(AppConfig):
    """App configuration for invoices, invoice numbering and payments."""
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'clinic_backend.billing'
    verbose_name = 'Billing (Invoices)'

"""
Billing-specific exceptions.

Raised by the billing services and rendered by
``clinic_backend.core.exception_handler``.
"""

from __future__ import annotations

from clinic_backend.core.exceptions import FatalError, InvalidData


class InvalidInvoiceData(InvalidData):
    """Empty treatment list, foreign treatments, bad amounts."""
    pass


class InvoiceNumberExhausted(FatalError):
    """Invoice number allocation kept colliding with existing numbers.

    Under the per-day counter this means the counter table and the invoice
    table disagree, which is a storage fault, not a business rule.
    """

    default_message = 'Could not allocate a unique invoice number.'

    def __init__(self, attempts: int, message: str | None = None):
        self.attempts = attempts
        super().__init__(message)

"""Invoice payment state and amounts.

Pure functions over Decimals. Nothing here touches the database, so the
same numbers reach the API, the notification job and any export path.

    paid == 0            -> pending
    0 < paid < total     -> partial
    paid >= total        -> paid

``cancelled`` is never derived; it is set by an explicit admin action.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.conf import settings

from clinic_backend.core.exceptions import InvalidData

STATUS_PENDING = 'pending'
STATUS_PARTIAL = 'partial'
STATUS_PAID = 'paid'
STATUS_CANCELLED = 'cancelled'

STATUSES = (STATUS_PENDING, STATUS_PARTIAL, STATUS_PAID, STATUS_CANCELLED)

CENT = Decimal('0.01')


def to_amount(value, *, field: str = 'amount') -> Decimal:
    """Coerce ``value`` to a 2dp Decimal or raise InvalidData."""
    if isinstance(value, bool):
        raise InvalidData(f'{field} must be a number.', field=field)
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidData(f'{field} must be a number.', field=field) from None
    if not amount.is_finite():
        raise InvalidData(f'{field} must be a number.', field=field)
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def derive_invoice_status(paid_amount: Decimal, total_amount: Decimal) -> str:
    if paid_amount == 0:
        return STATUS_PENDING
    if paid_amount >= total_amount:
        return STATUS_PAID
    return STATUS_PARTIAL


def validate_payment(paid_amount, total_amount: Decimal) -> Decimal:
    """Return the normalized payment or raise InvalidData."""
    amount = to_amount(paid_amount, field='paid_amount')
    if amount < 0:
        raise InvalidData('Paid amount cannot be negative.', field='paid_amount')
    if amount > total_amount:
        raise InvalidData('Paid amount cannot exceed total amount.', field='paid_amount')
    return amount


def balance_due(paid_amount: Decimal, total_amount: Decimal) -> Decimal:
    return (total_amount - paid_amount).quantize(CENT)


def format_currency(amount: Decimal, symbol: str | None = None) -> str:
    if symbol is None:
        symbol = getattr(settings, 'BILLING_CURRENCY_SYMBOL', '$')
    return f"{symbol}{Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP):.2f}"

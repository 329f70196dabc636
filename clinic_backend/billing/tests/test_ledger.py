from decimal import Decimal

from django.test import SimpleTestCase

from clinic_backend.billing.services import ledger
from clinic_backend.core.exceptions import InvalidData


class LedgerTest(SimpleTestCase):
    def test_status_follows_amounts(self):
        total = Decimal("150.00")
        self.assertEqual(ledger.derive_invoice_status(Decimal("0.00"), total), ledger.STATUS_PENDING)
        self.assertEqual(ledger.derive_invoice_status(Decimal("0.01"), total), ledger.STATUS_PARTIAL)
        self.assertEqual(ledger.derive_invoice_status(Decimal("149.99"), total), ledger.STATUS_PARTIAL)
        self.assertEqual(ledger.derive_invoice_status(Decimal("150.00"), total), ledger.STATUS_PAID)

    def test_validate_payment(self):
        total = Decimal("150.00")

        self.assertEqual(ledger.validate_payment("100", total), Decimal("100.00"))
        self.assertEqual(ledger.validate_payment(150, total), Decimal("150.00"))
        for bad in ("200", "-1", "abc", None, True, "NaN"):
            with self.subTest(value=bad):
                with self.assertRaises(InvalidData):
                    ledger.validate_payment(bad, total)

    def test_rounding_is_half_up(self):
        self.assertEqual(ledger.to_amount("10.005"), Decimal("10.01"))

    def test_balance_and_currency(self):
        self.assertEqual(ledger.balance_due(Decimal("100.00"), Decimal("150.00")), Decimal("50.00"))
        self.assertEqual(ledger.format_currency(Decimal("50"), "$"), "$50.00")
        self.assertEqual(ledger.format_currency(Decimal("1234.5"), "EUR "), "EUR 1234.50")

"""Invoice API: creation snapshot, payments, cancellation and scope."""

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal

from django.core import mail
from django.test import TestCase, override_settings
from django.utils import timezone

from rest_framework import status

from clinic_backend.billing.models import Invoice, InvoiceItem
from clinic_backend.billing.services.billing import BillingService
from clinic_backend.billing.tasks import send_invoice_notification
from clinic_backend.core.models import Role
from clinic_backend.core.tests.factories import api_client, identity_for, make_patient, make_treatment, make_user


class InvoiceCreateTest(TestCase):
    databases = {"default"}

    def setUp(self):
        self.admin = make_user("admin_inv", Role.ADMIN)
        self.desk = make_user("desk_inv", Role.RECEPTIONIST)
        self.dentist = make_user("dentist_inv", Role.DENTIST)
        self.patient = make_patient("Billed Patient", email="billed@example.com")
        self.other_patient = make_patient("Someone Else")
        self.t1 = make_treatment(self.patient, self.dentist, cost="100.00", treatment_type="Filling")
        self.t2 = make_treatment(self.patient, self.dentist, cost="50.00", treatment_type="Cleaning")
        self.client = api_client(self.desk)

    def _create(self, treatment_ids, **extra):
        payload = {"patient_id": self.patient.pk, "treatment_ids": treatment_ids}
        payload.update(extra)
        return self.client.post("/api/invoices/", payload, format="json")

    def test_create_sums_and_snapshots_treatments(self):
        response = self._create([self.t1.pk, self.t2.pk])

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(Decimal(response.data["total_amount"]), Decimal("150.00"))
        self.assertEqual(Decimal(response.data["paid_amount"]), Decimal("0.00"))
        self.assertEqual(response.data["status"], "pending")
        self.assertEqual(response.data["issue_date"], timezone.localdate().isoformat())
        self.assertEqual(
            [(i["treatment_type"], Decimal(i["cost"])) for i in response.data["items"]],
            [("Filling", Decimal("100.00")), ("Cleaning", Decimal("50.00"))],
        )

    def test_later_treatment_edit_does_not_change_invoice(self):
        invoice_id = self._create([self.t1.pk]).data["id"]
        self.t1.cost = Decimal("999.00")
        self.t1.save()

        invoice = Invoice.objects.get(pk=invoice_id)
        self.assertEqual(invoice.total_amount, Decimal("100.00"))
        self.assertEqual(InvoiceItem.objects.get(invoice=invoice).cost, Decimal("100.00"))

    def test_duplicate_ids_are_billed_once(self):
        response = self._create([self.t1.pk, self.t1.pk])

        self.assertEqual(Decimal(response.data["total_amount"]), Decimal("100.00"))
        self.assertEqual(len(response.data["items"]), 1)

    def test_empty_treatment_list_is_400(self):
        response = self._create([])

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["field"], "treatment_ids")

    def test_unknown_treatment_is_404_and_nothing_persisted(self):
        response = self._create([self.t1.pk, 999999])

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertFalse(Invoice.objects.exists())

    def test_treatment_of_other_patient_is_400(self):
        foreign = make_treatment(self.other_patient, self.dentist)

        response = self._create([self.t1.pk, foreign.pk])

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Invoice.objects.exists())

    def test_due_date_before_issue_date_is_400(self):
        yesterday = timezone.localdate() - timedelta(days=1)

        response = self._create([self.t1.pk], due_date=yesterday.isoformat())

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_dentist_cannot_create(self):
        response = api_client(self.dentist).post(
            "/api/invoices/",
            {"patient_id": self.patient.pk, "treatment_ids": [self.t1.pk]},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class InvoicePaymentTest(TestCase):
    databases = {"default"}

    def setUp(self):
        self.admin = make_user("admin_pay", Role.ADMIN)
        self.desk = make_user("desk_pay", Role.RECEPTIONIST)
        dentist = make_user("dentist_pay", Role.DENTIST)
        patient = make_patient("Paying Patient")
        treatment = make_treatment(patient, dentist, cost="150.00")
        self.invoice = BillingService().create(identity_for(self.desk), patient.pk, [treatment.pk])
        self.client = api_client(self.desk)
        self.url = f"/api/invoices/{self.invoice.pk}/"

    def _pay(self, amount):
        return self.client.patch(self.url, {"paid_amount": amount}, format="json")

    def test_status_progression(self):
        pending = self._pay("0.00")
        partial = self._pay("75.00")
        paid = self._pay("150.00")

        self.assertEqual(pending.data["status"], "pending")
        self.assertEqual(partial.data["status"], "partial")
        self.assertEqual(partial.data["balance_due"], "75.00")
        self.assertEqual(paid.data["status"], "paid")
        self.assertEqual(paid.data["balance_due"], "0.00")

    def test_overpayment_rejected_and_state_unchanged(self):
        self._pay("100.00")

        response = self._pay("200.00")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.invoice.refresh_from_db()
        self.assertEqual(self.invoice.paid_amount, Decimal("100.00"))

    def test_negative_payment_rejected(self):
        response = self._pay("-1.00")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["kind"], "validation_error")
        self.assertIn("paid_amount", response.data["fields"])

    def test_status_cannot_be_set_directly(self):
        response = self.client.patch(self.url, {"status": "paid"}, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(Invoice.objects.get(pk=self.invoice.pk).status, "pending")

    def test_status_filter_uses_derived_status(self):
        self._pay("100.00")

        partial = self.client.get("/api/invoices/", {"status": "partial"})
        pending = self.client.get("/api/invoices/", {"status": "pending"})

        self.assertEqual([row["id"] for row in partial.data], [self.invoice.pk])
        self.assertEqual(pending.data, [])

    def test_list_filters_are_validated(self):
        bad_patient = self.client.get("/api/invoices/", {"patient_id": "abc"})
        bad_status = self.client.get("/api/invoices/", {"status": "overdue"})

        self.assertEqual(bad_patient.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("patient_id", bad_patient.data["fields"])
        self.assertEqual(bad_status.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("status", bad_status.data["fields"])

    def test_list_filters_by_patient(self):
        response = self.client.get("/api/invoices/", {"patient_id": self.invoice.patient_id})

        self.assertEqual([row["id"] for row in response.data], [self.invoice.pk])

    def test_cancel_is_admin_only_and_blocks_payments(self):
        denied = self.client.post(f"{self.url}cancel/")
        cancelled = api_client(self.admin).post(f"{self.url}cancel/")
        payment = self._pay("10.00")

        self.assertEqual(denied.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(cancelled.data["status"], "cancelled")
        self.assertEqual(payment.status_code, status.HTTP_400_BAD_REQUEST)

    def test_delete_is_admin_only(self):
        self.assertEqual(self.client.delete(self.url).status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(api_client(self.admin).delete(self.url).status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(Invoice.objects.filter(pk=self.invoice.pk).exists())


class InvoiceScopeTest(TestCase):
    databases = {"default"}

    def setUp(self):
        desk = make_user("desk_iscope", Role.RECEPTIONIST)
        self.dentist = make_user("dentist_iscope", Role.DENTIST)
        self.other = make_user("other_iscope", Role.DENTIST)
        patient = make_patient()
        service = BillingService()
        identity = identity_for(desk)
        self.mine = service.create(identity, patient.pk, [make_treatment(patient, self.dentist).pk])
        self.theirs = service.create(identity, patient.pk, [make_treatment(patient, self.other).pk])
        self.shared = service.create(
            identity,
            patient.pk,
            [make_treatment(patient, self.dentist).pk, make_treatment(patient, self.other).pk],
        )

    def test_dentist_sees_invoices_with_own_items(self):
        response = api_client(self.dentist).get("/api/invoices/")

        self.assertEqual({row["id"] for row in response.data}, {self.mine.pk, self.shared.pk})

    def test_dentist_cannot_read_foreign_invoice(self):
        response = api_client(self.dentist).get(f"/api/invoices/{self.theirs.pk}/")

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_dentist_cannot_pay(self):
        response = api_client(self.dentist).patch(
            f"/api/invoices/{self.mine.pk}/",
            {"paid_amount": "1.00"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


@override_settings(BILLING_CURRENCY_SYMBOL="$", CLINIC_NAME="Smile Clinic")
class InvoiceNotificationTest(TestCase):
    databases = {"default"}

    def setUp(self):
        self.desk = make_user("desk_notify", Role.RECEPTIONIST)
        self.dentist = make_user("dentist_notify", Role.DENTIST)
        self.patient = make_patient("Notified", email="notified@example.com")
        treatment = make_treatment(self.patient, self.dentist, cost="150.00")
        self.service = BillingService()
        self.invoice = self.service.create(
            identity_for(self.desk),
            self.patient.pk,
            [treatment.pk],
            issue_date=date(2024, 3, 5),
            due_date=date(2024, 4, 5),
        )
        self.invoice = self.service.record_payment(identity_for(self.desk), self.invoice.pk, paid_amount="100.00")

    def test_payload(self):
        payload = self.service.reminder_notification_payload(self.invoice)

        self.assertEqual(payload["invoice_number"], "INV-20240305-0001")
        self.assertEqual(payload["status"], "partial")
        self.assertEqual(payload["balance_due"], Decimal("50.00"))
        self.assertEqual(payload["balance_due_display"], "$50.00")
        self.assertEqual(payload["total_amount_display"], "$150.00")
        self.assertEqual(payload["due_date"], "2024-04-05")
        self.assertEqual(payload["patient_email"], "notified@example.com")
        self.assertEqual(payload["subject"], "Smile Clinic: invoice INV-20240305-0001")

    def test_task_sends_email(self):
        self.assertTrue(send_invoice_notification(self.invoice.pk))

        self.assertEqual(len(mail.outbox), 1)
        self.assertIn("Balance due: $50.00", mail.outbox[0].body)

    def test_task_skips_patient_without_email(self):
        self.patient.email = ""
        self.patient.save()

        self.assertFalse(send_invoice_notification(self.invoice.pk))
        self.assertEqual(mail.outbox, [])

    def test_invoice_creation_sends_notification_after_commit(self):
        treatment = make_treatment(self.patient, self.dentist, cost="80.00")

        with self.captureOnCommitCallbacks(execute=True):
            response = api_client(self.desk).post(
                "/api/invoices/",
                {"patient_id": self.patient.pk, "treatment_ids": [treatment.pk]},
                format="json",
            )

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].to, ["notified@example.com"])
        self.assertIn(response.data["invoice_number"], mail.outbox[0].subject)

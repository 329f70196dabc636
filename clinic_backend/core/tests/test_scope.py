"""Row scoping and error mapping shared by every resource."""

from __future__ import annotations

from datetime import timedelta

from django.test import TestCase
from django.utils import timezone

from clinic_backend.appointments.models import Appointment
from clinic_backend.core.exceptions import AccessDenied, NotFound
from clinic_backend.core.models import AuditLog, Role
from clinic_backend.core.scope import APPOINTMENT, INVOICE, PATIENT, TREATMENT, AuthorizationScope, Identity
from clinic_backend.core.tests.factories import (
    api_client,
    identity_for,
    make_appointment,
    make_patient,
    make_treatment,
    make_user,
)
from clinic_backend.medical.models import Treatment
from clinic_backend.patients.models import Patient


class AuthorizationScopeTest(TestCase):
    databases = {"default"}

    def setUp(self):
        self.scope = AuthorizationScope()
        self.admin = make_user("admin_scope", Role.ADMIN)
        self.desk = make_user("desk_scope", Role.RECEPTIONIST)
        self.dentist = make_user("dentist_scope", Role.DENTIST)
        self.other_dentist = make_user("other_scope", Role.DENTIST)

        self.mine = make_patient("Own Patient")
        self.theirs = make_patient("Other Patient")
        start = timezone.now() + timedelta(days=1)
        self.own_appt = make_appointment(self.mine, self.dentist, start, start + timedelta(minutes=30))
        self.other_appt = make_appointment(self.theirs, self.other_dentist, start, start + timedelta(minutes=30))
        self.own_treatment = make_treatment(self.mine, self.dentist)
        self.other_treatment = make_treatment(self.theirs, self.other_dentist)

    def test_admin_and_receptionist_see_everything(self):
        for user in (self.admin, self.desk):
            identity = identity_for(user)
            with self.subTest(role=identity.role):
                patients = self.scope.filter(identity, PATIENT, Patient.objects.all())
                appts = self.scope.filter(identity, APPOINTMENT, Appointment.objects.all())
                self.assertEqual(patients.count(), 2)
                self.assertEqual(appts.count(), 2)

    def test_dentist_sees_own_rows_only(self):
        identity = identity_for(self.dentist)

        patients = self.scope.filter(identity, PATIENT, Patient.objects.all())
        appts = self.scope.filter(identity, APPOINTMENT, Appointment.objects.all())
        treatments = self.scope.filter(identity, TREATMENT, Treatment.objects.all())

        self.assertEqual(list(patients), [self.mine])
        self.assertEqual(list(appts), [self.own_appt])
        self.assertEqual(list(treatments), [self.own_treatment])

    def test_dentist_patient_list_has_no_duplicates(self):
        start = timezone.now() + timedelta(days=2)
        make_appointment(self.mine, self.dentist, start, start + timedelta(minutes=30))

        patients = self.scope.filter(identity_for(self.dentist), PATIENT, Patient.objects.all())

        self.assertEqual(patients.count(), 1)

    def test_receptionist_is_denied_treatment_endpoints(self):
        with self.assertRaises(AccessDenied):
            self.scope.ensure_access(identity_for(self.desk), TREATMENT)

        self.scope.ensure_access(identity_for(self.dentist), TREATMENT)
        self.scope.ensure_access(identity_for(self.desk), INVOICE)

    def test_get_object_distinguishes_missing_from_foreign(self):
        identity = identity_for(self.dentist)

        with self.assertRaises(NotFound):
            self.scope.get_object(identity, PATIENT, Patient.objects.all(), 999999)
        with self.assertRaises(AccessDenied):
            self.scope.get_object(identity, PATIENT, Patient.objects.all(), self.theirs.pk)
        self.assertEqual(
            self.scope.get_object(identity, PATIENT, Patient.objects.all(), self.mine.pk),
            self.mine,
        )

    def test_unknown_role_sees_nothing(self):
        stranger = Identity(id=self.admin.pk, role="janitor")

        self.assertFalse(self.scope.filter(stranger, PATIENT, Patient.objects.all()).exists())

    def test_unknown_kind_is_a_programming_error(self):
        with self.assertRaises(ValueError):
            self.scope.filter(identity_for(self.admin), "room", Patient.objects.all())


class ExceptionMappingTest(TestCase):
    """Domain errors reach the wire as ``{"kind", "detail"}`` with a fixed status."""

    databases = {"default"}

    def setUp(self):
        self.admin = make_user("admin_map", Role.ADMIN)
        self.dentist = make_user("dentist_map", Role.DENTIST)
        self.patient = make_patient("Unrelated")

    def test_admin_gets_404_for_missing_patient(self):
        response = api_client(self.admin).get("/api/patients/999999/")

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.data["kind"], "not_found")

    def test_dentist_gets_403_for_missing_and_foreign_patient(self):
        client = api_client(self.dentist)

        missing = client.get("/api/patients/999999/")
        foreign = client.get(f"/api/patients/{self.patient.pk}/")

        self.assertEqual(missing.status_code, 403)
        self.assertEqual(foreign.status_code, 403)
        self.assertEqual(missing.data, foreign.data)
        self.assertEqual(foreign.data["kind"], "access_denied")

    def test_patient_view_is_audited(self):
        api_client(self.admin).get(f"/api/patients/{self.patient.pk}/")

        entry = AuditLog.objects.get(action="patient_view")
        self.assertEqual(entry.patient_id, self.patient.pk)
        self.assertEqual(entry.role_name, Role.ADMIN)


class FrameworkErrorMappingTest(TestCase):
    """Errors raised by DRF itself carry the same ``kind`` as domain errors."""

    databases = {"default"}

    def setUp(self):
        self.desk = make_user("desk_framework", Role.RECEPTIONIST)
        self.dentist = make_user("dentist_framework", Role.DENTIST)
        self.patient = make_patient("Framework Patient")

    def test_missing_fields_are_validation_errors(self):
        response = api_client(self.desk).post(
            "/api/appointments/",
            {"patient_id": self.patient.pk},
            format="json",
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["kind"], "validation_error")
        self.assertIn("doctor_id", response.data["fields"])
        self.assertIn("start_time", response.data["fields"])

    def test_role_denied_by_permission_class(self):
        response = api_client(self.dentist).post(
            "/api/invoices/",
            {"patient_id": self.patient.pk, "treatment_ids": [1]},
            format="json",
        )

        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.data["kind"], "access_denied")
        self.assertTrue(response.data["detail"])

    def test_anonymous_request(self):
        response = api_client().get("/api/patients/")

        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.data["kind"], "access_denied")

    def test_malformed_json_body(self):
        response = api_client(self.desk).post(
            "/api/patients/",
            data="{not json",
            content_type="application/json",
        )

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.data["kind"], "validation_error")

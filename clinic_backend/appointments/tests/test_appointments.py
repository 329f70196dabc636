"""Booking, updating and cancelling appointments through the API."""

from __future__ import annotations

from datetime import timedelta

from django.test import TestCase

from rest_framework import status

from clinic_backend.appointments.models import Appointment
from clinic_backend.appointments.services import AppointmentScheduler
from clinic_backend.core.models import Role
from clinic_backend.core.tests.factories import (
    api_client,
    aware,
    identity_for,
    iso,
    make_appointment,
    make_patient,
    make_user,
)


class AppointmentCreateTest(TestCase):
    databases = {"default"}

    def setUp(self):
        self.admin = make_user("admin_appt", Role.ADMIN)
        self.desk = make_user("desk_appt", Role.RECEPTIONIST)
        self.dentist = make_user("dentist_appt", Role.DENTIST, first_name="Ada", last_name="Molar")
        self.other_dentist = make_user("other_appt", Role.DENTIST)
        self.patient = make_patient("Booked Patient")
        self.start = aware(2030, 5, 6, 9, 0)

    def _payload(self, **overrides):
        payload = {
            "patient_id": self.patient.pk,
            "doctor_id": self.dentist.pk,
            "start_time": iso(self.start),
            "end_time": iso(self.start + timedelta(minutes=45)),
        }
        payload.update(overrides)
        return payload

    def test_receptionist_books_for_any_dentist(self):
        response = api_client(self.desk).post("/api/appointments/", self._payload(), format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["doctor"]["id"], self.dentist.pk)
        self.assertEqual(response.data["doctor"]["name"], "Ada Molar")
        self.assertEqual(response.data["patient_name"], "Booked Patient")
        self.assertEqual(response.data["notes"], "")

    def test_dentist_books_own_slot(self):
        response = api_client(self.dentist).post("/api/appointments/", self._payload(), format="json")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    def test_dentist_cannot_book_for_other_dentist(self):
        response = api_client(self.dentist).post(
            "/api/appointments/",
            self._payload(doctor_id=self.other_dentist.pk),
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(Appointment.objects.exists())

    def test_end_before_start_is_rejected(self):
        response = api_client(self.desk).post(
            "/api/appointments/",
            self._payload(end_time=iso(self.start)),
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["kind"], "validation_error")
        self.assertEqual(response.data["field"], "end_time")

    def test_missing_patient_is_404(self):
        response = api_client(self.desk).post("/api/appointments/", self._payload(patient_id=999999), format="json")

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_non_practitioner_doctor_is_404(self):
        response = api_client(self.admin).post(
            "/api/appointments/",
            self._payload(doctor_id=self.desk.pk),
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_inactive_dentist_cannot_be_booked(self):
        self.dentist.is_active = False
        self.dentist.save()

        response = api_client(self.desk).post("/api/appointments/", self._payload(), format="json")

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class AppointmentUpdateTest(TestCase):
    databases = {"default"}

    def setUp(self):
        self.desk = make_user("desk_update", Role.RECEPTIONIST)
        self.dentist = make_user("dentist_update", Role.DENTIST)
        self.patient = make_patient()
        self.start = aware(2030, 5, 6, 9, 0)
        self.appt = make_appointment(self.patient, self.dentist, self.start, self.start + timedelta(minutes=30))
        self.scheduler = AppointmentScheduler()
        self.identity = identity_for(self.desk)

    def test_time_change_marks_rescheduled(self):
        new_start = self.start + timedelta(hours=1)

        updated = self.scheduler.update(self.identity, self.appt.pk, start_time=new_start, end_time=new_start + timedelta(minutes=30))

        self.assertEqual(updated.status, Appointment.STATUS_RESCHEDULED)
        self.assertEqual(updated.start_time, new_start)

    def test_explicit_status_wins_over_reschedule(self):
        new_start = self.start + timedelta(hours=1)

        updated = self.scheduler.update(
            self.identity,
            self.appt.pk,
            start_time=new_start,
            end_time=new_start + timedelta(minutes=30),
            status=Appointment.STATUS_SCHEDULED,
        )

        self.assertEqual(updated.status, Appointment.STATUS_SCHEDULED)

    def test_same_times_are_not_a_time_change(self):
        updated = self.scheduler.update(
            self.identity,
            self.appt.pk,
            start_time=self.start,
            end_time=self.start + timedelta(minutes=30),
        )

        self.assertEqual(updated.status, Appointment.STATUS_SCHEDULED)

    def test_one_bound_falls_back_to_stored_value(self):
        updated = self.scheduler.update(self.identity, self.appt.pk, end_time=self.start + timedelta(hours=1))

        self.assertEqual(updated.start_time, self.start)
        self.assertEqual(updated.end_time, self.start + timedelta(hours=1))

    def test_status_only_update_skips_conflict_check(self):
        # Two overlapping rows can exist historically; completing one must not trip the detector.
        make_appointment(self.patient, self.dentist, self.start, self.start + timedelta(minutes=30))

        updated = self.scheduler.update(self.identity, self.appt.pk, status=Appointment.STATUS_COMPLETED)

        self.assertEqual(updated.status, Appointment.STATUS_COMPLETED)

    def test_invalid_interval_on_update(self):
        response = api_client(self.desk).put(
            f"/api/appointments/{self.appt.pk}/",
            {"end_time": iso(self.start - timedelta(minutes=5))},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_unknown_status_is_rejected(self):
        response = api_client(self.desk).patch(
            f"/api/appointments/{self.appt.pk}/",
            {"status": "no_show"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_notes_update_keeps_status(self):
        response = api_client(self.desk).patch(
            f"/api/appointments/{self.appt.pk}/",
            {"notes": "bring x-rays"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["notes"], "bring x-rays")
        self.assertEqual(response.data["status"], Appointment.STATUS_SCHEDULED)

    def test_cancel_is_soft(self):
        response = api_client(self.desk).delete(f"/api/appointments/{self.appt.pk}/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["status"], Appointment.STATUS_CANCELLED)
        self.assertTrue(Appointment.objects.filter(pk=self.appt.pk).exists())

    def test_dentist_cannot_cancel(self):
        response = api_client(self.dentist).delete(f"/api/appointments/{self.appt.pk}/")

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class AppointmentListTest(TestCase):
    databases = {"default"}

    def setUp(self):
        self.desk = make_user("desk_list", Role.RECEPTIONIST)
        self.dentist = make_user("dentist_list", Role.DENTIST)
        self.other = make_user("other_list", Role.DENTIST)
        self.patient = make_patient()
        day = aware(2030, 6, 1, 9, 0)
        self.a = make_appointment(self.patient, self.dentist, day, day + timedelta(minutes=30))
        self.b = make_appointment(self.patient, self.other, day, day + timedelta(minutes=30))
        self.c = make_appointment(
            self.patient, self.dentist, day + timedelta(days=1), day + timedelta(days=1, minutes=30),
            status=Appointment.STATUS_COMPLETED,
        )

    def _ids(self, response):
        return [row["id"] for row in response.data]

    def test_receptionist_sees_all_ordered_by_start(self):
        response = api_client(self.desk).get("/api/appointments/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(self._ids(response), [self.a.pk, self.b.pk, self.c.pk])

    def test_dentist_sees_own(self):
        response = api_client(self.dentist).get("/api/appointments/")

        self.assertEqual(self._ids(response), [self.a.pk, self.c.pk])

    def test_filters(self):
        client = api_client(self.desk)

        self.assertEqual(self._ids(client.get("/api/appointments/", {"doctor_id": self.other.pk})), [self.b.pk])
        self.assertEqual(self._ids(client.get("/api/appointments/", {"date": "2030-06-02"})), [self.c.pk])
        self.assertEqual(self._ids(client.get("/api/appointments/", {"status": "completed"})), [self.c.pk])

    def test_dentist_gets_403_for_foreign_appointment(self):
        response = api_client(self.dentist).get(f"/api/appointments/{self.b.pk}/")

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

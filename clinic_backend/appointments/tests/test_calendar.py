from __future__ import annotations

from datetime import timedelta

from django.test import TestCase

from rest_framework import status

from clinic_backend.core.models import Role
from clinic_backend.core.tests.factories import api_client, aware, iso, make_appointment, make_patient, make_user


class CalendarTest(TestCase):
    databases = {"default"}

    def setUp(self):
        self.desk = make_user("desk_cal", Role.RECEPTIONIST)
        self.dentist = make_user("dentist_cal", Role.DENTIST, first_name="Ada", last_name="Molar", calendar_color="#AA3366")
        self.other = make_user("other_cal", Role.DENTIST)
        self.patient = make_patient("Calendar Patient")
        self.start = aware(2030, 7, 1, 8, 0)
        self.inside = make_appointment(self.patient, self.dentist, self.start + timedelta(hours=2), self.start + timedelta(hours=3), notes="crown")
        self.other_inside = make_appointment(self.patient, self.other, self.start + timedelta(hours=2), self.start + timedelta(hours=3))
        self.outside = make_appointment(self.patient, self.dentist, self.start + timedelta(days=3), self.start + timedelta(days=3, hours=1))

    def _get(self, user, **params):
        query = {"start": iso(self.start), "end": iso(self.start + timedelta(days=1))}
        query.update(params)
        return api_client(user).get("/api/appointments/calendar/", query)

    def test_events_in_range(self):
        response = self._get(self.desk)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([e["id"] for e in response.data], [self.inside.pk, self.other_inside.pk])
        event = response.data[0]
        self.assertEqual(event["title"], "Calendar Patient")
        self.assertEqual(event["doctor_name"], "Ada Molar")
        self.assertEqual(event["doctor_color"], "#AA3366")
        self.assertEqual(event["notes"], "crown")

    def test_range_bounds_are_inclusive(self):
        response = self._get(self.desk, start=iso(self.start + timedelta(hours=3)), end=iso(self.start + timedelta(hours=4)))

        self.assertEqual({e["id"] for e in response.data}, {self.inside.pk, self.other_inside.pk})

    def test_doctor_filter_and_dentist_scope(self):
        filtered = self._get(self.desk, doctor_id=self.other.pk)
        scoped = self._get(self.dentist)

        self.assertEqual([e["id"] for e in filtered.data], [self.other_inside.pk])
        self.assertEqual([e["id"] for e in scoped.data], [self.inside.pk])

    def test_end_before_start_is_400(self):
        response = self._get(self.desk, end=iso(self.start - timedelta(hours=1)))

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_missing_range_is_400(self):
        response = api_client(self.desk).get("/api/appointments/calendar/")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

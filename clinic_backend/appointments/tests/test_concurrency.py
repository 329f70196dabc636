"""Concurrent bookings for one doctor: exactly one wins."""

from __future__ import annotations

import threading
from datetime import timedelta

from django.db import connections
from django.test import TransactionTestCase

from clinic_backend.appointments.exceptions import SchedulingConflictError
from clinic_backend.appointments.models import Appointment
from clinic_backend.appointments.services import AppointmentScheduler
from clinic_backend.core.models import Role
from clinic_backend.core.tests.factories import aware, identity_for, make_patient, make_user

WORKERS = 6


class ConcurrentBookingTest(TransactionTestCase):
    databases = {"default"}

    def setUp(self):
        self.desk = make_user("desk_race", Role.RECEPTIONIST)
        self.dentist = make_user("dentist_race", Role.DENTIST)
        self.patient = make_patient("Race Patient")

    def test_identical_slot_booked_once(self):
        start = aware(2030, 9, 1, 10, 0)
        identity = identity_for(self.desk)
        barrier = threading.Barrier(WORKERS)
        outcomes = []
        lock = threading.Lock()

        def book():
            result = "error"
            try:
                barrier.wait()
                AppointmentScheduler().create(identity, self.patient.pk, self.dentist.pk, start, start + timedelta(minutes=30))
                result = "created"
            except SchedulingConflictError:
                result = "conflict"
            finally:
                connections.close_all()
            with lock:
                outcomes.append(result)

        threads = [threading.Thread(target=book) for _ in range(WORKERS)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(outcomes.count("created"), 1)
        self.assertEqual(outcomes.count("conflict"), WORKERS - 1)
        self.assertEqual(Appointment.objects.filter(doctor=self.dentist).count(), 1)

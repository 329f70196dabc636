"""Shared fixtures for the clinic test suites.

Each test builds the rows it needs on the default test DB.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from django.utils import timezone

from rest_framework.test import APIClient

from clinic_backend.appointments.models import Appointment
from clinic_backend.core.models import Role, User
from clinic_backend.core.scope import Identity
from clinic_backend.medical.models import Treatment
from clinic_backend.patients.models import Patient

ROLE_LABELS = {
    Role.ADMIN: "Administrator",
    Role.DENTIST: "Dentist",
    Role.RECEPTIONIST: "Receptionist",
}

PASSWORD = "SecurePass123!"


def get_role(name: str) -> Role:
    role, _ = Role.objects.using("default").get_or_create(
        name=name,
        defaults={"label": ROLE_LABELS.get(name, name)},
    )
    return role


def make_user(username: str, role_name: str | None, **extra) -> User:
    role = get_role(role_name) if role_name else None
    extra.setdefault("email", f"{username}@example.com")
    return User.objects.db_manager("default").create_user(
        username=username,
        password=PASSWORD,
        role=role,
        **extra,
    )


def identity_for(user: User) -> Identity:
    return Identity(id=user.pk, role=user.role.name)


def api_client(user: User | None = None) -> APIClient:
    client = APIClient()
    client.defaults["HTTP_HOST"] = "localhost"
    if user is not None:
        client.force_authenticate(user=user)
    return client


def make_patient(name: str = "Jane Roe", **fields):
    fields.setdefault("contact", "+1 555 0100")
    return Patient.objects.using("default").create(name=name, **fields)


def make_appointment(patient, doctor, start: datetime, end: datetime, status: str = "scheduled", **fields):
    return Appointment.objects.using("default").create(
        patient=patient,
        doctor=doctor,
        start_time=start,
        end_time=end,
        status=status,
        **fields,
    )


def make_treatment(patient, doctor, cost="100.00", treatment_type="Filling", **fields):
    fields.setdefault("treatment_date", timezone.now())
    return Treatment.objects.using("default").create(
        patient=patient,
        doctor=doctor,
        treatment_type=treatment_type,
        cost=Decimal(cost),
        **fields,
    )


def aware(year, month, day, hour=0, minute=0) -> datetime:
    return timezone.make_aware(datetime(year, month, day, hour, minute), timezone.get_current_timezone())


def iso(dt: datetime) -> str:
    return dt.isoformat().replace("+00:00", "Z")

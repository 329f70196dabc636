"""Role-scoped visibility for patients, appointments, treatments and invoices.

One table decides which rows an identity may see or touch. Every service
method passes its base queryset through :meth:`AuthorizationScope.filter`
before reading, and resolves write targets with
:meth:`AuthorizationScope.get_object`, which keeps "does not exist" and
"exists but is not yours" apart for logs and tests.

    role          patient       appointment  treatment    invoice
    admin         all           all          all          all
    receptionist  all           all          (endpoint)   all
    dentist       own patients  own          own          own items

Receptionists are denied treatment *endpoints* outright (``ensure_access``);
billing still reads treatments on their behalf when building invoices.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from django.db.models import QuerySet

from clinic_backend.core.exceptions import AccessDenied, NotFound
from clinic_backend.core.models import Role

logger = logging.getLogger(__name__)


PATIENT = 'patient'
APPOINTMENT = 'appointment'
TREATMENT = 'treatment'
INVOICE = 'invoice'

KINDS = (PATIENT, APPOINTMENT, TREATMENT, INVOICE)


@dataclass(frozen=True)
class Identity:
    """The authenticated caller. Built once per request, never from data."""

    id: int
    role: str

    @classmethod
    def from_user(cls, user) -> 'Identity':
        if user is None or not getattr(user, 'is_authenticated', False):
            raise AccessDenied('Authentication required.')
        role_name = getattr(getattr(user, 'role', None), 'name', None)
        if role_name not in Role.NAMES:
            raise AccessDenied()
        return cls(id=user.pk, role=role_name)

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def is_dentist(self) -> bool:
        return self.role == Role.DENTIST

    @property
    def is_receptionist(self) -> bool:
        return self.role == Role.RECEPTIONIST


RowRule = Callable[[Identity, QuerySet], QuerySet]


def _patients_with_own_appointments(identity: Identity, qs: QuerySet) -> QuerySet:
    return qs.filter(appointments__doctor_id=identity.id).distinct()


def _own_doctor_rows(identity: Identity, qs: QuerySet) -> QuerySet:
    return qs.filter(doctor_id=identity.id)


def _invoices_with_own_items(identity: Identity, qs: QuerySet) -> QuerySet:
    return qs.filter(items__doctor_id=identity.id).distinct()


# Missing kind => unrestricted for that role.
ROW_RULES: dict[str, dict[str, RowRule]] = {
    Role.ADMIN: {},
    Role.RECEPTIONIST: {},
    Role.DENTIST: {
        PATIENT: _patients_with_own_appointments,
        APPOINTMENT: _own_doctor_rows,
        TREATMENT: _own_doctor_rows,
        INVOICE: _invoices_with_own_items,
    },
}

ENDPOINT_DENIED: dict[str, frozenset[str]] = {
    Role.RECEPTIONIST: frozenset({TREATMENT}),
}


class AuthorizationScope:
    """Table-driven row policy, evaluated per call and free of side effects."""

    def __init__(self, rules=None, denied=None):
        self.rules = ROW_RULES if rules is None else rules
        self.denied = ENDPOINT_DENIED if denied is None else denied

    def filter(self, identity: Identity, kind: str, queryset: QuerySet) -> QuerySet:
        if kind not in KINDS:
            raise ValueError(f'Unknown resource kind: {kind!r}')
        role_rules = self.rules.get(identity.role)
        if role_rules is None:
            return queryset.none()
        rule = role_rules.get(kind)
        if rule is None:
            return queryset
        return rule(identity, queryset)

    def ensure_access(self, identity: Identity, kind: str) -> None:
        if kind in self.denied.get(identity.role, frozenset()):
            logger.info('endpoint denied kind=%s identity=%s role=%s', kind, identity.id, identity.role)
            raise AccessDenied()

    def require_role(self, identity: Identity, *roles: str) -> None:
        if identity.role not in roles:
            logger.info('role denied identity=%s role=%s required=%s', identity.id, identity.role, ','.join(roles))
            raise AccessDenied()

    def get_object(self, identity: Identity, kind: str, queryset: QuerySet, pk):
        """Resolve ``pk`` within scope.

        Raises NotFound if no such row exists and AccessDenied if it exists
        outside the identity's scope.
        """
        obj = queryset.filter(pk=pk).first()
        if obj is None:
            raise NotFound(f'{kind.capitalize()} not found.')
        if not self.filter(identity, kind, queryset).filter(pk=pk).exists():
            logger.warning(
                'scope denied kind=%s id=%s identity=%s role=%s',
                kind, pk, identity.id, identity.role,
            )
            raise AccessDenied()
        return obj

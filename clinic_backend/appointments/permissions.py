from clinic_backend.core.models import Role
from clinic_backend.core.permissions import ALL_ROLES, IsAdmin, IsFrontDesk, RBACPermission


class AppointmentPermission(RBACPermission):
    """RBAC for appointments.

    - admin: everything
    - receptionist: everything
    - dentist: own appointments only (read/write), cannot cancel
    """

    read_roles = ALL_ROLES
    write_roles = frozenset({Role.ADMIN, Role.RECEPTIONIST, Role.DENTIST})
    delete_roles = frozenset({Role.ADMIN, Role.RECEPTIONIST})


class CalendarPermission(RBACPermission):
    """Calendar is read-only for every role; rows are scoped."""

    read_roles = ALL_ROLES


class ReminderCandidatesPermission(IsAdmin):
    """Reminder candidates feed the notification job; admins may inspect it."""


class ReminderSentPermission(IsFrontDesk):
    """Admin or receptionist send or confirm reminders."""

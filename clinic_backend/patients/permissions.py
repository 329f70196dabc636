from clinic_backend.core.models import Role
from clinic_backend.core.permissions import ALL_ROLES, RBACPermission


class PatientPermission(RBACPermission):
    """RBAC for patient endpoints.

    - admin: full access, only role that may delete
    - receptionist: read + write
    - dentist: read only, limited to their own patients
    """

    read_roles = ALL_ROLES
    write_roles = frozenset({Role.ADMIN, Role.RECEPTIONIST})
    delete_roles = frozenset({Role.ADMIN})


class PatientRelatedPermission(RBACPermission):
    """Read-only sub-lists (appointments, treatments, invoices, files)."""

    read_roles = ALL_ROLES


class PatientFilePermission(RBACPermission):
    """Any role attaches or removes files; scope and uploader are checked by the service."""

    read_roles = ALL_ROLES
    write_roles = ALL_ROLES

from clinic_backend.core.models import Role
from clinic_backend.core.permissions import RBACPermission


class TreatmentPermission(RBACPermission):
    """RBAC for treatment endpoints.

    - admin: full access
    - dentist: read/write own treatments, no delete
    - receptionist: no access at all
    """

    read_roles = frozenset({Role.ADMIN, Role.DENTIST})
    write_roles = frozenset({Role.ADMIN, Role.DENTIST})
    delete_roles = frozenset({Role.ADMIN})

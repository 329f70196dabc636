from clinic_backend.core.models import Role
from clinic_backend.core.permissions import ALL_ROLES, IsAdmin, RBACPermission


class InvoicePermission(RBACPermission):
    """RBAC for invoice endpoints.

    - admin: full access
    - receptionist: read, create, record payments
    - dentist: read only (rows limited to invoices with their items)
    """

    read_roles = ALL_ROLES
    write_roles = frozenset({Role.ADMIN, Role.RECEPTIONIST})
    delete_roles = frozenset({Role.ADMIN})


class InvoiceCancelPermission(IsAdmin):
    """Only admins cancel invoices."""

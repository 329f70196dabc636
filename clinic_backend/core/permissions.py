"""Core permissions for RBAC (Role-Based Access Control).

This module provides base permission classes and role-specific permissions
following the project's RBAC pattern with read_roles/write_roles.

Standard roles: admin, dentist, receptionist

Permission classes only gate the endpoint by role. Row visibility is decided
by ``clinic_backend.core.scope.AuthorizationScope`` inside the services.
"""

from rest_framework.permissions import BasePermission, SAFE_METHODS

from clinic_backend.core.models import Role
from clinic_backend.core.scope import Identity


ALL_ROLES = frozenset(Role.NAMES)


def request_identity(request) -> Identity:
    """Build the caller's Identity from the authenticated request user."""
    return Identity.from_user(getattr(request, 'user', None))


class RBACPermission(BasePermission):
    """Base class for RBAC permissions with read_roles/write_roles pattern.

    Subclasses should define:
    - read_roles: set of role names that can perform GET/HEAD/OPTIONS
    - write_roles: set of role names that can perform POST/PUT/PATCH
    - delete_roles: set of role names that can perform DELETE
      (defaults to write_roles)

    Example:
        class MyPermission(RBACPermission):
            read_roles = {"admin", "dentist", "receptionist"}
            write_roles = {"admin", "receptionist"}
    """

    read_roles: frozenset = frozenset()
    write_roles: frozenset = frozenset()
    delete_roles: frozenset | None = None

    def _role_name(self, request):
        user = getattr(request, "user", None)
        role = getattr(user, "role", None)
        return getattr(role, "name", None)

    def has_permission(self, request, view):
        user = getattr(request, "user", None)
        if not user or not user.is_authenticated:
            return False

        role_name = self._role_name(request)
        if not role_name:
            return False

        if request.method in SAFE_METHODS:
            return role_name in self.read_roles

        if request.method == 'DELETE' and self.delete_roles is not None:
            return role_name in self.delete_roles

        return role_name in self.write_roles


class IsRole(BasePermission):
    """Simple role check for single-purpose endpoints."""

    allowed_roles: list = []

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        if not getattr(user, 'role', None):
            return False
        return user.role.name in self.allowed_roles


class IsAdmin(IsRole):
    """Permission: user must have admin role."""

    allowed_roles = [Role.ADMIN]


class IsFrontDesk(IsRole):
    """Permission: admin or receptionist."""

    allowed_roles = [Role.ADMIN, Role.RECEPTIONIST]


class HasClinicRole(IsRole):
    """Permission: any authenticated staff member with a role."""

    allowed_roles = list(Role.NAMES)

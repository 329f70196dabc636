"""Staff accounts: admin user management, registration and password changes.

Every operation except ``practitioners`` and ``change_password`` is admin
only. Accounts that already hold appointments or treatments cannot be deleted;
deactivate them instead.
"""

from __future__ import annotations

import logging

from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.db.models import ProtectedError, Q

from clinic_backend.core.exceptions import ConflictError, InvalidData, NotFound
from clinic_backend.core.models import Role, User
from clinic_backend.core.scope import AuthorizationScope, Identity

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ('email', 'first_name', 'last_name', 'is_active', 'calendar_color')


class UserService:
    def __init__(self, using: str = 'default', scope: AuthorizationScope | None = None):
        self.using = using
        self.scope = scope or AuthorizationScope()

    def base_queryset(self):
        return User.objects.using(self.using).select_related('role')

    # -- reads ---------------------------------------------------------------

    def list(self, identity: Identity, role: str | None = None, search: str | None = None):
        self.scope.require_role(identity, Role.ADMIN)
        qs = self.base_queryset()
        if role:
            qs = qs.filter(role__name=role)
        if search:
            qs = qs.filter(
                Q(username__icontains=search)
                | Q(first_name__icontains=search)
                | Q(last_name__icontains=search)
                | Q(email__icontains=search)
            )
        return qs.order_by('-date_joined', '-id')

    def practitioners(self, identity: Identity):
        """Active dentists, for picking the ``doctor_id`` of a booking."""
        return (
            self.base_queryset()
            .filter(is_active=True, role__name=Role.DENTIST)
            .order_by('last_name', 'first_name', 'username')
        )

    def get(self, identity: Identity, user_id) -> User:
        self.scope.require_role(identity, Role.ADMIN)
        user = self.base_queryset().filter(pk=user_id).first()
        if user is None:
            raise NotFound('User not found.')
        return user

    # -- writes --------------------------------------------------------------

    def register(self, identity: Identity, *, username: str, email: str, password: str, role: str, **profile) -> User:
        self.scope.require_role(identity, Role.ADMIN)
        users = User.objects.db_manager(self.using)
        if users.filter(username__iexact=username).exists():
            raise ConflictError('Username already exists.', field='username')
        self._ensure_email_free(email)

        candidate = User(username=username, email=email, **profile)
        self._check_password(password, candidate, field='password')

        with transaction.atomic(using=self.using):
            user = users.create_user(
                username=username,
                email=email,
                password=password,
                role=self._resolve_role(role),
                **profile,
            )

        logger.info('user registered id=%s role=%s by=%s', user.pk, role, identity.id)
        return user

    def update(self, identity: Identity, user_id, **fields) -> User:
        user = self.get(identity, user_id)

        role = fields.pop('role', None)
        unknown = set(fields) - set(PROFILE_FIELDS)
        if unknown:
            raise InvalidData(f"Unknown user field(s): {', '.join(sorted(unknown))}.")
        if 'email' in fields and fields['email'] != user.email:
            self._ensure_email_free(fields['email'], exclude_id=user.pk)

        for field, value in fields.items():
            setattr(user, field, value)
        if role is not None:
            user.role = self._resolve_role(role)
        user.save(using=self.using)

        changed = sorted(fields) + (['role'] if role is not None else [])
        logger.info('user updated id=%s fields=%s by=%s', user.pk, changed, identity.id)
        return user

    def delete(self, identity: Identity, user_id) -> None:
        user = self.get(identity, user_id)
        if user.pk == identity.id:
            raise InvalidData('Cannot delete your own account.')
        try:
            with transaction.atomic(using=self.using):
                user.delete(using=self.using)
        except ProtectedError:
            raise ConflictError('User has clinical records; deactivate the account instead.') from None
        logger.info('user deleted id=%s by=%s', user_id, identity.id)

    def change_password(self, user: User, current_password: str, new_password: str) -> None:
        """Change the caller's own password after re-checking the current one."""
        if not user.check_password(current_password):
            raise InvalidData('Current password is incorrect.', field='current_password')
        self._check_password(new_password, user, field='new_password')
        user.set_password(new_password)
        user.save(using=self.using, update_fields=['password'])
        logger.info('password changed id=%s', user.pk)

    # -- helpers -------------------------------------------------------------

    def _resolve_role(self, name: str) -> Role:
        if name not in Role.NAMES:
            raise InvalidData(f'Unknown role: {name}.', field='role')
        role, _ = Role.objects.using(self.using).get_or_create(name=name, defaults={'label': name.capitalize()})
        return role

    def _ensure_email_free(self, email: str, exclude_id=None) -> None:
        if not email:
            return
        qs = User.objects.using(self.using).filter(email__iexact=email)
        if exclude_id is not None:
            qs = qs.exclude(pk=exclude_id)
        if qs.exists():
            raise ConflictError('Email already exists.', field='email')

    @staticmethod
    def _check_password(password: str, user: User, *, field: str) -> None:
        try:
            validate_password(password, user)
        except DjangoValidationError as exc:
            raise InvalidData(' '.join(exc.messages), field=field) from None

"""DRF exception handler for clinic domain errors.

Services raise ``ClinicError`` subclasses; this turns them into
``{"kind": ..., "detail": ...}`` responses. Errors DRF raises on its own
(serializer validation, permission classes, authentication, 404 lookups) get
the same shape, with serializer field errors under ``fields``.

Dentists probing ids outside their scope get the same answer whether the row
is missing or forbidden, so resource existence does not leak. Admin and
receptionist callers still see a distinct 404. The log line always records
the real kind.
"""

from __future__ import annotations

import logging

from django.core.exceptions import PermissionDenied as DjangoPermissionDenied
from django.http import Http404

from rest_framework import exceptions as drf_exceptions
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from clinic_backend.core.exceptions import AccessDenied, ClinicError, FatalError, InvalidData, NotFound
from clinic_backend.core.models import Role

logger = logging.getLogger(__name__)

_INVALID = (drf_exceptions.ValidationError, drf_exceptions.ParseError)
_MISSING = (Http404, drf_exceptions.NotFound)
_DENIED = (
    DjangoPermissionDenied,
    drf_exceptions.PermissionDenied,
    drf_exceptions.NotAuthenticated,
    drf_exceptions.AuthenticationFailed,
)


def _role_name(context):
    request = context.get('request') if context else None
    user = getattr(request, 'user', None)
    return getattr(getattr(user, 'role', None), 'name', None)


def _view_name(context):
    view = context.get('view') if context else None
    return type(view).__name__ if view is not None else '-'


def _masked() -> Response:
    denied = AccessDenied()
    return Response(denied.to_dict(), status=denied.status_code)


def _framework_kind(exc) -> str:
    if isinstance(exc, _INVALID):
        return InvalidData.kind
    if isinstance(exc, _MISSING):
        return NotFound.kind
    if isinstance(exc, _DENIED):
        return AccessDenied.kind
    return getattr(exc, 'default_code', ClinicError.kind)


def _framework_body(exc, data, kind: str) -> dict:
    if isinstance(exc, drf_exceptions.ValidationError):
        fields = data if isinstance(data, dict) else {'non_field_errors': data}
        return {'kind': kind, 'detail': InvalidData.default_message, 'fields': fields}
    detail = data.get('detail') if isinstance(data, dict) else None
    return {'kind': kind, 'detail': str(detail) if detail is not None else ClinicError.default_message}


def _handle_framework_error(exc, context):
    # DRF builds the response first: status, auth headers and rollback.
    response = drf_exception_handler(exc, context)
    if response is None:
        return None

    kind = _framework_kind(exc)
    logger.info('request rejected view=%s kind=%s status=%s', _view_name(context), kind, response.status_code)

    if kind == NotFound.kind and _role_name(context) == Role.DENTIST:
        return _masked()

    response.data = _framework_body(exc, response.data, kind)
    return response


def clinic_exception_handler(exc, context):
    if not isinstance(exc, ClinicError):
        return _handle_framework_error(exc, context)

    if isinstance(exc, FatalError):
        logger.error('fatal error view=%s kind=%s detail=%s', _view_name(context), exc.kind, exc.message, exc_info=exc)
    else:
        logger.info('request rejected view=%s kind=%s detail=%s', _view_name(context), exc.kind, exc.message)

    if isinstance(exc, NotFound) and _role_name(context) == Role.DENTIST:
        return _masked()

    return Response(exc.to_dict(), status=exc.status_code)

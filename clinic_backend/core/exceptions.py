"""
Domain exceptions shared by all clinic apps.

Services raise these; ``clinic_backend.core.exception_handler`` translates
them into DRF responses. Every error carries a stable machine-readable
``kind`` and an HTTP status so the boundary never has to guess.
"""

from __future__ import annotations

from typing import Any


class ClinicError(Exception):
    """Base exception for all business-rule and storage failures."""

    kind = 'error'
    status_code = 400
    default_message = 'Request could not be processed.'

    def __init__(self, message: str | None = None, *, field: str | None = None):
        self.message = message or self.default_message
        self.field = field
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        result = {
            'kind': self.kind,
            'detail': self.message,
        }
        if self.field:
            result['field'] = self.field
        return result


class InvalidData(ClinicError):
    """Malformed input. The caller can fix it; never retried automatically."""

    kind = 'validation_error'
    status_code = 400
    default_message = 'Invalid input.'


class NotFound(ClinicError):
    """Referenced patient/doctor/treatment/invoice/appointment does not exist."""

    kind = 'not_found'
    status_code = 404
    default_message = 'Not found.'


class AccessDenied(ClinicError):
    """The identity's role or ownership does not permit the operation."""

    kind = 'access_denied'
    status_code = 403
    default_message = 'Access denied.'


class ConflictError(ClinicError):
    """A concurrent or overlapping write was rejected."""

    kind = 'conflict'
    status_code = 409
    default_message = 'Conflicting request.'


class FatalError(ClinicError):
    """Storage-layer fault. Surfaced as 5xx and logged for operators."""

    kind = 'fatal'
    status_code = 503
    default_message = 'Service temporarily unavailable.'

import logging

from .models import AuditLog

logger = logging.getLogger(__name__)


def log_patient_action(identity, action, patient_id=None, meta=None, using='default'):
    """Write a patient-access action to the audit log.

    ``identity`` is a ``clinic_backend.core.scope.Identity`` (or None for
    system jobs such as the reminder sweep). Audit failures are logged and
    never break the calling request.
    """

    user_id = getattr(identity, 'id', None)
    role_name = getattr(identity, 'role', '') or ''

    try:
        AuditLog.objects.using(using).create(
            user_id=user_id,
            role_name=role_name,
            action=action,
            patient_id=patient_id,
            meta=meta,
        )
    except Exception:
        logger.exception('AuditLog write failed (action=%s, patient_id=%s)', action, patient_id)

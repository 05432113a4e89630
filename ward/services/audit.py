import logging
from typing import Optional, Any, Dict

from django.contrib.auth import get_user_model

from ward.models import AuditEvent

logger = logging.getLogger(__name__)

User = get_user_model()

ACTIONS = (
    'login',
    'patient_admit',
    'patient_update',
    'patient_delete',
    'admission_discharge',
    'consultation_create',
    'consultation_complete',
    'long_stay_note_add',
    'report_export',
)


def log_action(*, user: Optional[User], action: str, object_type: Optional[str]=None,
               object_id: Optional[int]=None, detail: Optional[Dict[str, Any]]=None) -> AuditEvent:
    if action not in ACTIONS:
        logger.warning('unregistered audit action %s', action)
    return AuditEvent.objects.create(
        user=user if isinstance(user, User) and user.pk else None,
        action=action,
        object_type=object_type, object_id=object_id,
        detail=detail or {},
    )

"""
Model change hooks for the active roster.

Every save or delete of an admission, consultation or patient is turned
into a named roster event.  The cached collection is dropped at once and
again after commit; connected roster sockets are told after commit.
"""
import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.db import transaction
from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from ward.models import Admission, Consultation, Patient
from ward.services.roster import ADMISSION_CHANGED, CONSULTATION_CHANGED, PATIENT_CHANGED, invalidate

logger = logging.getLogger(__name__)

ROSTER_GROUP = 'roster'


def broadcast_roster_event(event: str, object_id=None) -> None:
    channel_layer = get_channel_layer()
    if channel_layer is None:
        return
    async_to_sync(channel_layer.group_send)(ROSTER_GROUP, {
        'type': 'roster.changed', 'event': event, 'id': object_id,
    })


def emit(event: str, object_id=None) -> None:
    logger.debug('roster event %s id=%s', event, object_id)
    invalidate(event)

    def after_commit():
        invalidate(event)
        broadcast_roster_event(event, object_id)

    transaction.on_commit(after_commit)


@receiver([post_save, post_delete], sender=Admission)
def admission_changed(sender, instance, **kwargs):
    emit(ADMISSION_CHANGED, instance.pk)


@receiver([post_save, post_delete], sender=Consultation)
def consultation_changed(sender, instance, **kwargs):
    emit(CONSULTATION_CHANGED, instance.pk)


@receiver([post_save, post_delete], sender=Patient)
def patient_changed(sender, instance, **kwargs):
    emit(PATIENT_CHANGED, instance.pk)

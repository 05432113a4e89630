"""
Discharge and consultation-completion workflow.

An admission entry is discharged, a consultation entry is completed.
Either way the status write is followed by a note in the patient's
medical-note feed.  With atomic workflows on, both writes share one
transaction; otherwise a failed note append after a committed status
write raises :class:`PartialFailureError`.
"""
from __future__ import annotations

import datetime
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from django.db import DatabaseError
from django.utils import timezone

from ward.exceptions import PartialFailureError, PreconditionError, StorageError
from ward.models import Admission, Consultation, MedicalNote
from ward.services.audit import log_action
from ward.services.roster import AdmissionEntry, ConsultationEntry, RosterEntry
from ward.services.storage import atomic_workflows, workflow_atomic

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DischargeResult:
    kind: str
    id: int
    patient_id: int
    status: str
    note_id: int

    def to_dict(self) -> Dict[str, Any]:
        return {'kind': self.kind, 'id': self.id, 'patient_id': self.patient_id,
                'status': self.status, 'note_id': self.note_id}


def _append_note(patient_id: int, user, note_type: str, content: str) -> MedicalNote:
    return MedicalNote.objects.create(patient_id=patient_id, doctor=user, note_type=note_type, content=content)


def _locked(qs, lock: bool):
    return qs.select_for_update() if lock else qs


def _complete_consultation(entry: ConsultationEntry, form, user, now, lock: bool) -> Consultation:
    row = _locked(Consultation.objects.all(), lock).filter(
        pk=entry.id, status=Consultation.STATUS_ACTIVE
    ).first()
    if row is None:
        raise PreconditionError('Consultation is no longer active')
    row.status = Consultation.STATUS_COMPLETED
    row.completion_note = form['discharge_note']
    row.completed_by = user
    row.completed_at = now
    row.save(update_fields=['status', 'completion_note', 'completed_by', 'completed_at', 'updated_at'])
    return row


def _discharge_admission(entry: AdmissionEntry, form, user, now, lock: bool) -> Admission:
    row = _locked(Admission.objects.all(), lock).filter(
        pk=entry.id, status=Admission.STATUS_ACTIVE
    ).first()
    if row is None:
        raise PreconditionError('Admission is no longer active')
    follow_up = bool(form.get('follow_up_required'))
    row.status = Admission.STATUS_DISCHARGED
    row.discharge_date = form.get('discharge_date') or now
    row.discharge_type = form.get('discharge_type') or 'regular'
    row.follow_up_required = follow_up
    row.follow_up_date = form.get('follow_up_date') if follow_up else None
    row.discharge_note = form['discharge_note']
    row.discharge_doctor = user
    row.save(update_fields=[
        'status', 'discharge_date', 'discharge_type', 'follow_up_required', 'follow_up_date',
        'discharge_note', 'discharge_doctor', 'updated_at',
    ])
    return row


def process_discharge(entry: Optional[RosterEntry], form: Dict[str, Any], user, *,
                      now: Optional[datetime.datetime] = None,
                      atomic: Optional[bool] = None) -> DischargeResult:
    """Discharge an admission entry or complete a consultation entry.

    ``form`` holds ``discharge_date``, ``discharge_type``,
    ``follow_up_required``, ``follow_up_date`` and ``discharge_note``.
    Raises :class:`PreconditionError` before any write when no entry is
    selected, no user is signed in, or the entry is no longer active.
    """
    if entry is None:
        raise PreconditionError('No patient selected')
    if user is None or not getattr(user, 'is_authenticated', False):
        raise PreconditionError('No user logged in')

    if isinstance(entry, ConsultationEntry):
        write, note_type, action = _complete_consultation, MedicalNote.TYPE_CONSULTATION_NOTE, 'consultation_complete'
    elif isinstance(entry, AdmissionEntry):
        write, note_type, action = _discharge_admission, MedicalNote.TYPE_DISCHARGE_SUMMARY, 'admission_discharge'
    else:
        raise TypeError(f'unsupported roster entry: {type(entry).__name__}')

    atomic = atomic_workflows() if atomic is None else atomic
    now = now or timezone.now()
    row = None
    try:
        with workflow_atomic(atomic):
            row = write(entry, form, user, now, atomic)
            note = _append_note(row.patient_id, user, note_type, form['discharge_note'])
    except DatabaseError as exc:
        logger.exception('%s %s failed', entry.kind, entry.id)
        if row is not None and not atomic:
            raise PartialFailureError(
                f'{entry.kind} {entry.id} is {row.status} but its note was not saved: {exc}',
                applied={'kind': entry.kind, 'id': entry.id, 'status': row.status},
            ) from exc
        raise StorageError(f'{entry.kind} {entry.id} update failed: {exc}') from exc

    log_action(user=user, action=action, object_type=entry.kind, object_id=entry.id,
               detail={'patient_id': row.patient_id, 'note_id': note.id})
    logger.info('%s %s -> %s by user %s', entry.kind, entry.id, row.status, user.pk)
    return DischargeResult(kind=entry.kind, id=entry.id, patient_id=row.patient_id,
                           status=row.status, note_id=note.id)

import datetime
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import bleach
from rest_framework.exceptions import NotFound, ValidationError

from ward.exceptions import PreconditionError, StorageError, error_message
from ward.models import LongStayNote, MedicalNote, Patient
from ward.services.audit import log_action
from ward.services.storage import storage_errors

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NoteView:
    id: int
    patient_id: int
    content: str
    author: str
    created_at: datetime.datetime
    updated_at: Optional[datetime.datetime] = None
    note_type: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'id': self.id,
            'patient_id': self.patient_id,
            'content': self.content,
            'created_by': {'name': self.author},
            'created_at': self.created_at.isoformat(),
        }
        if self.updated_at is not None:
            data['updated_at'] = self.updated_at.isoformat()
        if self.note_type is not None:
            data['note_type'] = self.note_type
        return data


def _author(user) -> str:
    return (user.display_name if user is not None else '') or 'Unknown'


def clean_note(content: str) -> str:
    return bleach.clean((content or '').strip(), tags=set(), strip=True).strip()


def _ensure_patient(patient_id: int) -> None:
    if not Patient.objects.filter(pk=patient_id).exists():
        raise NotFound('patient not found')


def medical_notes(patient_id: int) -> List[NoteView]:
    with storage_errors('fetch medical notes'):
        qs = (MedicalNote.objects.filter(patient_id=patient_id)
              .select_related('doctor').order_by('-created_at', '-id'))
        return [NoteView(id=n.id, patient_id=n.patient_id, content=n.content, author=_author(n.doctor),
                         created_at=n.created_at, note_type=n.note_type) for n in qs]


def _long_stay_view(note: LongStayNote) -> NoteView:
    return NoteView(id=note.id, patient_id=note.patient_id, content=note.content,
                    author=_author(note.created_by), created_at=note.created_at, updated_at=note.updated_at)


def long_stay_notes(patient_id: int) -> List[NoteView]:
    with storage_errors('fetch long-stay notes'):
        qs = (LongStayNote.objects.filter(patient_id=patient_id)
              .select_related('created_by').order_by('-created_at', '-id'))
        return [_long_stay_view(n) for n in qs]


def add_long_stay_note(user, patient_id: int, content: str) -> NoteView:
    if user is None or not getattr(user, 'is_authenticated', False):
        raise PreconditionError('User not authenticated')
    content = clean_note(content)
    if not content:
        raise ValidationError({'content': ['Note content is required']})
    with storage_errors('add long-stay note'):
        _ensure_patient(patient_id)
        note = LongStayNote.objects.create(patient_id=patient_id, content=content, created_by=user)
    log_action(user=user, action='long_stay_note_add', object_type='patient', object_id=patient_id,
               detail={'note_id': note.id})
    return _long_stay_view(note)


class LongStayNotesStore:
    """Long-stay notes keyed by patient id, newest first."""

    def __init__(self):
        self.notes: Dict[int, List[NoteView]] = {}
        self.loading = False
        self.error: Optional[str] = None

    def fetch(self, patient_id: int) -> None:
        self.loading = True
        self.error = None
        try:
            self.notes = {**self.notes, patient_id: long_stay_notes(patient_id)}
        except StorageError as exc:
            self.error = error_message(exc)
        finally:
            self.loading = False

    def add(self, user, patient_id: int, content: str) -> NoteView:
        self.loading = True
        self.error = None
        try:
            note = add_long_stay_note(user, patient_id, content)
        except (PreconditionError, StorageError, ValidationError, NotFound) as exc:
            self.error = error_message(exc)
            raise
        finally:
            self.loading = False
        self.notes = {**self.notes, patient_id: [note, *self.notes.get(patient_id, [])]}
        return note

"""
Active roster: in-progress admissions plus pending consultations.

Each source collection is read with its own query and cached under its
own key.  Model changes are reported as named events; an event drops the
cached collections it touches, and the owner of a roster reconciles once
per event by re-reading, diffing and replacing its selection.
"""
from __future__ import annotations

import datetime
import logging
from dataclasses import dataclass
from typing import Any, ClassVar, Dict, List, Optional, Tuple, Union

from django.conf import settings
from django.core.cache import cache

from ward.exceptions import PreconditionError, StorageError, error_message
from ward.models import Admission, Consultation
from ward.services.storage import storage_errors

logger = logging.getLogger(__name__)

ADMISSIONS_KEY = 'roster:admissions'
CONSULTATIONS_KEY = 'roster:consultations'

ADMISSION_CHANGED = 'admission_changed'
CONSULTATION_CHANGED = 'consultation_changed'
PATIENT_CHANGED = 'patient_changed'

EVENT_COLLECTIONS = {
    ADMISSION_CHANGED: (ADMISSIONS_KEY,),
    CONSULTATION_CHANGED: (CONSULTATIONS_KEY,),
    # roster rows carry the patient's MRN and name
    PATIENT_CHANGED: (ADMISSIONS_KEY, CONSULTATIONS_KEY),
}


@dataclass(frozen=True)
class AdmissionEntry:
    kind: ClassVar[str] = 'admission'
    is_consultation: ClassVar[bool] = False

    id: int
    patient_id: int
    mrn: str
    name: str
    department: str
    diagnosis: str
    doctor_name: str
    admission_date: datetime.datetime
    admitting_doctor_id: Optional[int] = None
    shift_type: str = 'morning'
    is_weekend: bool = False
    status: str = Admission.STATUS_ACTIVE

    @property
    def key(self) -> Tuple[str, int]:
        return (self.kind, self.id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'kind': self.kind,
            'isConsultation': self.is_consultation,
            'id': self.id,
            'patient_id': self.patient_id,
            'mrn': self.mrn,
            'name': self.name,
            'department': self.department,
            'diagnosis': self.diagnosis,
            'doctor_name': self.doctor_name,
            'admission_date': self.admission_date.isoformat(),
            'admitting_doctor_id': self.admitting_doctor_id,
            'shift_type': self.shift_type,
            'is_weekend': self.is_weekend,
            'status': self.status,
        }


@dataclass(frozen=True)
class ConsultationEntry:
    kind: ClassVar[str] = 'consultation'
    is_consultation: ClassVar[bool] = True

    id: int
    patient_id: int
    mrn: str
    name: str
    department: str
    diagnosis: str
    doctor_name: str
    admission_date: datetime.datetime
    doctor_id: Optional[int] = None
    urgency: str = 'routine'
    # consultations have no shift; these only complete the shared shape
    shift_type: str = 'morning'
    is_weekend: bool = False
    status: str = Consultation.STATUS_ACTIVE

    @property
    def key(self) -> Tuple[str, int]:
        return (self.kind, self.id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'kind': self.kind,
            'isConsultation': self.is_consultation,
            'id': self.id,
            'patient_id': self.patient_id,
            'mrn': self.mrn,
            'name': self.name,
            'department': self.department,
            'diagnosis': self.diagnosis,
            'doctor_name': self.doctor_name,
            'admission_date': self.admission_date.isoformat(),
            'doctor_id': self.doctor_id,
            'urgency': self.urgency,
            'shift_type': self.shift_type,
            'is_weekend': self.is_weekend,
            'status': self.status,
        }


RosterEntry = Union[AdmissionEntry, ConsultationEntry]
ENTRY_KINDS = (AdmissionEntry.kind, ConsultationEntry.kind)


def admission_entry(admission: Admission) -> AdmissionEntry:
    doctor = admission.admitting_doctor
    return AdmissionEntry(
        id=admission.id,
        patient_id=admission.patient_id,
        mrn=admission.patient.mrn,
        name=admission.patient.name,
        department=admission.department,
        diagnosis=admission.diagnosis,
        doctor_name=(doctor.display_name if doctor else '') or 'Not assigned',
        admission_date=admission.admission_date,
        admitting_doctor_id=admission.admitting_doctor_id,
        shift_type=admission.shift_type,
        is_weekend=admission.is_weekend,
        status=admission.status,
    )


def consultation_entry(consultation: Consultation) -> ConsultationEntry:
    return ConsultationEntry(
        id=consultation.id,
        patient_id=consultation.patient_id,
        mrn=consultation.mrn,
        name=consultation.patient_name,
        department=consultation.consultation_specialty,
        diagnosis=consultation.reason,
        doctor_name=consultation.doctor_name or 'Pending Assignment',
        admission_date=consultation.created_at,
        doctor_id=consultation.doctor_id,
        urgency=consultation.urgency,
    )


def _cache_timeout() -> int:
    return getattr(settings, 'WARD_ROSTER_CACHE_TIMEOUT', 300)


def _cached(key: str, loader, use_cache: bool) -> list:
    if use_cache:
        hit = cache.get(key)
        if hit is not None:
            return hit
    rows = loader()
    cache.set(key, rows, _cache_timeout())
    return rows


def _load_admissions() -> List[AdmissionEntry]:
    with storage_errors('fetch active admissions'):
        qs = (Admission.objects.filter(status=Admission.STATUS_ACTIVE)
              .select_related('patient', 'admitting_doctor').order_by('admission_date', 'id'))
        return [admission_entry(a) for a in qs]


def _load_consultations() -> List[ConsultationEntry]:
    with storage_errors('fetch active consultations'):
        qs = Consultation.objects.filter(status=Consultation.STATUS_ACTIVE).order_by('created_at', 'id')
        return [consultation_entry(c) for c in qs]


def fetch_active_admissions(use_cache: bool = True) -> List[AdmissionEntry]:
    return _cached(ADMISSIONS_KEY, _load_admissions, use_cache)


def fetch_active_consultations(use_cache: bool = True) -> List[ConsultationEntry]:
    return _cached(CONSULTATIONS_KEY, _load_consultations, use_cache)


def fetch_active_roster(use_cache: bool = True) -> List[RosterEntry]:
    """Active admissions followed by active consultations."""
    return [*fetch_active_admissions(use_cache), *fetch_active_consultations(use_cache)]


def invalidate(event: str) -> Tuple[str, ...]:
    try:
        keys = EVENT_COLLECTIONS[event]
    except KeyError:
        raise ValueError(f'unknown roster event: {event}')
    cache.delete_many(list(keys))
    logger.debug('%s invalidated %s', event, ', '.join(keys))
    return keys


@dataclass(frozen=True)
class RosterDiff:
    added: Tuple[Tuple[str, int], ...] = ()
    removed: Tuple[Tuple[str, int], ...] = ()

    @property
    def changed(self) -> bool:
        return bool(self.added or self.removed)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'added': [{'kind': k, 'id': i} for k, i in self.added],
            'removed': [{'kind': k, 'id': i} for k, i in self.removed],
        }


def diff_roster(old: List[RosterEntry], new: List[RosterEntry]) -> RosterDiff:
    old_keys = [e.key for e in old]
    new_keys = [e.key for e in new]
    old_set, new_set = set(old_keys), set(new_keys)
    return RosterDiff(
        added=tuple(k for k in new_keys if k not in old_set),
        removed=tuple(k for k in old_keys if k not in new_set),
    )


class ActiveRosterStore:
    """Roster state owned by one view or socket connection.

    ``selected`` is only changed by :meth:`select`, by the reconciliation
    that follows every fetch, and by a processed discharge.
    """

    def __init__(self):
        self.entries: List[RosterEntry] = []
        self.selected: Optional[RosterEntry] = None
        self.loading = False
        self.error: Optional[str] = None

    def find(self, kind: str, entry_id: int) -> Optional[RosterEntry]:
        return next((e for e in self.entries if e.key == (kind, entry_id)), None)

    def select(self, kind: Optional[str], entry_id: Optional[int] = None) -> Optional[RosterEntry]:
        self.selected = self.find(kind, entry_id) if kind is not None else None
        return self.selected

    def _reconcile_selection(self) -> None:
        if self.selected is None:
            return
        self.selected = self.find(*self.selected.key)

    def fetch(self, use_cache: bool = True) -> RosterDiff:
        self.loading = True
        self.error = None
        previous = self.entries
        try:
            self.entries = fetch_active_roster(use_cache)
        except StorageError as exc:
            self.error = error_message(exc)
            return RosterDiff()
        finally:
            self.loading = False
        self._reconcile_selection()
        return diff_roster(previous, self.entries)

    def handle_event(self, event: str) -> RosterDiff:
        """Drop the collections ``event`` touches, then re-read and diff."""
        invalidate(event)
        return self.fetch()

    def process_discharge(self, form: Dict[str, Any], user, *, now=None):
        from ward.services.discharge import process_discharge

        self.loading = True
        self.error = None
        try:
            result = process_discharge(self.selected, form, user, now=now)
        except (PreconditionError, StorageError) as exc:
            self.error = error_message(exc)
            raise
        finally:
            self.loading = False
        self.fetch()
        # the entry may come back under the recently-discharged views as a new object
        self.selected = None
        return result

    def snapshot(self) -> Dict[str, Any]:
        return {
            'entries': [e.to_dict() for e in self.entries],
            'selected': {'kind': self.selected.kind, 'id': self.selected.id} if self.selected else None,
            'loading': self.loading,
            'error': self.error,
        }

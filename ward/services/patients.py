"""
Patient aggregation and maintenance.

``fetch_patients`` reads patients joined to their admissions (and each
admission's doctors) and shapes them into :class:`PatientSummary` view
models.  By default only patients with an active admission or one
discharged inside the recent-discharge window are returned; the rest
stay in the database and are reachable with ``include_all_discharged``.
"""
from __future__ import annotations

import datetime
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import DatabaseError
from django.db.models import Prefetch, Q
from django.utils import timezone
from rest_framework.exceptions import NotFound

from ward.exceptions import PartialFailureError, StorageError, error_message
from ward.models import Admission, DischargedPatient, Patient
from ward.services.audit import log_action
from ward.services.stay import LONG_STAY_THRESHOLD, classify_shift, stay_duration
from ward.services.storage import atomic_workflows, storage_errors, workflow_atomic

logger = logging.getLogger(__name__)

User = get_user_model()


@dataclass(frozen=True)
class DoctorRef:
    id: int
    name: str
    medical_code: str = ''
    department: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return {'id': self.id, 'name': self.name, 'medical_code': self.medical_code,
                'department': self.department}


@dataclass(frozen=True)
class AdmissionSummary:
    id: int
    patient_id: int
    department: str
    diagnosis: str
    admission_date: datetime.datetime
    discharge_date: Optional[datetime.datetime]
    status: str
    visit_number: int
    shift_type: str
    is_weekend: bool
    safety_type: Optional[str] = None
    discharge_type: Optional[str] = None
    admitting_doctor: Optional[DoctorRef] = None
    discharge_doctor: Optional[DoctorRef] = None

    @property
    def is_active(self) -> bool:
        return self.status == Admission.STATUS_ACTIVE

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'patient_id': self.patient_id,
            'department': self.department,
            'diagnosis': self.diagnosis,
            'admission_date': self.admission_date.isoformat(),
            'discharge_date': self.discharge_date.isoformat() if self.discharge_date else None,
            'status': self.status,
            'visit_number': self.visit_number,
            'shift_type': self.shift_type,
            'is_weekend': self.is_weekend,
            'safety_type': self.safety_type,
            'discharge_type': self.discharge_type,
            'admitting_doctor': self.admitting_doctor.to_dict() if self.admitting_doctor else None,
            'discharge_doctor': self.discharge_doctor.to_dict() if self.discharge_doctor else None,
        }


@dataclass(frozen=True)
class PatientSummary:
    """Denormalised patient row.

    ``admissions`` is most-recent first.  The convenience fields come from
    the active admission, or from the latest one when none is active.
    """
    id: int
    mrn: str
    name: str
    date_of_birth: datetime.date
    gender: str
    admissions: Tuple[AdmissionSummary, ...] = field(default_factory=tuple)
    active_admission: Optional[AdmissionSummary] = None
    department: Optional[str] = None
    diagnosis: Optional[str] = None
    admission_date: Optional[datetime.datetime] = None
    doctor_name: Optional[str] = None

    @property
    def latest_admission(self) -> Optional[AdmissionSummary]:
        return self.admissions[0] if self.admissions else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'mrn': self.mrn,
            'name': self.name,
            'date_of_birth': self.date_of_birth.isoformat(),
            'gender': self.gender,
            'admissions': [a.to_dict() for a in self.admissions],
            'activeAdmission': self.active_admission.to_dict() if self.active_admission else None,
            'department': self.department,
            'diagnosis': self.diagnosis,
            'admission_date': self.admission_date.isoformat() if self.admission_date else None,
            'doctor_name': self.doctor_name,
        }


def doctor_ref(user) -> Optional[DoctorRef]:
    if user is None:
        return None
    return DoctorRef(id=user.id, name=user.display_name, medical_code=user.medical_code or '',
                     department=user.department or '')


def admission_summary(admission: Admission) -> AdmissionSummary:
    return AdmissionSummary(
        id=admission.id,
        patient_id=admission.patient_id,
        department=admission.department,
        diagnosis=admission.diagnosis,
        admission_date=admission.admission_date,
        discharge_date=admission.discharge_date,
        status=admission.status,
        visit_number=admission.visit_number,
        shift_type=admission.shift_type,
        is_weekend=admission.is_weekend,
        safety_type=admission.safety_type,
        discharge_type=admission.discharge_type,
        admitting_doctor=doctor_ref(admission.admitting_doctor),
        discharge_doctor=doctor_ref(admission.discharge_doctor),
    )


def aggregate_patient(patient: Patient, admissions: Optional[Iterable[Admission]] = None) -> PatientSummary:
    """Shape one patient and its admission rows into a :class:`PatientSummary`."""
    if admissions is None:
        admissions = patient.admissions.all()
    rows = sorted((admission_summary(a) for a in admissions),
                  key=lambda a: a.admission_date, reverse=True)
    active = next((a for a in rows if a.is_active), None)
    source = active or (rows[0] if rows else None)
    doctor = source.admitting_doctor if source else None
    return PatientSummary(
        id=patient.id,
        mrn=patient.mrn,
        name=patient.name,
        date_of_birth=patient.date_of_birth,
        gender=patient.gender,
        admissions=tuple(rows),
        active_admission=active,
        department=source.department if source else None,
        diagnosis=source.diagnosis if source else None,
        admission_date=source.admission_date if source else None,
        doctor_name=doctor.name if doctor else None,
    )


def recent_discharge_cutoff(now: Optional[datetime.datetime] = None) -> datetime.datetime:
    hours = getattr(settings, 'WARD_RECENT_DISCHARGE_HOURS', 18)
    return (now or timezone.now()) - datetime.timedelta(hours=hours)


def visible_admissions_q(cutoff: datetime.datetime, prefix: str = '') -> Q:
    """Active admissions, or admissions discharged at or after ``cutoff``."""
    return (
        Q(**{f'{prefix}status': Admission.STATUS_ACTIVE})
        | Q(**{f'{prefix}status': Admission.STATUS_DISCHARGED, f'{prefix}discharge_date__gte': cutoff})
    )


def patients_queryset(include_all_discharged: bool = False, now: Optional[datetime.datetime] = None):
    admissions = Admission.objects.select_related('admitting_doctor', 'discharge_doctor').order_by('-admission_date')
    qs = Patient.objects.all()
    if not include_all_discharged:
        cutoff = recent_discharge_cutoff(now)
        qs = qs.filter(visible_admissions_q(cutoff, prefix='admissions__')).distinct()
        admissions = admissions.filter(visible_admissions_q(cutoff))
    return qs.prefetch_related(Prefetch('admissions', queryset=admissions)).order_by('-created_at', '-id')


def fetch_patients(include_all_discharged: bool = False,
                   now: Optional[datetime.datetime] = None) -> List[PatientSummary]:
    with storage_errors('fetch patients'):
        return [aggregate_patient(p) for p in patients_queryset(include_all_discharged, now)]


def get_patient(pk: int) -> PatientSummary:
    with storage_errors('fetch patient'):
        patient = patients_queryset(include_all_discharged=True).filter(pk=pk).first()
    if patient is None:
        raise NotFound('patient not found')
    return aggregate_patient(patient)


def date_of_birth_from_age(age: int, today: Optional[datetime.date] = None) -> datetime.date:
    today = today or timezone.localdate()
    return datetime.date(today.year - age, 1, 1)


def admit_patient(user, data: Dict[str, Any], *, atomic: Optional[bool] = None) -> Tuple[Patient, Admission]:
    """Create a patient together with its first admission.

    ``data`` is the validated intake form.  With atomic workflows off, a
    failed admission insert leaves the patient row in place and raises
    :class:`PartialFailureError`.
    """
    atomic = atomic_workflows() if atomic is None else atomic
    admission_date = data['admission_date']
    shift_type, is_weekend = classify_shift(
        admission_date, data.get('shift_type') or 'morning', data.get('use_weekend_shift', False)
    )
    patient = None
    try:
        with workflow_atomic(atomic):
            patient = Patient.objects.create(
                mrn=data['mrn'],
                name=data['name'],
                date_of_birth=date_of_birth_from_age(data['age']),
                gender=data['gender'],
            )
            admission = Admission.objects.create(
                patient=patient,
                admitting_doctor=data['assigned_doctor'],
                department=data['department'],
                diagnosis=data['diagnosis'],
                admission_date=admission_date,
                status=Admission.STATUS_ACTIVE,
                visit_number=1,
                safety_type=data.get('safety_type') or None,
                shift_type=shift_type,
                is_weekend=is_weekend,
            )
    except DatabaseError as exc:
        logger.exception('admit failed for mrn=%s', data['mrn'])
        if not atomic and patient is not None and patient.pk:
            raise PartialFailureError(f'patient created but admission failed: {exc}',
                                      applied={'patient': patient.pk}) from exc
        raise StorageError(f'admit patient failed: {exc}') from exc

    log_action(user=user, action='patient_admit', object_type='patient', object_id=patient.id,
               detail={'admission_id': admission.id, 'department': admission.department})
    logger.info('admitted patient %s (admission %s, %s/%s)', patient.mrn, admission.id, shift_type,
                'weekend' if is_weekend else 'weekday')
    return patient, admission


def update_patient(user, pk: int, updates: Dict[str, Any]) -> Patient:
    with storage_errors('update patient'):
        patient = Patient.objects.filter(pk=pk).first()
        if patient is None:
            raise NotFound('patient not found')
        for key, value in updates.items():
            setattr(patient, key, value)
        patient.save(update_fields=[*updates.keys(), 'updated_at'])
    log_action(user=user, action='patient_update', object_type='patient', object_id=pk,
               detail={'fields': sorted(updates.keys())})
    return patient


def delete_patient(user, pk: int) -> None:
    with storage_errors('delete patient'):
        deleted, _ = Patient.objects.filter(pk=pk).delete()
    if not deleted:
        raise NotFound('patient not found')
    log_action(user=user, action='patient_delete', object_type='patient', object_id=pk)
    logger.info('deleted patient %s', pk)


def discharged_patients(q: Optional[str] = None):
    qs = DischargedPatient.objects.all().order_by('-discharge_date', '-id')
    if q:
        qs = qs.filter(Q(name__icontains=q) | Q(mrn__icontains=q))
    return qs


def long_stay_patients(patients: Iterable[PatientSummary], *, specialty: Optional[str] = None,
                       min_duration: int = LONG_STAY_THRESHOLD, sort_by: str = 'duration',
                       search: str = '', now: Optional[datetime.datetime] = None) -> List[Tuple[PatientSummary, int]]:
    """Filter patients by the stay of their latest admission.

    Returns ``(patient, stay_days)`` pairs sorted by duration or admission
    date, both descending.
    """
    now = now or timezone.now()
    term = (search or '').strip().lower()
    rows = []
    for p in patients:
        latest = p.latest_admission
        if latest is None:
            continue
        if specialty and specialty != 'all' and latest.department != specialty:
            continue
        if term and term not in p.name.lower() and term not in p.mrn.lower():
            continue
        days = stay_duration(latest.admission_date, now)
        if days >= min_duration:
            rows.append((p, days))
    if sort_by == 'admission_date':
        rows.sort(key=lambda r: r[0].latest_admission.admission_date, reverse=True)
    else:
        rows.sort(key=lambda r: r[1], reverse=True)
    return rows


class PatientListStore:
    """Patient list state: rows, selection, loading flag and last error.

    Fetches never raise; failures land in ``error``.  Write actions store
    the error and re-raise it.
    """

    def __init__(self):
        self.patients: List[PatientSummary] = []
        self.selected: Optional[PatientSummary] = None
        self.loading = False
        self.error: Optional[str] = None

    def select(self, patient: Optional[PatientSummary]) -> None:
        self.selected = patient

    def _reconcile(self) -> None:
        if self.selected is None:
            return
        self.selected = next((p for p in self.patients if p.id == self.selected.id), None)

    def fetch(self, include_all_discharged: bool = False, now: Optional[datetime.datetime] = None) -> None:
        self.loading = True
        self.error = None
        try:
            self.patients = fetch_patients(include_all_discharged, now)
            self._reconcile()
        except StorageError as exc:
            self.error = error_message(exc)
        finally:
            self.loading = False

    def add_patient(self, user, data: Dict[str, Any]) -> Tuple[Patient, Admission]:
        self.loading = True
        self.error = None
        try:
            result = admit_patient(user, data)
        except StorageError as exc:
            self.error = error_message(exc)
            raise
        finally:
            self.loading = False
        self.fetch()
        return result

    def update_patient(self, user, pk: int, updates: Dict[str, Any]) -> PatientSummary:
        self.loading = True
        self.error = None
        try:
            update_patient(user, pk, updates)
            fresh = get_patient(pk)
        except (StorageError, NotFound) as exc:
            self.error = error_message(exc)
            raise
        finally:
            self.loading = False
        self.patients = [fresh if p.id == pk else p for p in self.patients]
        if self.selected is not None and self.selected.id == pk:
            self.selected = fresh
        return fresh

    def delete_patient(self, user, pk: int) -> None:
        self.loading = True
        self.error = None
        try:
            delete_patient(user, pk)
        except (StorageError, NotFound) as exc:
            self.error = error_message(exc)
            raise
        finally:
            self.loading = False
        self.patients = [p for p in self.patients if p.id != pk]
        if self.selected is not None and self.selected.id == pk:
            self.selected = None

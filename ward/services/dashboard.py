"""Specialty overview and dashboard counters over aggregated patients."""
from typing import Any, Dict, Iterable, List, Optional

from django.utils import timezone

from ward.models import Admission, Consultation
from ward.services.patients import PatientSummary
from ward.services.stay import is_long_stay, stay_duration

SPECIALTIES = (
    'Internal Medicine',
    'Pulmonology',
    'Neurology',
    'Gastroenterology',
    'Rheumatology',
    'Endocrinology',
    'Hematology',
    'Infectious Disease',
    'Thrombosis Medicine',
    'Immunology & Allergy',
)

SHIFT_TYPES = ('morning', 'evening', 'night', 'weekend_morning', 'weekend_night')


def specialty_overview(patients: Iterable[PatientSummary], consultations: Iterable[Consultation],
                       specialty: Optional[str] = None, now=None) -> List[Dict[str, Any]]:
    now = now or timezone.now()
    patients = list(patients)
    consultations = list(consultations)
    wanted = SPECIALTIES if not specialty or specialty == 'all' else (specialty,)
    overview = []
    for name in wanted:
        rows = []
        for p in patients:
            adm = next((a for a in p.admissions if a.department == name and a.is_active), None)
            if adm is None:
                continue
            rows.append({
                'id': p.id,
                'mrn': p.mrn,
                'name': p.name,
                'admission_id': adm.id,
                'admission_date': adm.admission_date.isoformat(),
                'doctor_name': adm.admitting_doctor.name if adm.admitting_doctor else 'Not assigned',
                'stay_days': stay_duration(adm.admission_date, now),
                'long_stay': is_long_stay(adm.admission_date, now),
            })
        consults = [
            {'id': c.id, 'mrn': c.mrn, 'patient_name': c.patient_name, 'urgency': c.urgency,
             'doctor_name': c.doctor_name or 'Pending Assignment', 'created_at': c.created_at.isoformat()}
            for c in consultations
            if c.consultation_specialty == name and c.status == Consultation.STATUS_ACTIVE
        ]
        overview.append({
            'specialty': name,
            'patients': rows,
            'consultations': consults,
            'long_stay_count': sum(1 for r in rows if r['long_stay']),
        })
    return overview


def dashboard_stats(patients: Iterable[PatientSummary]) -> Dict[str, Any]:
    patients = list(patients)
    shifts = {s: 0 for s in SHIFT_TYPES}
    for p in patients:
        active = p.active_admission
        if active is not None and active.shift_type in shifts:
            shifts[active.shift_type] += 1
    latest_active = sum(
        1 for p in patients if p.latest_admission and p.latest_admission.status == Admission.STATUS_ACTIVE
    )
    return {'total_patients': len(patients), 'active_patients': latest_active, 'shift_counts': shifts}

import logging
from typing import Any, Dict, Optional

from django.db.models import Q
from django.utils import timezone

from ward.models import Consultation, Patient
from ward.services.audit import log_action
from ward.services.storage import storage_errors

logger = logging.getLogger(__name__)


def _age(patient: Patient, today) -> int:
    dob = patient.date_of_birth
    return today.year - dob.year - ((today.month, today.day) < (dob.month, dob.day))


def create_consultation(user, data: Dict[str, Any]) -> Consultation:
    """Open a pending specialist review for ``data['patient']``.

    MRN, name, age and gender are copied from the patient row unless the
    request supplies them.
    """
    patient: Patient = data['patient']
    doctor = data.get('doctor')
    with storage_errors('create consultation'):
        consultation = Consultation.objects.create(
            patient=patient,
            mrn=patient.mrn,
            patient_name=patient.name,
            age=data.get('age') if data.get('age') is not None else _age(patient, timezone.localdate()),
            gender=data.get('gender') or patient.gender,
            requesting_department=data.get('requesting_department', ''),
            consultation_specialty=data['consultation_specialty'],
            reason=data.get('reason', ''),
            urgency=data.get('urgency') or 'routine',
            doctor=doctor,
            doctor_name=doctor.display_name if doctor else '',
        )
    log_action(user=user, action='consultation_create', object_type='consultation', object_id=consultation.id,
               detail={'patient_id': patient.id, 'specialty': consultation.consultation_specialty})
    logger.info('consultation %s opened for %s -> %s', consultation.id, patient.mrn,
                consultation.consultation_specialty)
    return consultation


def list_consultations(status: Optional[str] = Consultation.STATUS_ACTIVE, specialty: Optional[str] = None,
                       q: Optional[str] = None):
    qs = Consultation.objects.select_related('doctor').order_by('-created_at', '-id')
    if status and status != 'all':
        qs = qs.filter(status=status)
    if specialty and specialty != 'all':
        qs = qs.filter(consultation_specialty=specialty)
    if q:
        qs = qs.filter(Q(patient_name__icontains=q) | Q(mrn__icontains=q))
    return qs

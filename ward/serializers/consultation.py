from django.contrib.auth import get_user_model
from rest_framework import serializers

from ward.models import Consultation, Patient
from ward.serializers.admission import clean_text

User = get_user_model()


class ConsultationCreateSerializer(serializers.Serializer):
    patient = serializers.PrimaryKeyRelatedField(queryset=Patient.objects.all())
    consultation_specialty = serializers.CharField(max_length=255)
    requesting_department = serializers.CharField(max_length=255, required=False, allow_blank=True, default='')
    reason = serializers.CharField(required=False, allow_blank=True, default='')
    urgency = serializers.ChoiceField(choices=Consultation.URGENCY_CHOICES, default='routine')
    doctor = serializers.PrimaryKeyRelatedField(queryset=User.objects.filter(status='active'), required=False,
                                                allow_null=True)
    age = serializers.IntegerField(min_value=0, max_value=150, required=False, allow_null=True)
    gender = serializers.ChoiceField(choices=Patient.GENDER_CHOICES, required=False, allow_blank=True)

    def validate_consultation_specialty(self, v):
        v = clean_text(v)
        if not v:
            raise serializers.ValidationError('Specialty is required')
        return v

    def validate_reason(self, v):
        return clean_text(v)


class ConsultationListQuerySerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=['active', 'completed', 'all'], required=False, default='active')
    specialty = serializers.CharField(required=False, allow_blank=True)
    q = serializers.CharField(required=False, allow_blank=True)


def consultation_payload(c: Consultation) -> dict:
    return {
        'id': c.id,
        'patient_id': c.patient_id,
        'mrn': c.mrn,
        'patient_name': c.patient_name,
        'age': c.age,
        'gender': c.gender,
        'requesting_department': c.requesting_department,
        'consultation_specialty': c.consultation_specialty,
        'reason': c.reason,
        'urgency': c.urgency,
        'doctor_id': c.doctor_id,
        'doctor_name': c.doctor_name or 'Pending Assignment',
        'status': c.status,
        'completion_note': c.completion_note,
        'completed_at': c.completed_at.isoformat() if c.completed_at else None,
        'created_at': c.created_at.isoformat(),
    }

import bleach
from django.contrib.auth import get_user_model
from rest_framework import serializers

from ward.models import Admission, Patient

User = get_user_model()

DATE_INPUT_FORMATS = ['iso-8601', '%Y-%m-%d']


def clean_text(v):
    return bleach.clean((v or '').strip(), strip=True).strip()


class AdmissionIntakeSerializer(serializers.Serializer):
    """Form for admitting a new patient together with the first admission."""
    mrn = serializers.CharField(max_length=50, error_messages={'blank': 'MRN is required'})
    name = serializers.CharField(max_length=255, error_messages={'blank': 'Patient name is required'})
    age = serializers.IntegerField(
        min_value=0, max_value=150,
        error_messages={'min_value': 'Please enter a valid age between 0 and 150',
                        'max_value': 'Please enter a valid age between 0 and 150',
                        'invalid': 'Please enter a valid age between 0 and 150'},
    )
    gender = serializers.ChoiceField(choices=Patient.GENDER_CHOICES)
    department = serializers.CharField(max_length=255, error_messages={'blank': 'Department is required'})
    assigned_doctor = serializers.PrimaryKeyRelatedField(
        queryset=User.objects.filter(status='active'),
        error_messages={'required': 'Please select an assigned doctor',
                        'null': 'Please select an assigned doctor'},
    )
    diagnosis = serializers.CharField(error_messages={'blank': 'Diagnosis is required'})
    admission_date = serializers.DateTimeField(input_formats=DATE_INPUT_FORMATS)
    safety_type = serializers.ChoiceField(choices=Admission.SAFETY_CHOICES, required=False, allow_null=True,
                                          allow_blank=True)
    shift_type = serializers.ChoiceField(choices=Admission.SHIFT_CHOICES, required=False, default='morning')
    use_weekend_shift = serializers.BooleanField(required=False, default=False)

    def validate_mrn(self, v):
        v = clean_text(v)
        if not v:
            raise serializers.ValidationError('MRN is required')
        if Patient.objects.filter(mrn=v).exists():
            raise serializers.ValidationError('A patient with this MRN already exists')
        return v

    def validate_name(self, v):
        v = clean_text(v)
        if not v:
            raise serializers.ValidationError('Patient name is required')
        return v

    def validate_department(self, v):
        v = clean_text(v)
        if not v:
            raise serializers.ValidationError('Department is required')
        return v

    def validate_diagnosis(self, v):
        v = clean_text(v)
        if not v:
            raise serializers.ValidationError('Diagnosis is required')
        return v


class PatientUpdateSerializer(serializers.Serializer):
    mrn = serializers.CharField(max_length=50, required=False)
    name = serializers.CharField(max_length=255, required=False)
    date_of_birth = serializers.DateField(required=False)
    gender = serializers.ChoiceField(choices=Patient.GENDER_CHOICES, required=False)

    def validate_mrn(self, v):
        v = clean_text(v)
        if not v:
            raise serializers.ValidationError('MRN is required')
        pk = self.context.get('patient_id')
        if Patient.objects.filter(mrn=v).exclude(pk=pk).exists():
            raise serializers.ValidationError('A patient with this MRN already exists')
        return v

    def validate_name(self, v):
        v = clean_text(v)
        if not v:
            raise serializers.ValidationError('Patient name is required')
        return v

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError('Nothing to update')
        return attrs


class PatientListQuerySerializer(serializers.Serializer):
    includeAllDischarged = serializers.BooleanField(required=False, default=False)


class DischargedQuerySerializer(serializers.Serializer):
    q = serializers.CharField(required=False, allow_blank=True)

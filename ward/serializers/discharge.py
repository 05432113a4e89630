from django.utils import timezone
from rest_framework import serializers

from ward.models import Admission
from ward.serializers.admission import DATE_INPUT_FORMATS, clean_text
from ward.services.roster import ENTRY_KINDS


class DischargeFormSerializer(serializers.Serializer):
    """Discharge / consultation-completion form.

    ``kind`` and ``entryId`` name the roster entry being processed.
    """
    kind = serializers.ChoiceField(choices=ENTRY_KINDS)
    entryId = serializers.IntegerField(min_value=1)
    discharge_date = serializers.DateTimeField(
        input_formats=DATE_INPUT_FORMATS, error_messages={'required': 'Discharge date is required'}
    )
    discharge_type = serializers.ChoiceField(choices=Admission.DISCHARGE_TYPE_CHOICES, default='regular')
    follow_up_required = serializers.BooleanField(default=False)
    follow_up_date = serializers.DateField(required=False, allow_null=True)
    discharge_note = serializers.CharField(error_messages={'blank': 'Discharge note is required',
                                                           'required': 'Discharge note is required'})

    def validate_discharge_note(self, v):
        v = clean_text(v)
        if not v:
            raise serializers.ValidationError('Discharge note is required')
        return v

    def validate(self, attrs):
        if attrs.get('follow_up_required'):
            follow_up = attrs.get('follow_up_date')
            if not follow_up:
                raise serializers.ValidationError(
                    {'follow_up_date': 'Follow-up date is required when follow-up is enabled'}
                )
            if follow_up <= timezone.localdate(attrs['discharge_date']):
                raise serializers.ValidationError(
                    {'follow_up_date': 'Follow-up date must be after discharge date'}
                )
        else:
            attrs['follow_up_date'] = None
        return attrs

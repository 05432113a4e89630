from rest_framework import serializers

from ward.services.reports import REPORT_TYPES
from ward.services.stay import LONG_STAY_THRESHOLD


class LongStayQuerySerializer(serializers.Serializer):
    specialty = serializers.CharField(required=False, allow_blank=True)
    minDuration = serializers.IntegerField(required=False, min_value=0, default=LONG_STAY_THRESHOLD)
    sortBy = serializers.ChoiceField(choices=['duration', 'admission_date'], required=False, default='duration')
    search = serializers.CharField(required=False, allow_blank=True, default='')
    includeAllDischarged = serializers.BooleanField(required=False, default=False)


class DailyReportQuerySerializer(serializers.Serializer):
    dateFrom = serializers.DateField(required=False, allow_null=True)
    dateTo = serializers.DateField(required=False, allow_null=True)
    reportType = serializers.ChoiceField(choices=REPORT_TYPES, required=False, default='all')
    specialty = serializers.CharField(required=False, allow_blank=True)
    search = serializers.CharField(required=False, allow_blank=True, default='')

    def validate(self, attrs):
        date_from, date_to = attrs.get('dateFrom'), attrs.get('dateTo')
        if date_from and date_to and date_from > date_to:
            raise serializers.ValidationError({'dateTo': 'End date must not be before start date'})
        return attrs


class SpecialtyQuerySerializer(serializers.Serializer):
    specialty = serializers.CharField(required=False, allow_blank=True)

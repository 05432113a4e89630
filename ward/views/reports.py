"""
Report endpoints.

The long-stay list is served as JSON; both exports return a PDF
attachment rendered by ``ward.services.reports``.
"""
from __future__ import annotations

import logging

from django.http import HttpResponse
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ward.models import Appointment
from ward.permissions import IsClinicalRole
from ward.serializers.reports import DailyReportQuerySerializer, LongStayQuerySerializer
from ward.services.audit import log_action
from ward.services.consultations import list_consultations
from ward.services.patients import fetch_patients, long_stay_patients
from ward.services.reports import (
    build_long_stay_report_pdf,
    build_ward_report_pdf,
    filter_report_data,
    long_stay_rows_to_dicts,
    report_filename,
)
from ward.services.storage import storage_errors

logger = logging.getLogger(__name__)


def _pdf_response(pdf: bytes, filename: str) -> HttpResponse:
    resp = HttpResponse(pdf, content_type='application/pdf')
    resp['Content-Disposition'] = f'attachment; filename="{filename}"'
    return resp


def _long_stay_rows(vd):
    patients = fetch_patients(vd['includeAllDischarged'])
    return long_stay_patients(patients, specialty=vd.get('specialty'), min_duration=vd['minDuration'],
                              sort_by=vd['sortBy'], search=vd['search'])


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsClinicalRole])
def long_stay_report(request):
    q = LongStayQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    return Response({'ok': True, 'data': long_stay_rows_to_dicts(_long_stay_rows(q.validated_data))})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsClinicalRole])
def long_stay_export(request):
    q = LongStayQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    vd = q.validated_data
    rows = _long_stay_rows(vd)
    pdf = build_long_stay_report_pdf(rows, specialty=vd.get('specialty'))
    log_action(user=request.user, action='report_export', object_type='report',
               detail={'report': 'long_stay', 'rows': len(rows)})
    return _pdf_response(pdf, report_filename('long-stay-report'))


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsClinicalRole])
def daily_report_export(request):
    q = DailyReportQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    vd = q.validated_data
    patients = fetch_patients()
    with storage_errors('load report data'):
        consultations = list(list_consultations('active'))
        appointments = list(Appointment.objects.order_by('-created_at', '-id'))
    patients, consultations, appointments = filter_report_data(
        patients, consultations, appointments,
        date_from=vd.get('dateFrom'), date_to=vd.get('dateTo'),
        specialty=vd.get('specialty'), search=vd['search'],
    )
    pdf = build_ward_report_pdf(patients, consultations, appointments, report_type=vd['reportType'],
                                date_from=vd.get('dateFrom'), date_to=vd.get('dateTo'),
                                specialty=vd.get('specialty'))
    log_action(user=request.user, action='report_export', object_type='report',
               detail={'report': 'daily', 'type': vd['reportType']})
    return _pdf_response(pdf, report_filename('imd-care-report'))

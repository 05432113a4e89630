"""
Patient list, intake and maintenance views.

The list is served from the patient aggregator; by default only patients
with an active admission or a recent discharge are included.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ward.permissions import IsAdministrator, IsClinicalRole
from ward.serializers.admission import (
    AdmissionIntakeSerializer,
    DischargedQuerySerializer,
    PatientListQuerySerializer,
    PatientUpdateSerializer,
)
from ward.services import patients as patient_service
from ward.services.patients import aggregate_patient


def discharged_payload(row) -> dict:
    return {
        'id': row.id,
        'patient_id': row.patient_id,
        'mrn': row.mrn,
        'name': row.name,
        'admission_date': row.admission_date.isoformat() if row.admission_date else None,
        'discharge_date': row.discharge_date.isoformat() if row.discharge_date else None,
        'department': row.department,
        'discharge_type': row.discharge_type,
        'follow_up_required': row.follow_up_required,
        'follow_up_date': row.follow_up_date.isoformat() if row.follow_up_date else None,
        'discharge_note': row.discharge_note,
        'doctor_name': row.doctor_name or 'Not assigned',
    }


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsClinicalRole])
def list_patients(request):
    q = PatientListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    rows = patient_service.fetch_patients(q.validated_data['includeAllDischarged'])
    return Response({'ok': True, 'data': [p.to_dict() for p in rows]})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsClinicalRole])
def admit_patient(request):
    s = AdmissionIntakeSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    patient, admission = patient_service.admit_patient(request.user, s.validated_data)
    summary = aggregate_patient(patient, [admission])
    return Response({'ok': True, 'data': summary.to_dict()}, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsClinicalRole])
def patient_detail(request, patient_id: int):
    return Response({'ok': True, 'data': patient_service.get_patient(patient_id).to_dict()})


@api_view(['POST', 'PATCH'])
@permission_classes([IsAuthenticated, IsClinicalRole])
def update_patient(request, patient_id: int):
    s = PatientUpdateSerializer(data=request.data, context={'patient_id': patient_id})
    s.is_valid(raise_exception=True)
    patient_service.update_patient(request.user, patient_id, s.validated_data)
    return Response({'ok': True, 'data': patient_service.get_patient(patient_id).to_dict()})


@api_view(['POST', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdministrator])
def delete_patient(request, patient_id: int):
    patient_service.delete_patient(request.user, patient_id)
    return Response({'ok': True})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsClinicalRole])
def list_discharged(request):
    q = DischargedQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    rows = patient_service.discharged_patients(q.validated_data.get('q'))
    return Response({'ok': True, 'data': [discharged_payload(r) for r in rows]})

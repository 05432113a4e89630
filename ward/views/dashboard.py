from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ward.permissions import IsClinicalRole
from ward.serializers.reports import SpecialtyQuerySerializer
from ward.services.consultations import list_consultations
from ward.services.dashboard import SPECIALTIES, dashboard_stats, specialty_overview
from ward.services.patients import fetch_patients
from ward.services.storage import storage_errors


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsClinicalRole])
def specialties(request):
    q = SpecialtyQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    patients = fetch_patients()
    with storage_errors('list consultations'):
        consults = list(list_consultations('active'))
    return Response({
        'ok': True,
        'specialties': list(SPECIALTIES),
        'data': specialty_overview(patients, consults, q.validated_data.get('specialty')),
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsClinicalRole])
def dashboard(request):
    return Response({'ok': True, 'data': dashboard_stats(fetch_patients())})

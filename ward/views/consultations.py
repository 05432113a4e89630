from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ward.permissions import IsClinicalRole
from ward.serializers.consultation import (
    ConsultationCreateSerializer,
    ConsultationListQuerySerializer,
    consultation_payload,
)
from ward.services.consultations import create_consultation, list_consultations
from ward.services.storage import storage_errors


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsClinicalRole])
def consultations(request):
    if request.method == 'POST':
        s = ConsultationCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        c = create_consultation(request.user, s.validated_data)
        return Response({'ok': True, 'data': consultation_payload(c)}, status=status.HTTP_201_CREATED)

    q = ConsultationListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    vd = q.validated_data
    with storage_errors('list consultations'):
        rows = [consultation_payload(c) for c in list_consultations(vd['status'], vd.get('specialty'), vd.get('q'))]
    return Response({'ok': True, 'data': rows})

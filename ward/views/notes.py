from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ward.permissions import IsClinicalRole
from ward.serializers.notes import LongStayNoteSerializer
from ward.services import notes as note_service


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsClinicalRole])
def long_stay_notes(request, patient_id: int):
    if request.method == 'POST':
        s = LongStayNoteSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        note = note_service.add_long_stay_note(request.user, patient_id, s.validated_data['content'])
        return Response({'ok': True, 'data': note.to_dict()}, status=status.HTTP_201_CREATED)
    notes = note_service.long_stay_notes(patient_id)
    return Response({'ok': True, 'data': [n.to_dict() for n in notes]})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsClinicalRole])
def medical_notes(request, patient_id: int):
    notes = note_service.medical_notes(patient_id)
    return Response({'ok': True, 'data': [n.to_dict() for n in notes]})

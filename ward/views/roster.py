from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from ward.exceptions import PreconditionError, StorageError
from ward.permissions import IsClinicalRole
from ward.serializers.discharge import DischargeFormSerializer
from ward.services.roster import ActiveRosterStore


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsClinicalRole])
def active_roster(request):
    store = ActiveRosterStore()
    store.fetch()
    if store.error:
        raise StorageError(store.error)
    return Response({'ok': True, 'data': [e.to_dict() for e in store.entries]})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsClinicalRole])
def process_discharge(request):
    """Discharge an admission or complete a consultation from the active roster."""
    s = DischargeFormSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    form = s.validated_data

    store = ActiveRosterStore()
    store.fetch(use_cache=False)
    if store.error:
        raise StorageError(store.error)
    if store.select(form['kind'], form['entryId']) is None:
        raise PreconditionError(f"{form['kind']} {form['entryId']} is not on the active roster")
    result = store.process_discharge(form, request.user)
    return Response({'ok': True, 'data': result.to_dict(),
                     'roster': [e.to_dict() for e in store.entries]})

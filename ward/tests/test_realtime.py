import pytest
from asgiref.sync import async_to_sync
from channels.db import database_sync_to_async
from channels.testing import WebsocketCommunicator
from django.contrib.auth.models import AnonymousUser
from django.utils import timezone

from ward.realtime.consumers import RosterConsumer
from ward.tests.factories import make_admission, make_consultation, make_patient

pytestmark = pytest.mark.django_db(transaction=True)


def communicator(user):
    comm = WebsocketCommunicator(RosterConsumer.as_asgi(), '/ws/roster/')
    comm.scope['user'] = user
    return comm


def test_anonymous_socket_is_closed():
    async def scenario():
        connected, code = await communicator(AnonymousUser()).connect()
        assert not connected
        assert code == 4003

    async_to_sync(scenario)()


def test_snapshot_select_and_change_event(doctor):
    p = make_patient('A100', 'Amal')
    adm = make_admission(p, timezone.now(), doctor)

    async def scenario():
        comm = communicator(doctor)
        connected, _ = await comm.connect()
        assert connected
        snap = await comm.receive_json_from()
        assert snap['type'] == 'roster.snapshot'
        assert [(e['kind'], e['id']) for e in snap['entries']] == [('admission', adm.id)]
        assert snap['selected'] is None

        await comm.send_json_to({'action': 'select', 'kind': 'admission', 'id': adm.id})
        snap = await comm.receive_json_from()
        assert snap['selected'] == {'kind': 'admission', 'id': adm.id}

        consult = await database_sync_to_async(make_consultation)(p)
        snap = await comm.receive_json_from(timeout=5)
        assert snap['event'] == 'consultation_changed'
        assert snap['diff']['added'] == [{'kind': 'consultation', 'id': consult.id}]
        assert snap['selected'] == {'kind': 'admission', 'id': adm.id}

        await comm.send_json_to({'action': 'select', 'kind': 'ward', 'id': 1})
        err = await comm.receive_json_from()
        assert err == {'type': 'error', 'message': 'unknown kind: ward'}
        await comm.disconnect()

    async_to_sync(scenario)()


def test_inactive_account_socket_is_closed(doctor):
    doctor.status = 'inactive'
    doctor.save()

    async def scenario():
        connected, code = await communicator(doctor).connect()
        assert not connected
        assert code == 4003

    async_to_sync(scenario)()


def test_non_object_messages_are_rejected(doctor):
    async def scenario():
        comm = communicator(doctor)
        connected, _ = await comm.connect()
        assert connected
        await comm.receive_json_from()

        await comm.send_to(text_data='[1, 2]')
        assert await comm.receive_json_from() == {'type': 'error', 'message': 'invalid message'}
        await comm.send_to(text_data='"select"')
        assert await comm.receive_json_from() == {'type': 'error', 'message': 'invalid message'}

        await comm.send_json_to({'action': 'refresh'})
        snap = await comm.receive_json_from()
        assert snap['type'] == 'roster.snapshot'
        await comm.disconnect()

    async_to_sync(scenario)()

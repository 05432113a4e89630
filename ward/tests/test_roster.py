import pytest
from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer

from ward.models import Admission, Consultation
from ward.services.roster import (
    ActiveRosterStore,
    AdmissionEntry,
    ConsultationEntry,
    diff_roster,
    fetch_active_roster,
    invalidate,
)
from ward.signals import ROSTER_GROUP
from ward.tests.factories import aware, make_admission, make_consultation, make_patient

pytestmark = pytest.mark.django_db


def test_roster_lists_admissions_then_consultations(doctor):
    p1 = make_patient('R1', 'Rami')
    p2 = make_patient('R2', 'Sara')
    make_consultation(p1, consultation_specialty='Hematology', reason='Anaemia')
    make_admission(p2, aware(2024, 1, 2), doctor, shift_type='night')
    make_admission(p1, aware(2024, 1, 1), None)
    make_admission(p1, aware(2023, 12, 1), status=Admission.STATUS_DISCHARGED)

    roster = fetch_active_roster()

    assert [type(e) for e in roster] == [AdmissionEntry, AdmissionEntry, ConsultationEntry]
    first, second, consult = roster
    assert (first.mrn, first.doctor_name) == ('R1', 'Not assigned')
    assert (second.name, second.doctor_name, second.shift_type) == ('Sara', 'Dr. Test', 'night')
    assert consult.is_consultation and not first.is_consultation
    assert consult.department == 'Hematology'
    assert consult.diagnosis == 'Anaemia'
    assert consult.doctor_name == 'Pending Assignment'
    assert (consult.shift_type, consult.is_weekend) == ('morning', False)


def test_entry_dicts_carry_discriminator():
    p = make_patient()
    make_consultation(p)
    data = fetch_active_roster()[0].to_dict()
    assert data['isConsultation'] is True
    assert data['kind'] == 'consultation'
    assert data['name'] == p.name


def test_collections_are_cached_until_invalidated():
    p = make_patient()
    adm = make_admission(p, aware(2024, 1, 1))
    assert len(fetch_active_roster()) == 1

    # queryset updates bypass model signals
    Admission.objects.filter(pk=adm.pk).update(status=Admission.STATUS_DISCHARGED)
    assert len(fetch_active_roster()) == 1
    assert fetch_active_roster(use_cache=False) == []

    Admission.objects.filter(pk=adm.pk).update(status=Admission.STATUS_ACTIVE)
    invalidate('admission_changed')
    assert [e.id for e in fetch_active_roster()] == [adm.id]


def test_model_saves_invalidate_cached_collections():
    p = make_patient()
    fetch_active_roster()
    make_admission(p, aware(2024, 1, 1))
    c = make_consultation(p)
    assert len(fetch_active_roster()) == 2

    c.status = Consultation.STATUS_COMPLETED
    c.save()
    assert [e.kind for e in fetch_active_roster()] == ['admission']


def test_model_deletes_invalidate_cached_collections():
    p = make_patient()
    adm = make_admission(p, aware(2024, 1, 1))
    c = make_consultation(p)
    assert len(fetch_active_roster()) == 2

    c.delete()
    assert [e.key for e in fetch_active_roster()] == [('admission', adm.id)]

    adm.delete()
    assert fetch_active_roster() == []


def test_deletes_are_broadcast(django_capture_on_commit_callbacks):
    p = make_patient()
    c = make_consultation(p)
    consult_id = c.id
    layer = get_channel_layer()
    channel = async_to_sync(layer.new_channel)()
    async_to_sync(layer.group_add)(ROSTER_GROUP, channel)
    try:
        with django_capture_on_commit_callbacks(execute=True):
            c.delete()
        message = async_to_sync(layer.receive)(channel)
    finally:
        async_to_sync(layer.group_discard)(ROSTER_GROUP, channel)
    assert (message['event'], message['id']) == ('consultation_changed', consult_id)


def test_unknown_event_is_rejected():
    with pytest.raises(ValueError):
        invalidate('ward_changed')


def test_selection_is_keyed_by_kind_and_id():
    p = make_patient()
    adm = make_admission(p, aware(2024, 1, 1))
    make_consultation(p, id=adm.id)
    store = ActiveRosterStore()
    store.fetch()

    selected = store.select('consultation', adm.id)

    assert isinstance(selected, ConsultationEntry)
    assert store.select('admission', adm.id).kind == 'admission'
    assert store.select('admission', 99999) is None
    assert store.select(None) is None


def test_reconciliation_replaces_or_clears_selection():
    p = make_patient()
    a1 = make_admission(p, aware(2024, 1, 1))
    a2 = make_admission(make_patient('P2'), aware(2024, 1, 2))
    store = ActiveRosterStore()
    store.fetch()
    before = store.select('admission', a1.id)

    store.fetch(use_cache=False)
    assert store.selected == before
    assert store.selected is not before

    Admission.objects.filter(pk=a1.pk).update(status=Admission.STATUS_DISCHARGED)
    diff = store.handle_event('admission_changed')
    assert store.selected is None
    assert diff.removed == (('admission', a1.id),)
    assert diff.added == ()
    assert [e.id for e in store.entries] == [a2.id]


def test_diff_roster_reports_added_and_removed_keys():
    old = [AdmissionEntry(1, 1, 'M1', 'A', 'Neurology', '', 'Dr', aware(2024, 1, 1))]
    new = [ConsultationEntry(1, 1, 'M1', 'A', 'Neurology', '', 'Dr', aware(2024, 1, 1))]
    diff = diff_roster(old, new)
    assert diff.added == (('consultation', 1),)
    assert diff.removed == (('admission', 1),)
    assert diff.changed
    assert not diff_roster(new, list(new)).changed


def test_snapshot_shape():
    p = make_patient()
    adm = make_admission(p, aware(2024, 1, 1))
    store = ActiveRosterStore()
    store.fetch()
    store.select('admission', adm.id)
    snap = store.snapshot()
    assert snap['selected'] == {'kind': 'admission', 'id': adm.id}
    assert snap['error'] is None
    assert snap['entries'][0]['isConsultation'] is False


def test_committed_changes_are_broadcast(django_capture_on_commit_callbacks):
    layer = get_channel_layer()
    channel = async_to_sync(layer.new_channel)()
    async_to_sync(layer.group_add)(ROSTER_GROUP, channel)
    p = make_patient()
    try:
        with django_capture_on_commit_callbacks(execute=True):
            adm = make_admission(p, aware(2024, 1, 1))
        message = async_to_sync(layer.receive)(channel)
    finally:
        async_to_sync(layer.group_discard)(ROSTER_GROUP, channel)
    assert message['type'] == 'roster.changed'
    assert (message['event'], message['id']) == ('admission_changed', adm.id)

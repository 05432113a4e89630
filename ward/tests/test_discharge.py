import datetime
from unittest import mock

import pytest
from django.contrib.auth.models import AnonymousUser
from django.db import DatabaseError
from django.utils import timezone

from ward.exceptions import PartialFailureError, PreconditionError, StorageError
from ward.models import Admission, Consultation, DischargedPatient, MedicalNote
from ward.services import discharge as discharge_service
from ward.services.discharge import process_discharge
from ward.services.roster import ActiveRosterStore, fetch_active_roster
from ward.tests.factories import aware, make_admission, make_consultation, make_patient

pytestmark = pytest.mark.django_db


def _form(**kw):
    form = {
        'discharge_date': aware(2024, 1, 10, 11),
        'discharge_type': 'regular',
        'follow_up_required': False,
        'follow_up_date': None,
        'discharge_note': 'stable',
    }
    form.update(kw)
    return form


def _selected(kind, entry_id):
    store = ActiveRosterStore()
    store.fetch()
    assert store.select(kind, entry_id) is not None
    return store


def test_discharge_admission_scenario(doctor):
    patient = make_patient('A100', 'Adam')
    adm = make_admission(patient, aware(2024, 1, 1), doctor, department='Neurology')
    store = _selected('admission', adm.id)

    result = store.process_discharge(
        _form(follow_up_required=True, follow_up_date=datetime.date(2024, 1, 20)), doctor
    )

    adm.refresh_from_db()
    assert result.status == adm.status == Admission.STATUS_DISCHARGED
    assert timezone.localdate(adm.discharge_date) == datetime.date(2024, 1, 10)
    assert adm.discharge_type == 'regular'
    assert adm.follow_up_required is True
    assert adm.follow_up_date == datetime.date(2024, 1, 20)
    assert adm.discharge_note == 'stable'
    assert adm.discharge_doctor_id == doctor.id
    note = MedicalNote.objects.get(patient=patient)
    assert (note.note_type, note.content, note.doctor_id) == ('Discharge Summary', 'stable', doctor.id)
    assert adm.id not in [e.id for e in fetch_active_roster() if e.kind == 'admission']
    assert DischargedPatient.objects.get(id=adm.id).mrn == 'A100'
    assert store.selected is None
    assert store.entries == []


def test_complete_consultation_scenario(doctor):
    patient = make_patient('C55')
    make_consultation(patient, id=55)
    store = _selected('consultation', 55)
    now = aware(2024, 2, 1, 9, 30)

    result = store.process_discharge(_form(discharge_note='reviewed, no action needed'), doctor, now=now)

    c = Consultation.objects.get(pk=55)
    assert result.kind == 'consultation'
    assert c.status == Consultation.STATUS_COMPLETED
    assert c.completed_at == now
    assert c.completed_by_id == doctor.id
    assert c.completion_note == 'reviewed, no action needed'
    note = MedicalNote.objects.get(patient=patient)
    assert note.note_type == MedicalNote.TYPE_CONSULTATION_NOTE
    assert 55 not in [e.id for e in fetch_active_roster() if e.kind == 'consultation']


def test_follow_up_date_is_dropped_without_follow_up(doctor):
    adm = make_admission(make_patient(), aware(2024, 1, 1))
    entry = _selected('admission', adm.id).selected
    process_discharge(entry, _form(follow_up_date=datetime.date(2024, 2, 1)), doctor)
    adm.refresh_from_db()
    assert adm.follow_up_required is False
    assert adm.follow_up_date is None


def test_preconditions_block_before_any_write(doctor):
    adm = make_admission(make_patient(), aware(2024, 1, 1))
    store = ActiveRosterStore()
    store.fetch()

    with pytest.raises(PreconditionError):
        store.process_discharge(_form(), doctor)
    assert store.error == 'No patient selected'

    store.select('admission', adm.id)
    for user in (None, AnonymousUser()):
        with pytest.raises(PreconditionError):
            store.process_discharge(_form(), user)

    assert Admission.objects.get(pk=adm.pk).status == Admission.STATUS_ACTIVE
    assert not MedicalNote.objects.exists()


def test_stale_entry_cannot_be_discharged_twice(doctor):
    adm = make_admission(make_patient(), aware(2024, 1, 1))
    entry = _selected('admission', adm.id).selected
    process_discharge(entry, _form(), doctor)

    with pytest.raises(PreconditionError):
        process_discharge(entry, _form(discharge_note='again'), doctor)
    assert MedicalNote.objects.count() == 1


def test_unknown_entry_type_is_rejected(doctor):
    with pytest.raises(TypeError):
        process_discharge(object(), _form(), doctor)


def test_note_failure_rolls_back_status_when_atomic(doctor):
    adm = make_admission(make_patient(), aware(2024, 1, 1))
    store = _selected('admission', adm.id)

    with mock.patch.object(discharge_service, '_append_note', side_effect=DatabaseError('notes offline')):
        with pytest.raises(StorageError) as exc:
            discharge_service.process_discharge(store.selected, _form(), doctor, atomic=True)

    assert not isinstance(exc.value, PartialFailureError)
    assert Admission.objects.get(pk=adm.pk).status == Admission.STATUS_ACTIVE


def test_note_failure_is_partial_when_not_atomic(doctor, settings):
    settings.WARD_ATOMIC_WORKFLOWS = False
    adm = make_admission(make_patient(), aware(2024, 1, 1))
    store = _selected('admission', adm.id)

    with mock.patch.object(discharge_service, '_append_note', side_effect=DatabaseError('notes offline')):
        with pytest.raises(PartialFailureError) as exc:
            store.process_discharge(_form(), doctor)

    assert exc.value.applied == {'kind': 'admission', 'id': adm.id, 'status': 'discharged'}
    assert Admission.objects.get(pk=adm.pk).status == Admission.STATUS_DISCHARGED
    assert 'note was not saved' in store.error
    assert store.loading is False


def test_status_write_failure_appends_no_note(doctor):
    adm = make_admission(make_patient(), aware(2024, 1, 1))
    entry = _selected('admission', adm.id).selected

    with mock.patch.object(Admission, 'save', side_effect=DatabaseError('write failed')):
        with pytest.raises(StorageError):
            process_discharge(entry, _form(), doctor, atomic=False)
    assert not MedicalNote.objects.exists()

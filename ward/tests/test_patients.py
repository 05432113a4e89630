import datetime
from unittest import mock

import pytest
from django.db import DatabaseError
from django.utils import timezone

from ward.exceptions import PartialFailureError, StorageError
from ward.models import Admission, Patient
from ward.services import patients as patient_service
from ward.services.patients import (
    PatientListStore,
    admit_patient,
    aggregate_patient,
    discharged_patients,
    fetch_patients,
    long_stay_patients,
)
from ward.tests.factories import aware, make_admission, make_patient

pytestmark = pytest.mark.django_db


def test_aggregate_prefers_active_admission(doctor):
    p = make_patient()
    make_admission(p, aware(2024, 1, 1), doctor, department='Neurology', status=Admission.STATUS_ACTIVE)
    make_admission(p, aware(2024, 3, 1), None, department='Pulmonology', status=Admission.STATUS_DISCHARGED,
                   discharge_date=aware(2024, 3, 5))

    summary = aggregate_patient(p)

    assert [a.department for a in summary.admissions] == ['Pulmonology', 'Neurology']
    assert summary.active_admission.department == 'Neurology'
    assert summary.department == 'Neurology'
    assert summary.admission_date == aware(2024, 1, 1)
    assert summary.doctor_name == 'Dr. Test'


def test_aggregate_falls_back_to_latest_admission():
    p = make_patient()
    make_admission(p, aware(2024, 1, 1), status=Admission.STATUS_DISCHARGED, department='Hematology')
    make_admission(p, aware(2024, 2, 1), status=Admission.STATUS_DISCHARGED, department='Rheumatology',
                   diagnosis='Gout')

    summary = aggregate_patient(p)

    assert summary.active_admission is None
    assert summary.department == 'Rheumatology'
    assert summary.diagnosis == 'Gout'
    assert summary.admission_date == aware(2024, 2, 1)
    assert summary.doctor_name is None


def test_aggregate_patient_without_admissions():
    summary = aggregate_patient(make_patient())
    assert summary.admissions == ()
    assert summary.department is None
    assert summary.latest_admission is None


def test_fetch_patients_hides_old_discharges():
    now = timezone.now()
    active = make_patient('A1')
    make_admission(active, now - datetime.timedelta(days=2))
    recent = make_patient('R1')
    make_admission(recent, now - datetime.timedelta(days=3), status=Admission.STATUS_DISCHARGED,
                   discharge_date=now - datetime.timedelta(hours=10))
    old = make_patient('O1')
    make_admission(old, now - datetime.timedelta(days=5), status=Admission.STATUS_DISCHARGED,
                   discharge_date=now - datetime.timedelta(hours=20))

    default = {p.mrn for p in fetch_patients(now=now)}
    everything = {p.mrn for p in fetch_patients(include_all_discharged=True, now=now)}

    assert default == {'A1', 'R1'}
    assert everything == {'A1', 'R1', 'O1'}
    assert Patient.objects.filter(mrn='O1').exists()


def test_fetch_patients_windows_nested_admissions():
    now = timezone.now()
    p = make_patient('W1')
    make_admission(p, now - datetime.timedelta(days=1))
    make_admission(p, now - datetime.timedelta(days=30), status=Admission.STATUS_DISCHARGED,
                   discharge_date=now - datetime.timedelta(days=25))

    [windowed] = fetch_patients(now=now)
    [full] = fetch_patients(include_all_discharged=True, now=now)

    assert len(windowed.admissions) == 1
    assert len(full.admissions) == 2
    assert windowed.active_admission == full.active_admission


def test_fetch_patients_wraps_storage_failures():
    with mock.patch.object(patient_service, 'patients_queryset', side_effect=DatabaseError('db down')):
        with pytest.raises(StorageError) as exc:
            fetch_patients()
    assert 'db down' in str(exc.value.detail)


def test_store_replaces_selected_patient_with_fresh_object():
    p = make_patient()
    make_admission(p, timezone.now() - datetime.timedelta(days=1))
    store = PatientListStore()
    store.fetch()
    store.select(store.patients[0])
    before = store.selected

    store.fetch()

    assert store.selected == before
    assert store.selected is not before


def test_store_clears_selection_when_patient_leaves_window():
    p = make_patient()
    adm = make_admission(p, timezone.now() - datetime.timedelta(days=3))
    store = PatientListStore()
    store.fetch()
    store.select(store.patients[0])

    Admission.objects.filter(pk=adm.pk).update(status=Admission.STATUS_DISCHARGED,
                                               discharge_date=timezone.now() - datetime.timedelta(days=2))
    store.fetch()

    assert store.patients == []
    assert store.selected is None


def test_store_fetch_fails_closed():
    store = PatientListStore()
    with mock.patch.object(patient_service, 'patients_queryset', side_effect=DatabaseError('db down')):
        store.fetch()
    assert store.loading is False
    assert 'db down' in store.error
    assert store.patients == []


def _intake(doctor, **kw):
    data = {
        'mrn': 'N100', 'name': 'New Patient', 'age': 40, 'gender': 'female', 'department': 'Neurology',
        'assigned_doctor': doctor, 'diagnosis': 'Migraine', 'admission_date': aware(2024, 1, 5, 10),
        'safety_type': 'observation', 'shift_type': 'weekend_night', 'use_weekend_shift': True,
    }
    data.update(kw)
    return data


def test_admit_patient_creates_patient_and_first_admission(doctor):
    patient, admission = admit_patient(doctor, _intake(doctor))

    assert patient.date_of_birth == datetime.date(timezone.localdate().year - 40, 1, 1)
    assert admission.patient_id == patient.id
    assert admission.visit_number == 1
    assert admission.status == Admission.STATUS_ACTIVE
    # 2024-01-05 is a Friday
    assert (admission.shift_type, admission.is_weekend) == ('weekend_night', True)


def test_admit_patient_rolls_back_when_atomic(doctor):
    with mock.patch.object(Admission.objects, 'create', side_effect=DatabaseError('insert failed')):
        with pytest.raises(StorageError) as exc:
            admit_patient(doctor, _intake(doctor), atomic=True)
    assert not isinstance(exc.value, PartialFailureError)
    assert not Patient.objects.filter(mrn='N100').exists()


def test_admit_patient_reports_orphan_patient_when_not_atomic(doctor):
    with mock.patch.object(Admission.objects, 'create', side_effect=DatabaseError('insert failed')):
        with pytest.raises(PartialFailureError) as exc:
            admit_patient(doctor, _intake(doctor), atomic=False)
    orphan = Patient.objects.get(mrn='N100')
    assert exc.value.applied == {'patient': orphan.id}


def test_store_add_patient_refetches(doctor):
    store = PatientListStore()
    store.add_patient(doctor, _intake(doctor))
    assert [p.mrn for p in store.patients] == ['N100']
    assert store.error is None and store.loading is False

    with mock.patch.object(Admission.objects, 'create', side_effect=DatabaseError('insert failed')):
        with pytest.raises(StorageError):
            store.add_patient(doctor, _intake(doctor, mrn='N101'))
    assert 'insert failed' in store.error
    assert [p.mrn for p in store.patients] == ['N100']


def test_store_update_and_delete_patch_selection(doctor, administrator):
    p = make_patient('U1', 'Old Name')
    make_admission(p, timezone.now())
    store = PatientListStore()
    store.fetch()
    store.select(store.patients[0])

    fresh = store.update_patient(doctor, p.id, {'name': 'New Name'})
    assert store.selected is fresh
    assert store.patients[0].name == 'New Name'

    store.delete_patient(administrator, p.id)
    assert store.patients == []
    assert store.selected is None
    assert not Patient.objects.filter(pk=p.id).exists()


def test_long_stay_filter_uses_min_duration():
    now = timezone.now()
    five = make_patient('L5', 'Five Days')
    make_admission(five, now - datetime.timedelta(days=5))
    seven = make_patient('L7', 'Seven Days')
    make_admission(seven, now - datetime.timedelta(days=7))

    rows = long_stay_patients(fetch_patients(now=now), min_duration=6, now=now)

    assert [(p.mrn, days) for p, days in rows] == [('L7', 7)]


def test_long_stay_filter_by_specialty_search_and_sort():
    now = timezone.now()
    a = make_patient('S1', 'Alice')
    make_admission(a, now - datetime.timedelta(days=10), department='Neurology')
    b = make_patient('S2', 'Bob')
    make_admission(b, now - datetime.timedelta(days=8), department='Neurology')
    c = make_patient('S3', 'Carol')
    make_admission(c, now - datetime.timedelta(days=9), department='Hematology')
    patients = fetch_patients(now=now)

    by_duration = long_stay_patients(patients, specialty='Neurology', now=now)
    assert [p.mrn for p, _ in by_duration] == ['S1', 'S2']
    assert [p.mrn for p, _ in long_stay_patients(patients, search='car', now=now)] == ['S3']
    by_date = long_stay_patients(patients, sort_by='admission_date', now=now)
    assert [p.mrn for p, _ in by_date] == ['S2', 'S3', 'S1']


def test_discharged_view_lists_discharged_admissions(doctor):
    p = make_patient('D1', 'Dana')
    make_admission(p, aware(2024, 1, 1), doctor, status=Admission.STATUS_DISCHARGED,
                   discharge_date=aware(2024, 1, 4), discharge_type='regular')
    make_admission(make_patient('D2'), aware(2024, 1, 2))

    rows = list(discharged_patients())
    assert [r.mrn for r in rows] == ['D1']
    assert rows[0].doctor_name == 'Dr. Test'
    assert list(discharged_patients('dan'))[0].patient_id == p.id
    assert list(discharged_patients('zzz')) == []

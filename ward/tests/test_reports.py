import datetime
from unittest import mock

import pytest
from django.utils import timezone
from reportlab.platypus import Paragraph

from ward.exceptions import ReportExportError
from ward.models import Appointment, Consultation
from ward.services import reports as report_service
from ward.services.patients import fetch_patients, long_stay_patients
from ward.services.reports import (
    build_long_stay_report_pdf,
    build_ward_report_pdf,
    filter_report_data,
    report_filename,
)
from ward.tests.factories import aware, make_admission, make_consultation, make_patient

pytestmark = pytest.mark.django_db


class StoryCapture:
    """Stand-in for the renderer that keeps the story instead of drawing it."""

    def __init__(self):
        self.story = None
        self.title = None

    def __call__(self, story, title):
        self.story = story
        self.title = title
        return b'%PDF-fake'

    @property
    def texts(self):
        return [f.text for f in self.story if isinstance(f, Paragraph)]


@pytest.fixture
def captured():
    capture = StoryCapture()
    with mock.patch.object(report_service, '_render', side_effect=capture):
        yield capture


@pytest.fixture
def tables():
    with mock.patch.object(report_service, '_table', wraps=report_service._table) as spy:
        yield spy


def test_empty_sections_print_placeholder_lines(captured, tables):
    build_ward_report_pdf([], [], [])
    assert captured.texts[0] == 'IMD-Care Report'
    for line in ('Active Admissions', 'No active admissions found.', 'Medical Consultations',
                 'No active consultations found.', 'Clinic Appointments', 'No appointments found.'):
        assert line in captured.texts
    tables.assert_not_called()


def test_report_type_limits_sections(captured, tables, doctor):
    p = make_patient('T1', 'Tala')
    make_admission(p, aware(2024, 1, 3), doctor)
    build_ward_report_pdf(fetch_patients(include_all_discharged=True), [], [], report_type='admissions',
                          date_from=datetime.date(2024, 1, 1), date_to=datetime.date(2024, 1, 31),
                          specialty='Immunology & Allergy')
    assert 'Period: 01/01/2024 to 31/01/2024' in captured.texts
    assert 'Specialty: Immunology &amp; Allergy' in captured.texts
    assert 'Medical Consultations' not in captured.texts
    assert 'Clinic Appointments' not in captured.texts
    head, rows = tables.call_args[0]
    assert head[0] == 'Name'
    assert rows == [['Tala', 'T1', 'Neurology', '03/01/2024', 'Dr. Test', 'N/A']]


def test_ward_report_produces_pdf_bytes(doctor):
    p = make_patient()
    make_admission(p, timezone.now(), doctor)
    make_consultation(p)
    Appointment.objects.create(mrn=p.mrn, patient_name=p.name, specialty='Neurology')
    pdf = build_ward_report_pdf(fetch_patients(), list(Consultation.objects.all()), list(Appointment.objects.all()))
    assert pdf.startswith(b'%PDF')


def test_long_report_renders_over_several_pages():
    now = timezone.now()
    for i in range(80):
        make_admission(make_patient(f'M{i:03d}', f'Patient {i}'), now - datetime.timedelta(days=10))
    rows = long_stay_patients(fetch_patients(now=now), now=now)
    assert len(rows) == 80
    assert build_long_stay_report_pdf(rows, specialty='Neurology').startswith(b'%PDF')


def test_long_stay_report_rows(captured, tables):
    now = timezone.now()
    make_admission(make_patient('L7', 'Lama'), now - datetime.timedelta(days=7))
    make_admission(make_patient('L2', 'Lina'), now - datetime.timedelta(days=2))
    build_long_stay_report_pdf(long_stay_patients(fetch_patients(now=now), now=now), specialty='Neurology')
    assert captured.title == 'Long Stay Patient Report'
    assert 'Specialty: Neurology' in captured.texts
    _, rows = tables.call_args[0]
    assert len(rows) == 1
    assert rows[0][:4] == ['Lama', 'L7', 'Neurology', 'Not assigned']
    assert rows[0][-1] == '7 days'


def test_long_stay_report_without_rows(captured, tables):
    build_long_stay_report_pdf([])
    assert 'No long stay patients found.' in captured.texts
    tables.assert_not_called()


def test_render_failures_become_report_errors():
    with mock.patch.object(report_service, '_render', side_effect=ValueError('layout')):
        with pytest.raises(ReportExportError) as exc:
            build_ward_report_pdf([], [], [])
    assert str(exc.value.detail) == 'Failed to generate report'


def test_unknown_report_type_is_rejected():
    with pytest.raises(ReportExportError):
        build_ward_report_pdf([], [], [], report_type='weekly')


def test_filter_report_data():
    p_in = make_patient('F1', 'Farah')
    make_admission(p_in, aware(2024, 1, 5))
    make_admission(make_patient('F2', 'Ghada'), aware(2024, 2, 5))
    make_admission(make_patient('F3', 'Hiba'), aware(2024, 1, 6), department='Hematology')
    c = make_consultation(p_in, consultation_specialty='Neurology')
    Consultation.objects.filter(pk=c.pk).update(created_at=aware(2024, 1, 7))
    appt = Appointment.objects.create(mrn='F1', patient_name='Farah', specialty='Neurology')
    Appointment.objects.filter(pk=appt.pk).update(created_at=aware(2024, 3, 1))

    pts, cons, apps = filter_report_data(
        fetch_patients(include_all_discharged=True), Consultation.objects.all(), Appointment.objects.all(),
        date_from=datetime.date(2024, 1, 1), date_to=datetime.date(2024, 1, 31), specialty='Neurology',
    )
    assert [p.mrn for p in pts] == ['F1']
    assert [x.id for x in cons] == [c.id]
    assert apps == []

    pts, _, _ = filter_report_data(fetch_patients(include_all_discharged=True), [], [], search='hib')
    assert [p.mrn for p in pts] == ['F3']


def test_filter_skips_discharged_patients(doctor):
    p = make_patient('D1', 'Dana')
    make_admission(p, aware(2024, 1, 5), status='discharged', discharge_date=aware(2024, 1, 8))
    pts, _, _ = filter_report_data(fetch_patients(include_all_discharged=True), [], [])
    assert pts == []


def test_report_filename():
    assert report_filename('imd-care-report', aware(2024, 3, 9, 14, 5)) == 'imd-care-report-09-03-2024-1405.pdf'

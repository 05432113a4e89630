import datetime

from django.utils import timezone

from ward.models import Admission, Consultation, Patient


def aware(*args) -> datetime.datetime:
    return timezone.make_aware(datetime.datetime(*args))


def make_patient(mrn='P001', name='Test Patient', **kw) -> Patient:
    kw.setdefault('date_of_birth', datetime.date(1970, 1, 1))
    kw.setdefault('gender', 'male')
    return Patient.objects.create(mrn=mrn, name=name, **kw)


def make_admission(patient, admission_date, doctor=None, **kw) -> Admission:
    kw.setdefault('department', 'Neurology')
    kw.setdefault('diagnosis', 'Stroke')
    kw.setdefault('status', Admission.STATUS_ACTIVE)
    return Admission.objects.create(patient=patient, admission_date=admission_date, admitting_doctor=doctor, **kw)


def make_consultation(patient, **kw) -> Consultation:
    kw.setdefault('consultation_specialty', 'Pulmonology')
    kw.setdefault('reason', 'Shortness of breath')
    return Consultation.objects.create(patient=patient, mrn=patient.mrn, patient_name=patient.name, **kw)

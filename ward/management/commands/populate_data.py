"""
Management command to populate the database with demo ward data.
"""
import random
from datetime import timedelta

from django.contrib.auth.hashers import make_password
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone

from ward.models import Admission, Appointment, Consultation, LongStayNote, Patient, User
from ward.services.dashboard import SPECIALTIES
from ward.services.patients import date_of_birth_from_age
from ward.services.stay import classify_shift

FIRST_NAMES = ["Ahmad", "Fatima", "Yousef", "Mariam", "Khalid", "Noura", "Hassan", "Layla", "Tariq", "Huda"]
LAST_NAMES = ["Al-Sayed", "Haddad", "Nasser", "Karim", "Saleh", "Mansour", "Aziz", "Qasim"]
DIAGNOSES = ["Pneumonia", "Stroke", "DKA", "Cellulitis", "COPD exacerbation", "GI bleed", "Heart failure"]


class Command(BaseCommand):
    help = 'Populate database with demo ward data'

    def add_arguments(self, parser):
        parser.add_argument('--patients', type=int, default=30)
        parser.add_argument('--seed', type=int, default=None)

    @transaction.atomic
    def handle(self, *args, **options):
        rng = random.Random(options['seed'])
        self.stdout.write('Creating demo data...')
        doctors = self.create_doctors()
        patients = self.create_patients(rng, options['patients'], doctors)
        self.create_consultations(rng, patients, doctors)
        self.create_appointments(rng, patients)
        self.create_long_stay_notes(rng, doctors)
        self.stdout.write(self.style.SUCCESS(f'Demo data ready: {len(patients)} patients'))

    def create_doctors(self):
        doctors = []
        for i, specialty in enumerate(SPECIALTIES, start=1):
            u, _ = User.objects.get_or_create(
                username=f'dr{i:02d}',
                defaults={'role': User.ROLE_DOCTOR, 'name': f'Dr. {LAST_NAMES[i % len(LAST_NAMES)]}',
                          'department': specialty, 'medical_code': f'MD{i:04d}',
                          'password': make_password('123456')},
            )
            doctors.append(u)
        return doctors

    def create_patients(self, rng, count, doctors):
        now = timezone.now()
        patients = []
        for i in range(count):
            mrn = f'D{1000 + i}'
            if Patient.objects.filter(mrn=mrn).exists():
                continue
            patient = Patient.objects.create(
                mrn=mrn,
                name=f'{rng.choice(FIRST_NAMES)} {rng.choice(LAST_NAMES)}',
                date_of_birth=date_of_birth_from_age(rng.randint(18, 90)),
                gender=rng.choice(['male', 'female']),
            )
            doctor = rng.choice(doctors)
            admitted = now - timedelta(days=rng.randint(0, 14), hours=rng.randint(0, 23))
            shift_type, is_weekend = classify_shift(admitted, rng.choice(['morning', 'evening', 'night']),
                                                    use_weekend=rng.random() < 0.3)
            discharged = rng.random() < 0.25
            Admission.objects.create(
                patient=patient,
                admitting_doctor=doctor,
                department=doctor.department,
                diagnosis=rng.choice(DIAGNOSES),
                admission_date=admitted,
                status=Admission.STATUS_DISCHARGED if discharged else Admission.STATUS_ACTIVE,
                discharge_date=now - timedelta(hours=rng.randint(1, 48)) if discharged else None,
                discharge_type='regular' if discharged else None,
                discharge_doctor=doctor if discharged else None,
                discharge_note='Stable for discharge.' if discharged else None,
                safety_type=rng.choice([None, 'emergency', 'observation', 'short-stay']),
                shift_type=shift_type,
                is_weekend=is_weekend,
            )
            patients.append(patient)
        return patients

    def create_consultations(self, rng, patients, doctors):
        for patient in rng.sample(patients, k=min(len(patients), 8)):
            doctor = rng.choice(doctors + [None])
            Consultation.objects.create(
                patient=patient, mrn=patient.mrn, patient_name=patient.name,
                age=timezone.localdate().year - patient.date_of_birth.year, gender=patient.gender,
                requesting_department=rng.choice(SPECIALTIES), consultation_specialty=rng.choice(SPECIALTIES),
                reason=rng.choice(DIAGNOSES), urgency=rng.choice(['routine', 'urgent', 'emergency']),
                doctor=doctor, doctor_name=doctor.display_name if doctor else '',
            )

    def create_appointments(self, rng, patients):
        for patient in rng.sample(patients, k=min(len(patients), 10)):
            Appointment.objects.create(
                mrn=patient.mrn, patient_name=patient.name, specialty=rng.choice(SPECIALTIES),
                appointment_type=rng.choice(['regular', 'urgent', 'follow-up']),
                status=rng.choice(['pending', 'completed', 'cancelled']),
            )

    def create_long_stay_notes(self, rng, doctors):
        cutoff = timezone.now() - timedelta(days=6)
        for adm in Admission.objects.filter(status=Admission.STATUS_ACTIVE, admission_date__lte=cutoff):
            LongStayNote.objects.create(patient_id=adm.patient_id, created_by=rng.choice(doctors),
                                        content='Awaiting placement; reviewed on ward round.')

"""
Database models for the ward-management backend.

The tables mirror the relational schema the ward front-end was built
against: clinical users, patients and their admissions, pending
specialist consultations, clinic appointments, the clinical note feed
and the long-stay notes.  ``DischargedPatient`` is an unmanaged model
over the ``discharged_patients`` SQL view created by the migrations.
"""
from __future__ import annotations

from django.contrib.auth.models import AbstractUser
from django.db import models
from django.db.models import Q


class User(AbstractUser):
    """Clinical staff account.

    Roles mirror the front-end roles: 'doctor', 'nurse' and
    'administrator'.  ``name`` is the display name shown on rosters and
    reports; ``department`` binds doctors to a specialty so intake forms
    can offer the right admitting doctors.
    """
    ROLE_DOCTOR = 'doctor'
    ROLE_NURSE = 'nurse'
    ROLE_ADMINISTRATOR = 'administrator'
    ROLE_CHOICES = [
        (ROLE_DOCTOR, 'Doctor'),
        (ROLE_NURSE, 'Nurse'),
        (ROLE_ADMINISTRATOR, 'Administrator'),
    ]
    STATUS_CHOICES = [
        ('active', 'Active'),
        ('inactive', 'Inactive'),
    ]
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=ROLE_DOCTOR)
    name = models.CharField(max_length=255, blank=True)
    medical_code = models.CharField(max_length=50, blank=True)
    department = models.CharField(max_length=255, blank=True, db_index=True)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='active')

    class Meta:
        db_table = 'users'

    @property
    def display_name(self) -> str:
        return self.name or self.get_full_name() or self.username

    def __str__(self) -> str:
        return f"{self.display_name} ({self.role})"


class Patient(models.Model):
    """Patient identity.  Owns zero or more admissions."""
    GENDER_CHOICES = [
        ('male', 'Male'),
        ('female', 'Female'),
    ]
    mrn = models.CharField(max_length=50, unique=True)
    name = models.CharField(max_length=255)
    date_of_birth = models.DateField()
    gender = models.CharField(max_length=10, choices=GENDER_CHOICES)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'patients'

    def __str__(self) -> str:
        return f"{self.name} ({self.mrn})"


class Admission(models.Model):
    """One inpatient stay.

    ``status`` moves from active to discharged exactly once through the
    discharge workflow.  The discharge columns stay empty until then.
    """
    STATUS_ACTIVE = 'active'
    STATUS_DISCHARGED = 'discharged'
    STATUS_TRANSFERRED = 'transferred'
    STATUS_CHOICES = [
        (STATUS_ACTIVE, 'Active'),
        (STATUS_DISCHARGED, 'Discharged'),
        (STATUS_TRANSFERRED, 'Transferred'),
    ]
    DISCHARGE_TYPE_CHOICES = [
        ('regular', 'Regular'),
        ('against-medical-advice', 'Against medical advice'),
        ('transfer', 'Transfer'),
    ]
    SHIFT_CHOICES = [
        ('morning', 'Morning'),
        ('evening', 'Evening'),
        ('night', 'Night'),
        ('weekend_morning', 'Weekend morning (7:00 - 19:00)'),
        ('weekend_night', 'Weekend night (19:00 - 7:00)'),
    ]
    SAFETY_CHOICES = [
        ('emergency', 'Emergency'),
        ('observation', 'Observation'),
        ('short-stay', 'Short stay'),
    ]

    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='admissions')
    admitting_doctor = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='admissions_admitted'
    )
    discharge_doctor = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='admissions_discharged'
    )
    department = models.CharField(max_length=255)
    diagnosis = models.TextField(blank=True)
    admission_date = models.DateTimeField()
    discharge_date = models.DateTimeField(null=True, blank=True)
    # Roster and discharge windows filter on status constantly
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_ACTIVE, db_index=True)
    visit_number = models.PositiveIntegerField(default=1)
    safety_type = models.CharField(max_length=20, choices=SAFETY_CHOICES, null=True, blank=True)
    shift_type = models.CharField(max_length=20, choices=SHIFT_CHOICES, default='morning')
    is_weekend = models.BooleanField(default=False)
    discharge_type = models.CharField(max_length=50, choices=DISCHARGE_TYPE_CHOICES, null=True, blank=True)
    follow_up_required = models.BooleanField(default=False)
    follow_up_date = models.DateField(null=True, blank=True)
    discharge_note = models.TextField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'admissions'
        indexes = [
            models.Index(
                fields=['discharge_type'],
                name='idx_admissions_discharge_type',
                condition=Q(discharge_type__isnull=False),
            ),
            models.Index(
                fields=['follow_up_date'],
                name='idx_admissions_follow_up',
                condition=Q(follow_up_required=True),
            ),
        ]

    def __str__(self) -> str:
        return f"Admission #{self.id} {self.patient_id} {self.department} ({self.status})"


class Consultation(models.Model):
    """A pending specialist review.

    Consultations do not live in the admissions table and carry the
    patient's MRN, name and age denormalised for display.
    """
    STATUS_ACTIVE = 'active'
    STATUS_COMPLETED = 'completed'
    STATUS_CHOICES = ((STATUS_ACTIVE, 'active'), (STATUS_COMPLETED, 'completed'))

    URGENCY_CHOICES = (
        ('routine', 'routine'),
        ('urgent', 'urgent'),
        ('emergency', 'emergency'),
    )

    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='consultations')
    mrn = models.CharField(max_length=50)
    patient_name = models.CharField(max_length=255)
    age = models.PositiveIntegerField(null=True, blank=True)
    gender = models.CharField(max_length=10, choices=Patient.GENDER_CHOICES, blank=True)
    requesting_department = models.CharField(max_length=255, blank=True)
    consultation_specialty = models.CharField(max_length=255)
    reason = models.TextField(blank=True)
    urgency = models.CharField(max_length=16, choices=URGENCY_CHOICES, default='routine')
    doctor = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='consultations_assigned'
    )
    doctor_name = models.CharField(max_length=255, blank=True)
    status = models.CharField(max_length=16, choices=STATUS_CHOICES, default=STATUS_ACTIVE, db_index=True)
    completion_note = models.TextField(null=True, blank=True)
    completed_by = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='consultations_completed'
    )
    completed_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'consultations'
        indexes = [
            models.Index(fields=['consultation_specialty', 'status'], name='idx_consultations_specialty'),
        ]

    def __str__(self) -> str:
        return f"consult {self.id} {self.mrn} -> {self.consultation_specialty} ({self.status})"


class Appointment(models.Model):
    """Clinic appointment, listed on the daily report."""
    mrn = models.CharField(max_length=50)
    patient_name = models.CharField(max_length=255)
    specialty = models.CharField(max_length=255)
    appointment_type = models.CharField(max_length=50, default='regular')
    status = models.CharField(max_length=20, default='pending')
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'appointments'

    def __str__(self) -> str:
        return f"{self.patient_name} {self.specialty} ({self.status})"


class MedicalNote(models.Model):
    """Entry of a patient's clinical note feed.  Append-only."""
    TYPE_DISCHARGE_SUMMARY = 'Discharge Summary'
    TYPE_CONSULTATION_NOTE = 'Consultation Note'
    TYPE_PROGRESS_NOTE = 'Progress Note'
    TYPE_CHOICES = (
        (TYPE_DISCHARGE_SUMMARY, TYPE_DISCHARGE_SUMMARY),
        (TYPE_CONSULTATION_NOTE, TYPE_CONSULTATION_NOTE),
        (TYPE_PROGRESS_NOTE, TYPE_PROGRESS_NOTE),
    )

    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='medical_notes')
    doctor = models.ForeignKey(User, null=True, on_delete=models.SET_NULL, related_name='medical_notes')
    note_type = models.CharField(max_length=50, choices=TYPE_CHOICES)
    content = models.TextField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'medical_notes'
        indexes = [models.Index(fields=['patient', 'created_at'], name='idx_medical_notes_patient')]

    def __str__(self) -> str:
        return f"{self.note_type} for {self.patient_id}"


class LongStayNote(models.Model):
    """Free-text note attached to a long-stay patient."""
    patient = models.ForeignKey(Patient, on_delete=models.CASCADE, related_name='long_stay_notes')
    content = models.TextField()
    created_by = models.ForeignKey(User, on_delete=models.PROTECT, related_name='long_stay_notes', db_index=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'long_stay_notes'

    def __str__(self) -> str:
        return f"long-stay note {self.id} patient={self.patient_id}"


class DischargedPatient(models.Model):
    """Read-only row of the ``discharged_patients`` view."""
    id = models.IntegerField(primary_key=True)
    patient_id = models.IntegerField()
    mrn = models.CharField(max_length=50)
    name = models.CharField(max_length=255)
    admission_date = models.DateTimeField()
    discharge_date = models.DateTimeField(null=True)
    department = models.CharField(max_length=255)
    discharge_type = models.CharField(max_length=50, null=True)
    follow_up_required = models.BooleanField()
    follow_up_date = models.DateField(null=True)
    discharge_note = models.TextField(null=True)
    doctor_name = models.CharField(max_length=255, null=True)

    class Meta:
        managed = False
        db_table = 'discharged_patients'


class AuditEvent(models.Model):
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    action = models.CharField(max_length=64)
    object_type = models.CharField(max_length=64, blank=True, null=True)
    object_id = models.IntegerField(blank=True, null=True)
    detail = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'audit_events'
        indexes = [
            models.Index(fields=['action', 'created_at'], name='idx_audit_action'),
            models.Index(fields=['object_type', 'object_id', 'created_at'], name='idx_audit_object'),
        ]

    def __str__(self):
        return f"{self.action}:{self.user_id}@{self.created_at:%F %T}"

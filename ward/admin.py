"""
Django admin registrations for the ward models.

``DischargedPatient`` is a database view and is registered read-only.
"""
from django.contrib import admin

from .models import (
    Admission,
    Appointment,
    AuditEvent,
    Consultation,
    DischargedPatient,
    LongStayNote,
    MedicalNote,
    Patient,
    User,
)


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('username', 'name', 'role', 'department', 'status', 'is_staff')
    list_filter = ('role', 'department', 'status')
    search_fields = ('username', 'name', 'medical_code')


class AdmissionInline(admin.TabularInline):
    model = Admission
    fk_name = 'patient'
    extra = 0
    fields = ('admission_date', 'department', 'status', 'shift_type', 'admitting_doctor', 'discharge_date')


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ('mrn', 'name', 'gender', 'date_of_birth', 'created_at')
    search_fields = ('mrn', 'name')
    inlines = [AdmissionInline]


@admin.register(Admission)
class AdmissionAdmin(admin.ModelAdmin):
    list_display = ('id', 'patient', 'department', 'status', 'admission_date', 'discharge_date', 'shift_type')
    list_filter = ('status', 'department', 'shift_type', 'discharge_type')
    search_fields = ('patient__mrn', 'patient__name', 'diagnosis')


@admin.register(Consultation)
class ConsultationAdmin(admin.ModelAdmin):
    list_display = ('id', 'mrn', 'patient_name', 'consultation_specialty', 'urgency', 'status', 'created_at')
    list_filter = ('status', 'consultation_specialty', 'urgency')
    search_fields = ('mrn', 'patient_name')


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ('mrn', 'patient_name', 'specialty', 'appointment_type', 'status', 'created_at')
    list_filter = ('specialty', 'status')


@admin.register(MedicalNote)
class MedicalNoteAdmin(admin.ModelAdmin):
    list_display = ('patient', 'note_type', 'doctor', 'created_at')
    list_filter = ('note_type',)


@admin.register(LongStayNote)
class LongStayNoteAdmin(admin.ModelAdmin):
    list_display = ('patient', 'created_by', 'created_at', 'updated_at')


@admin.register(DischargedPatient)
class DischargedPatientAdmin(admin.ModelAdmin):
    list_display = ('mrn', 'name', 'department', 'discharge_date', 'discharge_type', 'doctor_name')
    search_fields = ('mrn', 'name')

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(AuditEvent)
class AuditEventAdmin(admin.ModelAdmin):
    list_display = ('action', 'user', 'object_type', 'object_id', 'created_at')
    list_filter = ('action', 'object_type')

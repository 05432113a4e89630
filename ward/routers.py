"""
URL mappings for the ward API.

Paths carry no trailing slash, matching the routes the front-end calls.
"""
from django.urls import include, path

from .auth_views import jwt_logout_view, jwt_refresh_view, login_view, me_view
from .views import consultations, dashboard, health, notes, patients, reports, roster

urlpatterns = [
    path('', include('django_prometheus.urls')),
    path('healthz', health.healthz),

    path('api/auth/login', login_view),
    path('api/auth/refresh', jwt_refresh_view),
    path('api/auth/logout', jwt_logout_view),
    path('api/auth/me', me_view),

    path('api/patients', patients.list_patients),
    path('api/patients/admit', patients.admit_patient),
    path('api/patients/<int:patient_id>', patients.patient_detail),
    path('api/patients/<int:patient_id>/update', patients.update_patient),
    path('api/patients/<int:patient_id>/delete', patients.delete_patient),
    path('api/patients/<int:patient_id>/long-stay-notes', notes.long_stay_notes),
    path('api/patients/<int:patient_id>/notes', notes.medical_notes),
    path('api/discharged', patients.list_discharged),

    path('api/roster/active', roster.active_roster),
    path('api/roster/discharge', roster.process_discharge),

    path('api/consultations', consultations.consultations),

    path('api/reports/long-stay', reports.long_stay_report),
    path('api/reports/long-stay/export', reports.long_stay_export),
    path('api/reports/daily/export', reports.daily_report_export),

    path('api/specialties', dashboard.specialties),
    path('api/dashboard', dashboard.dashboard),
]

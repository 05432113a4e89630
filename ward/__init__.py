"""Ward application for the IMD-Care backend.

This package contains the models, services, serializers, views and
realtime consumers implementing the ward API used by the front-end:
patient intake and aggregation, the active roster, the discharge
workflow, notes and PDF reports.
"""

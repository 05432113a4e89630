"""
Error taxonomy and the unified API exception handler.

Form checks raise DRF's ``ValidationError`` from the serializers.  The
classes below cover the remaining failure kinds of the ward workflows;
every one of them is rendered by :func:`api_exception_handler` into the
``{'ok': False, 'error': {...}}`` envelope the front-end expects.
"""
from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler


class PreconditionError(APIException):
    """No entry selected, entry no longer active, or no authenticated user."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Workflow precondition failed.'
    default_code = 'precondition_failed'


class StorageError(APIException):
    """A backend read or write failed."""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = 'Storage operation failed.'
    default_code = 'storage_error'


class PartialFailureError(StorageError):
    """A status write committed but the dependent note append failed."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'The change was saved but its clinical note was not.'
    default_code = 'partial_failure'

    def __init__(self, detail=None, *, applied=None):
        super().__init__(detail)
        self.applied = applied or {}


class ReportExportError(APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'Failed to generate report'
    default_code = 'report_failed'


def error_message(exc) -> str:
    """Flatten an exception into the single line shown above a view."""
    detail = getattr(exc, 'detail', None)
    if isinstance(detail, dict):
        parts = []
        for field, msgs in detail.items():
            msgs = msgs if isinstance(msgs, list) else [msgs]
            parts.append(f"{field}: {' '.join(str(m) for m in msgs)}")
        return '; '.join(parts)
    if isinstance(detail, list):
        return ' '.join(str(m) for m in detail)
    if detail is not None:
        return str(detail)
    return str(exc) or exc.__class__.__name__


def api_exception_handler(exc, context):
    resp = drf_exception_handler(exc, context)
    if resp is None:
        return Response({'ok': False, 'error': {'code': 'server_error', 'message': str(exc)}}, status=500)
    # normalize response
    data = resp.data
    if isinstance(data, dict) and 'detail' in data:
        code = getattr(exc, 'default_code', None) or 'api_error'
        return Response({'ok': False, 'error': {'code': code, 'message': str(data['detail'])}}, status=resp.status_code)
    # serializer field errors
    return Response(
        {'ok': False, 'error': {'code': 'validation_error', 'message': error_message(exc), 'fields': data}},
        status=resp.status_code,
    )

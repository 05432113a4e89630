from django.db import DatabaseError, connections
from django.http import JsonResponse


def healthz(request):
    try:
        with connections['default'].cursor() as c:
            c.execute('SELECT 1')
            row = c.fetchone()
    except DatabaseError as e:
        return JsonResponse({'ok': False, 'error': {'code': 'storage_error', 'message': str(e)}}, status=503)
    return JsonResponse({'ok': True, 'db': bool(row and row[0] == 1)})

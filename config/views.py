# config/views.py
"""
Project-level views: health check and JSON error handlers.
"""
from django.http import JsonResponse
from django.utils import timezone

from core.exceptions import ErrorKind, USER_MESSAGES


# ============================================================================
# HEALTH
# ============================================================================

def health_check_view(request):
    """System health check endpoint."""
    from django.db import connection
    from django.db.utils import OperationalError

    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
        db_status = True
    except OperationalError:
        db_status = False

    status_code = 200 if db_status else 503

    return JsonResponse({
        'status': 'healthy' if db_status else 'unhealthy',
        'database': 'connected' if db_status else 'disconnected',
        'timestamp': timezone.now().isoformat(),
    }, status=status_code)


# ============================================================================
# ERROR HANDLERS
# ============================================================================

def _error(kind, status, message=None):
    return JsonResponse(
        {'errorType': kind.value, 'message': message or USER_MESSAGES.get(kind, 'Request failed.')},
        status=status,
    )


def handler404(request, exception):
    return _error(ErrorKind.NOT_FOUND, 404)


def handler500(request):
    return _error(ErrorKind.UNKNOWN, 500, 'Something went wrong on our end.')


def handler403(request, exception):
    return _error(ErrorKind.PERMISSION_DENIED, 403)


def handler400(request, exception):
    return _error(ErrorKind.VALIDATION, 400, 'Your request could not be processed.')

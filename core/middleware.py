# core/middleware.py
"""
API MIDDLEWARE - error envelopes, security headers and request logging.
Every error leaves the process as {"errorType", "message"}; no HTML error pages.
"""
import logging

from django.conf import settings
from django.http import JsonResponse

from .exceptions import ErrorKind, StudioException

logger = logging.getLogger(__name__)


# ============ SECURITY HEADERS MIDDLEWARE ============

class SecurityHeadersMiddleware:
    """Adds baseline security headers to every response."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        response = self.get_response(request)

        response["X-Content-Type-Options"] = "nosniff"
        response["X-Frame-Options"] = "DENY"
        response["Referrer-Policy"] = "strict-origin-when-cross-origin"
        if request.path.startswith("/api/"):
            response["Cache-Control"] = "no-store"

        return response


# ============ EXCEPTION HANDLING MIDDLEWARE ============

class ExceptionHandlingMiddleware:
    """Renders exceptions that escape the views as the JSON error envelope."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        return self.get_response(request)

    def process_exception(self, request, exception):
        # Business error with a known kind
        if isinstance(exception, StudioException):
            logger.warning(f"Studio exception on {request.path}: {exception!r}")
            return JsonResponse(
                {"errorType": exception.error_code, "message": exception.user_message},
                status=exception.http_status,
            )

        # System error
        logger.error(f"System exception on {request.path}: {exception}", exc_info=True)
        return JsonResponse(
            {"errorType": ErrorKind.UNKNOWN.value, "message": "System error. Our team has been notified."},
            status=500,
        )


# ============ REQUEST LOGGING MIDDLEWARE ============

class RequestLoggingMiddleware:
    """Debug-level structured request/response logging."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        if self._should_skip_logging(request):
            return self.get_response(request)

        if settings.DEBUG:
            logger.debug("Request", extra={
                "method": request.method,
                "path": request.path,
                "ip": self._get_client_ip(request),
            })

        response = self.get_response(request)

        if settings.DEBUG:
            logger.debug("Response", extra={
                "path": request.path,
                "status": response.status_code,
                "user": getattr(request.user, "id", None) if hasattr(request, 'user') else None,
            })

        return response

    def _should_skip_logging(self, request) -> bool:
        skip_paths = ['/static/', '/favicon.ico', '/health/']
        return any(request.path.startswith(path) for path in skip_paths)

    def _get_client_ip(self, request) -> str:
        xff = request.META.get("HTTP_X_FORWARDED_FOR")
        return xff.split(",")[0] if xff else request.META.get("REMOTE_ADDR", "unknown")

# core/api.py
"""
REST framework glue shared by every studio endpoint:
Bearer token authentication and the error envelope.
"""
import logging

from rest_framework import exceptions, status
from rest_framework.authentication import TokenAuthentication
from rest_framework.response import Response

from .exceptions import ErrorKind, StudioException, USER_MESSAGES

logger = logging.getLogger(__name__)


class BearerTokenAuthentication(TokenAuthentication):
    """Accepts `Authorization: Bearer <token>`."""
    keyword = 'Bearer'


# DRF exception -> (kind, status)
DRF_ERROR_KINDS = {
    exceptions.NotAuthenticated: (ErrorKind.UNAUTHENTICATED, status.HTTP_401_UNAUTHORIZED),
    exceptions.AuthenticationFailed: (ErrorKind.UNAUTHENTICATED, status.HTTP_401_UNAUTHORIZED),
    exceptions.PermissionDenied: (ErrorKind.PERMISSION_DENIED, status.HTTP_403_FORBIDDEN),
    exceptions.NotFound: (ErrorKind.NOT_FOUND, status.HTTP_404_NOT_FOUND),
    exceptions.ValidationError: (ErrorKind.VALIDATION, status.HTTP_400_BAD_REQUEST),
    exceptions.ParseError: (ErrorKind.VALIDATION, status.HTTP_400_BAD_REQUEST),
}


def error_response(exc: StudioException) -> Response:
    body = exc.to_wire()
    body['message'] = exc.user_message if exc.kind is not ErrorKind.VALIDATION else exc.message
    if exc.details.get('errors'):
        body['errors'] = exc.details['errors']
    return Response(body, status=exc.http_status)


def studio_exception_handler(exc, context):
    """
    DRF EXCEPTION_HANDLER: every error leaves as {"errorType", "message"}.
    Anything not recognised here propagates to ExceptionHandlingMiddleware.
    """
    if isinstance(exc, StudioException):
        return error_response(exc)

    for exc_class, (kind, status_code) in DRF_ERROR_KINDS.items():
        if isinstance(exc, exc_class):
            body = {'errorType': kind.value, 'message': USER_MESSAGES[kind]}
            if isinstance(exc, exceptions.ValidationError):
                body['errors'] = exc.detail
            response = Response(body, status=status_code)
            if status_code == status.HTTP_401_UNAUTHORIZED:
                response['WWW-Authenticate'] = BearerTokenAuthentication.keyword
            return response

    if isinstance(exc, exceptions.APIException):
        return Response(
            {'errorType': ErrorKind.UNKNOWN.value, 'message': str(exc.detail)},
            status=exc.status_code,
        )

    return None

# core/exceptions.py
"""
Studio error taxonomy.

Every failure the billing and roster core can report is one ErrorKind. Backend
error payloads ({"errorType": ..., "message": ...}) are translated into these
exceptions exactly once, in StudioException.from_wire.
"""
from enum import Enum


class ErrorKind(str, Enum):
    VALIDATION = 'VALIDATION_ERROR'
    CONFLICT = 'CONFLICT'
    NOT_FOUND = 'NOT_FOUND'
    CLASS_FULL = 'CLASS_FULL'
    DUPLICATE_PAYMENT = 'DUPLICATE_PAYMENT'
    STUDENT_NOT_FOUND = 'STUDENT_NOT_FOUND'
    CLASS_NOT_FOUND = 'CLASS_NOT_FOUND'
    TEACHER_NOT_FOUND = 'TEACHER_NOT_FOUND'
    PAYMENT_NOT_FOUND = 'PAYMENT_NOT_FOUND'
    STUDENT_NOT_ENROLLED = 'STUDENT_NOT_ENROLLED'
    INVALID_AMOUNT = 'INVALID_AMOUNT'
    PERMISSION_DENIED = 'PERMISSION_DENIED'
    UNAUTHENTICATED = 'UNAUTHENTICATED'
    TRANSPORT_ERROR = 'TRANSPORT_ERROR'
    UNKNOWN = 'UNKNOWN'

    @classmethod
    def parse(cls, value):
        """Map a wire errorType to a kind; unrecognised tags become UNKNOWN."""
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN


USER_MESSAGES = {
    ErrorKind.VALIDATION: "Please review the payment details and try again.",
    ErrorKind.CONFLICT: "That change conflicts with the current class roster.",
    ErrorKind.NOT_FOUND: "The requested record no longer exists.",
    ErrorKind.CLASS_FULL: "This class has reached its maximum capacity.",
    ErrorKind.DUPLICATE_PAYMENT: "A payment for this student and month has already been recorded.",
    ErrorKind.STUDENT_NOT_FOUND: "The student could not be found. It may have been removed.",
    ErrorKind.CLASS_NOT_FOUND: "The class could not be found. It may have been removed.",
    ErrorKind.TEACHER_NOT_FOUND: "The teacher could not be found. It may have been removed.",
    ErrorKind.PAYMENT_NOT_FOUND: "The payment could not be found. It may have been deleted.",
    ErrorKind.STUDENT_NOT_ENROLLED: "The student is no longer enrolled in one of the selected classes.",
    ErrorKind.INVALID_AMOUNT: "The payment amount is outside the accepted range.",
    ErrorKind.PERMISSION_DENIED: "You do not have permission to perform this action.",
    ErrorKind.UNAUTHENTICATED: "Your session has expired. Please sign in again.",
    ErrorKind.TRANSPORT_ERROR: "Could not reach the studio server. Check your connection and submit again.",
}

HTTP_STATUS = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.INVALID_AMOUNT: 400,
    ErrorKind.UNAUTHENTICATED: 401,
    ErrorKind.PERMISSION_DENIED: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.STUDENT_NOT_FOUND: 404,
    ErrorKind.CLASS_NOT_FOUND: 404,
    ErrorKind.TEACHER_NOT_FOUND: 404,
    ErrorKind.PAYMENT_NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.CLASS_FULL: 409,
    ErrorKind.DUPLICATE_PAYMENT: 409,
    ErrorKind.STUDENT_NOT_ENROLLED: 422,
    ErrorKind.TRANSPORT_ERROR: 502,
    ErrorKind.UNKNOWN: 500,
}


class StudioException(Exception):
    """Base exception for all studio billing and roster errors."""

    default_kind = ErrorKind.UNKNOWN

    def __init__(self, message=None, kind=None, details=None):
        self.kind = kind or self.default_kind
        self.message = message or USER_MESSAGES.get(self.kind, "An error occurred")
        self.details = details or {}
        super().__init__(self.message)

    @property
    def error_code(self):
        return self.kind.value

    @property
    def is_local(self):
        """True when the error was decided client-side, before any network call."""
        return bool(self.details.get('local'))

    @property
    def user_message(self):
        if self.kind in USER_MESSAGES:
            return USER_MESSAGES[self.kind]
        return self.message

    @property
    def http_status(self):
        return HTTP_STATUS.get(self.kind, 500)

    def to_wire(self):
        return {'errorType': self.kind.value, 'message': self.message}

    @classmethod
    def from_wire(cls, payload, status_code=None):
        """
        Build the typed exception for a backend error body.

        Args:
            payload: Decoded JSON body, expected {"errorType", "message"}
            status_code: HTTP status, used when the body carries no errorType

        Returns:
            StudioException subclass instance
        """
        payload = payload if isinstance(payload, dict) else {}
        raw_kind = payload.get('errorType')
        message = payload.get('message') or payload.get('detail')

        if raw_kind:
            kind = ErrorKind.parse(raw_kind)
        elif status_code == 401:
            kind = ErrorKind.UNAUTHENTICATED
        elif status_code == 403:
            kind = ErrorKind.PERMISSION_DENIED
        elif status_code == 404:
            kind = ErrorKind.NOT_FOUND
        else:
            kind = ErrorKind.UNKNOWN

        exc_class = EXCEPTION_CLASSES.get(kind, StudioException)
        details = {'status_code': status_code}
        if kind is ErrorKind.UNKNOWN and raw_kind:
            details['error_type'] = raw_kind
        return exc_class(message, kind=kind, details=details)

    def __repr__(self):
        return f"{type(self).__name__}(kind={self.kind.value!r}, message={self.message!r})"


class ValidationError(StudioException):
    """Client-side validation failure; never reaches the network."""
    default_kind = ErrorKind.VALIDATION

    def __init__(self, message=None, kind=None, details=None, errors=None):
        details = dict(details or {})
        details.setdefault('local', True)
        if errors:
            details['errors'] = errors
        super().__init__(message, kind, details)

    @property
    def errors(self):
        return self.details.get('errors', {})


class ConflictError(StudioException):
    """Edge already exists, class is full, or a concurrent mutation holds the class."""
    default_kind = ErrorKind.CONFLICT


class NotFoundError(StudioException):
    default_kind = ErrorKind.NOT_FOUND


class PaymentError(StudioException):
    """Backend rejected a payment (duplicate, not enrolled, bad amount)."""
    default_kind = ErrorKind.DUPLICATE_PAYMENT


class PermissionDeniedError(StudioException):
    default_kind = ErrorKind.PERMISSION_DENIED


class UnauthenticatedError(StudioException):
    default_kind = ErrorKind.UNAUTHENTICATED


class TransportError(StudioException):
    """Network failure, timeout or a response without structured meaning."""
    default_kind = ErrorKind.TRANSPORT_ERROR


EXCEPTION_CLASSES = {
    ErrorKind.VALIDATION: StudioException,
    ErrorKind.CONFLICT: ConflictError,
    ErrorKind.CLASS_FULL: ConflictError,
    ErrorKind.NOT_FOUND: NotFoundError,
    ErrorKind.STUDENT_NOT_FOUND: NotFoundError,
    ErrorKind.CLASS_NOT_FOUND: NotFoundError,
    ErrorKind.TEACHER_NOT_FOUND: NotFoundError,
    ErrorKind.PAYMENT_NOT_FOUND: NotFoundError,
    ErrorKind.DUPLICATE_PAYMENT: PaymentError,
    ErrorKind.STUDENT_NOT_ENROLLED: PaymentError,
    ErrorKind.INVALID_AMOUNT: PaymentError,
    ErrorKind.PERMISSION_DENIED: PermissionDeniedError,
    ErrorKind.UNAUTHENTICATED: UnauthenticatedError,
    ErrorKind.TRANSPORT_ERROR: TransportError,
}

# shared/services/studio/client.py
"""
StudioAPIClient - remote studio backend over HTTP.
Reads may retry on timeouts and connection drops. Writes never retry:
payment submission is not idempotent, duplicates are only caught server-side.
"""
import logging
from typing import Any, Dict, Optional

import requests
from django.conf import settings

from core.exceptions import StudioException, TransportError, UnauthenticatedError

from .base import StudioBackend

logger = logging.getLogger(__name__)


class StudioAPIClient(StudioBackend):

    DEFAULT_TIMEOUT = 15
    MAX_RETRIES = 3

    def __init__(self, session=None, base_url: Optional[str] = None, timeout: Optional[int] = None):
        self.session = session
        self.base_url = (base_url or getattr(settings, 'STUDIO_API_URL', '')).rstrip('/')
        self.timeout = timeout or getattr(settings, 'STUDIO_API_TIMEOUT', self.DEFAULT_TIMEOUT)

        if not self.base_url:
            logger.error("Studio API URL not configured")
            raise TransportError("Studio server is not configured. Please contact support.")

    def _headers(self) -> Dict[str, str]:
        headers = {
            'Content-Type': 'application/json',
            'Accept': 'application/json',
        }
        if self.session is not None:
            headers['Authorization'] = self.session.authorization
        return headers

    def _make_request(self, method: str, endpoint: str, data: Dict = None,
                      params: Dict = None, retry_count: int = 0) -> Any:
        """
        Make an authenticated request to the studio API.

        Args:
            method: HTTP method
            endpoint: API path, starting with /api/
            data: JSON body
            params: Query string parameters
            retry_count: Current retry attempt (reads only)

        Returns:
            Decoded JSON body, or None for empty responses

        Raises:
            StudioException subclass for structured backend errors,
            TransportError for anything without business meaning
        """
        url = f"{self.base_url}{endpoint}"
        can_retry = method == 'GET' and retry_count < self.MAX_RETRIES - 1

        logger.debug(f"Studio API {method} {endpoint} - Attempt {retry_count + 1}")

        try:
            response = requests.request(
                method=method,
                url=url,
                json=data,
                params=params,
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout:
            if can_retry:
                logger.warning(f"Studio API timeout, retrying ({retry_count + 1}/{self.MAX_RETRIES})")
                return self._make_request(method, endpoint, data, params, retry_count + 1)
            logger.error(f"Studio API timeout on {method} {endpoint}")
            raise TransportError("The studio server took too long to respond.")
        except requests.exceptions.ConnectionError:
            if can_retry:
                logger.warning(f"Studio API connection error, retrying ({retry_count + 1}/{self.MAX_RETRIES})")
                return self._make_request(method, endpoint, data, params, retry_count + 1)
            logger.error(f"Studio API connection error on {method} {endpoint}")
            raise TransportError("Network error. Please check your connection.")
        except requests.exceptions.RequestException as e:
            logger.error(f"Studio API request failed: {e}", exc_info=True)
            raise TransportError(f"Request failed: {e}")

        if response.status_code >= 400:
            raise self._error_from_response(response)

        if response.status_code == 204 or not response.content:
            return None

        try:
            return response.json()
        except ValueError:
            logger.error(f"Studio API returned a non-JSON body for {method} {endpoint}")
            raise TransportError("The studio server returned an unreadable response.")

    @staticmethod
    def _error_from_response(response) -> StudioException:
        status_code = response.status_code
        try:
            payload = response.json()
        except ValueError:
            payload = None

        if isinstance(payload, dict) and (payload.get('errorType') or status_code in (401, 403, 404)):
            error = StudioException.from_wire(payload, status_code)
        elif status_code == 401:
            error = UnauthenticatedError(details={'status_code': status_code})
        elif status_code >= 500:
            error = TransportError(f"Studio server error {status_code}", details={'status_code': status_code})
        elif isinstance(payload, dict) and payload.get('message'):
            error = StudioException.from_wire(payload, status_code)
        else:
            error = TransportError(f"Unexpected response {status_code}", details={'status_code': status_code})

        logger.warning(f"Studio API error {status_code}: {error.kind.value} - {error.message}")
        return error

    # ============ ROSTER ============

    def get_class_by_id(self, class_id):
        return self._make_request('GET', f'/api/classes/{class_id}')

    def get_enrolled_students(self, class_id):
        return self._make_request('GET', f'/api/classes/{class_id}/students') or []

    def get_student(self, student_id):
        return self._make_request('GET', f'/api/students/{student_id}')

    def list_students(self):
        return self._make_request('GET', '/api/students') or []

    def get_teacher(self, teacher_id):
        return self._make_request('GET', f'/api/teachers/{teacher_id}')

    def enroll_student(self, student_id, class_id):
        self._make_request('POST', f'/api/students/{student_id}/enroll', data={'classId': class_id})

    def unenroll_student(self, student_id, class_id):
        self._make_request('DELETE', f'/api/students/{student_id}/enroll/{class_id}')

    def assign_teacher(self, class_id, teacher_id):
        self._make_request('POST', f'/api/classes/{class_id}/teachers', data={'teacherId': teacher_id})

    def unassign_teacher(self, class_id, teacher_id):
        self._make_request('DELETE', f'/api/classes/{class_id}/teachers/{teacher_id}')

    # ============ PAYMENTS ============

    def create_payment(self, payload):
        return self._make_request('POST', '/api/payments', data=payload)

    def create_multi_class_payment(self, payload):
        return self._make_request('POST', '/api/payments/multi-class', data=payload)

    def get_payment(self, payment_id):
        return self._make_request('GET', f'/api/payments/{payment_id}')

    def delete_payment(self, payment_id):
        self._make_request('DELETE', f'/api/payments/{payment_id}')

    def list_payments(self, filters=None):
        params = {k: v for k, v in (filters or {}).items() if v not in (None, '')}
        return self._make_request('GET', '/api/payments', params=params) or []

# shared/services/studio/base.py
"""
Studio backend gateway contract.

The billing and roster core only talks to the backend through these logical
operations. Every call is a suspension point: it returns once the backend has
acknowledged (or rejected) the request. All payloads are wire-shaped dicts with
camelCase keys; dates are ISO strings, months are YYYY-MM.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class StudioSession:
    """Explicit session context handed to gateway clients instead of ambient storage."""
    token: str
    auth_scheme: str = 'Bearer'

    @property
    def authorization(self) -> str:
        return f"{self.auth_scheme} {self.token}"


class StudioBackend(ABC):

    # ---- roster reads ----

    @abstractmethod
    def get_class_by_id(self, class_id) -> Dict[str, Any]:
        """Authoritative class record including teacherIds and studentIds."""

    @abstractmethod
    def get_enrolled_students(self, class_id) -> List[Dict[str, Any]]:
        ...

    @abstractmethod
    def get_student(self, student_id) -> Dict[str, Any]:
        ...

    @abstractmethod
    def list_students(self) -> List[Dict[str, Any]]:
        ...

    @abstractmethod
    def get_teacher(self, teacher_id) -> Dict[str, Any]:
        ...

    # ---- roster mutations ----

    @abstractmethod
    def enroll_student(self, student_id, class_id) -> None:
        ...

    @abstractmethod
    def unenroll_student(self, student_id, class_id) -> None:
        ...

    @abstractmethod
    def assign_teacher(self, class_id, teacher_id) -> None:
        ...

    @abstractmethod
    def unassign_teacher(self, class_id, teacher_id) -> None:
        ...

    # ---- payments ----

    @abstractmethod
    def create_payment(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Single-class shape: studentId, classId, amount, paymentMonth, paymentDate, paymentMethod, notes."""

    @abstractmethod
    def create_multi_class_payment(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Multi-class shape: studentId, totalAmount, paymentMonth, paymentDate, paymentMethod, notes."""

    @abstractmethod
    def get_payment(self, payment_id) -> Dict[str, Any]:
        ...

    @abstractmethod
    def delete_payment(self, payment_id) -> None:
        ...

    @abstractmethod
    def list_payments(self, filters: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """Filters: student, month (YYYY-MM), classId."""

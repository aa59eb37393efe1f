# billing/services.py
"""
BILLING SERVICES - pending charges and payment submission.
Talks to the studio backend only through the gateway in shared.services.studio.
"""
import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, List, Optional

from django.conf import settings
from django.utils import timezone
from django.utils.dateparse import parse_date

from core.exceptions import StudioException, ValidationError
from shared.constants import (
    PaymentMethods,
    PaymentShape,
    WIRE_AMOUNT_QUANTUM,
    MONTH_FORMAT,
    DATE_FORMAT,
)
from shared.services.studio import get_backend
from shared.utils import IdempotencyService

from .calculator import PendingCharge, BillingSummary, calculate
from .policy import due_date_for, is_overdue, billing_month, billing_months

logger = logging.getLogger(__name__)


def to_wire_amount(amount) -> float:
    """Amounts travel as decimal numbers with one fractional digit."""
    return float(Decimal(amount).quantize(WIRE_AMOUNT_QUANTUM, rounding=ROUND_HALF_UP))


def parse_payment_date(value) -> Optional[date]:
    """Accept a date or an ISO string; None when missing or unparseable."""
    if isinstance(value, date):
        return value
    if not value:
        return None
    try:
        return parse_date(str(value))
    except ValueError:
        return None


# ============ PENDING CHARGES ============

class PendingChargeService:
    """
    Derives unpaid charges from enrollments and class prices.
    There is no stored billing schedule: every month from the month of enrollment
    through the reference month is billable, and a class is pending for a month
    when no payment for that student, class and month exists.

    Instances memoize class records, so use one per calculation pass.
    """

    def __init__(self, backend=None):
        self.backend = backend or get_backend()
        self._classes: Dict[Any, Dict[str, Any]] = {}

    def _class_record(self, class_id):
        if class_id not in self._classes:
            self._classes[class_id] = self.backend.get_class_by_id(class_id)
        return self._classes[class_id]

    def paid_months(self, student_id):
        """(class id, 'YYYY-MM') pairs already covered by a payment."""
        payments = self.backend.list_payments({'student': student_id})
        return {
            (class_id, payment['paymentMonth'])
            for payment in payments
            for class_id in payment.get('classIds', [])
        }

    @staticmethod
    def _enrolled_on(student):
        """Enrollment date per class id; classes without one bill from the reference month."""
        starts = {}
        for enrollment in student.get('enrollments') or []:
            enrolled_on = parse_payment_date(enrollment.get('enrolledOn'))
            if enrolled_on is not None:
                starts[enrollment['classId']] = enrolled_on
        return starts

    def pending_charges(self, student_id, as_of: Optional[date] = None,
                        class_ids=None, student=None) -> List[PendingCharge]:
        """
        Pending charges for one student up to the billing month of `as_of`.

        Args:
            student_id: Student to bill
            as_of: Reference date; defaults to today
            class_ids: Optional subset of classes to include
            student: Already fetched student record, saves one backend call

        Returns:
            One PendingCharge per unpaid class and month, oldest first
        """
        as_of = as_of or timezone.localdate()
        student = student or self.backend.get_student(student_id)
        starts = self._enrolled_on(student)
        paid = self.paid_months(student_id)
        wanted = set(class_ids) if class_ids is not None else None

        charges = []
        for class_id in student.get('classIds', []):
            if wanted is not None and class_id not in wanted:
                continue
            for month in billing_months(starts.get(class_id, as_of), as_of):
                if (class_id, month.strftime(MONTH_FORMAT)) in paid:
                    continue
                class_record = self._class_record(class_id)
                due_date = due_date_for(month)
                charges.append(PendingCharge(
                    student_id=student['id'],
                    class_id=class_id,
                    class_name=class_record['name'],
                    amount=Decimal(str(class_record['price'])),
                    due_date=due_date,
                    overdue=is_overdue(due_date, as_of),
                ))

        charges.sort(key=lambda charge: (charge.due_date, charge.class_id))
        return charges

    def billable_month(self, student_id, as_of: Optional[date] = None):
        """
        A payment settles one month at a time, oldest first.

        Returns:
            (first day of the earliest month with pending charges, that month's charges),
            or (None, []) when the student is settled
        """
        charges = self.pending_charges(student_id, as_of=as_of)
        if not charges:
            return None, []
        month = billing_month(charges[0].due_date)
        return month, [charge for charge in charges if billing_month(charge.due_date) == month]

    @staticmethod
    def select(charges, class_ids=None, amounts=None) -> List[PendingCharge]:
        """Subset of `charges` with per-class amount overrides applied (keys may be str or int)."""
        wanted = {str(class_id) for class_id in class_ids} if class_ids is not None else None
        overrides = {str(class_id): amount for class_id, amount in (amounts or {}).items()}
        selected = []
        for charge in charges:
            key = str(charge.class_id)
            if wanted is not None and key not in wanted:
                continue
            selected.append(charge.with_amount(overrides[key]) if key in overrides else charge)
        return selected

    def charges_for(self, student_id, as_of=None, class_ids=None, amounts=None) -> List[PendingCharge]:
        """Charges of the billable month, narrowed to `class_ids` and with overrides applied."""
        _, charges = self.billable_month(student_id, as_of=as_of)
        return self.select(charges, class_ids=class_ids, amounts=amounts)


# ============ PAYMENT SUBMISSION ============

@dataclass(frozen=True)
class PaymentOutcome:
    """Result of one submission attempt: either the created payment or a typed error."""
    payment: Optional[Dict[str, Any]] = None
    error: Optional[StudioException] = None
    summary: Optional[BillingSummary] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.payment is not None

    @property
    def reached_backend(self) -> bool:
        return self.ok or (self.error is not None and not self.error.is_local)

    @property
    def message(self) -> str:
        if self.error is not None:
            return self.error.user_message
        return f"Payment of {self.payment['totalAmount']:,.1f} recorded"


class PaymentSubmissionCoordinator:
    """
    Validates a candidate payment, picks the request shape from the computed
    summary, submits it once and classifies the outcome.

    No retries: a re-submission only happens when the user submits again.
    While an attempt for a student is in flight, further submissions for that
    student are refused locally.
    """

    def __init__(self, backend=None, lock_ttl=None):
        self.backend = backend or get_backend()
        self.lock_ttl = lock_ttl or getattr(settings, 'STUDIO_PAYMENT_LOCK_TTL', 60)

    def validate(self, student_id, charges, payment_date, payment_method, pending=None) -> date:
        """
        Client-side checks; all must pass before any network call.

        Args:
            pending: The student's full pending charges for the month, when known.
                A multi-class request cannot name its classes, so it must then
                cover all of them.

        Returns:
            The parsed payment date

        Raises:
            ValidationError with a field -> message map in `errors`
        """
        errors = {}

        if student_id in (None, ''):
            errors['studentId'] = "A student must be selected."

        parsed_date = parse_payment_date(payment_date)
        if parsed_date is None:
            errors['paymentDate'] = "A valid payment date is required."

        if payment_method not in PaymentMethods.values():
            errors['paymentMethod'] = "Select a payment method: cash, bank transfer or card."

        charges = list(charges or [])
        if not charges:
            errors['charges'] = "Select at least one class to pay."

        for charge in charges:
            try:
                amount = Decimal(str(charge.amount))
            except (InvalidOperation, ValueError):
                amount = None
            if amount is None or not amount.is_finite() or amount <= 0:
                errors[f"amount.{charge.class_id}"] = f"Amount for {charge.class_name} must be greater than zero."
            if student_id not in (None, '') and str(charge.student_id) != str(student_id):
                errors[f"student.{charge.class_id}"] = f"{charge.class_name} belongs to another student."

        months = {billing_month(charge.due_date) for charge in charges}
        if len(months) > 1:
            errors['charges'] = "A payment covers one month. Pay each month separately."
        elif pending is not None and len(charges) > 1:
            month = months.pop()
            due_ids = {charge.class_id for charge in pending if billing_month(charge.due_date) == month}
            if {charge.class_id for charge in charges} != due_ids:
                errors['classIds'] = "Pay one class, or every class still due for the month."

        if errors:
            raise ValidationError(next(iter(errors.values())), errors=errors)
        return parsed_date

    def build_request(self, student_id, summary: BillingSummary, payment_date: date,
                      payment_method, notes=''):
        """Wire payload for the shape the summary selected. Charges share one billing month."""
        payment_month = billing_month(summary.charges[0].due_date).strftime(MONTH_FORMAT)
        payload = {
            'studentId': student_id,
            'paymentMonth': payment_month,
            'paymentDate': payment_date.strftime(DATE_FORMAT),
            'paymentMethod': payment_method,
            'notes': notes or '',
        }

        if summary.shape == PaymentShape.SINGLE_CLASS:
            payload['classId'] = summary.charges[0].class_id
            payload['amount'] = to_wire_amount(summary.total)
        else:
            payload['totalAmount'] = to_wire_amount(summary.total)
        return payload

    def submit(self, student_id, charges, payment_date, payment_method, notes='', pending=None) -> PaymentOutcome:
        charges = list(charges or [])

        try:
            parsed_date = self.validate(student_id, charges, payment_date, payment_method, pending=pending)
        except ValidationError as e:
            logger.info(f"Payment for student {student_id} rejected locally: {e.errors}")
            return PaymentOutcome(error=e)

        summary = calculate(charges, parsed_date)
        lock_key = IdempotencyService.get_key('payment', student_id)

        if not IdempotencyService.check_and_lock(lock_key, self.lock_ttl):
            logger.warning(f"Payment for student {student_id} refused: submission already in flight")
            return PaymentOutcome(
                error=ValidationError(
                    "A payment for this student is already being submitted.",
                    errors={'submission': 'in_flight'},
                ),
                summary=summary,
            )

        try:
            payload = self.build_request(student_id, summary, parsed_date, payment_method, notes)
            if summary.shape == PaymentShape.SINGLE_CLASS:
                payment = self.backend.create_payment(payload)
            else:
                payment = self.backend.create_multi_class_payment(payload)
        except StudioException as e:
            logger.warning(f"Payment for student {student_id} failed ({e.kind.value}): {e.message}")
            return PaymentOutcome(error=e, summary=summary)
        finally:
            IdempotencyService.release(lock_key)

        logger.info(
            f"Payment {payment.get('id')} recorded for student {student_id}: "
            f"{summary.shape}, base {summary.base_amount}, late fee {summary.late_fee}, total {summary.total}"
        )
        return PaymentOutcome(payment=payment, summary=summary)

    def delete(self, payment_id):
        """Delete a payment as a whole; there is no partial refund."""
        self.backend.delete_payment(payment_id)
        logger.info(f"Payment {payment_id} deleted")

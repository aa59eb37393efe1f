# billing/calculator.py
"""
Billing calculator: prices a batch of pending charges for a candidate payment date.

calculate() never rejects input. Zero or negative overrides still produce a total
so a live preview keeps working while the user types; submission validation is a
separate step (see billing.services.PaymentSubmissionCoordinator).
"""
from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal, ROUND_FLOOR
from typing import List, Optional

from shared.constants import LATE_FEE_RATE, PaymentShape, DATE_FORMAT

from .policy import is_overdue


@dataclass(frozen=True)
class PendingCharge:
    """Derived, unpaid billing line for one student/class/period. Never persisted."""

    student_id: int
    class_id: int
    class_name: str
    amount: Decimal
    due_date: date
    overdue: bool = False

    def with_amount(self, amount) -> 'PendingCharge':
        """Copy of this charge with an overridden amount."""
        return replace(self, amount=Decimal(str(amount)))

    def to_dict(self):
        return {
            'studentId': self.student_id,
            'classId': self.class_id,
            'className': self.class_name,
            'amount': float(self.amount),
            'dueDate': self.due_date.strftime(DATE_FORMAT),
            'overdue': self.overdue,
        }


@dataclass(frozen=True)
class BillingSummary:
    base_amount: Decimal
    late_fee: Decimal
    total: Decimal
    has_overdue_charges: bool
    shape: str
    charges: List[PendingCharge] = field(default_factory=list)

    @property
    def is_single_class(self) -> bool:
        return self.shape == PaymentShape.SINGLE_CLASS

    def to_dict(self):
        return {
            'baseAmount': float(self.base_amount),
            'lateFee': float(self.late_fee),
            'total': float(self.total),
            'hasOverdueCharges': self.has_overdue_charges,
            'shape': self.shape,
            'charges': [charge.to_dict() for charge in self.charges],
        }


def round_whole(amount: Decimal) -> Decimal:
    """Round half up to a whole currency unit (floor(x + 0.5))."""
    return (amount + Decimal('0.5')).to_integral_value(rounding=ROUND_FLOOR)


def late_fee_for(base_amount: Decimal, has_overdue_charges: bool) -> Decimal:
    if not has_overdue_charges:
        return Decimal('0')
    return round_whole(base_amount * LATE_FEE_RATE)


def shape_for(charges) -> str:
    return PaymentShape.SINGLE_CLASS if len(charges) == 1 else PaymentShape.MULTI_CLASS


def calculate(charges, payment_date: Optional[date]) -> BillingSummary:
    """
    Price a batch of charges.

    Args:
        charges: PendingCharge list, amounts possibly overridden
        payment_date: Candidate payment date; None means nothing is overdue yet

    Returns:
        BillingSummary with base amount, one late fee for the whole batch, total and shape
    """
    charges = list(charges)
    base_amount = sum((Decimal(charge.amount) for charge in charges), Decimal('0'))

    has_overdue_charges = payment_date is not None and any(
        is_overdue(charge.due_date, payment_date) for charge in charges
    )

    late_fee = late_fee_for(base_amount, has_overdue_charges)

    return BillingSummary(
        base_amount=base_amount,
        late_fee=late_fee,
        total=base_amount + late_fee,
        has_overdue_charges=has_overdue_charges,
        shape=shape_for(charges),
        charges=charges,
    )

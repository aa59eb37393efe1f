# billing/outstanding.py
"""
Collections worklist: who owes what, and how urgently.
"""
import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import List, Optional

from django.utils import timezone

from shared.constants import CRITICAL_DAYS_OVERDUE, URGENT_DAYS_OVERDUE, Severity

from .calculator import PendingCharge, calculate
from .policy import days_between

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StudentCharges:
    """Aggregator input: one student and its unresolved charges."""
    student_id: int
    student_name: str = ''
    charges: List[PendingCharge] = field(default_factory=list)


@dataclass(frozen=True)
class OutstandingEntry:
    student_id: int
    student_name: str
    total_owed: Decimal
    late_fee_owed: Decimal
    days_overdue: int
    severity: str

    def to_dict(self):
        return {
            'studentId': self.student_id,
            'studentName': self.student_name,
            'totalOwed': float(self.total_owed),
            'lateFeeOwed': float(self.late_fee_owed),
            'daysOverdue': self.days_overdue,
            'severity': self.severity,
        }


@dataclass(frozen=True)
class OutstandingSummary:
    entries: List[OutstandingEntry]
    total_owed: Decimal
    total_late_fees: Decimal
    affected_students: int

    def to_dict(self):
        return {
            'entries': [entry.to_dict() for entry in self.entries],
            'totalOwed': float(self.total_owed),
            'totalLateFees': float(self.total_late_fees),
            'affectedStudents': self.affected_students,
        }


def severity_for(days_overdue: int) -> str:
    if days_overdue >= CRITICAL_DAYS_OVERDUE:
        return Severity.CRITICAL
    if days_overdue >= URGENT_DAYS_OVERDUE:
        return Severity.URGENT
    return Severity.RECENT


def aggregate(students_with_charges, now: Optional[date] = None) -> List[OutstandingEntry]:
    """
    One worklist entry per student that still owes something.

    Args:
        students_with_charges: Iterable of StudentCharges
        now: Reference date for days overdue and late fees; defaults to today

    Returns:
        Entries sorted by days overdue, then amount owed, both descending
    """
    now = now or timezone.localdate()
    entries = []

    for item in students_with_charges:
        if not item.charges:
            continue

        summary = calculate(item.charges, now)
        earliest_due = min(charge.due_date for charge in item.charges)
        days_overdue = max(days_between(earliest_due, now), 0)

        entries.append(OutstandingEntry(
            student_id=item.student_id,
            student_name=item.student_name,
            total_owed=summary.base_amount,
            late_fee_owed=summary.late_fee,
            days_overdue=days_overdue,
            severity=severity_for(days_overdue),
        ))

    entries.sort(key=lambda entry: (entry.days_overdue, entry.total_owed), reverse=True)
    return entries


def summarize(entries) -> OutstandingSummary:
    """Grand totals are reductions over the entries, never fetched separately."""
    entries = list(entries)
    return OutstandingSummary(
        entries=entries,
        total_owed=sum((entry.total_owed for entry in entries), Decimal('0')),
        total_late_fees=sum((entry.late_fee_owed for entry in entries), Decimal('0')),
        affected_students=len(entries),
    )


def collect_outstanding(backend, as_of: Optional[date] = None) -> OutstandingSummary:
    """Build the worklist for every active student from enrollments, prices and payments."""
    from .services import PendingChargeService

    as_of = as_of or timezone.localdate()
    service = PendingChargeService(backend)

    students_with_charges = []
    for student in backend.list_students():
        charges = service.pending_charges(student['id'], as_of=as_of, student=student)
        students_with_charges.append(StudentCharges(
            student_id=student['id'],
            student_name=student.get('fullName', ''),
            charges=charges,
        ))

    summary = summarize(aggregate(students_with_charges, now=as_of))
    logger.info(
        f"Outstanding as of {as_of}: {summary.affected_students} students, "
        f"{summary.total_owed} owed, {summary.total_late_fees} late fees"
    )
    return summary

# billing/policy.py
"""
Due-date and overdue policy. Pure calendar arithmetic, no I/O.
"""
from datetime import date, datetime

from shared.constants import DUE_DAY_OF_MONTH


def _as_date(value):
    if isinstance(value, datetime):
        return value.date()
    return value


def due_date_for(reference_date: date) -> date:
    """Due date of the billing month containing `reference_date`."""
    return _as_date(reference_date).replace(day=DUE_DAY_OF_MONTH)


def is_overdue(due_date: date, payment_date: date) -> bool:
    """Strict: paying on the due date itself is on time."""
    return _as_date(payment_date) > _as_date(due_date)


def billing_month(value: date) -> date:
    """First day of the month containing `value`."""
    return _as_date(value).replace(day=1)


def days_between(start: date, end: date) -> int:
    return (_as_date(end) - _as_date(start)).days


def next_month(value: date) -> date:
    """First day of the month after the one containing `value`."""
    month = billing_month(value)
    if month.month == 12:
        return month.replace(year=month.year + 1, month=1)
    return month.replace(month=month.month + 1)


def billing_months(start: date, end: date):
    """First day of every month from `start`'s month through `end`'s month, inclusive."""
    month, last = billing_month(start), billing_month(end)
    while month <= last:
        yield month
        month = next_month(month)

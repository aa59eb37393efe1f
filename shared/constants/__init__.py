# shared/constants/__init__.py
from .billing import (
    DUE_DAY_OF_MONTH,
    LATE_FEE_RATE,
    CRITICAL_DAYS_OVERDUE,
    URGENT_DAYS_OVERDUE,
    WIRE_AMOUNT_QUANTUM,
    MAX_PAYMENT_AMOUNT,
    MONTH_FORMAT,
    DATE_FORMAT,
    PaymentMethods,
    PaymentShape,
    Severity,
)

__all__ = [
    'DUE_DAY_OF_MONTH',
    'LATE_FEE_RATE',
    'CRITICAL_DAYS_OVERDUE',
    'URGENT_DAYS_OVERDUE',
    'WIRE_AMOUNT_QUANTUM',
    'MAX_PAYMENT_AMOUNT',
    'MONTH_FORMAT',
    'DATE_FORMAT',
    'PaymentMethods',
    'PaymentShape',
    'Severity',
]

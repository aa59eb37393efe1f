# shared/constants/billing.py
"""
Billing policy constants. Fixed studio policy, not configurable per class.
NO DEPENDENCIES - safe to import from anywhere.
"""
from decimal import Decimal

# Charges fall due on this calendar day of the billing month
DUE_DAY_OF_MONTH = 10

# One-time surcharge on the batch base amount when any charge is overdue
LATE_FEE_RATE = Decimal('0.15')

# Collections severity thresholds (days overdue, inclusive)
CRITICAL_DAYS_OVERDUE = 20
URGENT_DAYS_OVERDUE = 10

# Wire amounts carry one fractional digit
WIRE_AMOUNT_QUANTUM = Decimal('0.1')

# Upper bound the backend accepts for a single payment
MAX_PAYMENT_AMOUNT = Decimal('10000000')

MONTH_FORMAT = '%Y-%m'
DATE_FORMAT = '%Y-%m-%d'


class PaymentMethods:
    CASH = 'cash'
    BANK_TRANSFER = 'bank_transfer'
    CARD = 'card'

    CHOICES = (
        (CASH, 'Cash'),
        (BANK_TRANSFER, 'Bank Transfer'),
        (CARD, 'Card'),
    )

    @classmethod
    def values(cls):
        return [value for value, _ in cls.CHOICES]


class PaymentShape:
    SINGLE_CLASS = 'single_class'
    MULTI_CLASS = 'multi_class'


class Severity:
    RECENT = 'recent'
    URGENT = 'urgent'
    CRITICAL = 'critical'

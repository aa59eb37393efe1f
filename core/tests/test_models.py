# core/tests/test_models.py
from datetime import date
from decimal import Decimal

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import IntegrityError, transaction
from django.test import TestCase

from billing.models import PaymentRecord
from core.models import Student, ClassOffering, Enrollment


class ClassOfferingModelTest(TestCase):
    def test_price_must_be_positive(self):
        with self.assertRaises(DjangoValidationError):
            ClassOffering.objects.create(name="Free", monthly_price=Decimal('0'))

    def test_capacity_must_be_positive(self):
        with self.assertRaises(DjangoValidationError):
            ClassOffering.objects.create(name="Empty", monthly_price=Decimal('100'), capacity=0)

    def test_is_full(self):
        salsa = ClassOffering.objects.create(name="Salsa", monthly_price=Decimal('800'), capacity=1)
        self.assertFalse(salsa.is_full)

        Enrollment.objects.create(student=Student.objects.create(first_name="Ada", last_name="Obi"), class_offering=salsa)
        self.assertEqual(salsa.enrolled_count, 1)
        self.assertTrue(salsa.is_full)

    def test_enrollment_edge_is_unique(self):
        salsa = ClassOffering.objects.create(name="Salsa", monthly_price=Decimal('800'))
        ada = Student.objects.create(first_name="Ada", last_name="Obi")
        Enrollment.objects.create(student=ada, class_offering=salsa)

        with self.assertRaises(IntegrityError):
            with transaction.atomic():
                Enrollment.objects.create(student=ada, class_offering=salsa)


class PaymentRecordModelTest(TestCase):
    def test_payment_month_normalized_to_first_day(self):
        ada = Student.objects.create(first_name="Ada", last_name="Obi")
        payment = PaymentRecord.objects.create(
            student=ada,
            total_amount=Decimal('600'),
            payment_month=date(2024, 3, 17),
            payment_date=date(2024, 3, 17),
            payment_method='cash',
        )
        payment.refresh_from_db()
        self.assertEqual(payment.payment_month, date(2024, 3, 1))
        self.assertEqual(str(payment), "Ada Obi - 600.00 (2024-03)")

# billing/tests/test_services.py
from datetime import date, datetime
from decimal import Decimal
from unittest import mock

from django.core.cache import cache
from django.test import SimpleTestCase, TestCase
from django.utils import timezone

from billing.calculator import PendingCharge
from billing.models import PaymentRecord
from billing.services import PendingChargeService, PaymentSubmissionCoordinator, to_wire_amount
from core.exceptions import ErrorKind, PaymentError, TransportError
from core.models import Student, ClassOffering, Enrollment
from shared.constants import PaymentMethods
from shared.services.studio import DatabaseBackend
from shared.utils import IdempotencyService


def charge(class_id, amount, student_id=1, due=date(2024, 3, 10)):
    return PendingCharge(
        student_id=student_id,
        class_id=class_id,
        class_name=f"Class {class_id}",
        amount=Decimal(str(amount)),
        due_date=due,
    )


class PaymentSubmissionCoordinatorTest(SimpleTestCase):
    def setUp(self):
        cache.clear()
        self.backend = mock.Mock()
        self.backend.create_payment.return_value = {'id': 11, 'totalAmount': 600.0}
        self.backend.create_multi_class_payment.return_value = {'id': 12, 'totalAmount': 1725.0}
        self.coordinator = PaymentSubmissionCoordinator(backend=self.backend)

    def test_zero_amount_is_rejected_without_network_call(self):
        outcome = self.coordinator.submit(1, [charge(1, 600).with_amount(0)], '2024-03-05', PaymentMethods.CASH)

        self.assertFalse(outcome.ok)
        self.assertEqual(outcome.error.kind, ErrorKind.VALIDATION)
        self.assertTrue(outcome.error.is_local)
        self.assertFalse(outcome.reached_backend)
        self.assertIn('amount.1', outcome.error.errors)
        self.backend.create_payment.assert_not_called()
        self.backend.create_multi_class_payment.assert_not_called()

    def test_local_validation_rules(self):
        cases = [
            (None, [charge(1, 600)], '2024-03-05', PaymentMethods.CASH, 'studentId'),
            (1, [charge(1, 600)], '', PaymentMethods.CASH, 'paymentDate'),
            (1, [charge(1, 600)], 'not-a-date', PaymentMethods.CASH, 'paymentDate'),
            (1, [charge(1, 600)], '2024-03-05', 'cheque', 'paymentMethod'),
            (1, [], '2024-03-05', PaymentMethods.CASH, 'charges'),
            (1, [charge(1, 600, student_id=2)], '2024-03-05', PaymentMethods.CASH, 'student.1'),
        ]
        for student_id, charges, payment_date, method, field in cases:
            with self.subTest(field=field):
                outcome = self.coordinator.submit(student_id, charges, payment_date, method)
                self.assertEqual(outcome.error.kind, ErrorKind.VALIDATION)
                self.assertIn(field, outcome.error.errors)

        self.backend.create_payment.assert_not_called()

    def test_single_charge_uses_single_class_shape(self):
        outcome = self.coordinator.submit(1, [charge(4, 600)], date(2024, 3, 5), PaymentMethods.CARD, 'March')

        self.assertTrue(outcome.ok)
        self.assertEqual(outcome.payment['id'], 11)
        self.backend.create_payment.assert_called_once_with({
            'studentId': 1,
            'classId': 4,
            'amount': 600.0,
            'paymentMonth': '2024-03',
            'paymentDate': '2024-03-05',
            'paymentMethod': 'card',
            'notes': 'March',
        })
        self.backend.create_multi_class_payment.assert_not_called()

    def test_multiple_charges_use_multi_class_shape(self):
        outcome = self.coordinator.submit(
            1, [charge(1, 800), charge(2, 700)], '2024-03-15', PaymentMethods.BANK_TRANSFER,
        )

        self.assertTrue(outcome.ok)
        self.assertEqual(outcome.summary.total, Decimal('1725'))
        payload = self.backend.create_multi_class_payment.call_args[0][0]
        self.assertEqual(payload['totalAmount'], 1725.0)
        self.assertEqual(payload['paymentMonth'], '2024-03')
        self.assertNotIn('classId', payload)
        self.backend.create_payment.assert_not_called()

    def test_charges_from_different_months_are_rejected(self):
        charges = [charge(1, 100, due=date(2024, 4, 10)), charge(2, 100, due=date(2024, 3, 10))]

        outcome = self.coordinator.submit(1, charges, '2024-04-02', PaymentMethods.CASH)

        self.assertIn('charges', outcome.error.errors)
        self.backend.create_multi_class_payment.assert_not_called()

    def test_multi_class_must_cover_every_due_class(self):
        due = [charge(1, 800), charge(2, 700), charge(3, 600)]

        partial = self.coordinator.submit(1, due[:2], '2024-03-05', PaymentMethods.CASH, pending=due)
        self.assertFalse(partial.reached_backend)
        self.assertIn('classIds', partial.error.errors)
        self.backend.create_multi_class_payment.assert_not_called()

        single = self.coordinator.submit(1, due[:1], '2024-03-05', PaymentMethods.CASH, pending=due)
        self.assertTrue(single.ok)

        full = self.coordinator.submit(1, due, '2024-03-05', PaymentMethods.CASH, pending=due)
        self.assertTrue(full.ok)
        self.backend.create_multi_class_payment.assert_called_once()

    def test_duplicate_payment_is_surfaced(self):
        self.backend.create_payment.side_effect = PaymentError(
            "Payment already recorded", kind=ErrorKind.DUPLICATE_PAYMENT,
        )

        outcome = self.coordinator.submit(1, [charge(1, 600)], '2024-03-05', PaymentMethods.CASH)

        self.assertFalse(outcome.ok)
        self.assertTrue(outcome.reached_backend)
        self.assertEqual(outcome.error.kind, ErrorKind.DUPLICATE_PAYMENT)
        self.assertEqual(outcome.message, "A payment for this student and month has already been recorded.")

    def test_no_retry_on_transport_error(self):
        self.backend.create_payment.side_effect = TransportError()

        outcome = self.coordinator.submit(1, [charge(1, 600)], '2024-03-05', PaymentMethods.CASH)

        self.assertEqual(outcome.error.kind, ErrorKind.TRANSPORT_ERROR)
        self.assertEqual(self.backend.create_payment.call_count, 1)

    def test_in_flight_submission_is_refused(self):
        key = IdempotencyService.get_key('payment', 1)
        self.assertTrue(IdempotencyService.check_and_lock(key))

        outcome = self.coordinator.submit(1, [charge(1, 600)], '2024-03-05', PaymentMethods.CASH)

        self.assertEqual(outcome.error.kind, ErrorKind.VALIDATION)
        self.assertEqual(outcome.error.errors, {'submission': 'in_flight'})
        self.backend.create_payment.assert_not_called()
        IdempotencyService.release(key)

    def test_lock_released_after_failure(self):
        self.backend.create_payment.side_effect = TransportError()
        self.coordinator.submit(1, [charge(1, 600)], '2024-03-05', PaymentMethods.CASH)

        self.assertFalse(IdempotencyService.is_locked(IdempotencyService.get_key('payment', 1)))

    def test_delete_passes_through(self):
        self.coordinator.delete(12)
        self.backend.delete_payment.assert_called_once_with(12)

    def test_wire_amount_rounding(self):
        self.assertEqual(to_wire_amount(Decimal('1725')), 1725.0)
        self.assertEqual(to_wire_amount(Decimal('10.25')), 10.3)
        self.assertEqual(to_wire_amount(Decimal('10.24')), 10.2)


def enrolled_on(student, day):
    student.enrollments.update(enrolled_at=timezone.make_aware(datetime(day.year, day.month, day.day, 12)))


class PendingChargeServiceTest(TestCase):
    def setUp(self):
        self.salsa = ClassOffering.objects.create(name="Salsa", monthly_price=Decimal('800'))
        self.tango = ClassOffering.objects.create(name="Tango", monthly_price=Decimal('700'))
        self.student = Student.objects.create(first_name="Ada", last_name="Obi")
        Enrollment.objects.create(student=self.student, class_offering=self.salsa)
        Enrollment.objects.create(student=self.student, class_offering=self.tango)
        enrolled_on(self.student, date(2024, 3, 1))
        self.service = PendingChargeService(DatabaseBackend())

    def test_one_charge_per_enrolled_class(self):
        charges = self.service.pending_charges(self.student.pk, as_of=date(2024, 3, 20))

        self.assertEqual(sorted(c.class_id for c in charges), sorted([self.salsa.pk, self.tango.pk]))
        for c in charges:
            self.assertEqual(c.due_date, date(2024, 3, 10))
            self.assertTrue(c.overdue)
        self.assertEqual(sum(c.amount for c in charges), Decimal('1500'))

    def test_paid_class_is_not_pending(self):
        payment = PaymentRecord.objects.create(
            student=self.student,
            total_amount=Decimal('800'),
            payment_month=date(2024, 3, 1),
            payment_date=date(2024, 3, 2),
            payment_method=PaymentMethods.CASH,
        )
        payment.classes.add(self.salsa)

        march = self.service.pending_charges(self.student.pk, as_of=date(2024, 3, 5))
        april = self.service.pending_charges(self.student.pk, as_of=date(2024, 4, 5))

        self.assertEqual([c.class_id for c in march], [self.tango.pk])
        self.assertFalse(march[0].overdue)
        self.assertEqual(
            [(c.class_id, c.due_date) for c in april],
            [
                (self.tango.pk, date(2024, 3, 10)),
                (self.salsa.pk, date(2024, 4, 10)),
                (self.tango.pk, date(2024, 4, 10)),
            ],
        )

    def test_unpaid_months_carry_over(self):
        enrolled_on(self.student, date(2024, 1, 2))

        charges = self.service.pending_charges(self.student.pk, as_of=date(2024, 2, 5), class_ids=[self.salsa.pk])

        self.assertEqual([c.due_date for c in charges], [date(2024, 1, 10), date(2024, 2, 10)])
        self.assertEqual([c.overdue for c in charges], [True, False])

    def test_nothing_due_before_enrollment(self):
        self.assertEqual(self.service.pending_charges(self.student.pk, as_of=date(2024, 2, 20)), [])

    def test_year_boundary(self):
        enrolled_on(self.student, date(2023, 12, 15))
        charges = self.service.pending_charges(self.student.pk, as_of=date(2024, 1, 3), class_ids=[self.tango.pk])
        self.assertEqual([c.due_date for c in charges], [date(2023, 12, 10), date(2024, 1, 10)])

    def test_billable_month_is_the_oldest(self):
        enrolled_on(self.student, date(2024, 2, 1))

        month, charges = self.service.billable_month(self.student.pk, as_of=date(2024, 3, 5))

        self.assertEqual(month, date(2024, 2, 1))
        self.assertEqual([c.class_id for c in charges], [self.salsa.pk, self.tango.pk])

    def test_subset_and_overrides(self):
        charges = self.service.charges_for(
            self.student.pk,
            as_of=date(2024, 3, 5),
            class_ids=[self.salsa.pk],
            amounts={str(self.salsa.pk): '650'},
        )
        self.assertEqual(len(charges), 1)
        self.assertEqual(charges[0].amount, Decimal('650'))


class SubmissionAgainstDatabaseTest(TestCase):
    def setUp(self):
        cache.clear()
        self.salsa = ClassOffering.objects.create(name="Salsa", monthly_price=Decimal('600'))
        self.student = Student.objects.create(first_name="Ada", last_name="Obi")
        Enrollment.objects.create(student=self.student, class_offering=self.salsa)
        enrolled_on(self.student, date(2024, 3, 1))
        self.backend = DatabaseBackend()
        self.coordinator = PaymentSubmissionCoordinator(backend=self.backend)

    def pending(self):
        return PendingChargeService(self.backend).pending_charges(self.student.pk, as_of=date(2024, 3, 1))

    def test_resubmission_is_reported_as_duplicate(self):
        charges = self.pending()
        first = self.coordinator.submit(self.student.pk, charges, '2024-03-05', PaymentMethods.CASH)
        second = self.coordinator.submit(self.student.pk, charges, '2024-03-05', PaymentMethods.CASH)

        self.assertTrue(first.ok)
        self.assertEqual(first.payment['totalAmount'], 600.0)
        self.assertFalse(first.payment['isMultiClass'])
        self.assertEqual(second.error.kind, ErrorKind.DUPLICATE_PAYMENT)
        self.assertEqual(PaymentRecord.objects.count(), 1)

    def test_unenrolled_class_is_rejected(self):
        charges = self.pending()
        Enrollment.objects.all().delete()

        outcome = self.coordinator.submit(self.student.pk, charges, '2024-03-05', PaymentMethods.CASH)

        self.assertEqual(outcome.error.kind, ErrorKind.STUDENT_NOT_ENROLLED)
        self.assertFalse(PaymentRecord.objects.exists())

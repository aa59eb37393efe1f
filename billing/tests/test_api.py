# billing/tests/test_api.py
from datetime import datetime
from decimal import Decimal
from unittest import mock

from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework.test import APIClient

from billing.models import PaymentRecord
from core.models import Student, ClassOffering, Enrollment

User = get_user_model()


class BillingAPITest(TestCase):
    def setUp(self):
        cache.clear()
        self.user = User.objects.create_superuser(username="owner", email="owner@studio.test", password="pass12345")
        self.client = APIClient()
        self.client.force_authenticate(self.user)

        self.salsa = ClassOffering.objects.create(name="Salsa", monthly_price=Decimal('800'))
        self.tango = ClassOffering.objects.create(name="Tango", monthly_price=Decimal('700'))
        self.student = Student.objects.create(first_name="Ada", last_name="Obi")
        Enrollment.objects.create(student=self.student, class_offering=self.salsa)
        Enrollment.objects.create(student=self.student, class_offering=self.tango)
        Enrollment.objects.update(enrolled_at=timezone.make_aware(datetime(2024, 3, 1, 12)))

    def single_payload(self, **overrides):
        payload = {
            'studentId': self.student.pk,
            'classId': self.salsa.pk,
            'amount': 800.0,
            'paymentMonth': '2024-03',
            'paymentDate': '2024-03-05',
            'paymentMethod': 'cash',
            'notes': '',
        }
        payload.update(overrides)
        return payload

    # ============ RECORDS ============

    def test_create_single_class_payment(self):
        response = self.client.post('/api/payments', self.single_payload(), format='json')

        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertEqual(body['classIds'], [self.salsa.pk])
        self.assertEqual(body['totalAmount'], 800.0)
        self.assertEqual(body['paymentMonth'], '2024-03')
        self.assertEqual(PaymentRecord.objects.get().created_by, self.user)

    def test_duplicate_payment_envelope(self):
        self.client.post('/api/payments', self.single_payload(), format='json')
        response = self.client.post('/api/payments', self.single_payload(), format='json')

        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.json()['errorType'], 'DUPLICATE_PAYMENT')
        self.assertEqual(PaymentRecord.objects.count(), 1)

    def test_invalid_amount(self):
        response = self.client.post('/api/payments', self.single_payload(amount=0), format='json')
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['errorType'], 'INVALID_AMOUNT')

    def test_unknown_student(self):
        response = self.client.post('/api/payments', self.single_payload(studentId=999), format='json')
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()['errorType'], 'STUDENT_NOT_FOUND')

    def test_malformed_payload(self):
        response = self.client.post('/api/payments', self.single_payload(paymentMonth='March'), format='json')
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['errorType'], 'VALIDATION_ERROR')

    def test_multi_class_payment_covers_all_enrolled_classes(self):
        payload = self.single_payload(totalAmount=1725.0, paymentDate='2024-03-15')
        del payload['classId'], payload['amount']

        response = self.client.post('/api/payments/multi-class', payload, format='json')

        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertTrue(body['isMultiClass'])
        self.assertEqual(body['classIds'], sorted([self.salsa.pk, self.tango.pk]))

    def test_list_filter_get_and_delete(self):
        created = self.client.post('/api/payments', self.single_payload(), format='json').json()

        listed = self.client.get('/api/payments', {'student': self.student.pk, 'month': '2024-03'}).json()
        self.assertEqual([p['id'] for p in listed], [created['id']])
        self.assertEqual(self.client.get('/api/payments', {'month': '2024-04'}).json(), [])

        self.assertEqual(self.client.get(f"/api/payments/{created['id']}").status_code, 200)
        self.assertEqual(self.client.delete(f"/api/payments/{created['id']}").status_code, 204)

        response = self.client.get(f"/api/payments/{created['id']}")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()['errorType'], 'PAYMENT_NOT_FOUND')

    # ============ CALCULATION & SUBMISSION ============

    def test_pending_charges(self):
        response = self.client.get(f'/api/students/{self.student.pk}/pending-charges', {'asOf': '2024-03-12'})

        self.assertEqual(response.status_code, 200)
        charges = response.json()
        self.assertEqual(len(charges), 2)
        self.assertTrue(all(c['overdue'] for c in charges))
        self.assertEqual({c['dueDate'] for c in charges}, {'2024-03-10'})

    def test_pending_charges_rejects_bad_as_of(self):
        response = self.client.get(f'/api/students/{self.student.pk}/pending-charges', {'asOf': '12/03/2024'})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['errorType'], 'VALIDATION_ERROR')

    def test_calculate_preview(self):
        response = self.client.post('/api/payments/calculate', {
            'studentId': self.student.pk,
            'asOf': '2024-03-01',
            'paymentDate': '2024-03-15',
        }, format='json')

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body['baseAmount'], 1500.0)
        self.assertEqual(body['lateFee'], 225.0)
        self.assertEqual(body['total'], 1725.0)
        self.assertEqual(body['shape'], 'multi_class')

    def test_calculate_accepts_zero_override(self):
        response = self.client.post('/api/payments/calculate', {
            'studentId': self.student.pk,
            'asOf': '2024-03-01',
            'paymentDate': '2024-03-05',
            'amounts': {str(self.salsa.pk): 0},
        }, format='json')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['total'], 700.0)

    def test_submit_single_class(self):
        response = self.client.post('/api/payments/submit', {
            'studentId': self.student.pk,
            'classIds': [self.salsa.pk],
            'paymentDate': '2024-03-05',
            'paymentMethod': 'card',
        }, format='json')

        self.assertEqual(response.status_code, 201)
        body = response.json()
        self.assertEqual(body['payment']['totalAmount'], 800.0)
        self.assertFalse(body['payment']['isMultiClass'])
        self.assertEqual(body['summary']['shape'], 'single_class')

    def test_submit_zero_override_never_records(self):
        response = self.client.post('/api/payments/submit', {
            'studentId': self.student.pk,
            'classIds': [self.salsa.pk],
            'amounts': {str(self.salsa.pk): 0},
            'paymentDate': '2024-03-05',
            'paymentMethod': 'cash',
        }, format='json')

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['errorType'], 'VALIDATION_ERROR')
        self.assertFalse(PaymentRecord.objects.exists())

    # ============ COLLECTIONS ============

    def test_outstanding(self):
        response = self.client.get('/api/payments/outstanding', {'asOf': '2024-03-30'})

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body['affectedStudents'], 1)
        self.assertEqual(body['entries'][0]['severity'], 'critical')
        self.assertEqual(body['totalOwed'], 1500.0)


class MonthlySettlementAPITest(TestCase):
    """Payments settle one month at a time; a multi-class payment takes whatever is still due."""

    def setUp(self):
        cache.clear()
        self.user = User.objects.create_superuser(username="owner", email="owner@studio.test", password="pass12345")
        self.client = APIClient()
        self.client.force_authenticate(self.user)

        self.salsa = ClassOffering.objects.create(name="Salsa", monthly_price=Decimal('800'))
        self.tango = ClassOffering.objects.create(name="Tango", monthly_price=Decimal('700'))
        self.waltz = ClassOffering.objects.create(name="Waltz", monthly_price=Decimal('600'))
        self.student = Student.objects.create(first_name="Ada", last_name="Obi")
        for class_offering in (self.salsa, self.tango, self.waltz):
            Enrollment.objects.create(student=self.student, class_offering=class_offering)
        Enrollment.objects.update(enrolled_at=timezone.make_aware(datetime(2024, 3, 1, 12)))

    def submit(self, **fields):
        payload = {'studentId': self.student.pk, 'paymentDate': '2024-03-05', 'paymentMethod': 'cash'}
        payload.update(fields)
        return self.client.post('/api/payments/submit', payload, format='json')

    def pending_class_ids(self, as_of='2024-03-05'):
        charges = self.client.get(f'/api/students/{self.student.pk}/pending-charges', {'asOf': as_of}).json()
        return [c['classId'] for c in charges]

    def test_rest_of_month_after_single_class_payment(self):
        self.assertEqual(self.submit(classIds=[self.salsa.pk]).status_code, 201)
        self.assertEqual(self.pending_class_ids(), [self.tango.pk, self.waltz.pk])

        response = self.submit()

        self.assertEqual(response.status_code, 201)
        payment = response.json()['payment']
        self.assertTrue(payment['isMultiClass'])
        self.assertEqual(payment['classIds'], [self.tango.pk, self.waltz.pk])
        self.assertEqual(payment['totalAmount'], 1300.0)
        self.assertEqual(self.pending_class_ids(), [])

    def test_multi_class_endpoint_skips_classes_already_paid(self):
        self.client.post('/api/payments', {
            'studentId': self.student.pk,
            'classId': self.salsa.pk,
            'amount': 800.0,
            'paymentMonth': '2024-03',
            'paymentDate': '2024-03-05',
            'paymentMethod': 'cash',
        }, format='json')

        response = self.client.post('/api/payments/multi-class', {
            'studentId': self.student.pk,
            'totalAmount': 1300.0,
            'paymentMonth': '2024-03',
            'paymentDate': '2024-03-05',
            'paymentMethod': 'cash',
        }, format='json')

        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()['classIds'], [self.tango.pk, self.waltz.pk])

        again = self.client.post('/api/payments/multi-class', {
            'studentId': self.student.pk,
            'totalAmount': 100.0,
            'paymentMonth': '2024-03',
            'paymentDate': '2024-03-06',
            'paymentMethod': 'cash',
        }, format='json')
        self.assertEqual(again.status_code, 409)
        self.assertEqual(again.json()['errorType'], 'DUPLICATE_PAYMENT')

    def test_partial_multi_class_selection_is_rejected(self):
        response = self.submit(classIds=[self.salsa.pk, self.tango.pk])

        self.assertEqual(response.status_code, 400)
        body = response.json()
        self.assertEqual(body['errorType'], 'VALIDATION_ERROR')
        self.assertIn('classIds', body['errors'])
        self.assertFalse(PaymentRecord.objects.exists())
        self.assertEqual(self.pending_class_ids(), [self.salsa.pk, self.tango.pk, self.waltz.pk])

    def test_oldest_unpaid_month_is_settled_first(self):
        Enrollment.objects.filter(class_offering=self.salsa).update(
            enrolled_at=timezone.make_aware(datetime(2024, 2, 3, 12)),
        )

        first = self.submit(paymentDate='2024-03-12', classIds=[self.salsa.pk])
        self.assertEqual(first.status_code, 201)
        self.assertEqual(first.json()['payment']['paymentMonth'], '2024-02')
        # February is paid late
        self.assertEqual(first.json()['summary']['lateFee'], 120.0)

        second = self.submit(paymentDate='2024-03-12')
        self.assertEqual(second.status_code, 201)
        self.assertEqual(second.json()['payment']['paymentMonth'], '2024-03')
        self.assertEqual(second.json()['payment']['classIds'], [self.salsa.pk, self.tango.pk, self.waltz.pk])

    def test_outstanding_carries_unpaid_months(self):
        response = self.client.get('/api/payments/outstanding', {'asOf': '2024-04-05'})

        entry = response.json()['entries'][0]
        self.assertEqual(entry['totalOwed'], 4200.0)
        self.assertEqual(entry['daysOverdue'], 26)
        self.assertEqual(entry['severity'], 'critical')


class BillingPermissionTest(TestCase):
    def setUp(self):
        self.student = Student.objects.create(first_name="Ada", last_name="Obi")

    def test_anonymous_request_is_unauthenticated(self):
        response = APIClient().get('/api/payments')
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()['errorType'], 'UNAUTHENTICATED')

    def test_user_without_permission_cannot_record(self):
        clerk = User.objects.create_user(username="clerk", password="pass12345")
        client = APIClient()
        client.force_authenticate(clerk)

        response = client.post('/api/payments/multi-class', {
            'studentId': self.student.pk,
            'totalAmount': 100.0,
            'paymentMonth': '2024-03',
            'paymentDate': '2024-03-05',
            'paymentMethod': 'cash',
        }, format='json')

        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json()['errorType'], 'PERMISSION_DENIED')

    def test_bearer_token(self):
        from rest_framework.authtoken.models import Token

        user = User.objects.create_user(username="reader", password="pass12345")
        token = Token.objects.create(user=user)
        client = APIClient()
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {token.key}")

        response = client.get('/api/payments')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), [])


@override_settings(STUDIO_BACKEND='api', STUDIO_API_URL='http://studio.test', STUDIO_API_TOKEN='abc')
class ConfiguredBackendTest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.client.force_authenticate(User.objects.create_superuser(username="owner", password="pass12345"))
        patcher = mock.patch('shared.services.studio.client.requests.request')
        self.request = patcher.start()
        self.addCleanup(patcher.stop)

    def test_payment_list_is_read_from_the_remote_studio(self):
        self.request.return_value = mock.Mock(status_code=200, content=b'[]')
        self.request.return_value.json.return_value = [{'id': 3, 'totalAmount': 800.0}]

        response = self.client.get('/api/payments', {'student': 5})

        self.assertEqual(response.json(), [{'id': 3, 'totalAmount': 800.0}])
        kwargs = self.request.call_args.kwargs
        self.assertEqual(kwargs['url'], 'http://studio.test/api/payments')
        self.assertEqual(kwargs['params'], {'student': '5'})
        self.assertFalse(PaymentRecord.objects.exists())

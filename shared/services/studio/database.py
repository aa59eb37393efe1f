# shared/services/studio/database.py
"""
Database gateway - the authoritative studio backend running in-process.
Enforces the server-side rules the client core does not model:
edge uniqueness, class capacity, duplicate payments, enrollment membership,
amount bounds and permissions.
DEPENDS ON: Django ORM, core, billing
"""
import logging
from decimal import Decimal

from django.db import transaction, IntegrityError

from core.exceptions import (
    ErrorKind,
    StudioException,
    ConflictError,
    NotFoundError,
    PaymentError,
    PermissionDeniedError,
)
from shared.constants import MAX_PAYMENT_AMOUNT

from .base import StudioBackend

logger = logging.getLogger(__name__)


def _first_error(errors):
    """Flatten DRF serializer errors into one readable line."""
    for field, messages in errors.items():
        message = messages[0] if isinstance(messages, list) and messages else messages
        return f"{field}: {message}"
    return "Invalid request."


class DatabaseBackend(StudioBackend):
    """ORM implementation of the studio gateway."""

    def __init__(self, user=None):
        # When a user is given, model permissions are enforced on every mutation
        self.user = user

    # ============ HELPERS ============

    def _require_perm(self, perm):
        if self.user is not None and not self.user.has_perm(perm):
            logger.warning(f"Permission {perm} denied for user {getattr(self.user, 'pk', None)}")
            raise PermissionDeniedError()

    @staticmethod
    def _get_student(student_id):
        from core.models import Student
        try:
            return Student.objects.get(pk=student_id)
        except (Student.DoesNotExist, ValueError, TypeError):
            raise NotFoundError(f"Student {student_id} not found", kind=ErrorKind.STUDENT_NOT_FOUND)

    @staticmethod
    def _get_teacher(teacher_id):
        from core.models import Teacher
        try:
            return Teacher.objects.get(pk=teacher_id)
        except (Teacher.DoesNotExist, ValueError, TypeError):
            raise NotFoundError(f"Teacher {teacher_id} not found", kind=ErrorKind.TEACHER_NOT_FOUND)

    @staticmethod
    def _get_class(class_id, for_update=False):
        from core.models import ClassOffering
        queryset = ClassOffering.objects.all()
        if for_update:
            # Row lock serializes concurrent mutations on the same class
            queryset = queryset.select_for_update()
        try:
            return queryset.get(pk=class_id)
        except (ClassOffering.DoesNotExist, ValueError, TypeError):
            raise NotFoundError(f"Class {class_id} not found", kind=ErrorKind.CLASS_NOT_FOUND)

    @staticmethod
    def _validate(serializer_class, payload):
        serializer = serializer_class(data=payload or {})
        if not serializer.is_valid():
            # Server-side rejection: reached the backend, so not a local validation error
            raise StudioException(
                _first_error(serializer.errors),
                kind=ErrorKind.VALIDATION,
                details={'errors': serializer.errors},
            )
        return serializer.validated_data

    @staticmethod
    def _check_amount(amount):
        if amount is None or amount <= Decimal('0') or amount > MAX_PAYMENT_AMOUNT:
            raise PaymentError(
                f"Amount {amount} is outside the accepted range",
                kind=ErrorKind.INVALID_AMOUNT,
            )

    # ============ ROSTER READS ============

    def get_class_by_id(self, class_id):
        from core.serializers import ClassOfferingSerializer
        return ClassOfferingSerializer(self._get_class(class_id)).data

    def get_enrolled_students(self, class_id):
        from core.serializers import StudentSerializer
        class_offering = self._get_class(class_id)
        students = class_offering.students.order_by('pk')
        return list(StudentSerializer(students, many=True).data)

    def get_student(self, student_id):
        from core.serializers import StudentSerializer
        return StudentSerializer(self._get_student(student_id)).data

    def list_students(self):
        from core.models import Student
        from core.serializers import StudentSerializer
        students = Student.objects.filter(is_active=True).order_by('pk')
        return list(StudentSerializer(students, many=True).data)

    def get_teacher(self, teacher_id):
        from core.serializers import TeacherSerializer
        return TeacherSerializer(self._get_teacher(teacher_id)).data

    # ============ ROSTER MUTATIONS ============

    @transaction.atomic
    def enroll_student(self, student_id, class_id):
        from core.models import Enrollment

        self._require_perm('core.add_enrollment')
        class_offering = self._get_class(class_id, for_update=True)
        student = self._get_student(student_id)

        if Enrollment.objects.filter(student=student, class_offering=class_offering).exists():
            raise ConflictError(f"Student {student_id} is already enrolled in class {class_id}")

        if class_offering.enrollments.count() >= class_offering.capacity:
            raise ConflictError(
                f"Class {class_offering.name} is at full capacity ({class_offering.capacity})",
                kind=ErrorKind.CLASS_FULL,
            )

        try:
            Enrollment.objects.create(student=student, class_offering=class_offering)
        except IntegrityError:
            raise ConflictError(f"Student {student_id} is already enrolled in class {class_id}")

        logger.info(f"Enrolled student {student_id} in class {class_id}")

    @transaction.atomic
    def unenroll_student(self, student_id, class_id):
        from core.models import Enrollment

        self._require_perm('core.delete_enrollment')
        self._get_class(class_id, for_update=True)
        deleted, _ = Enrollment.objects.filter(student_id=student_id, class_offering_id=class_id).delete()
        if not deleted:
            raise NotFoundError(f"Student {student_id} is not enrolled in class {class_id}")

        logger.info(f"Unenrolled student {student_id} from class {class_id}")

    @transaction.atomic
    def assign_teacher(self, class_id, teacher_id):
        from core.models import Assignment

        self._require_perm('core.add_assignment')
        class_offering = self._get_class(class_id, for_update=True)
        teacher = self._get_teacher(teacher_id)

        if Assignment.objects.filter(teacher=teacher, class_offering=class_offering).exists():
            raise ConflictError(f"Teacher {teacher_id} is already assigned to class {class_id}")

        try:
            Assignment.objects.create(teacher=teacher, class_offering=class_offering)
        except IntegrityError:
            raise ConflictError(f"Teacher {teacher_id} is already assigned to class {class_id}")

        logger.info(f"Assigned teacher {teacher_id} to class {class_id}")

    @transaction.atomic
    def unassign_teacher(self, class_id, teacher_id):
        from core.models import Assignment

        self._require_perm('core.delete_assignment')
        self._get_class(class_id, for_update=True)
        deleted, _ = Assignment.objects.filter(teacher_id=teacher_id, class_offering_id=class_id).delete()
        if not deleted:
            raise NotFoundError(f"Teacher {teacher_id} is not assigned to class {class_id}")

        logger.info(f"Unassigned teacher {teacher_id} from class {class_id}")

    # ============ PAYMENTS ============

    @transaction.atomic
    def create_payment(self, payload):
        from billing.models import PaymentRecord
        from billing.serializers import SinglePaymentRequestSerializer, PaymentRecordSerializer

        self._require_perm('billing.add_paymentrecord')
        data = self._validate(SinglePaymentRequestSerializer, payload)
        self._check_amount(data['amount'])

        student = self._get_student(data['studentId'])
        class_offering = self._get_class(data['classId'])

        if not student.enrollments.filter(class_offering=class_offering).exists():
            raise PaymentError(
                f"Student {student.pk} is not enrolled in class {class_offering.pk}",
                kind=ErrorKind.STUDENT_NOT_ENROLLED,
            )

        month = data['paymentMonth']
        if PaymentRecord.objects.covering(student.pk, [class_offering.pk], month).exists():
            raise PaymentError(
                f"Payment already recorded for student {student.pk}, class {class_offering.pk}, {month:%Y-%m}",
                kind=ErrorKind.DUPLICATE_PAYMENT,
            )

        payment = PaymentRecord.objects.create(
            student=student,
            total_amount=data['amount'],
            payment_month=month,
            payment_date=data['paymentDate'],
            payment_method=data['paymentMethod'],
            notes=data.get('notes') or '',
            is_multi_class=False,
            created_by=self._created_by(),
        )
        payment.classes.add(class_offering)

        logger.info(f"Payment {payment.pk} recorded: student {student.pk}, class {class_offering.pk}, {payment.total_amount}")
        return PaymentRecordSerializer(payment).data

    @transaction.atomic
    def create_multi_class_payment(self, payload):
        """
        The per-class split is not transmitted. The payment covers every class the
        student was enrolled in by the end of the given month and that no earlier
        payment for that month already covers.
        """
        from billing.models import PaymentRecord
        from billing.policy import next_month
        from billing.serializers import MultiPaymentRequestSerializer, PaymentRecordSerializer

        self._require_perm('billing.add_paymentrecord')
        data = self._validate(MultiPaymentRequestSerializer, payload)
        self._check_amount(data['totalAmount'])

        student = self._get_student(data['studentId'])
        month = data['paymentMonth']
        enrolled_ids = list(
            student.enrollments
            .filter(enrolled_at__date__lt=next_month(month))
            .order_by('class_offering_id')
            .values_list('class_offering_id', flat=True)
        )
        if not enrolled_ids:
            raise PaymentError(
                f"Student {student.pk} has no classes enrolled by {month:%Y-%m}",
                kind=ErrorKind.STUDENT_NOT_ENROLLED,
            )

        covered_ids = set(
            PaymentRecord.objects.for_month(month)
            .filter(student=student)
            .values_list('classes__id', flat=True)
        )
        class_ids = [class_id for class_id in enrolled_ids if class_id not in covered_ids]
        if not class_ids:
            raise PaymentError(
                f"Payment already recorded for student {student.pk}, {month:%Y-%m}",
                kind=ErrorKind.DUPLICATE_PAYMENT,
            )

        payment = PaymentRecord.objects.create(
            student=student,
            total_amount=data['totalAmount'],
            payment_month=month,
            payment_date=data['paymentDate'],
            payment_method=data['paymentMethod'],
            notes=data.get('notes') or '',
            is_multi_class=True,
            created_by=self._created_by(),
        )
        payment.classes.add(*class_ids)

        logger.info(f"Multi-class payment {payment.pk} recorded: student {student.pk}, classes {class_ids}, {payment.total_amount}")
        return PaymentRecordSerializer(payment).data

    def get_payment(self, payment_id):
        from billing.serializers import PaymentRecordSerializer
        return PaymentRecordSerializer(self._get_payment(payment_id)).data

    @transaction.atomic
    def delete_payment(self, payment_id):
        self._require_perm('billing.delete_paymentrecord')
        payment = self._get_payment(payment_id)
        payment.delete()
        logger.info(f"Payment {payment_id} deleted")

    def list_payments(self, filters=None):
        from billing.models import PaymentRecord
        from billing.serializers import PaymentFilterSerializer, PaymentRecordSerializer

        data = self._validate(PaymentFilterSerializer, {k: v for k, v in (filters or {}).items() if v not in (None, '')})

        queryset = PaymentRecord.objects.prefetch_related('classes')
        if data.get('student'):
            queryset = queryset.filter(student_id=data['student'])
        if data.get('month'):
            queryset = queryset.for_month(data['month'])
        if data.get('classId'):
            queryset = queryset.filter(classes__id=data['classId']).distinct()

        return list(PaymentRecordSerializer(queryset, many=True).data)

    def _get_payment(self, payment_id):
        from billing.models import PaymentRecord
        try:
            return PaymentRecord.objects.get(pk=payment_id)
        except (PaymentRecord.DoesNotExist, ValueError, TypeError):
            raise NotFoundError(f"Payment {payment_id} not found", kind=ErrorKind.PAYMENT_NOT_FOUND)

    def _created_by(self):
        if self.user is not None and getattr(self.user, 'is_authenticated', False):
            return self.user
        return None

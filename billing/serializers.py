# billing/serializers.py
from rest_framework import serializers

from shared.constants import PaymentMethods, MONTH_FORMAT, DATE_FORMAT

from .models import PaymentRecord


class PaymentRecordSerializer(serializers.ModelSerializer):
    studentId = serializers.IntegerField(source='student_id', read_only=True)
    classIds = serializers.SerializerMethodField()
    totalAmount = serializers.DecimalField(source='total_amount', max_digits=12, decimal_places=2, coerce_to_string=False)
    paymentMonth = serializers.DateField(source='payment_month', format=MONTH_FORMAT)
    paymentDate = serializers.DateField(source='payment_date', format=DATE_FORMAT)
    paymentMethod = serializers.CharField(source='payment_method')
    isMultiClass = serializers.BooleanField(source='is_multi_class')

    class Meta:
        model = PaymentRecord
        fields = [
            'id', 'studentId', 'classIds', 'totalAmount', 'paymentMonth',
            'paymentDate', 'paymentMethod', 'notes', 'isMultiClass',
        ]

    def get_classIds(self, obj):
        return sorted(cls.id for cls in obj.classes.all())


class _PaymentRequestSerializer(serializers.Serializer):
    """Fields shared by both payment submission shapes."""
    studentId = serializers.IntegerField(min_value=1)
    paymentMonth = serializers.DateField(input_formats=[MONTH_FORMAT])
    paymentDate = serializers.DateField(input_formats=[DATE_FORMAT])
    paymentMethod = serializers.ChoiceField(choices=PaymentMethods.CHOICES)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True, default='')


class SinglePaymentRequestSerializer(_PaymentRequestSerializer):
    classId = serializers.IntegerField(min_value=1)
    amount = serializers.DecimalField(max_digits=12, decimal_places=1)


class MultiPaymentRequestSerializer(_PaymentRequestSerializer):
    totalAmount = serializers.DecimalField(max_digits=12, decimal_places=1)


class PaymentFilterSerializer(serializers.Serializer):
    student = serializers.IntegerField(required=False, min_value=1)
    month = serializers.DateField(required=False, input_formats=[MONTH_FORMAT])
    classId = serializers.IntegerField(required=False, min_value=1)


class ChargeSelectionSerializer(serializers.Serializer):
    """Which pending charges to price: optional subset of classes and per-class amount overrides."""
    studentId = serializers.IntegerField(min_value=1)
    asOf = serializers.DateField(required=False, input_formats=[DATE_FORMAT])
    classIds = serializers.ListField(child=serializers.IntegerField(min_value=1), required=False)
    amounts = serializers.DictField(
        child=serializers.DecimalField(max_digits=12, decimal_places=2),
        required=False,
    )


class CalculateRequestSerializer(ChargeSelectionSerializer):
    """Live preview input. Amounts are not range-checked here."""
    paymentDate = serializers.DateField(input_formats=[DATE_FORMAT])


class SubmitRequestSerializer(ChargeSelectionSerializer):
    """
    Payment submission input. Date and method stay raw strings so the
    submission coordinator reports them with its own validation errors.
    """
    paymentDate = serializers.CharField(required=False, allow_blank=True, default='')
    paymentMethod = serializers.CharField(required=False, allow_blank=True, default='')
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True, default='')

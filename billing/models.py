# billing/models.py
import logging
from decimal import Decimal

from django.db import models
from django.conf import settings
from django.core.validators import MinValueValidator

from shared.constants import PaymentMethods, MONTH_FORMAT

logger = logging.getLogger(__name__)


class PaymentRecordQuerySet(models.QuerySet):

    def for_month(self, month):
        """Payments recorded for the month containing `month` (a date)."""
        return self.filter(payment_month=month.replace(day=1))

    def covering(self, student_id, class_ids, month):
        """Payments that already cover any of `class_ids` for this student and month."""
        return self.for_month(month).filter(
            student_id=student_id,
            classes__id__in=list(class_ids),
        ).distinct()


class PaymentRecord(models.Model):
    """
    A recorded tuition payment. Immutable once accepted; deleted as a whole,
    there is no partial refund model.
    """
    student = models.ForeignKey('core.Student', on_delete=models.PROTECT, related_name='payments')
    classes = models.ManyToManyField('core.ClassOffering', related_name='payments')

    total_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0'))],
    )
    payment_month = models.DateField(help_text="First day of the billed month")
    payment_date = models.DateField()
    payment_method = models.CharField(max_length=20, choices=PaymentMethods.CHOICES)
    notes = models.TextField(blank=True)
    is_multi_class = models.BooleanField(default=False)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='recorded_payments',
    )
    created_at = models.DateTimeField(auto_now_add=True)

    objects = PaymentRecordQuerySet.as_manager()

    class Meta:
        db_table = 'billing_payment_record'
        ordering = ['-payment_date', '-created_at']
        indexes = [
            models.Index(fields=['student', 'payment_month'], name='billing_pay_student_5a9c2e_idx'),
            models.Index(fields=['payment_date'], name='billing_pay_payment_7d41b3_idx'),
        ]
        verbose_name = 'Payment'
        verbose_name_plural = 'Payments'

    def __str__(self):
        return f"{self.student} - {self.total_amount:,.2f} ({self.payment_month:{MONTH_FORMAT}})"

    def save(self, *args, **kwargs):
        if self.payment_month:
            self.payment_month = self.payment_month.replace(day=1)
        super().save(*args, **kwargs)

# core/models.py
"""
CORE ROSTER MODELS - students, teachers, classes and the edges between them.
Enrollment and Assignment are independent relationships; a class may have
zero teachers or zero students and still be valid.
"""
import logging
from decimal import Decimal

from django.db import models
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator

logger = logging.getLogger(__name__)


# ============ PEOPLE ============

class Student(models.Model):
    """Studio student. The student record is authoritative for which classes it attends."""
    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)
    email = models.EmailField(blank=True)
    phone_number = models.CharField(max_length=20, blank=True)
    is_active = models.BooleanField(default=True)

    enrolled_classes = models.ManyToManyField(
        'core.ClassOffering',
        through='core.Enrollment',
        related_name='students',
        blank=True,
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'core_student'
        ordering = ['last_name', 'first_name']
        indexes = [
            models.Index(fields=['last_name', 'first_name'], name='core_studen_last_na_4c2d1a_idx'),
            models.Index(fields=['is_active'], name='core_studen_is_acti_8e3b7c_idx'),
        ]

    def __str__(self):
        return self.full_name

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()


class Teacher(models.Model):
    """Studio teacher. is_studio_owner affects compensation, never billing."""
    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)
    email = models.EmailField(blank=True)
    phone_number = models.CharField(max_length=20, blank=True)
    is_studio_owner = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)

    assigned_classes = models.ManyToManyField(
        'core.ClassOffering',
        through='core.Assignment',
        related_name='teachers',
        blank=True,
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'core_teacher'
        ordering = ['last_name', 'first_name']

    def __str__(self):
        return self.full_name

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()


# ============ CLASS OFFERING ============

class ClassOffering(models.Model):
    """A class the studio sells at a monthly price."""
    name = models.CharField(max_length=100)
    description = models.TextField(blank=True)
    monthly_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0'))],
    )
    duration_minutes = models.PositiveIntegerField(default=90)
    capacity = models.PositiveIntegerField(default=20)
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'core_class_offering'
        ordering = ['name']
        indexes = [
            models.Index(fields=['is_active'], name='core_class__is_acti_6b1f0e_idx'),
        ]
        verbose_name = 'Class'
        verbose_name_plural = 'Classes'

    def __str__(self):
        return self.name

    @property
    def enrolled_count(self) -> int:
        return self.enrollments.count()

    @property
    def is_full(self) -> bool:
        return self.enrolled_count >= self.capacity

    def clean(self):
        if self.monthly_price is not None and self.monthly_price <= 0:
            raise ValidationError({'monthly_price': 'Monthly price must be greater than zero.'})
        if self.capacity is not None and self.capacity <= 0:
            raise ValidationError({'capacity': 'Capacity must be greater than zero.'})

    def save(self, *args, **kwargs):
        self.full_clean()
        super().save(*args, **kwargs)


class ScheduleSlot(models.Model):
    """Weekly slot: day of week plus start time."""
    DAYS_OF_WEEK = (
        ('MONDAY', 'Monday'),
        ('TUESDAY', 'Tuesday'),
        ('WEDNESDAY', 'Wednesday'),
        ('THURSDAY', 'Thursday'),
        ('FRIDAY', 'Friday'),
        ('SATURDAY', 'Saturday'),
        ('SUNDAY', 'Sunday'),
    )

    class_offering = models.ForeignKey(ClassOffering, on_delete=models.CASCADE, related_name='schedule_slots')
    day_of_week = models.CharField(max_length=10, choices=DAYS_OF_WEEK)
    start_time = models.TimeField()

    class Meta:
        db_table = 'core_schedule_slot'
        ordering = ['class_offering', 'day_of_week', 'start_time']
        unique_together = ['class_offering', 'day_of_week', 'start_time']

    def __str__(self):
        return f"{self.class_offering.name} - {self.get_day_of_week_display()} {self.start_time:%H:%M}"


# ============ RELATIONSHIP EDGES ============

class Enrollment(models.Model):
    """Student-Class edge. Its existence implies no payment history."""
    student = models.ForeignKey(Student, on_delete=models.CASCADE, related_name='enrollments')
    class_offering = models.ForeignKey(ClassOffering, on_delete=models.CASCADE, related_name='enrollments')
    enrolled_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'core_enrollment'
        constraints = [
            models.UniqueConstraint(fields=['student', 'class_offering'], name='unique_enrollment_edge'),
        ]

    def __str__(self):
        return f"{self.student} -> {self.class_offering}"


class Assignment(models.Model):
    """Teacher-Class edge with its own lifecycle, independent of enrollments."""
    teacher = models.ForeignKey(Teacher, on_delete=models.CASCADE, related_name='assignments')
    class_offering = models.ForeignKey(ClassOffering, on_delete=models.CASCADE, related_name='assignments')
    assigned_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'core_assignment'
        constraints = [
            models.UniqueConstraint(fields=['teacher', 'class_offering'], name='unique_assignment_edge'),
        ]

    def __str__(self):
        return f"{self.teacher} teaches {self.class_offering}"

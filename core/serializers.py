# core/serializers.py
"""Wire representations of roster records (camelCase, as the front end consumes them)."""
from django.utils import timezone
from rest_framework import serializers

from shared.constants import DATE_FORMAT

from .models import Student, Teacher, ClassOffering, ScheduleSlot


class StudentSerializer(serializers.ModelSerializer):
    firstName = serializers.CharField(source='first_name')
    lastName = serializers.CharField(source='last_name')
    fullName = serializers.CharField(source='full_name', read_only=True)
    phone = serializers.CharField(source='phone_number', allow_blank=True)
    classIds = serializers.SerializerMethodField()
    enrollments = serializers.SerializerMethodField()

    class Meta:
        model = Student
        fields = ['id', 'firstName', 'lastName', 'fullName', 'email', 'phone', 'classIds', 'enrollments']

    def get_classIds(self, obj):
        return sorted(obj.enrollments.values_list('class_offering_id', flat=True))

    def get_enrollments(self, obj):
        # Billing starts with the month of enrollment
        return [
            {
                'classId': enrollment.class_offering_id,
                'enrolledOn': timezone.localdate(enrollment.enrolled_at).strftime(DATE_FORMAT),
            }
            for enrollment in obj.enrollments.order_by('class_offering_id')
        ]


class TeacherSerializer(serializers.ModelSerializer):
    firstName = serializers.CharField(source='first_name')
    lastName = serializers.CharField(source='last_name')
    fullName = serializers.CharField(source='full_name', read_only=True)
    phone = serializers.CharField(source='phone_number', allow_blank=True)
    isStudioOwner = serializers.BooleanField(source='is_studio_owner')
    classIds = serializers.SerializerMethodField()

    class Meta:
        model = Teacher
        fields = ['id', 'firstName', 'lastName', 'fullName', 'email', 'phone', 'isStudioOwner', 'classIds']

    def get_classIds(self, obj):
        return sorted(obj.assignments.values_list('class_offering_id', flat=True))


class ScheduleSlotSerializer(serializers.ModelSerializer):
    day = serializers.CharField(source='day_of_week')
    startTime = serializers.TimeField(source='start_time', format='%H:%M')

    class Meta:
        model = ScheduleSlot
        fields = ['day', 'startTime']


class ClassOfferingSerializer(serializers.ModelSerializer):
    price = serializers.DecimalField(source='monthly_price', max_digits=10, decimal_places=2, coerce_to_string=False)
    duration = serializers.IntegerField(source='duration_minutes')
    maxStudents = serializers.IntegerField(source='capacity')
    isActive = serializers.BooleanField(source='is_active')
    schedule = ScheduleSlotSerializer(source='schedule_slots', many=True, read_only=True)
    teacherIds = serializers.SerializerMethodField()
    studentIds = serializers.SerializerMethodField()

    class Meta:
        model = ClassOffering
        fields = [
            'id', 'name', 'description', 'price', 'duration', 'maxStudents',
            'isActive', 'schedule', 'teacherIds', 'studentIds',
        ]

    def get_teacherIds(self, obj):
        return sorted(obj.assignments.values_list('teacher_id', flat=True))

    def get_studentIds(self, obj):
        return sorted(obj.enrollments.values_list('student_id', flat=True))


class EnrollRequestSerializer(serializers.Serializer):
    classId = serializers.IntegerField(min_value=1)


class AssignRequestSerializer(serializers.Serializer):
    teacherId = serializers.IntegerField(min_value=1)

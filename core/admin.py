# core/admin.py
from django.contrib import admin

from .models import Student, Teacher, ClassOffering, ScheduleSlot, Enrollment, Assignment


class EnrollmentInline(admin.TabularInline):
    model = Enrollment
    extra = 0
    readonly_fields = ['enrolled_at']


class AssignmentInline(admin.TabularInline):
    model = Assignment
    extra = 0
    readonly_fields = ['assigned_at']


class ScheduleSlotInline(admin.TabularInline):
    model = ScheduleSlot
    extra = 0


@admin.register(ClassOffering)
class ClassOfferingAdmin(admin.ModelAdmin):
    list_display = ['name', 'monthly_price', 'duration_minutes', 'capacity', 'enrolled_count', 'is_active']
    list_filter = ['is_active']
    search_fields = ['name', 'description']
    list_editable = ['is_active']
    inlines = [ScheduleSlotInline, AssignmentInline, EnrollmentInline]

    def enrolled_count(self, obj):
        return obj.enrolled_count
    enrolled_count.short_description = 'Enrolled'


@admin.register(Student)
class StudentAdmin(admin.ModelAdmin):
    list_display = ['full_name', 'email', 'phone_number', 'is_active', 'created_at']
    list_filter = ['is_active']
    search_fields = ['first_name', 'last_name', 'email', 'phone_number']
    inlines = [EnrollmentInline]


@admin.register(Teacher)
class TeacherAdmin(admin.ModelAdmin):
    list_display = ['full_name', 'email', 'is_studio_owner', 'is_active']
    list_filter = ['is_studio_owner', 'is_active']
    search_fields = ['first_name', 'last_name', 'email']
    inlines = [AssignmentInline]

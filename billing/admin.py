# billing/admin.py
from django.contrib import admin
from django.utils.html import format_html
from django.urls import reverse

from .models import PaymentRecord


@admin.register(PaymentRecord)
class PaymentRecordAdmin(admin.ModelAdmin):
    list_display = [
        'id', 'student_link', 'total_amount_formatted', 'month_display',
        'payment_date', 'payment_method', 'shape_badge',
    ]
    list_filter = ['payment_method', 'is_multi_class', 'payment_month']
    search_fields = ['student__first_name', 'student__last_name', 'notes']
    readonly_fields = ['created_at', 'created_by']
    date_hierarchy = 'payment_date'
    raw_id_fields = ['student']
    filter_horizontal = ['classes']

    fieldsets = (
        ('Payment', {
            'fields': ('student', 'classes', 'total_amount', 'is_multi_class')
        }),
        ('Period & Method', {
            'fields': ('payment_month', 'payment_date', 'payment_method', 'notes')
        }),
        ('Metadata', {
            'fields': ('created_at', 'created_by')
        }),
    )

    def total_amount_formatted(self, obj):
        return f"{obj.total_amount:,.2f}"
    total_amount_formatted.short_description = 'Amount'

    def month_display(self, obj):
        return obj.payment_month.strftime('%Y-%m')
    month_display.short_description = 'Month'

    def shape_badge(self, obj):
        color, label = ('blue', 'Multi-class') if obj.is_multi_class else ('gray', 'Single class')
        return format_html(
            '<span style="background: {}; color: white; padding: 2px 8px; border-radius: 10px;">{}</span>',
            color, label
        )
    shape_badge.short_description = 'Shape'

    def student_link(self, obj):
        url = reverse('admin:core_student_change', args=[obj.student_id])
        return format_html('<a href="{}">{}</a>', url, obj.student.full_name)
    student_link.short_description = 'Student'

    def save_model(self, request, obj, form, change):
        if not change and obj.created_by_id is None:
            obj.created_by = request.user
        super().save_model(request, obj, form, change)

    def get_queryset(self, request):
        return super().get_queryset(request).select_related('student')

# billing/urls.py
from django.urls import path

from . import views

app_name = 'billing'

urlpatterns = [
    # Payment records
    path('payments', views.payment_list, name='payment_list'),
    path('payments/multi-class', views.payment_multi_class, name='payment_multi_class'),
    path('payments/<int:payment_id>', views.payment_detail, name='payment_detail'),

    # Calculation & submission
    path('payments/calculate', views.payment_calculate, name='payment_calculate'),
    path('payments/submit', views.payment_submit, name='payment_submit'),
    path('students/<int:student_id>/pending-charges', views.pending_charges, name='pending_charges'),

    # Collections
    path('payments/outstanding', views.outstanding, name='outstanding'),
]

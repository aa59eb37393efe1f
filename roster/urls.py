# roster/urls.py
from django.urls import path

from . import views

app_name = 'roster'

urlpatterns = [
    # Classes
    path('classes/<int:class_id>', views.class_detail, name='class_detail'),
    path('classes/<int:class_id>/students', views.class_students, name='class_students'),
    path('classes/<int:class_id>/teachers', views.class_teachers, name='class_teachers'),
    path('classes/<int:class_id>/teachers/<int:teacher_id>', views.class_teacher_detail, name='class_teacher_detail'),

    # Students
    path('students', views.student_list, name='student_list'),
    path('students/<int:student_id>', views.student_detail, name='student_detail'),
    path('students/<int:student_id>/enroll', views.student_enroll, name='student_enroll'),
    path('students/<int:student_id>/enroll/<int:class_id>', views.student_unenroll, name='student_unenroll'),

    # Teachers
    path('teachers/<int:teacher_id>', views.teacher_detail, name='teacher_detail'),
]

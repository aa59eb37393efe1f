# roster/views.py
"""
Roster endpoints. Mutations go through the relationship store so every
response carries the class as re-read after the change.
"""
import logging

from rest_framework import status
from rest_framework.decorators import api_view
from rest_framework.response import Response

from core.serializers import EnrollRequestSerializer, AssignRequestSerializer
from shared.services.studio import get_backend

from .services import RelationshipStore

logger = logging.getLogger(__name__)


def _backend(request):
    return get_backend(user=request.user)


# ============ CLASSES ============

@api_view(['GET'])
def class_detail(request, class_id):
    return Response(_backend(request).get_class_by_id(class_id))


@api_view(['GET'])
def class_students(request, class_id):
    store = RelationshipStore(_backend(request))
    return Response(store.resolve_enrolled_students(class_id))


@api_view(['POST'])
def class_teachers(request, class_id):
    serializer = AssignRequestSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    store = RelationshipStore(_backend(request))
    roster = store.add_assignment(class_id, serializer.validated_data['teacherId'])
    return Response(roster.to_dict(), status=status.HTTP_201_CREATED)


@api_view(['DELETE'])
def class_teacher_detail(request, class_id, teacher_id):
    store = RelationshipStore(_backend(request))
    roster = store.remove_assignment(class_id, teacher_id)
    return Response(roster.to_dict())


# ============ STUDENTS ============

@api_view(['GET'])
def student_list(request):
    return Response(_backend(request).list_students())


@api_view(['GET'])
def student_detail(request, student_id):
    return Response(_backend(request).get_student(student_id))


@api_view(['POST'])
def student_enroll(request, student_id):
    serializer = EnrollRequestSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)

    store = RelationshipStore(_backend(request))
    roster = store.add_enrollment(serializer.validated_data['classId'], student_id)
    return Response(roster.to_dict(), status=status.HTTP_201_CREATED)


@api_view(['DELETE'])
def student_unenroll(request, student_id, class_id):
    store = RelationshipStore(_backend(request))
    roster = store.remove_enrollment(class_id, student_id)
    return Response(roster.to_dict())


# ============ TEACHERS ============

@api_view(['GET'])
def teacher_detail(request, teacher_id):
    return Response(_backend(request).get_teacher(teacher_id))

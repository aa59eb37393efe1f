# roster/services.py
"""
ROSTER SERVICES - relationship store for enrollment and assignment edges.

Edges are never patched locally. Every mutation waits for the backend to
acknowledge and then re-resolves the class from the authoritative record,
because the backend enforces rules (capacity, uniqueness) this store does not
model. A failed mutation leaves the last resolved roster in place.
"""
import itertools
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from django.conf import settings

from core.exceptions import ConflictError, StudioException
from shared.services.studio import get_backend
from shared.utils import IdempotencyService, OperationInFlight

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClassRoster:
    """One resolved view of a class: its record plus full student and teacher details."""
    class_id: int
    class_record: Dict[str, Any]
    students: List[Dict[str, Any]] = field(default_factory=list)
    teachers: List[Dict[str, Any]] = field(default_factory=list)
    generation: int = 0

    @property
    def student_ids(self):
        return [student['id'] for student in self.students]

    @property
    def teacher_ids(self):
        return [teacher['id'] for teacher in self.teachers]

    def to_dict(self):
        return {
            'class': self.class_record,
            'students': self.students,
            'teachers': self.teachers,
        }


class RelationshipStore:
    """
    Student-Class and Teacher-Class edges for the classes being viewed.

    Resolutions are stamped with a generation; a roster only replaces the held
    one if it is newer, so a late result from an abandoned call cannot
    overwrite a fresher view.
    """

    def __init__(self, backend=None, lock_ttl=None):
        self.backend = backend or get_backend()
        self.lock_ttl = lock_ttl or getattr(settings, 'STUDIO_ROSTER_LOCK_TTL', 30)
        self._rosters: Dict[Any, ClassRoster] = {}
        self._generations = itertools.count(1)

    # ============ READS ============

    def roster(self, class_id) -> Optional[ClassRoster]:
        """Last successfully resolved roster, without touching the backend."""
        return self._rosters.get(class_id)

    def resolve_enrolled_students(self, class_id) -> List[Dict[str, Any]]:
        return list(self.backend.get_enrolled_students(class_id))

    def resolve_assigned_teachers(self, class_id) -> List[Dict[str, Any]]:
        class_record = self.backend.get_class_by_id(class_id)
        return self._teachers_for(class_record)

    def reconcile(self, class_id) -> ClassRoster:
        """Re-read the authoritative class record and resolve both edge collections."""
        generation = next(self._generations)

        class_record = self.backend.get_class_by_id(class_id)
        students = self.resolve_enrolled_students(class_id)
        teachers = self._teachers_for(class_record)

        roster = ClassRoster(
            class_id=class_id,
            class_record=class_record,
            students=students,
            teachers=teachers,
            generation=generation,
        )
        return self._publish(roster)

    def _teachers_for(self, class_record):
        return [self.backend.get_teacher(teacher_id) for teacher_id in class_record.get('teacherIds', [])]

    def _publish(self, roster):
        current = self._rosters.get(roster.class_id)
        if current is not None and current.generation > roster.generation:
            logger.debug(f"Discarding stale roster for class {roster.class_id} (generation {roster.generation})")
            return current
        self._rosters[roster.class_id] = roster
        return roster

    # ============ MUTATIONS ============

    def add_enrollment(self, class_id, student_id) -> ClassRoster:
        return self._mutate(
            class_id, f"enroll student {student_id}",
            lambda: self.backend.enroll_student(student_id, class_id),
        )

    def remove_enrollment(self, class_id, student_id) -> ClassRoster:
        return self._mutate(
            class_id, f"unenroll student {student_id}",
            lambda: self.backend.unenroll_student(student_id, class_id),
        )

    def add_assignment(self, class_id, teacher_id) -> ClassRoster:
        return self._mutate(
            class_id, f"assign teacher {teacher_id}",
            lambda: self.backend.assign_teacher(class_id, teacher_id),
        )

    def remove_assignment(self, class_id, teacher_id) -> ClassRoster:
        return self._mutate(
            class_id, f"unassign teacher {teacher_id}",
            lambda: self.backend.unassign_teacher(class_id, teacher_id),
        )

    def _mutate(self, class_id, action, call):
        """Run one mutation under the class lock, then reconcile before releasing it."""
        lock_key = IdempotencyService.get_key('roster_class', class_id)
        try:
            with IdempotencyService.hold(lock_key, self.lock_ttl):
                call()
                logger.info(f"Class {class_id}: {action}")
                return self.reconcile(class_id)
        except OperationInFlight:
            logger.warning(f"Class {class_id}: {action} rejected, another change is in progress")
            raise ConflictError("Another change to this class is in progress. Try again in a moment.")
        except StudioException as e:
            logger.warning(f"Class {class_id}: {action} failed ({e.kind.value}): {e.message}")
            raise

"""Collaborator contracts for progress tracking.

The progress core never talks to a database directly; callers plug in
implementations of these protocols.
"""

from typing import Protocol

from .models import LessonProgress


class ProgressStore(Protocol):
    """Storage for LessonProgress records."""

    async def generate_id(self) -> str:
        """Issue a new, unused lesson progress ID."""
        ...

    async def find_by_user_and_lesson(
        self, user_id: str, lesson_id: str
    ) -> LessonProgress | None:
        """Get a learner's progress on a lesson."""
        ...

    async def find_by_user_and_institution(
        self, user_id: str, institution_id: str
    ) -> list[LessonProgress]:
        """Get every lesson progress of a learner within an institution."""
        ...

    async def save(self, lesson_progress: LessonProgress) -> LessonProgress:
        """Upsert the record keyed by its ID; durable before returning."""
        ...


class CourseStructureProvider(Protocol):
    """Read-only view of course and lesson structure."""

    async def get_course_lesson_ids(self, course_id: str) -> list[str] | None:
        """Ordered lesson IDs of a course, or None for an unknown course."""
        ...

    async def get_lesson_content_ids(self, lesson_id: str) -> list[str] | None:
        """Ordered content IDs of a lesson, or None for an unknown lesson."""
        ...

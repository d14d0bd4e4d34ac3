"""In-memory collaborators for progress tracking.

Reference implementations of ProgressStore and CourseStructureProvider for
single-process use and tests. The store keeps ``to_dict`` snapshots, so
records handed out never alias the stored state: saving is the only way to
change what the store holds.
"""

from collections.abc import Mapping, Sequence
from typing import Any
from uuid import uuid4

from edutrack.core.clock import Clock, utc_now

from .models import LessonProgress


class InMemoryProgressStore:
    """ProgressStore keeping snapshots in a dict keyed by record ID."""

    def __init__(self, id_prefix: str = "lp_", clock: Clock = utc_now):
        self._records: dict[str, dict[str, Any]] = {}
        self._id_prefix = id_prefix
        self._clock = clock

    async def generate_id(self) -> str:
        while True:
            candidate = f"{self._id_prefix}{uuid4().hex[:10]}"
            if candidate not in self._records:
                return candidate

    async def find_by_user_and_lesson(
        self, user_id: str, lesson_id: str
    ) -> LessonProgress | None:
        for data in self._records.values():
            if data["user_id"] == user_id and data["lesson_id"] == lesson_id:
                return LessonProgress.from_dict(data, clock=self._clock)
        return None

    async def find_by_user_and_institution(
        self, user_id: str, institution_id: str
    ) -> list[LessonProgress]:
        return [
            LessonProgress.from_dict(data, clock=self._clock)
            for data in self._records.values()
            if data["user_id"] == user_id and data["institution_id"] == institution_id
        ]

    async def save(self, lesson_progress: LessonProgress) -> LessonProgress:
        self._records[lesson_progress.id] = lesson_progress.to_dict()
        return LessonProgress.from_dict(self._records[lesson_progress.id], clock=self._clock)

    def __len__(self) -> int:
        return len(self._records)


class InMemoryCourseStructure:
    """CourseStructureProvider over static course/lesson maps.

    Args:
        courses: course_id -> ordered lesson IDs
        lessons: lesson_id -> ordered content IDs
    """

    def __init__(
        self,
        courses: Mapping[str, Sequence[str]] | None = None,
        lessons: Mapping[str, Sequence[str]] | None = None,
    ):
        self._courses = {key: list(value) for key, value in (courses or {}).items()}
        self._lessons = {key: list(value) for key, value in (lessons or {}).items()}

    async def get_course_lesson_ids(self, course_id: str) -> list[str] | None:
        lesson_ids = self._courses.get(course_id)
        return list(lesson_ids) if lesson_ids is not None else None

    async def get_lesson_content_ids(self, lesson_id: str) -> list[str] | None:
        content_ids = self._lessons.get(lesson_id)
        return list(content_ids) if content_ids is not None else None

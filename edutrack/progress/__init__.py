"""Student progress tracking module.

Provides:
- Content progress with time spent and resume position
- Lesson progress derived from its content items (completion and demotion)
- Course progress rollup
"""

from .aggregator import aggregate_course_progress
from .errors import (
    ContentNotFoundError,
    CourseNotFoundError,
    LessonNotFoundError,
    LessonProgressNotFoundError,
)
from .models import ContentProgress, ContentType, LessonProgress, ProgressStatus
from .schemas import CourseProgressSummary, LessonProgressCheck
from .service import ProgressService


__all__ = [
    "ContentNotFoundError",
    "ContentProgress",
    "ContentType",
    "CourseNotFoundError",
    "CourseProgressSummary",
    "LessonNotFoundError",
    "LessonProgress",
    "LessonProgressCheck",
    "LessonProgressNotFoundError",
    "ProgressService",
    "ProgressStatus",
    "aggregate_course_progress",
]

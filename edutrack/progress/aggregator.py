"""Course progress rollup.

Folds a learner's lesson progress records over the lesson list of a course:

- no record: not started, contributes 0
- completed: contributes 100
- in progress: contributes the lesson's overall content progress
- any other status: not started, contributes 0

The course percentage is the sum divided by the number of lessons in the
course structure (not by the number of lessons the learner touched).
"""

from collections.abc import Iterable, Sequence

from edutrack.core.rounding import round_to_int

from .models import LessonProgress, ProgressStatus
from .schemas import CourseProgressSummary


def index_by_lesson(
    lesson_progresses: Iterable[LessonProgress],
) -> dict[str, LessonProgress]:
    """Map lesson_id to its record, keeping the most recently updated one."""
    indexed: dict[str, LessonProgress] = {}
    for progress in lesson_progresses:
        current = indexed.get(progress.lesson_id)
        if current is None or progress.updated_at > current.updated_at:
            indexed[progress.lesson_id] = progress
    return indexed


def aggregate_course_progress(
    lesson_ids: Sequence[str],
    lesson_progresses: Iterable[LessonProgress],
) -> CourseProgressSummary:
    """Compute the course rollup for one learner.

    Args:
        lesson_ids: Every lesson of the course (source of truth for totals)
        lesson_progresses: The learner's lesson progress records; records of
            lessons outside ``lesson_ids`` are ignored

    Returns:
        CourseProgressSummary
    """
    total_lessons = len(lesson_ids)
    if total_lessons == 0:
        return CourseProgressSummary.empty()

    by_lesson = index_by_lesson(lesson_progresses)

    completed = 0
    in_progress = 0
    not_started = 0
    total_progress = 0.0

    for lesson_id in lesson_ids:
        progress = by_lesson.get(lesson_id)
        if progress is None:
            not_started += 1
        elif progress.status == ProgressStatus.COMPLETED:
            completed += 1
            total_progress += 100
        elif progress.status == ProgressStatus.IN_PROGRESS:
            in_progress += 1
            total_progress += progress.calculate_overall_progress()
        else:
            not_started += 1

    return CourseProgressSummary(
        progress_percentage=round_to_int(total_progress / total_lessons),
        total_lessons=total_lessons,
        completed_lessons=completed,
        in_progress_lessons=in_progress,
        not_started_lessons=not_started,
    )

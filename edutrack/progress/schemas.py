"""Result models for progress tracking operations.

- CourseProgressSummary: numeric course rollup
- LessonProgressCheck: quick per-lesson check (used on lesson load)
- StartLessonResult / ContentUpdateResult / LessonCompletionResult:
  service results carrying the updated aggregate plus transition flags
"""

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field

from .models import LessonProgress, ProgressStatus


# ==============================================================================
# Course Progress
# ==============================================================================


class CourseProgressSummary(BaseModel):
    """Course-wide progress of one learner."""

    model_config = ConfigDict(frozen=True)

    progress_percentage: int = Field(ge=0, le=100, description="0-100 percentage")
    total_lessons: int = Field(ge=0, description="Lessons in the course structure")
    completed_lessons: int = Field(ge=0)
    in_progress_lessons: int = Field(ge=0)
    not_started_lessons: int = Field(ge=0)

    @classmethod
    def empty(cls) -> "CourseProgressSummary":
        """Summary for a course without lessons."""
        return cls(
            progress_percentage=0,
            total_lessons=0,
            completed_lessons=0,
            in_progress_lessons=0,
            not_started_lessons=0,
        )


# ==============================================================================
# Lesson Progress Check
# ==============================================================================


class LessonProgressCheck(BaseModel):
    """Quick progress check for a single lesson."""

    model_config = ConfigDict(frozen=True)

    lesson_id: str
    status: ProgressStatus
    completed: bool
    progress_percentage: float = Field(ge=0, le=100)
    completed_contents: int = 0
    total_contents: int = 0
    resume_content_id: str | None = Field(None, description="First unfinished item")
    resume_position_seconds: float | None = Field(
        None, description="Position to resume the unfinished item from"
    )

    @classmethod
    def from_entity(cls, entity: LessonProgress) -> "LessonProgressCheck":
        """Create check from entity."""
        resume = next(
            (item for item in entity.content_progresses if not item.is_completed),
            None,
        )
        return cls(
            lesson_id=entity.lesson_id,
            status=entity.status,
            completed=entity.is_completed,
            progress_percentage=entity.calculate_overall_progress(),
            completed_contents=entity.completed_content_count,
            total_contents=entity.total_content_count,
            resume_content_id=resume.content_id if resume else None,
            resume_position_seconds=resume.last_position if resume else None,
        )

    @classmethod
    def not_started(cls, lesson_id: str) -> "LessonProgressCheck":
        """Placeholder for a lesson the learner never opened."""
        return cls(
            lesson_id=lesson_id,
            status=ProgressStatus.NOT_STARTED,
            completed=False,
            progress_percentage=0,
        )


# ==============================================================================
# Operation Results
# ==============================================================================


@dataclass(frozen=True)
class StartLessonResult:
    """Outcome of opening a lesson."""

    lesson_progress: LessonProgress
    is_new: bool


@dataclass(frozen=True)
class ContentUpdateResult:
    """Outcome of a content progress mutation."""

    lesson_progress: LessonProgress
    content_completed: bool  # Item became completed in this call
    lesson_completed: bool  # Lesson became completed in this call
    lesson_demoted: bool  # Lesson lost its completed status in this call


@dataclass(frozen=True)
class LessonCompletionResult:
    """Outcome of completing a whole lesson."""

    lesson_progress: LessonProgress
    was_already_completed: bool

"""Student progress tracking service layer.

Business logic for:
- Starting a lesson (one content item per lesson content)
- Content progress updates with automatic lesson completion/demotion
- Whole-lesson completion
- Course progress rollup
"""

from collections.abc import Mapping

from edutrack.core.clock import Clock, utc_now
from edutrack.core.context import OperationContext
from edutrack.core.errors import ValidationError, require_text
from edutrack.core.locks import (
    DEFAULT_LOCK_PREFIX,
    InMemoryKeyedLock,
    KeyedLock,
    lesson_lock_key,
)
from edutrack.core.logging import get_logger

from .aggregator import aggregate_course_progress
from .errors import (
    ContentNotFoundError,
    CourseNotFoundError,
    LessonNotFoundError,
    LessonProgressNotFoundError,
)
from .models import ContentType, LessonProgress
from .protocols import CourseStructureProvider, ProgressStore
from .schemas import (
    ContentUpdateResult,
    CourseProgressSummary,
    LessonCompletionResult,
    LessonProgressCheck,
    StartLessonResult,
)


logger = get_logger(__name__)


class ProgressService:
    """Service for student progress tracking.

    Mutations run as read-modify-save cycles under a lock keyed by
    (user_id, lesson_id), so concurrent reports for the same lesson are
    applied one after the other instead of overwriting each other.
    """

    def __init__(
        self,
        store: ProgressStore,
        structure: CourseStructureProvider,
        lock: KeyedLock | None = None,
        clock: Clock = utc_now,
        lock_key_prefix: str = DEFAULT_LOCK_PREFIX,
    ):
        self.store = store
        self.structure = structure
        self.lock = lock or InMemoryKeyedLock()
        self._clock = clock
        self._lock_key_prefix = lock_key_prefix

    def _lesson_key(self, user_id: str, lesson_id: str) -> str:
        return lesson_lock_key(user_id, lesson_id, self._lock_key_prefix)

    async def _require_lesson_progress(
        self, user_id: str, lesson_id: str
    ) -> LessonProgress:
        progress = await self.store.find_by_user_and_lesson(user_id, lesson_id)
        if progress is None:
            raise LessonProgressNotFoundError(user_id, lesson_id)
        return progress

    # ==========================================================================
    # Lesson Start
    # ==========================================================================

    async def start_lesson_progress(
        self,
        user_id: str,
        lesson_id: str,
        institution_id: str,
    ) -> StartLessonResult:
        """Open a lesson for a learner.

        Returns the existing record (touched) or creates one with a content
        item per lesson content.

        Raises:
            ValidationError: Missing identifiers or lesson without content
            LessonNotFoundError: Lesson unknown to the structure provider
        """
        require_text(user_id, "ID do usuario e obrigatorio")
        require_text(lesson_id, "ID da aula e obrigatorio")
        require_text(institution_id, "ID da instituicao e obrigatorio")

        with OperationContext(user_id=user_id, institution_id=institution_id):
            async with self.lock.hold(self._lesson_key(user_id, lesson_id)):
                existing = await self.store.find_by_user_and_lesson(user_id, lesson_id)
                if existing is not None:
                    existing.touch()
                    saved = await self.store.save(existing)
                    logger.debug("lesson_progress_resumed", lesson_id=lesson_id)
                    return StartLessonResult(lesson_progress=saved, is_new=False)

                content_ids = await self.structure.get_lesson_content_ids(lesson_id)
                if content_ids is None:
                    raise LessonNotFoundError(lesson_id)
                if not content_ids:
                    raise ValidationError(
                        f"Aula {lesson_id} nao possui conteudos para acompanhar"
                    )

                progress = LessonProgress.create(
                    id=await self.store.generate_id(),
                    user_id=user_id,
                    lesson_id=lesson_id,
                    institution_id=institution_id,
                    content_ids=content_ids,
                    clock=self._clock,
                )
                saved = await self.store.save(progress)

                logger.info(
                    "lesson_progress_started",
                    lesson_id=lesson_id,
                    progress_id=saved.id,
                    contents=saved.total_content_count,
                )
                return StartLessonResult(lesson_progress=saved, is_new=True)

    # ==========================================================================
    # Content Progress Operations
    # ==========================================================================

    async def update_content_progress(
        self,
        user_id: str,
        lesson_id: str,
        content_id: str,
        progress_percentage: float,
        time_spent: float | None = None,
        last_position: float | None = None,
    ) -> ContentUpdateResult:
        """Report progress on one content item of a started lesson.

        Args:
            user_id: Learner ID
            lesson_id: Lesson ID
            content_id: Content item ID
            progress_percentage: New percentage (0-100)
            time_spent: Seconds spent since the previous report
            last_position: Resume position in seconds

        Raises:
            ValidationError: Invalid identifiers or values
            LessonProgressNotFoundError: Lesson was never started
            ContentNotFoundError: Content is not part of the lesson
        """
        require_text(user_id, "ID do usuario e obrigatorio")
        require_text(lesson_id, "ID da aula e obrigatorio")
        require_text(content_id, "ID do conteudo e obrigatorio")

        with OperationContext(user_id=user_id):
            async with self.lock.hold(self._lesson_key(user_id, lesson_id)):
                progress = await self._require_lesson_progress(user_id, lesson_id)
                was_content_completed, was_lesson_completed = self._snapshot_flags(
                    progress, content_id
                )

                progress.update_content_progress(
                    content_id, progress_percentage, time_spent, last_position
                )
                saved = await self.store.save(progress)

                logger.info(
                    "content_progress_updated",
                    lesson_id=lesson_id,
                    content_id=content_id,
                    progress=progress_percentage,
                    time_spent=time_spent,
                )
                return self._content_result(
                    saved, content_id, was_content_completed, was_lesson_completed
                )

    async def mark_content_completed(
        self,
        user_id: str,
        lesson_id: str,
        content_id: str,
    ) -> ContentUpdateResult:
        """Manually complete one content item (non-media content)."""
        require_text(user_id, "ID do usuario e obrigatorio")
        require_text(lesson_id, "ID da aula e obrigatorio")
        require_text(content_id, "ID do conteudo e obrigatorio")

        with OperationContext(user_id=user_id):
            async with self.lock.hold(self._lesson_key(user_id, lesson_id)):
                progress = await self._require_lesson_progress(user_id, lesson_id)
                was_content_completed, was_lesson_completed = self._snapshot_flags(
                    progress, content_id
                )

                progress.mark_content_as_completed(content_id)
                saved = await self.store.save(progress)

                logger.info(
                    "content_marked_complete",
                    lesson_id=lesson_id,
                    content_id=content_id,
                )
                return self._content_result(
                    saved, content_id, was_content_completed, was_lesson_completed
                )

    @staticmethod
    def _snapshot_flags(progress: LessonProgress, content_id: str) -> tuple[bool, bool]:
        item = progress.get_content_progress(content_id)
        if item is None:
            raise ContentNotFoundError(content_id, progress.lesson_id)
        return item.is_completed, progress.is_completed

    @staticmethod
    def _content_result(
        saved: LessonProgress,
        content_id: str,
        was_content_completed: bool,
        was_lesson_completed: bool,
    ) -> ContentUpdateResult:
        item = saved.get_content_progress(content_id)
        is_content_completed = item is not None and item.is_completed

        lesson_completed = not was_lesson_completed and saved.is_completed
        lesson_demoted = was_lesson_completed and not saved.is_completed
        if lesson_completed:
            logger.info("lesson_completed", lesson_id=saved.lesson_id)
        elif lesson_demoted:
            logger.info(
                "lesson_demoted",
                lesson_id=saved.lesson_id,
                content_id=content_id,
            )

        return ContentUpdateResult(
            lesson_progress=saved,
            content_completed=not was_content_completed and is_content_completed,
            lesson_completed=lesson_completed,
            lesson_demoted=lesson_demoted,
        )

    # ==========================================================================
    # Lesson Completion
    # ==========================================================================

    async def complete_lesson_progress(
        self,
        user_id: str,
        lesson_id: str,
        content_types: Mapping[str, ContentType | str] | None = None,
    ) -> LessonCompletionResult:
        """Complete a whole lesson at once.

        With ``content_types`` (content_id -> type) media items keep their
        watched percentage; without it every item is set to 100%.
        """
        require_text(user_id, "ID do usuario e obrigatorio")
        require_text(lesson_id, "ID da aula e obrigatorio")

        with OperationContext(user_id=user_id):
            async with self.lock.hold(self._lesson_key(user_id, lesson_id)):
                progress = await self._require_lesson_progress(user_id, lesson_id)
                was_already_completed = progress.is_completed

                if content_types:
                    progress.complete_with_content_types(content_types)
                else:
                    progress.force_complete()
                saved = await self.store.save(progress)

                logger.info(
                    "lesson_marked_complete",
                    lesson_id=lesson_id,
                    was_already_completed=was_already_completed,
                )
                return LessonCompletionResult(
                    lesson_progress=saved,
                    was_already_completed=was_already_completed,
                )

    # ==========================================================================
    # Progress Queries
    # ==========================================================================

    async def get_course_progress(
        self,
        user_id: str,
        course_id: str,
        institution_id: str,
    ) -> CourseProgressSummary:
        """Course-wide rollup of a learner's lesson progress.

        Fetches the learner's records in one bulk call instead of one call
        per lesson.

        Raises:
            ValidationError: Missing identifiers
            CourseNotFoundError: Course unknown to the structure provider
        """
        require_text(user_id, "ID do usuario e obrigatorio")
        require_text(course_id, "ID do curso e obrigatorio")
        require_text(institution_id, "ID da instituicao e obrigatorio")

        with OperationContext(user_id=user_id, institution_id=institution_id):
            lesson_ids = await self.structure.get_course_lesson_ids(course_id)
            if lesson_ids is None:
                raise CourseNotFoundError(course_id)

            records = await self.store.find_by_user_and_institution(
                user_id, institution_id
            )
            summary = aggregate_course_progress(lesson_ids, records)

            logger.debug(
                "course_progress_calculated",
                course_id=course_id,
                progress=summary.progress_percentage,
                completed=summary.completed_lessons,
                total=summary.total_lessons,
            )
            return summary

    async def check_lesson_progress(
        self,
        user_id: str,
        lesson_id: str,
    ) -> LessonProgressCheck:
        """Quick progress check for lesson load (resume feature)."""
        require_text(user_id, "ID do usuario e obrigatorio")
        require_text(lesson_id, "ID da aula e obrigatorio")

        progress = await self.store.find_by_user_and_lesson(user_id, lesson_id)
        if progress is None:
            return LessonProgressCheck.not_started(lesson_id)
        return LessonProgressCheck.from_entity(progress)

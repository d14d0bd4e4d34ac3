"""Domain models for learner progress tracking.

- ContentProgress: progress on one content item (video, pdf, ...)
- LessonProgress: aggregate root owning the ContentProgress items of one
  (learner, lesson) pair and deriving the lesson status from them

Both are plain in-memory objects. Build them through ``create`` (which
validates); the constructors trust their arguments and exist for the
factories only. Every mutation validates first and only then touches state,
so a failed call leaves the object unchanged.
"""

import math
from collections.abc import Iterable, Mapping
from datetime import datetime
from enum import Enum
from typing import Any

from edutrack.core.clock import Clock, parse_datetime, utc_now
from edutrack.core.errors import ConflictError, ValidationError, require_text
from edutrack.core.rounding import round_half_up

from .errors import ContentNotFoundError


class ProgressStatus(str, Enum):
    """Progress status for content items and lessons."""

    NOT_STARTED = "not_started"  # Nunca acessou
    IN_PROGRESS = "in_progress"  # Em andamento
    COMPLETED = "completed"  # Concluido


class ContentType(str, Enum):
    """Lesson content type."""

    VIDEO = "video"
    AUDIO = "audio"
    PODCAST = "podcast"
    PDF = "pdf"
    DOCUMENT = "document"
    TEXT = "text"
    SCORM = "scorm"
    EMBED = "embed"
    QUIZ = "quiz"


# Media whose completion does not imply having played 100% of it
TIME_BASED_CONTENT_TYPES = frozenset(
    {ContentType.VIDEO.value, ContentType.AUDIO.value, ContentType.PODCAST.value}
)

MIN_PERCENTAGE = 0
MAX_PERCENTAGE = 100


def is_time_based(content_type: ContentType | str) -> bool:
    """Check if content type is time-based media (video, audio, podcast)."""
    value = content_type.value if isinstance(content_type, ContentType) else content_type
    return str(value).lower() in TIME_BASED_CONTENT_TYPES


def _coerce_status(status: ProgressStatus | str | None) -> ProgressStatus | None:
    if status is None or isinstance(status, ProgressStatus):
        return status
    try:
        return ProgressStatus(status)
    except ValueError as e:
        raise ValidationError(f"Status de progresso invalido: {status}") from e


def _validate_percentage(value: float) -> None:
    if not math.isfinite(value) or value < MIN_PERCENTAGE or value > MAX_PERCENTAGE:
        raise ValidationError("Porcentagem de progresso deve estar entre 0 e 100")


def _validate_time_spent(value: float) -> None:
    if not math.isfinite(value) or value < 0:
        raise ValidationError("Tempo gasto deve ser um numero finito nao negativo")


def _validate_position(value: float | None) -> None:
    if value is not None and (not math.isfinite(value) or value < 0):
        raise ValidationError("Posicao deve ser um numero finito nao negativo")


# ==============================================================================
# Content Progress
# ==============================================================================


class ContentProgress:
    """Progress of a learner on a single content item.

    Attributes:
        content_id: Content item identifier
        status: not_started, in_progress or completed
        progress_percentage: 0-100
        time_spent: Accumulated seconds spent on the item
        started_at: Creation timestamp
        completed_at: Completion timestamp (None unless completed)
        last_position: Resume position in seconds (time-based media)
        updated_at: Last mutation timestamp
    """

    def __init__(
        self,
        content_id: str,
        status: ProgressStatus,
        progress_percentage: float,
        time_spent: float,
        started_at: datetime,
        completed_at: datetime | None,
        last_position: float | None,
        updated_at: datetime,
        clock: Clock = utc_now,
    ):
        self.content_id = content_id
        self.status = status
        self.progress_percentage = progress_percentage
        self.time_spent = time_spent
        self.started_at = started_at
        self.completed_at = completed_at
        self.last_position = last_position
        self.updated_at = updated_at
        self._clock = clock

    @classmethod
    def create(
        cls,
        content_id: str,
        status: ProgressStatus | str | None = None,
        progress_percentage: float = 0,
        time_spent: float = 0,
        started_at: datetime | None = None,
        completed_at: datetime | None = None,
        last_position: float | None = None,
        updated_at: datetime | None = None,
        *,
        clock: Clock = utc_now,
    ) -> "ContentProgress":
        """Create a validated ContentProgress.

        Raises:
            ValidationError: Empty content id, percentage outside 0-100,
                negative time spent or position, unknown status.
        """
        require_text(content_id, "ID do conteudo nao pode ser vazio")
        _validate_percentage(progress_percentage)
        _validate_time_spent(time_spent)
        _validate_position(last_position)
        resolved_status = _coerce_status(status) or ProgressStatus.NOT_STARTED

        now = clock()
        updated = updated_at or now
        # completed_at is set iff the item is completed
        if resolved_status is ProgressStatus.COMPLETED:
            completed = completed_at or updated
        else:
            completed = None

        return cls(
            content_id=content_id,
            status=resolved_status,
            progress_percentage=progress_percentage,
            time_spent=time_spent,
            started_at=started_at or now,
            completed_at=completed,
            last_position=last_position,
            updated_at=updated,
            clock=clock,
        )

    def update_progress(
        self,
        progress_percentage: float,
        time_spent: float | None = None,
        last_position: float | None = None,
    ) -> None:
        """Apply a progress report for this item.

        ``time_spent`` is a delta added to the running total. A percentage of
        100 completes the item, anything above 0 puts it in progress (clearing
        a previous completion), and 0 leaves the status as it was.

        Raises:
            ValidationError: Percentage outside 0-100, negative delta or
                position, or a non-finite number. Nothing is modified in
                that case.
        """
        _validate_percentage(progress_percentage)
        if time_spent is not None:
            _validate_time_spent(time_spent)
        _validate_position(last_position)

        now = self._clock()
        self.progress_percentage = progress_percentage
        if time_spent is not None:
            self.time_spent += time_spent
        if last_position is not None:
            self.last_position = last_position

        if progress_percentage >= MAX_PERCENTAGE:
            self.status = ProgressStatus.COMPLETED
            self.completed_at = now
        elif progress_percentage > MIN_PERCENTAGE:
            self.status = ProgressStatus.IN_PROGRESS
            self.completed_at = None

        self.updated_at = now

    def mark_as_completed(self) -> None:
        """Complete the item at 100%."""
        now = self._clock()
        self.status = ProgressStatus.COMPLETED
        self.progress_percentage = MAX_PERCENTAGE
        self.completed_at = now
        self.updated_at = now

    def complete_based_on_type(self, content_type: ContentType | str) -> None:
        """Complete the item, keeping the watched percentage for media.

        A learner may be credited with a video, audio or podcast without having
        played all of it, so those keep their current percentage. Every other
        type is set to 100%.
        """
        now = self._clock()
        self.status = ProgressStatus.COMPLETED
        self.completed_at = now
        self.updated_at = now
        if not is_time_based(content_type):
            self.progress_percentage = MAX_PERCENTAGE

    @property
    def is_completed(self) -> bool:
        """Check if item is completed."""
        return self.status == ProgressStatus.COMPLETED

    @property
    def has_started(self) -> bool:
        """Check if item was ever started."""
        return self.status != ProgressStatus.NOT_STARTED

    @property
    def time_spent_minutes(self) -> float:
        """Time spent in minutes (2 decimals)."""
        return round_half_up(self.time_spent / 60, 2)

    @property
    def time_spent_hours(self) -> float:
        """Time spent in hours (2 decimals)."""
        return round_half_up(self.time_spent / 3600, 2)

    @classmethod
    def from_dict(
        cls, data: Mapping[str, Any], *, clock: Clock = utc_now
    ) -> "ContentProgress":
        """Rebuild a ContentProgress from a stored snapshot."""
        return cls.create(
            content_id=data["content_id"],
            status=data.get("status"),
            progress_percentage=data.get("progress_percentage") or 0,
            time_spent=data.get("time_spent") or 0,
            started_at=parse_datetime(data.get("started_at")),
            completed_at=parse_datetime(data.get("completed_at")),
            last_position=data.get("last_position"),
            updated_at=parse_datetime(data.get("updated_at")),
            clock=clock,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "content_id": self.content_id,
            "status": self.status.value,
            "progress_percentage": self.progress_percentage,
            "time_spent": self.time_spent,
            "started_at": self.started_at,
            "completed_at": self.completed_at,
            "last_position": self.last_position,
            "updated_at": self.updated_at,
        }

    def __repr__(self) -> str:
        return (
            f"<ContentProgress content={self.content_id} "
            f"{self.status.value} {self.progress_percentage}%>"
        )


# ==============================================================================
# Lesson Progress
# ==============================================================================


class LessonProgress:
    """Progress of a learner on a lesson (aggregate root).

    Owns one ContentProgress per content item of the lesson, in content
    order. The lesson is completed exactly when every item is completed:
    every mutation re-evaluates that rule, promoting the lesson when the last
    item completes and demoting it when a completed lesson gains an
    incomplete item.

    Attributes:
        id: Progress record ID (issued by the progress store)
        user_id: Learner ID
        lesson_id: Lesson ID
        institution_id: Institution ID
        status: not_started, in_progress or completed
        started_at: Creation timestamp
        completed_at: Completion timestamp (None unless completed)
        last_accessed_at: Last interaction timestamp
        content_progresses: Owned items, in content order
        updated_at: Last mutation timestamp
    """

    def __init__(
        self,
        id: str,
        user_id: str,
        lesson_id: str,
        institution_id: str,
        status: ProgressStatus,
        started_at: datetime,
        completed_at: datetime | None,
        last_accessed_at: datetime,
        content_progresses: list[ContentProgress],
        updated_at: datetime,
        clock: Clock = utc_now,
    ):
        self._id = id
        self._user_id = user_id
        self._lesson_id = lesson_id
        self._institution_id = institution_id
        self._started_at = started_at
        self._content_progresses = content_progresses
        self.status = status
        self.completed_at = completed_at
        self.last_accessed_at = last_accessed_at
        self.updated_at = updated_at
        self._clock = clock

    @classmethod
    def create(
        cls,
        id: str,
        user_id: str,
        lesson_id: str,
        institution_id: str,
        content_ids: Iterable[str] | None = None,
        status: ProgressStatus | str | None = None,
        started_at: datetime | None = None,
        completed_at: datetime | None = None,
        last_accessed_at: datetime | None = None,
        content_progresses: Iterable[ContentProgress] | None = None,
        updated_at: datetime | None = None,
        *,
        clock: Clock = utc_now,
    ) -> "LessonProgress":
        """Create a validated LessonProgress.

        A fresh ContentProgress is built for each of ``content_ids`` unless
        ``content_progresses`` is given (rebuilding a stored record). Status
        defaults to in_progress: opening a lesson counts as starting it.

        Raises:
            ValidationError: Empty identifier, no content ids for a new
                record, duplicate content id.
        """
        require_text(id, "ID do progresso nao pode ser vazio")
        require_text(user_id, "ID do usuario nao pode ser vazio")
        require_text(lesson_id, "ID da aula nao pode ser vazio")
        require_text(institution_id, "ID da instituicao nao pode ser vazio")
        resolved_status = _coerce_status(status) or ProgressStatus.IN_PROGRESS

        if content_progresses is not None:
            # May be empty: items can be removed after creation
            items = list(content_progresses)
        else:
            items = [
                ContentProgress.create(content_id, clock=clock)
                for content_id in (content_ids or [])
            ]
            if not items:
                raise ValidationError("Aula deve ter pelo menos um conteudo")

        seen: set[str] = set()
        for item in items:
            if item.content_id in seen:
                raise ValidationError(f"Conteudo duplicado na aula: {item.content_id}")
            seen.add(item.content_id)

        now = clock()
        updated = updated_at or now
        if resolved_status is ProgressStatus.COMPLETED:
            completed = completed_at or updated
        else:
            completed = None

        return cls(
            id=id,
            user_id=user_id,
            lesson_id=lesson_id,
            institution_id=institution_id,
            status=resolved_status,
            started_at=started_at or now,
            completed_at=completed,
            last_accessed_at=last_accessed_at or now,
            content_progresses=items,
            updated_at=updated,
            clock=clock,
        )

    # ==========================================================================
    # Identity (read-only)
    # ==========================================================================

    @property
    def id(self) -> str:
        return self._id

    @property
    def user_id(self) -> str:
        return self._user_id

    @property
    def lesson_id(self) -> str:
        return self._lesson_id

    @property
    def institution_id(self) -> str:
        return self._institution_id

    @property
    def started_at(self) -> datetime:
        return self._started_at

    @property
    def content_progresses(self) -> tuple[ContentProgress, ...]:
        """Owned items in content order (mutate through the lesson only)."""
        return tuple(self._content_progresses)

    # ==========================================================================
    # Content Mutations
    # ==========================================================================

    def _require_content(self, content_id: str) -> ContentProgress:
        item = self.get_content_progress(content_id)
        if item is None:
            raise ContentNotFoundError(content_id, self._lesson_id)
        return item

    def update_content_progress(
        self,
        content_id: str,
        progress_percentage: float,
        time_spent: float | None = None,
        last_position: float | None = None,
    ) -> None:
        """Update one item and re-evaluate lesson completion.

        Raises:
            ContentNotFoundError: Content is not part of this lesson.
            ValidationError: Invalid percentage, delta or position.
        """
        item = self._require_content(content_id)
        item.update_progress(progress_percentage, time_spent, last_position)
        self.touch()
        self.check_and_update_lesson_completion()

    def mark_content_as_completed(self, content_id: str) -> None:
        """Complete one item at 100% and re-evaluate lesson completion."""
        item = self._require_content(content_id)
        item.mark_as_completed()
        self.touch()
        self.check_and_update_lesson_completion()

    def complete_content_based_on_type(
        self, content_id: str, content_type: ContentType | str
    ) -> None:
        """Complete one item using its content type rule, then re-evaluate."""
        item = self._require_content(content_id)
        item.complete_based_on_type(content_type)
        self.touch()
        self.check_and_update_lesson_completion()

    def add_content_progress(self, content_id: str) -> None:
        """Track a content item added to the lesson after it was started.

        Raises:
            ConflictError: Content is already tracked.
        """
        if self.get_content_progress(content_id) is not None:
            raise ConflictError(f"Conteudo {content_id} ja existe neste progresso")
        item = ContentProgress.create(content_id, clock=self._clock)
        self._content_progresses.append(item)
        self.updated_at = self._clock()
        self.check_and_update_lesson_completion()

    def remove_content_progress(self, content_id: str) -> None:
        """Stop tracking a content item removed from the lesson.

        Removing the only open item completes the lesson. Removing the last
        item leaves an empty lesson, which counts as completed (every one of
        its zero items is) with an overall progress of 0.

        Raises:
            ContentNotFoundError: Content is not tracked.
        """
        item = self._require_content(content_id)
        self._content_progresses.remove(item)
        self.updated_at = self._clock()
        self.check_and_update_lesson_completion()

    # ==========================================================================
    # Lesson Status
    # ==========================================================================

    def check_and_update_lesson_completion(self) -> None:
        """Promote or demote the lesson according to its items.

        All items completed and lesson not completed: completed now.
        Lesson completed but some item is not: back to in_progress.
        Anything else is left alone.
        """
        all_completed = all(item.is_completed for item in self._content_progresses)

        if all_completed and self.status != ProgressStatus.COMPLETED:
            now = self._clock()
            self.status = ProgressStatus.COMPLETED
            self.completed_at = now
            self.updated_at = now
        elif not all_completed and self.status == ProgressStatus.COMPLETED:
            self.status = ProgressStatus.IN_PROGRESS
            self.completed_at = None
            self.updated_at = self._clock()

    def force_complete(self) -> None:
        """Complete every item at 100% and the lesson itself."""
        for item in self._content_progresses:
            item.mark_as_completed()
        self._mark_lesson_completed()

    def complete_with_content_types(
        self, content_types: Mapping[str, ContentType | str]
    ) -> None:
        """Complete every item, keeping watched percentages for media.

        Items listed in ``content_types`` use their type rule; unlisted items
        are completed at 100%.
        """
        for item in self._content_progresses:
            content_type = content_types.get(item.content_id)
            if content_type is None:
                item.mark_as_completed()
            else:
                item.complete_based_on_type(content_type)
        self._mark_lesson_completed()

    def _mark_lesson_completed(self) -> None:
        now = self._clock()
        self.status = ProgressStatus.COMPLETED
        self.completed_at = now
        self.last_accessed_at = now
        self.updated_at = now

    def touch(self) -> None:
        """Record an access without changing progress."""
        now = self._clock()
        self.last_accessed_at = now
        self.updated_at = now

    # ==========================================================================
    # Queries
    # ==========================================================================

    def calculate_overall_progress(self) -> float:
        """Mean percentage of all items (2 decimals)."""
        if not self._content_progresses:
            return 0
        total = sum(item.progress_percentage for item in self._content_progresses)
        return round_half_up(total / len(self._content_progresses), 2)

    def get_content_progress(self, content_id: str) -> ContentProgress | None:
        """Get the item for ``content_id``, if tracked."""
        for item in self._content_progresses:
            if item.content_id == content_id:
                return item
        return None

    @property
    def content_ids(self) -> list[str]:
        return [item.content_id for item in self._content_progresses]

    @property
    def completed_content_ids(self) -> list[str]:
        return [item.content_id for item in self._content_progresses if item.is_completed]

    @property
    def in_progress_content_ids(self) -> list[str]:
        return [
            item.content_id
            for item in self._content_progresses
            if item.status == ProgressStatus.IN_PROGRESS
        ]

    @property
    def not_started_content_ids(self) -> list[str]:
        return [
            item.content_id
            for item in self._content_progresses
            if item.status == ProgressStatus.NOT_STARTED
        ]

    @property
    def completed_content_count(self) -> int:
        return len(self.completed_content_ids)

    @property
    def total_content_count(self) -> int:
        return len(self._content_progresses)

    @property
    def total_time_spent(self) -> float:
        """Seconds spent across all items."""
        return sum(item.time_spent for item in self._content_progresses)

    @property
    def total_time_spent_minutes(self) -> float:
        return round_half_up(self.total_time_spent / 60, 2)

    @property
    def total_time_spent_hours(self) -> float:
        return round_half_up(self.total_time_spent / 3600, 2)

    @property
    def is_completed(self) -> bool:
        """Check if lesson is completed."""
        return self.status == ProgressStatus.COMPLETED

    @property
    def has_started(self) -> bool:
        """Check if lesson was started."""
        return self.status != ProgressStatus.NOT_STARTED

    # ==========================================================================
    # Snapshots
    # ==========================================================================

    @classmethod
    def from_dict(
        cls, data: Mapping[str, Any], *, clock: Clock = utc_now
    ) -> "LessonProgress":
        """Rebuild a LessonProgress from a stored snapshot."""
        return cls.create(
            id=data["id"],
            user_id=data["user_id"],
            lesson_id=data["lesson_id"],
            institution_id=data["institution_id"],
            status=data.get("status"),
            started_at=parse_datetime(data.get("started_at")),
            completed_at=parse_datetime(data.get("completed_at")),
            last_accessed_at=parse_datetime(data.get("last_accessed_at")),
            content_progresses=[
                ContentProgress.from_dict(item, clock=clock)
                for item in data.get("content_progresses") or []
            ],
            updated_at=parse_datetime(data.get("updated_at")),
            clock=clock,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self._id,
            "user_id": self._user_id,
            "lesson_id": self._lesson_id,
            "institution_id": self._institution_id,
            "status": self.status.value,
            "started_at": self._started_at,
            "completed_at": self.completed_at,
            "last_accessed_at": self.last_accessed_at,
            "updated_at": self.updated_at,
            "content_progresses": [item.to_dict() for item in self._content_progresses],
        }

    def __repr__(self) -> str:
        return (
            f"<LessonProgress user={self._user_id} lesson={self._lesson_id} "
            f"{self.status.value} {self.completed_content_count}/"
            f"{self.total_content_count}>"
        )

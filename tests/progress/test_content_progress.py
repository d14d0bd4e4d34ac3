"""Tests for ContentProgress.

Tests cover:
- Creation defaults and validation
- Status rule of update_progress (complete, in progress, untouched at 0)
- Manual and type-based completion
- Time conversions and snapshots
"""

import pytest

from edutrack.core.errors import ValidationError
from edutrack.progress.models import (
    ContentProgress,
    ContentType,
    ProgressStatus,
    is_time_based,
)


NAN = float("nan")
INF = float("inf")


# ==============================================================================
# Creation
# ==============================================================================


class TestContentProgressCreate:
    """Tests for ContentProgress.create."""

    def test_defaults(self, clock):
        """Test a fresh item is not started at 0%."""
        item = ContentProgress.create("c1", clock=clock)

        assert item.content_id == "c1"
        assert item.status == ProgressStatus.NOT_STARTED
        assert item.progress_percentage == 0
        assert item.time_spent == 0
        assert item.started_at == clock.now
        assert item.updated_at == clock.now
        assert item.completed_at is None
        assert item.last_position is None
        assert item.has_started is False

    @pytest.mark.parametrize("content_id", ["", "   "])
    def test_empty_content_id_rejected(self, content_id):
        with pytest.raises(ValidationError):
            ContentProgress.create(content_id)

    @pytest.mark.parametrize("percentage", [-0.1, 100.5, 150])
    def test_percentage_out_of_range_rejected(self, percentage):
        with pytest.raises(ValidationError):
            ContentProgress.create("c1", progress_percentage=percentage)

    def test_negative_time_spent_rejected(self):
        with pytest.raises(ValidationError):
            ContentProgress.create("c1", time_spent=-1)

    def test_negative_position_rejected(self):
        with pytest.raises(ValidationError):
            ContentProgress.create("c1", last_position=-5)

    @pytest.mark.parametrize(
        "field",
        ["progress_percentage", "time_spent", "last_position"],
    )
    @pytest.mark.parametrize("value", [NAN, INF, -INF])
    def test_non_finite_numbers_rejected(self, field, value):
        with pytest.raises(ValidationError):
            ContentProgress.create("c1", **{field: value})

    def test_unknown_status_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            ContentProgress.create("c1", status="paused")

        assert exc_info.value.code == "validation_error"

    def test_status_accepts_string(self):
        item = ContentProgress.create("c1", status="in_progress", progress_percentage=30)

        assert item.status == ProgressStatus.IN_PROGRESS

    def test_completed_without_timestamp_gets_updated_at(self, clock):
        """Test reconstruction keeps completed_at set iff completed."""
        item = ContentProgress.create(
            "c1", status=ProgressStatus.COMPLETED, progress_percentage=100, clock=clock
        )

        assert item.completed_at == clock.now

    def test_stale_completed_at_dropped_for_open_item(self, clock):
        item = ContentProgress.create(
            "c1",
            status=ProgressStatus.IN_PROGRESS,
            progress_percentage=40,
            completed_at=clock.now,
            clock=clock,
        )

        assert item.completed_at is None


# ==============================================================================
# Progress Updates
# ==============================================================================


class TestUpdateProgress:
    """Tests for ContentProgress.update_progress."""

    def test_partial_progress_starts_item(self, clock):
        item = ContentProgress.create("c1", clock=clock)
        clock.advance(30)

        item.update_progress(50, time_spent=30, last_position=120)

        assert item.status == ProgressStatus.IN_PROGRESS
        assert item.progress_percentage == 50
        assert item.time_spent == 30
        assert item.last_position == 120
        assert item.completed_at is None
        assert item.updated_at == clock.now

    def test_time_spent_accumulates(self, clock):
        item = ContentProgress.create("c1", clock=clock)

        item.update_progress(10, time_spent=30)
        item.update_progress(20, time_spent=45)

        assert item.time_spent == 75

    def test_full_progress_completes_item(self, clock):
        item = ContentProgress.create("c1", clock=clock)
        clock.advance(10)

        item.update_progress(100)

        assert item.status == ProgressStatus.COMPLETED
        assert item.is_completed is True
        assert item.completed_at == clock.now

    def test_zero_keeps_status(self, clock):
        """Test 0% leaves status as it was (no regression to not_started)."""
        item = ContentProgress.create("c1", clock=clock)
        item.update_progress(40)

        item.update_progress(0)

        assert item.status == ProgressStatus.IN_PROGRESS
        assert item.progress_percentage == 0

    def test_zero_on_fresh_item_stays_not_started(self, clock):
        item = ContentProgress.create("c1", clock=clock)

        item.update_progress(0, time_spent=5)

        assert item.status == ProgressStatus.NOT_STARTED
        assert item.time_spent == 5

    def test_regression_clears_completed_at(self, clock):
        """Test a completed item reported below 100% is back in progress."""
        item = ContentProgress.create("c1", clock=clock)
        item.update_progress(100)

        item.update_progress(80)

        assert item.status == ProgressStatus.IN_PROGRESS
        assert item.completed_at is None

    def test_position_kept_when_not_given(self, clock):
        item = ContentProgress.create("c1", clock=clock)
        item.update_progress(10, last_position=42)

        item.update_progress(20)

        assert item.last_position == 42

    @pytest.mark.parametrize(
        ("percentage", "time_spent", "position"),
        [(101, None, None), (-1, None, None), (50, -10, None), (50, None, -1)],
    )
    def test_invalid_report_leaves_item_unchanged(
        self, clock, percentage, time_spent, position
    ):
        item = ContentProgress.create("c1", clock=clock)
        item.update_progress(30, time_spent=10, last_position=5)
        before = item.to_dict()
        clock.advance(60)

        with pytest.raises(ValidationError):
            item.update_progress(percentage, time_spent, position)

        assert item.to_dict() == before

    @pytest.mark.parametrize(
        ("percentage", "time_spent", "position"),
        [
            (NAN, None, None),
            (INF, None, None),
            (50, NAN, None),
            (50, INF, None),
            (50, None, NAN),
            (50, None, INF),
        ],
    )
    def test_non_finite_report_leaves_item_unchanged(
        self, clock, percentage, time_spent, position
    ):
        item = ContentProgress.create("c1", clock=clock)
        item.update_progress(30, time_spent=10, last_position=5)
        before = item.to_dict()

        with pytest.raises(ValidationError):
            item.update_progress(percentage, time_spent, position)

        assert item.to_dict() == before
        assert item.status == ProgressStatus.IN_PROGRESS


# ==============================================================================
# Completion
# ==============================================================================


class TestCompletion:
    """Tests for manual and type-based completion."""

    def test_mark_as_completed(self, clock):
        item = ContentProgress.create("c1", clock=clock)
        item.update_progress(30)
        clock.advance(5)

        item.mark_as_completed()

        assert item.status == ProgressStatus.COMPLETED
        assert item.progress_percentage == 100
        assert item.completed_at == clock.now
        assert item.updated_at == clock.now

    @pytest.mark.parametrize(
        "content_type", [ContentType.VIDEO, ContentType.AUDIO, "podcast", "VIDEO"]
    )
    def test_time_based_keeps_percentage(self, clock, content_type):
        item = ContentProgress.create("c1", clock=clock)
        item.update_progress(85)

        item.complete_based_on_type(content_type)

        assert item.is_completed is True
        assert item.progress_percentage == 85
        assert item.completed_at == clock.now

    @pytest.mark.parametrize(
        "content_type", [ContentType.PDF, ContentType.TEXT, "scorm", "hologram"]
    )
    def test_other_types_set_full_percentage(self, clock, content_type):
        item = ContentProgress.create("c1", clock=clock)
        item.update_progress(10)

        item.complete_based_on_type(content_type)

        assert item.is_completed is True
        assert item.progress_percentage == 100

    def test_is_time_based(self):
        assert is_time_based(ContentType.VIDEO) is True
        assert is_time_based("audio") is True
        assert is_time_based(ContentType.DOCUMENT) is False
        assert is_time_based("unknown") is False


# ==============================================================================
# Queries and Snapshots
# ==============================================================================


class TestContentProgressQueries:
    """Tests for time conversions and dict snapshots."""

    def test_time_conversions_round_half_up(self):
        item = ContentProgress.create("c1", time_spent=5430)

        assert item.time_spent_minutes == 90.5
        assert item.time_spent_hours == 1.51

    def test_dict_round_trip(self, clock):
        item = ContentProgress.create("c1", clock=clock)
        item.update_progress(60, time_spent=12, last_position=33)

        rebuilt = ContentProgress.from_dict(item.to_dict(), clock=clock)

        assert rebuilt.to_dict() == item.to_dict()

    def test_from_dict_accepts_iso_strings(self):
        data = {
            "content_id": "c1",
            "status": "completed",
            "progress_percentage": 100,
            "time_spent": 60,
            "started_at": "2024-03-01T10:00:00+00:00",
            "completed_at": "2024-03-01T10:05:00",
            "updated_at": "2024-03-01T10:05:00+00:00",
        }

        item = ContentProgress.from_dict(data)

        assert item.is_completed is True
        assert item.completed_at.tzinfo is not None
        assert item.completed_at.minute == 5

    def test_repr(self):
        item = ContentProgress.create("c1")

        assert "c1" in repr(item)
        assert "not_started" in repr(item)

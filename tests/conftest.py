"""Shared fixtures: pinned clock, in-memory collaborators and services."""

from datetime import UTC, datetime, timedelta

import pytest

from edutrack.assessments.memory import (
    InMemoryQuestionnaireProvider,
    InMemorySubmissionStore,
)
from edutrack.assessments.models import Question, Questionnaire
from edutrack.assessments.service import AssessmentService
from edutrack.core.context import clear_context
from edutrack.progress.memory import InMemoryCourseStructure, InMemoryProgressStore
from edutrack.progress.service import ProgressService


class FrozenClock:
    """Clock returning a fixed instant until advanced."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2024, 3, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float = 60) -> datetime:
        self.now += timedelta(seconds=seconds)
        return self.now


@pytest.fixture
def clock() -> FrozenClock:
    """Deterministic clock pinned at 2024-03-01 12:00 UTC."""
    return FrozenClock()


@pytest.fixture(autouse=True)
def _reset_operation_context():
    yield
    clear_context()


# ==============================================================================
# Progress
# ==============================================================================


@pytest.fixture
def course_structure() -> InMemoryCourseStructure:
    """Course c1 with three lessons; l1 has three contents, l2 and l3 one."""
    return InMemoryCourseStructure(
        courses={"c1": ["l1", "l2", "l3"], "empty-course": []},
        lessons={
            "l1": ["c-video", "c-pdf", "c-text"],
            "l2": ["c-quiz"],
            "l3": ["c-audio"],
            "l-empty": [],
        },
    )


@pytest.fixture
def progress_store(clock) -> InMemoryProgressStore:
    return InMemoryProgressStore(clock=clock)


@pytest.fixture
def progress_service(progress_store, course_structure, clock) -> ProgressService:
    return ProgressService(
        store=progress_store,
        structure=course_structure,
        clock=clock,
    )


# ==============================================================================
# Assessments
# ==============================================================================


@pytest.fixture
def questionnaire() -> Questionnaire:
    """Four questions, correct option is always index 1; 3 attempts, 70%."""
    return Questionnaire.create(
        id="qz1",
        lesson_id="l2",
        title="Farmacologia basica",
        questions=[
            Question.create(
                id=f"q{n}",
                question_text=f"Pergunta {n}",
                options=["A", "B", "C"],
                correct_answer_index=1,
            )
            for n in range(1, 5)
        ],
    )


@pytest.fixture
def submission_store(clock) -> InMemorySubmissionStore:
    return InMemorySubmissionStore(clock=clock)


@pytest.fixture
def questionnaire_provider(questionnaire) -> InMemoryQuestionnaireProvider:
    return InMemoryQuestionnaireProvider([questionnaire])


@pytest.fixture
def assessment_service(submission_store, questionnaire_provider, clock):
    return AssessmentService(
        submissions=submission_store,
        questionnaires=questionnaire_provider,
        clock=clock,
    )

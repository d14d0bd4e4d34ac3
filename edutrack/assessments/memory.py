"""In-memory collaborators for questionnaire submissions.

Submissions are stored as ``to_dict`` snapshots, like the progress store.
"""

from collections.abc import Iterable
from typing import Any
from uuid import uuid4

from edutrack.core.clock import Clock, utc_now

from .models import Questionnaire, QuestionnaireSubmission


class InMemorySubmissionStore:
    """SubmissionStore keeping snapshots in insertion order."""

    def __init__(self, id_prefix: str = "qs_", clock: Clock = utc_now):
        self._records: dict[str, dict[str, Any]] = {}
        self._id_prefix = id_prefix
        self._clock = clock

    async def generate_id(self) -> str:
        while True:
            candidate = f"{self._id_prefix}{uuid4().hex[:10]}"
            if candidate not in self._records:
                return candidate

    async def count_attempts(self, questionnaire_id: str, user_id: str) -> int:
        return sum(
            1
            for data in self._records.values()
            if data["questionnaire_id"] == questionnaire_id
            and data["user_id"] == user_id
        )

    async def save(
        self, submission: QuestionnaireSubmission
    ) -> QuestionnaireSubmission:
        self._records[submission.id] = submission.to_dict()
        return QuestionnaireSubmission.from_dict(
            self._records[submission.id], clock=self._clock
        )

    async def list_for_user(
        self, questionnaire_id: str, user_id: str
    ) -> list[QuestionnaireSubmission]:
        """Submissions of a learner, oldest attempt first."""
        found = [
            QuestionnaireSubmission.from_dict(data, clock=self._clock)
            for data in self._records.values()
            if data["questionnaire_id"] == questionnaire_id
            and data["user_id"] == user_id
        ]
        return sorted(found, key=lambda s: s.attempt)

    def __len__(self) -> int:
        return len(self._records)


class InMemoryQuestionnaireProvider:
    """QuestionnaireProvider over a fixed set of questionnaires."""

    def __init__(self, questionnaires: Iterable[Questionnaire] = ()):
        self._questionnaires = {q.id: q for q in questionnaires}

    def add(self, questionnaire: Questionnaire) -> None:
        self._questionnaires[questionnaire.id] = questionnaire

    async def get_questionnaire(self, questionnaire_id: str) -> Questionnaire | None:
        return self._questionnaires.get(questionnaire_id)

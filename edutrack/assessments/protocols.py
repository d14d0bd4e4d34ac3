"""Collaborator contracts for questionnaire submissions."""

from typing import Protocol

from .models import Questionnaire, QuestionnaireSubmission


class SubmissionStore(Protocol):
    """Storage for QuestionnaireSubmission records."""

    async def generate_id(self) -> str:
        """Issue a new, unused submission ID."""
        ...

    async def count_attempts(self, questionnaire_id: str, user_id: str) -> int:
        """Number of submissions a learner made for a questionnaire."""
        ...

    async def save(
        self, submission: QuestionnaireSubmission
    ) -> QuestionnaireSubmission:
        """Persist a submission; durable before returning."""
        ...


class QuestionnaireProvider(Protocol):
    """Read-only access to questionnaire definitions."""

    async def get_questionnaire(self, questionnaire_id: str) -> Questionnaire | None:
        ...

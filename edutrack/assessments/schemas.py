"""Input and result models for questionnaire submission."""

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field

from .models import QuestionnaireSubmission


class AnswerInput(BaseModel):
    """One answer sent by the learner."""

    model_config = ConfigDict(frozen=True)

    question_id: str = Field(min_length=1)
    selected_option_index: int = Field(ge=0, description="Zero-based option index")


@dataclass(frozen=True)
class SubmissionResult:
    """Scored submission plus what the learner may do next."""

    submission: QuestionnaireSubmission
    score: int
    passed: bool
    attempts_remaining: int

    @property
    def can_retry(self) -> bool:
        return not self.passed and self.attempts_remaining > 0

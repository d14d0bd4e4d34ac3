"""Questionnaire assessment module.

Provides:
- Objective questions and questionnaires (attempt limit, passing score)
- Scored submissions
- Submission service enforcing the attempt limit
"""

from .errors import (
    MaxAttemptsExceededError,
    QuestionNotFoundError,
    QuestionnaireNotFoundError,
)
from .models import (
    Question,
    Questionnaire,
    QuestionnaireSubmission,
    QuestionSubmission,
)
from .schemas import AnswerInput, SubmissionResult
from .service import AssessmentService


__all__ = [
    "AnswerInput",
    "AssessmentService",
    "MaxAttemptsExceededError",
    "Question",
    "QuestionNotFoundError",
    "Questionnaire",
    "QuestionnaireNotFoundError",
    "QuestionnaireSubmission",
    "QuestionSubmission",
    "SubmissionResult",
]

"""Questionnaire submission service.

Scores a learner's answers and enforces the attempt limit of the
questionnaire. The limit is a service policy: submissions themselves only
record which attempt they were.
"""

from collections.abc import Sequence
from datetime import datetime
from uuid import uuid4

from edutrack.core.clock import Clock, utc_now
from edutrack.core.context import OperationContext
from edutrack.core.errors import ValidationError, require_text
from edutrack.core.locks import (
    DEFAULT_LOCK_PREFIX,
    InMemoryKeyedLock,
    KeyedLock,
    attempt_lock_key,
)
from edutrack.core.logging import get_logger

from .errors import (
    MaxAttemptsExceededError,
    QuestionNotFoundError,
    QuestionnaireNotFoundError,
)
from .models import Questionnaire, QuestionnaireSubmission, QuestionSubmission
from .protocols import QuestionnaireProvider, SubmissionStore
from .schemas import AnswerInput, SubmissionResult


logger = get_logger(__name__)


class AssessmentService:
    """Service for questionnaire submissions."""

    def __init__(
        self,
        submissions: SubmissionStore,
        questionnaires: QuestionnaireProvider,
        lock: KeyedLock | None = None,
        clock: Clock = utc_now,
        lock_key_prefix: str = DEFAULT_LOCK_PREFIX,
    ):
        self.submissions = submissions
        self.questionnaires = questionnaires
        self.lock = lock or InMemoryKeyedLock()
        self._clock = clock
        self._lock_key_prefix = lock_key_prefix

    async def submit_questionnaire(
        self,
        questionnaire_id: str,
        user_id: str,
        institution_id: str,
        answers: Sequence[AnswerInput],
        course_id: str | None = None,
        started_at: datetime | None = None,
    ) -> SubmissionResult:
        """Score and record one attempt.

        Args:
            questionnaire_id: Questionnaire ID
            user_id: Learner ID
            institution_id: Institution ID
            answers: One answer per answered question
            course_id: Course the questionnaire was taken in
            started_at: When the learner opened the attempt (defaults to now)

        Returns:
            SubmissionResult with score, pass flag and remaining attempts

        Raises:
            ValidationError: Missing identifiers, no answers or a question
                answered twice
            QuestionnaireNotFoundError: Unknown questionnaire
            MaxAttemptsExceededError: Every allowed attempt was already used
            QuestionNotFoundError: Answer to a question outside the questionnaire
        """
        require_text(questionnaire_id, "ID do questionario e obrigatorio")
        require_text(user_id, "ID do usuario e obrigatorio")
        require_text(institution_id, "ID da instituicao e obrigatorio")

        with OperationContext(user_id=user_id, institution_id=institution_id):
            questionnaire = await self.questionnaires.get_questionnaire(
                questionnaire_id
            )
            if questionnaire is None:
                raise QuestionnaireNotFoundError(questionnaire_id)

            key = attempt_lock_key(questionnaire_id, user_id, self._lock_key_prefix)
            async with self.lock.hold(key):
                attempts_used = await self.submissions.count_attempts(
                    questionnaire_id, user_id
                )
                if not questionnaire.has_attempts_remaining(attempts_used):
                    logger.warning(
                        "max_attempts_exceeded",
                        questionnaire_id=questionnaire_id,
                        attempts=attempts_used,
                        max_attempts=questionnaire.max_attempts,
                    )
                    raise MaxAttemptsExceededError(questionnaire.max_attempts)

                answered = self._evaluate_answers(questionnaire, answers)

                submission = QuestionnaireSubmission.create(
                    id=await self.submissions.generate_id(),
                    questionnaire_id=questionnaire_id,
                    user_id=user_id,
                    institution_id=institution_id,
                    course_id=course_id,
                    started_at=started_at or self._clock(),
                    attempt=attempts_used + 1,
                    questions=answered,
                    passing_score=questionnaire.passing_score,
                    clock=self._clock,
                )
                saved = await self.submissions.save(submission)

                attempts_remaining = max(questionnaire.max_attempts - saved.attempt, 0)
                logger.info(
                    "questionnaire_submitted",
                    questionnaire_id=questionnaire_id,
                    submission_id=saved.id,
                    attempt=saved.attempt,
                    score=saved.score,
                    passed=saved.passed,
                )
                return SubmissionResult(
                    submission=saved,
                    score=saved.score,
                    passed=saved.passed,
                    attempts_remaining=attempts_remaining,
                )

    @staticmethod
    def _evaluate_answers(
        questionnaire: Questionnaire, answers: Sequence[AnswerInput]
    ) -> list[QuestionSubmission]:
        if not answers:
            raise ValidationError("Envie pelo menos uma resposta")

        seen: set[str] = set()
        answered = []
        for answer in answers:
            question = questionnaire.find_question(answer.question_id)
            if question is None:
                raise QuestionNotFoundError(answer.question_id, questionnaire.id)
            if answer.question_id in seen:
                raise ValidationError(
                    f"Questao {answer.question_id} respondida mais de uma vez"
                )
            seen.add(answer.question_id)

            answered.append(
                QuestionSubmission.create(
                    id=str(uuid4()),
                    question_id=question.id,
                    selected_option_index=answer.selected_option_index,
                    correct_answer_index=question.correct_answer_index,
                )
            )
        return answered

"""Domain models for questionnaires and their scored submissions.

- Question / Questionnaire: the objective questions and the policy numbers
  (maximum attempts, passing score) a submission is judged against
- QuestionSubmission: one answered question, correctness fixed at creation
- QuestionnaireSubmission: a scored attempt (score, pass/fail, attempt N)

Submissions are historical records: they are frozen and never re-scored.
"""

import math
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from edutrack.core.clock import Clock, ensure_utc_aware, parse_datetime, utc_now
from edutrack.core.errors import ValidationError, require_text
from edutrack.core.rounding import round_to_int


DEFAULT_PASSING_SCORE = 70
DEFAULT_MAX_ATTEMPTS = 3
MIN_OPTIONS = 2
PERFECT_SCORE = 100


def _validate_score(value: int, message: str) -> None:
    if not math.isfinite(value) or value < 0 or value > PERFECT_SCORE:
        raise ValidationError(message)


# ==============================================================================
# Questionnaire Definition
# ==============================================================================


@dataclass(frozen=True)
class Question:
    """Objective question with a single correct option."""

    id: str
    question_text: str
    options: tuple[str, ...]
    correct_answer_index: int

    @classmethod
    def create(
        cls,
        id: str,
        question_text: str,
        options: Sequence[str],
        correct_answer_index: int,
    ) -> "Question":
        """Create a validated question."""
        require_text(id, "ID da questao nao pode ser vazio")
        require_text(question_text, "Texto da questao nao pode ser vazio")
        if not options or len(options) < MIN_OPTIONS:
            raise ValidationError("Questao deve ter pelo menos 2 opcoes")
        if correct_answer_index < 0 or correct_answer_index >= len(options):
            raise ValidationError("Indice da resposta correta invalido")
        return cls(
            id=id,
            question_text=question_text,
            options=tuple(options),
            correct_answer_index=correct_answer_index,
        )


@dataclass(frozen=True)
class Questionnaire:
    """Questionnaire attached to a lesson.

    Attributes:
        id: Questionnaire ID
        lesson_id: Lesson the questionnaire belongs to
        title: Display title
        questions: Questions in display order
        max_attempts: Attempts a learner may submit (>= 1)
        passing_score: Minimum score to pass (0-100)
    """

    id: str
    lesson_id: str
    title: str
    questions: tuple[Question, ...] = ()
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    passing_score: int = DEFAULT_PASSING_SCORE

    @classmethod
    def create(
        cls,
        id: str,
        lesson_id: str,
        title: str,
        questions: Iterable[Question] | None = None,
        max_attempts: int | None = None,
        passing_score: int | None = None,
    ) -> "Questionnaire":
        """Create a validated questionnaire (3 attempts, 70% by default)."""
        require_text(title, "Titulo do questionario nao pode ser vazio")
        attempts = DEFAULT_MAX_ATTEMPTS if max_attempts is None else max_attempts
        if attempts < 1:
            raise ValidationError("Numero maximo de tentativas deve ser pelo menos 1")
        threshold = DEFAULT_PASSING_SCORE if passing_score is None else passing_score
        _validate_score(threshold, "Nota minima deve estar entre 0 e 100")
        return cls(
            id=id,
            lesson_id=lesson_id,
            title=title,
            questions=tuple(questions or ()),
            max_attempts=attempts,
            passing_score=threshold,
        )

    def find_question(self, question_id: str) -> Question | None:
        """Get a question by ID."""
        return next((q for q in self.questions if q.id == question_id), None)

    def has_attempts_remaining(self, attempts_used: int) -> bool:
        """Check if a learner who already submitted ``attempts_used`` may retry."""
        return attempts_used < self.max_attempts


# ==============================================================================
# Submissions
# ==============================================================================


@dataclass(frozen=True)
class QuestionSubmission:
    """One answered question.

    ``is_correct`` is evaluated once, when the answer is recorded, and kept as
    is even if the question is edited later.
    """

    id: str
    question_id: str
    selected_option_index: int
    is_correct: bool

    @classmethod
    def create(
        cls,
        id: str,
        question_id: str,
        selected_option_index: int,
        correct_answer_index: int | None = None,
        is_correct: bool | None = None,
    ) -> "QuestionSubmission":
        """Create an answered question.

        Correctness is taken from ``is_correct`` when given, otherwise derived
        by comparing the selected option with ``correct_answer_index``.

        Raises:
            ValidationError: Empty question id, negative option index, or no
                way to determine correctness.
        """
        require_text(question_id, "ID da questao nao pode ser vazio")
        if selected_option_index < 0:
            raise ValidationError("Indice da opcao selecionada nao pode ser negativo")

        if is_correct is None:
            if correct_answer_index is None:
                raise ValidationError(
                    "Informe a resposta correta ou se a resposta esta correta"
                )
            is_correct = cls.evaluate(selected_option_index, correct_answer_index)

        return cls(
            id=id,
            question_id=question_id,
            selected_option_index=selected_option_index,
            is_correct=is_correct,
        )

    @staticmethod
    def evaluate(selected_option_index: int, correct_answer_index: int) -> bool:
        """Check if the selected option is the correct one."""
        return selected_option_index == correct_answer_index

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "QuestionSubmission":
        """Rebuild from a stored snapshot (correctness is not re-evaluated)."""
        return cls.create(
            id=data["id"],
            question_id=data["question_id"],
            selected_option_index=data["selected_option_index"],
            is_correct=bool(data["is_correct"]),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "question_id": self.question_id,
            "selected_option_index": self.selected_option_index,
            "is_correct": self.is_correct,
        }


@dataclass(frozen=True)
class QuestionnaireSubmission:
    """A learner's scored attempt at a questionnaire.

    Attributes:
        id: Submission ID (issued by the submission store)
        questionnaire_id: Questionnaire ID
        user_id: Learner ID
        institution_id: Institution ID
        course_id: Course the questionnaire was taken in (optional)
        started_at: When the attempt started
        completed_at: When the attempt was submitted
        score: 0-100, share of correct answers
        passed: score >= passing score
        attempt: Ordinal of this attempt (1 = first try)
        questions: Answered questions
    """

    id: str
    questionnaire_id: str
    user_id: str
    institution_id: str
    course_id: str | None
    started_at: datetime
    completed_at: datetime
    score: int
    passed: bool
    attempt: int
    questions: tuple[QuestionSubmission, ...] = field(default_factory=tuple)

    @classmethod
    def create(
        cls,
        id: str,
        questionnaire_id: str,
        user_id: str,
        institution_id: str,
        started_at: datetime,
        attempt: int,
        questions: Iterable[QuestionSubmission],
        course_id: str | None = None,
        completed_at: datetime | None = None,
        score: int | None = None,
        passed: bool | None = None,
        passing_score: int | None = None,
        *,
        clock: Clock = utc_now,
    ) -> "QuestionnaireSubmission":
        """Create a scored submission.

        ``score`` and ``passed`` are computed unless given (stored records are
        rebuilt without re-scoring). The passing score defaults to 70.

        Raises:
            ValidationError: Empty identifiers, attempt < 1, no questions, or
                a given score outside 0-100.
        """
        require_text(questionnaire_id, "ID do questionario nao pode ser vazio")
        require_text(user_id, "ID do usuario nao pode ser vazio")
        require_text(institution_id, "ID da instituicao nao pode ser vazio")
        if attempt < 1:
            raise ValidationError("Tentativa deve ser um numero positivo")

        answered = tuple(questions)
        if not answered:
            raise ValidationError("Submissao deve ter pelo menos uma questao")

        if score is None:
            score = cls.calculate_score(answered)
        else:
            _validate_score(score, "Nota deve estar entre 0 e 100")

        if passed is None:
            threshold = DEFAULT_PASSING_SCORE if passing_score is None else passing_score
            passed = cls.check_pass(score, threshold)

        return cls(
            id=id,
            questionnaire_id=questionnaire_id,
            user_id=user_id,
            institution_id=institution_id,
            course_id=course_id,
            started_at=ensure_utc_aware(started_at),
            completed_at=ensure_utc_aware(completed_at or clock()),
            score=score,
            passed=passed,
            attempt=attempt,
            questions=answered,
        )

    @staticmethod
    def calculate_score(questions: Sequence[QuestionSubmission]) -> int:
        """Percentage of correct answers, rounded half up (0 when empty)."""
        if not questions:
            return 0
        correct = sum(1 for q in questions if q.is_correct)
        return round_to_int(correct / len(questions) * 100)

    @staticmethod
    def check_pass(score: int, passing_score: int) -> bool:
        """Check if ``score`` reaches ``passing_score``."""
        return score >= passing_score

    def passes(self, passing_score: int) -> bool:
        """Check this submission against another threshold."""
        return self.check_pass(self.score, passing_score)

    @property
    def correct_count(self) -> int:
        return sum(1 for q in self.questions if q.is_correct)

    @property
    def total_questions(self) -> int:
        return len(self.questions)

    @property
    def is_perfect_score(self) -> bool:
        return self.score == PERFECT_SCORE

    @property
    def is_retry(self) -> bool:
        return self.attempt > 1

    @property
    def duration_seconds(self) -> int:
        """Seconds between start and submission."""
        return round_to_int((self.completed_at - self.started_at).total_seconds())

    @classmethod
    def from_dict(
        cls, data: Mapping[str, Any], *, clock: Clock = utc_now
    ) -> "QuestionnaireSubmission":
        """Rebuild from a stored snapshot without re-scoring."""
        return cls.create(
            id=data["id"],
            questionnaire_id=data["questionnaire_id"],
            user_id=data["user_id"],
            institution_id=data["institution_id"],
            course_id=data.get("course_id"),
            started_at=parse_datetime(data["started_at"]),
            completed_at=parse_datetime(data.get("completed_at")),
            score=data["score"],
            passed=data["passed"],
            attempt=data["attempt"],
            questions=[QuestionSubmission.from_dict(q) for q in data["questions"]],
            clock=clock,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "questionnaire_id": self.questionnaire_id,
            "user_id": self.user_id,
            "institution_id": self.institution_id,
            "course_id": self.course_id,
            "started_at": self.started_at,
            "completed_at": self.completed_at,
            "score": self.score,
            "passed": self.passed,
            "attempt": self.attempt,
            "questions": [q.to_dict() for q in self.questions],
        }

"""Assessment errors."""

from edutrack.core.errors import NotFoundError, PolicyError


class QuestionnaireNotFoundError(NotFoundError):
    """Questionnaire unknown to the questionnaire provider."""

    def __init__(self, questionnaire_id: str):
        self.questionnaire_id = questionnaire_id
        super().__init__(
            f"Questionario {questionnaire_id} nao encontrado",
            "questionnaire_not_found",
        )


class QuestionNotFoundError(NotFoundError):
    """Answer references a question outside the questionnaire."""

    def __init__(self, question_id: str, questionnaire_id: str | None = None):
        self.question_id = question_id
        self.questionnaire_id = questionnaire_id
        super().__init__(
            f"Questao {question_id} nao pertence ao questionario",
            "question_not_found",
        )


class MaxAttemptsExceededError(PolicyError):
    """Learner already used every allowed attempt."""

    def __init__(self, max_attempts: int):
        self.max_attempts = max_attempts
        super().__init__(
            f"Numero maximo de tentativas ({max_attempts}) excedido",
            "max_attempts_exceeded",
        )

"""Progress tracking errors."""

from edutrack.core.errors import NotFoundError


class LessonProgressNotFoundError(NotFoundError):
    """Learner never started the lesson."""

    def __init__(self, user_id: str, lesson_id: str):
        self.user_id = user_id
        self.lesson_id = lesson_id
        super().__init__(
            "Progresso da aula nao encontrado. Inicie a aula primeiro",
            "progress_not_found",
        )


class ContentNotFoundError(NotFoundError):
    """Content item is not tracked by the lesson progress."""

    def __init__(self, content_id: str, lesson_id: str | None = None):
        self.content_id = content_id
        self.lesson_id = lesson_id
        super().__init__(
            f"Conteudo {content_id} nao encontrado no progresso da aula",
            "content_not_found",
        )


class LessonNotFoundError(NotFoundError):
    """Lesson unknown to the course structure provider."""

    def __init__(self, lesson_id: str):
        self.lesson_id = lesson_id
        super().__init__(f"Aula {lesson_id} nao encontrada", "lesson_not_found")


class CourseNotFoundError(NotFoundError):
    """Course unknown to the course structure provider."""

    def __init__(self, course_id: str):
        self.course_id = course_id
        super().__init__(f"Curso {course_id} nao encontrado", "course_not_found")

"""Error taxonomy shared by the progress and assessment modules.

Every error carries a human readable ``message`` and a machine ``code`` so
callers can map failures without parsing text:

- ValidationError: malformed input, raised before any field is mutated
- NotFoundError: referenced item does not exist in the aggregate or store
- ConflictError: duplicate item
- PolicyError: caller-owned rule refused the operation (e.g. attempt limit)
- LockTimeoutError: a keyed lock could not be acquired in time
"""


class EdutrackError(Exception):
    """Base domain error."""

    def __init__(self, message: str, code: str = "edutrack_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class ValidationError(EdutrackError):
    """Input violates an entity invariant."""

    def __init__(self, message: str = "Dados invalidos"):
        super().__init__(message, "validation_error")


class NotFoundError(EdutrackError):
    """Referenced item does not exist."""

    def __init__(self, message: str = "Item nao encontrado", code: str = "not_found"):
        super().__init__(message, code)


class ConflictError(EdutrackError):
    """Item already exists."""

    def __init__(self, message: str = "Item ja existe", code: str = "conflict"):
        super().__init__(message, code)


class PolicyError(EdutrackError):
    """Operation refused by a configured policy."""

    def __init__(
        self, message: str = "Operacao nao permitida", code: str = "policy_violation"
    ):
        super().__init__(message, code)


class LockTimeoutError(EdutrackError):
    """Keyed lock could not be acquired."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(
            "Outra operacao esta em andamento, tente novamente", "lock_timeout"
        )


def require_text(value: str | None, message: str) -> str:
    """Return ``value`` if it holds non-blank text, else raise ValidationError."""
    if not value or not str(value).strip():
        raise ValidationError(message)
    return value

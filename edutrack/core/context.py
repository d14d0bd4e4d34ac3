"""Operation context management using contextvars.

Each service call runs inside an ``OperationContext`` that records who the
operation is for. The logging processor reads these values so every log line
emitted during the call carries them without passing parameters around.
"""

from contextvars import ContextVar, Token
from typing import Any
from uuid import uuid4


operation_id_var: ContextVar[str] = ContextVar("operation_id", default="")
user_id_var: ContextVar[str | None] = ContextVar("user_id", default=None)
institution_id_var: ContextVar[str | None] = ContextVar("institution_id", default=None)
correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def generate_operation_id() -> str:
    """Generate a new unique operation ID."""
    return str(uuid4())


def get_operation_id() -> str:
    """Get the current operation ID."""
    return operation_id_var.get()


def get_user_id() -> str | None:
    """Get the current user ID."""
    return user_id_var.get()


def get_institution_id() -> str | None:
    """Get the current institution ID."""
    return institution_id_var.get()


def get_correlation_id() -> str | None:
    """Get the current correlation ID."""
    return correlation_id_var.get()


def set_correlation_id(correlation_id: str | None) -> None:
    """Set the correlation ID for the current context.

    Args:
        correlation_id: ID shared by related operations (e.g. one page load).
    """
    correlation_id_var.set(correlation_id)


def get_context() -> dict[str, Any]:
    """Get all context variables as a dictionary.

    Returns:
        Dictionary with operation_id, user_id, institution_id and
        correlation_id (unset values are omitted).
    """
    context: dict[str, Any] = {}

    operation_id = get_operation_id()
    if operation_id:
        context["operation_id"] = operation_id

    user_id = get_user_id()
    if user_id:
        context["user_id"] = user_id

    institution_id = get_institution_id()
    if institution_id:
        context["institution_id"] = institution_id

    correlation_id = get_correlation_id()
    if correlation_id:
        context["correlation_id"] = correlation_id

    return context


def clear_context() -> None:
    """Clear all context variables."""
    operation_id_var.set("")
    user_id_var.set(None)
    institution_id_var.set(None)
    correlation_id_var.set(None)


class OperationContext:
    """Context manager for a single service operation.

    Usage:
        with OperationContext(user_id="u1", institution_id="inst1"):
            logger.info("content_progress_updated")  # carries user/institution
    """

    def __init__(
        self,
        user_id: str | None = None,
        institution_id: str | None = None,
        operation_id: str | None = None,
    ) -> None:
        self.user_id = user_id
        self.institution_id = institution_id
        self.operation_id = operation_id
        self._tokens: list[tuple[ContextVar[Any], Token[Any]]] = []

    def __enter__(self) -> "OperationContext":
        """Enter context and set variables."""
        self._tokens.append(
            (
                operation_id_var,
                operation_id_var.set(self.operation_id or generate_operation_id()),
            )
        )
        if self.user_id is not None:
            self._tokens.append((user_id_var, user_id_var.set(str(self.user_id))))
        if self.institution_id is not None:
            self._tokens.append(
                (institution_id_var, institution_id_var.set(str(self.institution_id)))
            )
        return self

    def __exit__(self, *_: object) -> None:
        """Exit context and restore previous values."""
        for var, token in reversed(self._tokens):
            var.reset(token)
        self._tokens.clear()

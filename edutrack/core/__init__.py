# Core infrastructure
from edutrack.core.clock import Clock, ensure_utc_aware, utc_now
from edutrack.core.context import (
    OperationContext,
    clear_context,
    get_context,
    get_correlation_id,
    set_correlation_id,
)
from edutrack.core.errors import (
    ConflictError,
    EdutrackError,
    LockTimeoutError,
    NotFoundError,
    PolicyError,
    ValidationError,
)
from edutrack.core.locks import (
    InMemoryKeyedLock,
    KeyedLock,
    RedisKeyedLock,
    attempt_lock_key,
    lesson_lock_key,
)
from edutrack.core.logging import configure_structlog, get_logger


__all__ = [
    "Clock",
    "ConflictError",
    "EdutrackError",
    "InMemoryKeyedLock",
    "KeyedLock",
    "LockTimeoutError",
    "NotFoundError",
    "OperationContext",
    "PolicyError",
    "RedisKeyedLock",
    "ValidationError",
    "attempt_lock_key",
    "clear_context",
    "configure_structlog",
    "ensure_utc_aware",
    "get_context",
    "get_correlation_id",
    "get_logger",
    "lesson_lock_key",
    "set_correlation_id",
    "utc_now",
]

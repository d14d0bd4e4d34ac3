"""Service wiring.

Builds the progress and assessment services from settings and the
caller's collaborators (stores and structure providers). Stores left out
are replaced by in-memory ones using the configured id prefixes.
"""

from dataclasses import dataclass
from pathlib import Path

import redis.asyncio as redis

from edutrack.assessments.memory import InMemorySubmissionStore
from edutrack.assessments.protocols import QuestionnaireProvider, SubmissionStore
from edutrack.assessments.service import AssessmentService
from edutrack.config import Settings, get_settings
from edutrack.core.clock import Clock, utc_now
from edutrack.core.locks import InMemoryKeyedLock, KeyedLock, RedisKeyedLock
from edutrack.core.logging import configure_structlog, get_logger
from edutrack.core.redis import init_redis, shutdown_redis
from edutrack.progress.memory import InMemoryProgressStore
from edutrack.progress.protocols import CourseStructureProvider, ProgressStore
from edutrack.progress.service import ProgressService


logger = get_logger(__name__)


@dataclass
class Services:
    """Service container."""

    progress_service: ProgressService
    assessment_service: AssessmentService
    lock: KeyedLock
    redis_client: redis.Redis | None = None


def build_memory_stores(
    settings: Settings, clock: Clock = utc_now
) -> tuple[InMemoryProgressStore, InMemorySubmissionStore]:
    """In-memory progress and submission stores for a single process."""
    return (
        InMemoryProgressStore(id_prefix=settings.progress_id_prefix, clock=clock),
        InMemorySubmissionStore(id_prefix=settings.submission_id_prefix, clock=clock),
    )


async def _build_lock(settings: Settings) -> tuple[KeyedLock, redis.Redis | None]:
    if not settings.uses_redis_locks:
        return InMemoryKeyedLock(), None

    # Non-critical: a single worker runs fine on process-local locks
    try:
        client = await init_redis(settings)
    except (redis.ConnectionError, redis.TimeoutError) as e:
        logger.warning(
            "redis_init_skipped",
            error=str(e),
            message="Running without Redis - using in-process locks",
        )
        return InMemoryKeyedLock(), None

    lock = RedisKeyedLock(
        client,
        timeout=settings.lock_timeout_seconds,
        blocking_timeout=settings.lock_blocking_timeout_seconds,
    )
    return lock, client


async def init_services(
    settings: Settings | None = None,
    *,
    course_structure: CourseStructureProvider,
    questionnaire_provider: QuestionnaireProvider,
    progress_store: ProgressStore | None = None,
    submission_store: SubmissionStore | None = None,
    clock: Clock = utc_now,
) -> Services:
    """Configure logging and build the services.

    Missing stores are built with ``build_memory_stores``.
    """
    settings = settings or get_settings()
    memory_progress, memory_submissions = build_memory_stores(settings, clock)
    if progress_store is None:
        progress_store = memory_progress
    if submission_store is None:
        submission_store = memory_submissions
    configure_structlog(settings, log_dir=Path(settings.log_dir))

    logger.info(
        "starting_services",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
        lock_backend=settings.lock_backend,
    )

    lock, redis_client = await _build_lock(settings)

    progress_service = ProgressService(
        store=progress_store,
        structure=course_structure,
        lock=lock,
        clock=clock,
        lock_key_prefix=settings.lock_key_prefix,
    )
    assessment_service = AssessmentService(
        submissions=submission_store,
        questionnaires=questionnaire_provider,
        lock=lock,
        clock=clock,
        lock_key_prefix=settings.lock_key_prefix,
    )
    logger.info("services_initialized", lock=type(lock).__name__)

    return Services(
        progress_service=progress_service,
        assessment_service=assessment_service,
        lock=lock,
        redis_client=redis_client,
    )


async def shutdown_services(services: Services) -> None:
    """Release the resources held by the services."""
    if services.redis_client is not None:
        await shutdown_redis()
    logger.info("services_stopped")

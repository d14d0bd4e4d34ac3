"""Tests for service wiring."""

from unittest.mock import AsyncMock, patch

import pytest
import redis.asyncio as redis

from edutrack.assessments.memory import (
    InMemoryQuestionnaireProvider,
    InMemorySubmissionStore,
)
from edutrack.bootstrap import (
    Services,
    build_memory_stores,
    init_services,
    shutdown_services,
)
from edutrack.config import Settings
from edutrack.core.locks import InMemoryKeyedLock, RedisKeyedLock
from edutrack.progress.memory import InMemoryCourseStructure, InMemoryProgressStore


@pytest.fixture
def collaborators():
    return {
        "progress_store": InMemoryProgressStore(),
        "course_structure": InMemoryCourseStructure(lessons={"l1": ["a"]}),
        "submission_store": InMemorySubmissionStore(),
        "questionnaire_provider": InMemoryQuestionnaireProvider(),
    }


class TestInitServices:
    """Tests for init_services / shutdown_services."""

    @pytest.mark.asyncio
    async def test_memory_backend(self, collaborators):
        services = await init_services(Settings(_env_file=None), **collaborators)

        assert isinstance(services, Services)
        assert isinstance(services.lock, InMemoryKeyedLock)
        assert services.progress_service.lock is services.lock
        assert services.assessment_service.lock is services.lock
        assert services.redis_client is None

        result = await services.progress_service.start_lesson_progress(
            "u1", "l1", "inst1"
        )
        assert result.is_new is True

        await shutdown_services(services)

    @pytest.mark.asyncio
    async def test_redis_backend(self, collaborators):
        client = AsyncMock()
        settings = Settings(_env_file=None, lock_backend="redis")

        with (
            patch("edutrack.bootstrap.init_redis", AsyncMock(return_value=client)),
            patch("edutrack.bootstrap.shutdown_redis", AsyncMock()) as shutdown,
        ):
            services = await init_services(settings, **collaborators)
            assert isinstance(services.lock, RedisKeyedLock)
            assert services.redis_client is client

            await shutdown_services(services)
            shutdown.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_redis_unavailable_falls_back_to_memory(self, collaborators):
        settings = Settings(_env_file=None, lock_backend="redis")
        failing = AsyncMock(side_effect=redis.ConnectionError("refused"))

        with patch("edutrack.bootstrap.init_redis", failing):
            services = await init_services(settings, **collaborators)

        assert isinstance(services.lock, InMemoryKeyedLock)
        assert services.redis_client is None


class TestMemoryStores:
    """Tests for the in-memory stores built from settings."""

    @pytest.mark.asyncio
    async def test_ids_use_configured_prefixes(self):
        settings = Settings(
            _env_file=None, progress_id_prefix="px_", submission_id_prefix="sx_"
        )

        progress_store, submission_store = build_memory_stores(settings)

        assert isinstance(progress_store, InMemoryProgressStore)
        assert isinstance(submission_store, InMemorySubmissionStore)
        assert (await progress_store.generate_id()).startswith("px_")
        assert (await submission_store.generate_id()).startswith("sx_")

    @pytest.mark.asyncio
    async def test_init_services_builds_missing_stores(self):
        settings = Settings(_env_file=None, progress_id_prefix="px_")

        services = await init_services(
            settings,
            course_structure=InMemoryCourseStructure(lessons={"l1": ["a"]}),
            questionnaire_provider=InMemoryQuestionnaireProvider(),
        )

        submissions = services.assessment_service.submissions
        assert isinstance(submissions, InMemorySubmissionStore)
        result = await services.progress_service.start_lesson_progress(
            "u1", "l1", "inst1"
        )
        assert result.lesson_progress.id.startswith("px_")

        await shutdown_services(services)

    @pytest.mark.asyncio
    async def test_given_store_is_kept(self, collaborators):
        services = await init_services(Settings(_env_file=None), **collaborators)

        assert services.progress_service.store is collaborators["progress_store"]
        submissions = services.assessment_service.submissions
        assert submissions is collaborators["submission_store"]

"""Tests for the redis client lifecycle."""

from unittest.mock import AsyncMock, patch

import pytest
import redis.asyncio as redis

from edutrack.config import Settings
from edutrack.core.redis import get_redis, init_redis, shutdown_redis


@pytest.fixture
def settings():
    return Settings(_env_file=None, redis_url="redis://cache:6379/3")


class TestRedisLifecycle:
    """Tests for init_redis / shutdown_redis."""

    @pytest.mark.asyncio
    async def test_connect_and_shutdown(self, settings):
        client = AsyncMock()

        patcher = patch("edutrack.core.redis.redis.from_url", return_value=client)
        with patcher as from_url:
            connected = await init_redis(settings)

        assert connected is client
        assert get_redis() is client
        assert from_url.call_args.args == ("redis://cache:6379/3",)
        client.ping.assert_awaited_once()

        await shutdown_redis()

        client.aclose.assert_awaited_once()
        assert get_redis() is None

    @pytest.mark.asyncio
    async def test_unreachable_server(self, settings):
        client = AsyncMock()
        client.ping.side_effect = redis.ConnectionError("refused")

        with (
            patch("edutrack.core.redis.redis.from_url", return_value=client),
            pytest.raises(redis.ConnectionError),
        ):
            await init_redis(settings)

        client.aclose.assert_awaited_once()
        assert get_redis() is None

    @pytest.mark.asyncio
    async def test_shutdown_without_client(self):
        await shutdown_redis()

        assert get_redis() is None

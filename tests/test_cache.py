from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import FastAPI

from scorecard.core import cache as cache_module
from scorecard.core.cache import CacheService, connect_redis
from scorecard.dependencies import get_redis_client
from scorecard.main import lifespan


class TestCacheService:
    @pytest.mark.asyncio
    async def test_claim_reports_existing_key(self, mock_cache, mock_redis):
        mock_redis.set = AsyncMock(return_value=None)

        assert await mock_cache.claim("refresh_used:abc", 60) is False

    @pytest.mark.asyncio
    async def test_claim_without_redis_is_undecided(self):
        assert await CacheService(redis_client=None).claim("refresh_used:abc", 60) is None

    @pytest.mark.asyncio
    async def test_delete_errors_are_absorbed(self, mock_cache, mock_redis):
        mock_redis.delete = AsyncMock(side_effect=ConnectionError("redis down"))

        await mock_cache.delete("refresh_used:abc")


class TestRedisLifecycle:
    @pytest.mark.asyncio
    async def test_connect_returns_client_when_reachable(self):
        client = MagicMock()
        client.ping = AsyncMock()
        with patch.object(cache_module.Redis, "from_url", return_value=client):
            assert await connect_redis("redis://localhost:6379/0") is client

    @pytest.mark.asyncio
    async def test_connect_closes_client_when_unreachable(self):
        client = MagicMock()
        client.ping = AsyncMock(side_effect=ConnectionError("refused"))
        client.aclose = AsyncMock()
        with patch.object(cache_module.Redis, "from_url", return_value=client):
            assert await connect_redis("redis://localhost:6379/0") is None
        client.aclose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_lifespan_shares_one_client_and_closes_it(self):
        client = MagicMock()
        client.aclose = AsyncMock()
        app = FastAPI()
        request = MagicMock()
        request.app = app

        with patch("scorecard.main.connect_redis", AsyncMock(return_value=client)):
            async with lifespan(app):
                assert await get_redis_client(request) is client
                assert await get_redis_client(request) is client

        client.aclose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_no_client_before_startup(self):
        request = MagicMock()
        request.app = FastAPI()

        assert await get_redis_client(request) is None

"""
Unit tests for rate limiting (in-memory fallback and Redis path).
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from app.core import rate_limit
from app.core.rate_limit import RateLimitExceeded, check_rate_limit, enforce_rate_limit


@pytest.fixture(autouse=True)
def clear_memory_store():
    rate_limit._memory_store.clear()
    yield
    rate_limit._memory_store.clear()


class TestMemoryFallback:
    @pytest.mark.asyncio
    async def test_allows_until_limit(self):
        with patch("app.core.rate_limit.get_redis", AsyncMock(return_value=None)):
            results = [await check_rate_limit("rate_limit:test:1", 3, 60) for _ in range(4)]

        assert results == [True, True, True, False]

    @pytest.mark.asyncio
    async def test_enforce_raises_429(self):
        with patch("app.core.rate_limit.get_redis", AsyncMock(return_value=None)):
            await enforce_rate_limit("rate_limit:test:2", 1, 60)

            with pytest.raises(RateLimitExceeded) as exc_info:
                await enforce_rate_limit("rate_limit:test:2", 1, 60)

        assert exc_info.value.status_code == 429
        assert exc_info.value.headers["Retry-After"] == "60"


class TestRedis:
    @pytest.mark.asyncio
    async def test_uses_sorted_set_count(self):
        pipe = MagicMock()
        pipe.execute = AsyncMock(return_value=[0, 5, 1, True])
        client = MagicMock()
        client.pipeline.return_value = pipe

        with patch("app.core.rate_limit.get_redis", AsyncMock(return_value=client)):
            allowed = await check_rate_limit("rate_limit:test:3", 5, 60)

        assert allowed is False
        pipe.zcard.assert_called_once_with("rate_limit:test:3")

    @pytest.mark.asyncio
    async def test_redis_error_falls_back_to_memory(self):
        pipe = MagicMock()
        pipe.execute = AsyncMock(side_effect=ConnectionError("redis down"))
        client = MagicMock()
        client.pipeline.return_value = pipe

        with patch("app.core.rate_limit.get_redis", AsyncMock(return_value=client)):
            allowed = await check_rate_limit("rate_limit:test:4", 1, 60)

        assert allowed is True
        assert "rate_limit:test:4" in rate_limit._memory_store

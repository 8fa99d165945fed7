"""Logging setup and the optional Redis client."""

import logging

import pytest

from toastyou.config import Settings
from toastyou.middleware.logging import HANDLER_NAME, setup_logging
from toastyou.notifications import publish_event
from toastyou.redis_client import close_redis, get_redis, init_redis


class TestSetupLogging:
    def test_repeated_setup_installs_one_handler(self):
        settings = Settings(log_format="console", log_level="DEBUG")
        setup_logging(settings)
        setup_logging(settings)

        root = logging.getLogger()
        assert [h.get_name() for h in root.handlers].count(HANDLER_NAME) == 1
        assert root.level == logging.DEBUG
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_unknown_level_falls_back_to_info(self):
        setup_logging(Settings(log_format="json", log_level="chatty"))
        assert logging.getLogger().level == logging.INFO


class TestRedisClient:
    @pytest.mark.asyncio
    async def test_empty_url_disables_notifications(self):
        assert await init_redis("") is None
        assert get_redis() is None
        assert await publish_event(get_redis(), "pubsub:test", {"x": 1}) is False

    @pytest.mark.asyncio
    async def test_init_and_close(self):
        client = await init_redis("redis://localhost:6379/15", max_connections=3)
        assert client is not None
        assert get_redis() is client
        await close_redis()
        assert get_redis() is None

"""Tests for the Redis event publisher."""

import json

import pytest
from unittest.mock import AsyncMock, patch

from upsetter.shared.bus import RedisBus


@pytest.mark.asyncio
async def test_publish_wraps_payload_in_envelope():
    with patch("upsetter.shared.bus.aioredis.from_url") as mock_from_url:
        redis_client = AsyncMock()
        mock_from_url.return_value = redis_client

        bus = RedisBus(redis_url="redis://localhost:6379")
        await bus.connect()
        await bus.publish("upsetter/events", {"key": "job/a/instance/1"}, sender="upsetter")

        mock_from_url.assert_called_once_with("redis://localhost:6379")
        channel, raw = redis_client.publish.call_args[0]
        envelope = json.loads(raw)
        assert channel == "upsetter/events"
        assert envelope["from"] == "upsetter"
        assert envelope["channel"] == "upsetter/events"
        assert envelope["payload"] == {"key": "job/a/instance/1"}
        assert "timestamp" in envelope


@pytest.mark.asyncio
async def test_disconnect_closes_client():
    with patch("upsetter.shared.bus.aioredis.from_url") as mock_from_url:
        redis_client = AsyncMock()
        mock_from_url.return_value = redis_client

        bus = RedisBus()
        await bus.connect()
        await bus.disconnect()
        redis_client.aclose.assert_awaited_once()
        await bus.disconnect()
        redis_client.aclose.assert_awaited_once()

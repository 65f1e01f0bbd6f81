# tests/infra/test_redis_client.py
"""
Тесты клиента Redis.
"""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from courier_mesh.common.exceptions import DependencyError
from courier_mesh.infra.redis_client import RedisClient


@pytest.fixture
def raw_client() -> AsyncMock:
    client = AsyncMock()
    client.hset = AsyncMock(return_value=2)
    client.hgetall = AsyncMock(return_value={"status": "available"})
    client.publish = AsyncMock(return_value=1)
    client.ping = AsyncMock(return_value=True)
    return client


def test_make_key_adds_namespace() -> None:
    assert RedisClient(namespace="cm").make_key("tracking:courier:c1") == "cm:tracking:courier:c1"


def test_client_not_initialized() -> None:
    with pytest.raises(RuntimeError):
        RedisClient().client


@pytest.mark.asyncio
async def test_hash_operations_are_namespaced(raw_client: AsyncMock) -> None:
    redis = RedisClient(namespace="cm", client=raw_client)

    await redis.hset_mapping("tracking:courier:c1", {"status": "available"})
    data = await redis.hgetall("tracking:courier:c1")

    raw_client.hset.assert_awaited_once_with("cm:tracking:courier:c1", mapping={"status": "available"})
    raw_client.hgetall.assert_awaited_once_with("cm:tracking:courier:c1")
    assert data == {"status": "available"}


@pytest.mark.asyncio
async def test_publish_is_not_namespaced(raw_client: AsyncMock) -> None:
    redis = RedisClient(namespace="cm", client=raw_client)

    await redis.publish("tracking:updates", "{}")

    raw_client.publish.assert_awaited_once_with("tracking:updates", "{}")


@pytest.mark.asyncio
async def test_connection_error_becomes_dependency_error(raw_client: AsyncMock) -> None:
    raw_client.hgetall.side_effect = RedisConnectionError("refused")
    redis = RedisClient(client=raw_client)

    with pytest.raises(DependencyError):
        await redis.hgetall("tracking:courier:c1")


@pytest.mark.asyncio
async def test_health_check(raw_client: AsyncMock) -> None:
    redis = RedisClient(client=raw_client)
    assert await redis.health_check() is True

    raw_client.ping.side_effect = RedisConnectionError("refused")
    assert await redis.health_check() is False

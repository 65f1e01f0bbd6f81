# courier_mesh/infra/redis_client.py
"""
Клиент Redis для хранения последних позиций курьеров и Pub/Sub.
"""

from __future__ import annotations

from functools import wraps
from typing import Any, Awaitable, Callable, TypeVar

import redis.asyncio as redis
from redis.asyncio.client import PubSub
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from courier_mesh.common.constants import TypeMsg
from courier_mesh.common.exceptions import DependencyError
from courier_mesh.common.logger import log_error, log_info

T = TypeVar("T")


def _dependency_guard(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
    """Превращает сетевые ошибки Redis в DependencyError."""
    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> T:
        try:
            return await func(*args, **kwargs)
        except (RedisConnectionError, RedisTimeoutError) as e:
            await log_error(f"Redis недоступен: {e}")
            raise DependencyError("tracking store unavailable") from e

    return wrapper


class RedisClient:
    """
    Асинхронный клиент Redis.
    Поддерживает:
    - Hash операции с namespace ключей
    - Pub/Sub
    """

    def __init__(self, namespace: str = "courier_mesh", client: redis.Redis | None = None) -> None:
        self._client = client
        self._namespace = namespace

    @property
    def client(self) -> redis.Redis:
        """Возвращает клиент Redis."""
        if self._client is None:
            raise RuntimeError("Redis клиент не инициализирован. Вызовите connect() сначала.")
        return self._client

    def make_key(self, key: str) -> str:
        """Добавляет namespace к ключу."""
        return f"{self._namespace}:{key}"

    async def connect(self, url: str, max_connections: int = 50, socket_timeout: float = 5.0) -> None:
        """
        Подключается к Redis.

        Args:
            url: URL Redis
            max_connections: Максимальное количество соединений
            socket_timeout: Таймаут операций (секунды)
        """
        if self._client is not None:
            return

        await log_info("Подключение к Redis...", type_msg=TypeMsg.INFO)
        self._client = redis.from_url(
            url,
            max_connections=max_connections,
            socket_timeout=socket_timeout,
            decode_responses=True,
        )
        await self._client.ping()
        await log_info("Подключение к Redis установлено", type_msg=TypeMsg.INFO)

    async def disconnect(self) -> None:
        """Закрывает соединение с Redis."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            await log_info("Соединение с Redis закрыто", type_msg=TypeMsg.INFO)

    # =========================================================================
    # HASH
    # =========================================================================

    @_dependency_guard
    async def hset_mapping(self, name: str, mapping: dict[str, str]) -> int:
        """Записывает несколько полей хэша."""
        return await self.client.hset(self.make_key(name), mapping=mapping)

    @_dependency_guard
    async def hgetall(self, name: str) -> dict[str, str]:
        """Возвращает все поля хэша."""
        return await self.client.hgetall(self.make_key(name))

    # =========================================================================
    # PUB/SUB
    # =========================================================================

    @_dependency_guard
    async def publish(self, channel: str, message: str) -> int:
        """Публикует сообщение в канал (без namespace)."""
        return await self.client.publish(channel, message)

    def pubsub(self) -> PubSub:
        """Создаёт объект подписки."""
        return self.client.pubsub()

    async def health_check(self) -> bool:
        """Проверяет здоровье подключения к Redis."""
        try:
            return bool(await self.client.ping())
        except Exception as e:
            await log_error(f"Health check Redis failed: {e}")
            return False


async def create_redis(settings: Any) -> RedisClient:
    """Создаёт и подключает RedisClient по секции настроек redis."""
    client = RedisClient(namespace=settings.redis.REDIS_NAMESPACE)
    await client.connect(
        url=settings.redis.url,
        max_connections=settings.redis.REDIS_MAX_CONNECTIONS,
        socket_timeout=settings.services.HTTP_TIMEOUT,
    )
    await log_info(
        f"Redis подключён: {settings.redis.REDIS_HOST}:{settings.redis.REDIS_PORT}/{settings.redis.REDIS_DB}",
        type_msg=TypeMsg.INFO,
    )
    return client

# courier_mesh/services/tracking_service/broadcaster.py
"""
Подписчик на Redis Pub/Sub, пересылающий обновления трекинга в WebSocket.
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional

from pydantic import ValidationError as PydanticValidationError

from courier_mesh.common.constants import TypeMsg
from courier_mesh.common.logger import log_error, log_info, log_warning
from courier_mesh.infra.redis_client import RedisClient
from courier_mesh.services.tracking_service.connection_manager import ConnectionManager
from courier_mesh.services.tracking_service.store import TrackingStore


class TrackingBroadcaster:
    """
    Слушает канал обновлений и рассылает записи всем подключённым клиентам.
    """

    def __init__(self, redis: RedisClient, manager: ConnectionManager, poll_timeout: float = 1.0) -> None:
        self._redis = redis
        self._manager = manager
        self._poll_timeout = poll_timeout
        self._pubsub = None
        self._task: Optional[asyncio.Task] = None
        self._running = False

    async def start(self) -> None:
        if self._running:
            return
        self._pubsub = self._redis.pubsub()
        await self._pubsub.subscribe(TrackingStore.UPDATES_CHANNEL)
        self._running = True
        self._task = asyncio.create_task(self._listen())
        await log_info(f"Подписка на канал {TrackingStore.UPDATES_CHANNEL}", type_msg=TypeMsg.INFO)

    async def stop(self) -> None:
        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        if self._pubsub:
            await self._pubsub.unsubscribe()
            await self._pubsub.aclose()
            self._pubsub = None

    async def _listen(self) -> None:
        while self._running:
            try:
                message = await self._pubsub.get_message(
                    ignore_subscribe_messages=True,
                    timeout=self._poll_timeout,
                )
                if message is None:
                    continue
                await self.process_message(message)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                await log_error(f"Ошибка подписчика трекинга: {e}")
                await asyncio.sleep(1)

    async def process_message(self, message: dict[str, Any]) -> int:
        """
        Пересылает одно сообщение Pub/Sub клиентам.

        Returns:
            Количество клиентов, получивших сообщение
        """
        if message.get("type") != "message":
            return 0

        data = message.get("data", "")
        if isinstance(data, bytes):
            data = data.decode("utf-8")

        try:
            record = TrackingStore.decode_update(data)
        except PydanticValidationError as e:
            await log_warning(f"Некорректное сообщение трекинга отброшено: {e}")
            return 0

        return await self._manager.broadcast(record.model_dump(mode="json"))

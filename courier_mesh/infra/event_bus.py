# courier_mesh/infra/event_bus.py
"""
Шина событий на базе RabbitMQ.

Публикация идёт через default exchange в durable-очередь, имя которой
совпадает с типом события. Каждая очередь потребляется отдельным consumer.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Awaitable, Callable

import aio_pika
from aio_pika import DeliveryMode, Message
from aio_pika.exceptions import AMQPError
from aio_pika.abc import AbstractChannel, AbstractIncomingMessage, AbstractQueue, AbstractRobustConnection

from courier_mesh.common.constants import TypeMsg
from courier_mesh.common.exceptions import DependencyError, EventDecodeError
from courier_mesh.common.logger import log_error, log_info, log_warning
from courier_mesh.shared.events import Event, decode_event


# Тип обработчика событий
EventHandler = Callable[[Event], Awaitable[None]]


class EventBus:
    """
    Шина событий на базе RabbitMQ.

    Реализует:
    - публикацию сообщения в очередь с ограниченным таймаутом
    - потребление очередей с декодированием через кодек событий
    - автоматическое переподключение (connect_robust)
    """

    def __init__(self, publish_timeout: float = 5.0) -> None:
        self._connection: AbstractRobustConnection | None = None
        self._channel: AbstractChannel | None = None
        self._queues: dict[str, AbstractQueue] = {}
        self._consumer_tags: dict[str, str] = {}
        self._publish_timeout = publish_timeout

    @property
    def is_connected(self) -> bool:
        """Проверяет, активно ли соединение."""
        return self._connection is not None and not self._connection.is_closed

    async def connect(self, url: str, prefetch_count: int = 1) -> None:
        """
        Подключается к RabbitMQ.

        Args:
            url: AMQP URL
            prefetch_count: Количество неподтверждённых сообщений на consumer
        """
        if self.is_connected:
            return

        await log_info("Подключение к RabbitMQ...", type_msg=TypeMsg.INFO)
        try:
            self._connection = await aio_pika.connect_robust(url)
            self._channel = await self._connection.channel()
            await self._channel.set_qos(prefetch_count=prefetch_count)
        except (AMQPError, OSError) as e:
            await log_error(f"Не удалось подключиться к RabbitMQ: {e}")
            raise DependencyError("message broker unavailable") from e

        await log_info("Подключение к RabbitMQ установлено", type_msg=TypeMsg.INFO)

    async def disconnect(self) -> None:
        """Закрывает соединение с RabbitMQ."""
        if self._connection is not None:
            await self._connection.close()
            self._connection = None
            self._channel = None
            self._queues = {}
            self._consumer_tags = {}
            await log_info("Соединение с RabbitMQ закрыто", type_msg=TypeMsg.INFO)

    async def _declare_queue(self, queue_name: str) -> AbstractQueue:
        if queue_name not in self._queues:
            self._queues[queue_name] = await self._channel.declare_queue(queue_name, durable=True)
        return self._queues[queue_name]

    async def publish_to_queue(self, queue_name: str, payload: bytes, message_id: str | None = None) -> None:
        """
        Публикует сообщение в очередь.

        Args:
            queue_name: Имя очереди
            payload: Тело сообщения (JSON)
            message_id: Идентификатор сообщения (event_id)

        Raises:
            DependencyError: нет соединения, ошибка брокера или таймаут
        """
        if not self.is_connected or self._channel is None:
            raise DependencyError("message broker is not connected")

        message = Message(
            body=payload,
            content_type="application/json",
            message_id=message_id,
            timestamp=datetime.now(timezone.utc),
            delivery_mode=DeliveryMode.PERSISTENT,
        )

        async def send() -> None:
            await self._declare_queue(queue_name)
            await self._channel.default_exchange.publish(message, routing_key=queue_name)

        try:
            await asyncio.wait_for(send(), timeout=self._publish_timeout)
        except asyncio.TimeoutError as e:
            raise DependencyError(f"publish to {queue_name} timed out") from e
        except (AMQPError, OSError) as e:
            raise DependencyError(f"publish to {queue_name} failed: {e}") from e

        await log_info(
            f"Сообщение опубликовано в очередь {queue_name}",
            type_msg=TypeMsg.DEBUG,
            extra={"message_id": message_id},
        )

    async def consume(self, queue_name: str, handler: EventHandler) -> None:
        """
        Подписывает обработчик на очередь.

        Некорректные события подтверждаются и отбрасываются.
        DependencyError в обработчике возвращает сообщение в очередь,
        любая другая ошибка логируется и сообщение отбрасывается.
        """
        if not self.is_connected or self._channel is None:
            raise DependencyError("message broker is not connected")

        queue = await self._declare_queue(queue_name)
        self._consumer_tags[queue_name] = await queue.consume(self._make_consumer(queue_name, handler))

        await log_info(f"Подписка на очередь {queue_name}", type_msg=TypeMsg.INFO)

    def _make_consumer(
        self,
        queue_name: str,
        handler: EventHandler,
    ) -> Callable[[AbstractIncomingMessage], Awaitable[None]]:
        """Создаёт consumer для обработки сообщений очереди."""
        async def consumer(message: AbstractIncomingMessage) -> None:
            try:
                event = decode_event(message.body)
            except EventDecodeError as e:
                await log_warning(
                    f"Событие из очереди {queue_name} отброшено: {e.message}",
                    extra={"queue": queue_name, "message_id": message.message_id},
                )
                await message.ack()
                return

            try:
                await handler(event)
            except DependencyError as e:
                await log_error(
                    f"Зависимость недоступна при обработке {event.event}, сообщение возвращено в очередь: {e.message}",
                    extra={"queue": queue_name, "event_id": event.event_id},
                )
                await message.nack(requeue=True)
                return
            except Exception as e:
                await log_error(
                    f"Ошибка обработки события {event.event}, событие отброшено: {e}",
                    extra={"queue": queue_name, "event_id": event.event_id},
                    exc_info=True,
                )
                await message.ack()
                return

            await message.ack()

        return consumer

    async def health_check(self) -> bool:
        """Проверяет здоровье подключения к RabbitMQ."""
        return self.is_connected


async def create_event_bus(settings) -> EventBus:
    """Создаёт и подключает EventBus по секции настроек rabbitmq."""
    bus = EventBus(publish_timeout=settings.rabbitmq.RABBITMQ_PUBLISH_TIMEOUT)
    await bus.connect(
        url=settings.rabbitmq.url,
        prefetch_count=settings.rabbitmq.RABBITMQ_PREFETCH_COUNT,
    )
    return bus

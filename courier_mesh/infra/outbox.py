# courier_mesh/infra/outbox.py
"""
Транзакционный outbox.

Событие записывается в таблицу outbox в той же транзакции, что и изменение
состояния. OutboxRelay периодически забирает неопубликованные строки и
отправляет их в RabbitMQ с повторными попытками. Доставка at-least-once:
потребители дедуплицируют события по event_id.
"""

from __future__ import annotations

import asyncio

from asyncpg import Connection

from courier_mesh.common.constants import TypeMsg
from courier_mesh.common.exceptions import DependencyError
from courier_mesh.common.logger import log_error, log_info, log_warning
from courier_mesh.infra.database import DatabaseManager
from courier_mesh.infra.event_bus import EventBus
from courier_mesh.shared.events import Event, queue_for


async def enqueue_event(conn: Connection, event: Event) -> None:
    """
    Записывает событие в outbox внутри открытой транзакции.

    Args:
        conn: Соединение с активной транзакцией
        event: Событие для публикации
    """
    await conn.execute(
        """
        INSERT INTO outbox (event_id, queue_name, payload)
        VALUES ($1, $2, $3)
        """,
        event.event_id,
        queue_for(event),
        event.to_json(),
    )


class OutboxRelay:
    """Ретранслятор outbox → RabbitMQ."""

    def __init__(
        self,
        db: DatabaseManager,
        event_bus: EventBus,
        batch_size: int = 50,
        poll_interval: float = 1.0,
        max_attempts: int = 10,
    ) -> None:
        self._db = db
        self._event_bus = event_bus
        self._batch_size = batch_size
        self._poll_interval = poll_interval
        self._max_attempts = max_attempts
        self._task: asyncio.Task | None = None
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    async def run_once(self) -> int:
        """
        Публикует одну пачку событий.

        Строки блокируются через FOR UPDATE SKIP LOCKED, поэтому несколько
        ретрансляторов могут работать с одной таблицей одновременно.

        Returns:
            Количество опубликованных событий
        """
        published = 0
        async with self._db.transaction() as conn:
            rows = await conn.fetch(
                """
                SELECT event_id, queue_name, payload, attempts
                FROM outbox
                WHERE published_at IS NULL AND attempts < $1
                ORDER BY created_at
                LIMIT $2
                FOR UPDATE SKIP LOCKED
                """,
                self._max_attempts,
                self._batch_size,
            )

            for row in rows:
                try:
                    await self._event_bus.publish_to_queue(
                        row["queue_name"],
                        row["payload"].encode("utf-8"),
                        message_id=row["event_id"],
                    )
                except DependencyError as e:
                    attempts = row["attempts"] + 1
                    await conn.execute(
                        "UPDATE outbox SET attempts = $2, last_error = $3 WHERE event_id = $1",
                        row["event_id"],
                        attempts,
                        e.message,
                    )
                    if attempts >= self._max_attempts:
                        await log_error(
                            f"Событие {row['event_id']} не доставлено после {attempts} попыток, отправка прекращена",
                            extra={"queue": row["queue_name"], "last_error": e.message},
                        )
                    else:
                        await log_warning(
                            f"Не удалось опубликовать событие {row['event_id']} (попытка {attempts}): {e.message}",
                            extra={"queue": row["queue_name"]},
                        )
                    # Брокер недоступен: остаток пачки подождёт следующего цикла
                    break

                await conn.execute(
                    "UPDATE outbox SET published_at = NOW(), attempts = attempts + 1 WHERE event_id = $1",
                    row["event_id"],
                )
                published += 1

        if published:
            await log_info(f"Outbox: опубликовано событий: {published}", type_msg=TypeMsg.DEBUG)
        return published

    async def start(self) -> None:
        """Запускает фоновый цикл ретрансляции."""
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._loop())
        await log_info("Outbox relay запущен", type_msg=TypeMsg.INFO)

    async def stop(self) -> None:
        """Останавливает фоновый цикл."""
        if not self._running:
            return
        self._running = False
        if self._task is not None:
            self._task.cancel()
            await asyncio.gather(self._task, return_exceptions=True)
            self._task = None
        await log_info("Outbox relay остановлен", type_msg=TypeMsg.INFO)

    async def _loop(self) -> None:
        while self._running:
            published = 0
            try:
                published = await self.run_once()
            except DependencyError as e:
                await log_warning(f"Outbox relay: хранилище недоступно: {e.message}")
            except Exception as e:
                await log_error(f"Outbox relay: непредвиденная ошибка: {e}", exc_info=True)

            # Полная пачка: вероятно, есть ещё строки
            if published < self._batch_size:
                await asyncio.sleep(self._poll_interval)

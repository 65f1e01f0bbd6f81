# courier_mesh/worker/base.py
"""
Базовый класс для воркеров.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List

from courier_mesh.common.constants import TypeMsg
from courier_mesh.common.exceptions import DependencyError
from courier_mesh.common.logger import log_error, log_info
from courier_mesh.infra.event_bus import EventBus
from courier_mesh.shared.events import Event


class BaseWorker(ABC):
    """
    Базовый класс для всех воркеров.
    Подписывается на очереди и обрабатывает события из них.
    """

    def __init__(self, event_bus: EventBus | None = None) -> None:
        """
        Args:
            event_bus: Шина событий (None, если воркер работает без брокера)
        """
        self.event_bus = event_bus
        self._running = False

    @property
    @abstractmethod
    def name(self) -> str:
        """Имя воркера."""

    @property
    @abstractmethod
    def subscriptions(self) -> List[str]:
        """Список очередей для подписки."""

    @abstractmethod
    async def handle_event(self, event: Event) -> None:
        """
        Обрабатывает событие.

        Args:
            event: Декодированное событие
        """

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Запускает воркер."""
        if self._running:
            return
        if self.event_bus is None:
            raise RuntimeError(f"Воркер {self.name}: шина событий не передана")

        self._running = True
        await log_info(f"Воркер {self.name} запускается...", type_msg=TypeMsg.INFO)

        for queue_name in self.subscriptions:
            await self.event_bus.consume(queue_name, self._on_event)
            await log_info(f"Воркер {self.name} подписан на {queue_name}", type_msg=TypeMsg.DEBUG)

        await log_info(f"Воркер {self.name} запущен", type_msg=TypeMsg.INFO)

    async def stop(self) -> None:
        """Останавливает воркер (сообщения, пришедшие после остановки, игнорируются)."""
        if not self._running:
            return
        self._running = False
        await log_info(f"Воркер {self.name} остановлен", type_msg=TypeMsg.INFO)

    async def _on_event(self, event: Event) -> None:
        """
        Обработчик сообщения из очереди.

        DependencyError пробрасывается, чтобы шина вернула сообщение в очередь.
        """
        if not self._running:
            raise DependencyError(f"worker {self.name} is stopped")

        await log_info(
            f"Воркер {self.name} получил событие {event.event}",
            type_msg=TypeMsg.DEBUG,
            extra={"event_id": event.event_id},
        )
        try:
            await self.handle_event(event)
        except DependencyError:
            raise
        except Exception as e:
            await log_error(
                f"Ошибка в воркере {self.name}: {e}",
                extra={"event": event.event, "event_id": event.event_id},
                exc_info=True,
            )

# courier_mesh/services/analytics_service/consumer.py
"""
Потребитель событий жизненного цикла заказа.

Некорректные события (нет courier_id, неразбираемые даты, отрицательная
длительность) логируются и отбрасываются без повторной доставки.
"""

from __future__ import annotations

from typing import List

from courier_mesh.common.constants import WIRE_STATUS_NEW, OrderStatus, Queues
from courier_mesh.common.logger import log_info, log_warning
from courier_mesh.infra.event_bus import EventBus
from courier_mesh.services.analytics_service.store import StatsStore
from courier_mesh.shared.events import (
    CourierCreated,
    DeliveryCalculated,
    Event,
    OrderCompleted,
    OrderCreated,
    parse_rfc3339,
)
from courier_mesh.worker.base import BaseWorker

NEW_ORDER_STATUSES = frozenset({WIRE_STATUS_NEW, OrderStatus.CREATED.value})


class AnalyticsConsumer(BaseWorker):
    """Проекция событий в GeneralStats и CourierStats."""

    def __init__(self, store: StatsStore, event_bus: EventBus | None = None) -> None:
        super().__init__(event_bus)
        self.store = store

    @property
    def name(self) -> str:
        return "analytics"

    @property
    def subscriptions(self) -> List[str]:
        return [
            Queues.ORDER_CREATED,
            Queues.ORDER_COMPLETED,
            Queues.COURIER_CREATED,
            Queues.DELIVERY_CALCULATED,
        ]

    async def handle_event(self, event: Event) -> None:
        match event:
            case OrderCreated():
                await self._on_order_created(event)
            case OrderCompleted():
                await self._on_order_completed(event)
            case CourierCreated():
                await self._on_courier_created(event)
            case DeliveryCalculated():
                await self._on_delivery_calculated(event)
            case _:
                await log_warning(f"Аналитика: неожиданное событие {event.event}, пропущено")

    handle = handle_event

    async def _on_order_created(self, event: OrderCreated) -> None:
        is_new = event.status in NEW_ORDER_STATUSES
        applied = await self.store.record_order_created(event.event_id, is_new)
        await self._log_applied(event, applied)

    async def _on_courier_created(self, event: CourierCreated) -> None:
        if not event.courier_id.strip():
            await self._drop(event, "пустой courier_id")
            return
        applied = await self.store.register_courier(event.event_id, event.courier_id, event.courier_name)
        await self._log_applied(event, applied)

    async def _on_order_completed(self, event: OrderCompleted) -> None:
        if not (event.courier_id or "").strip():
            await self._drop(event, "пустой courier_id")
            return

        try:
            created_at = parse_rfc3339(event.created_at or "")
            completed_at = parse_rfc3339(event.completed_at or "")
        except ValueError as e:
            await self._drop(event, f"некорректная дата: {e}")
            return

        duration = (completed_at - created_at).total_seconds()
        if duration < 0:
            await self._drop(event, f"отрицательная длительность {duration}")
            return

        applied = await self.store.record_order_completed(event.event_id, event.courier_id, duration)
        await self._log_applied(event, applied)

    async def _on_delivery_calculated(self, event: DeliveryCalculated) -> None:
        if not (event.courier_id or "").strip():
            await self._drop(event, "пустой courier_id")
            return
        applied = await self.store.add_revenue(event.event_id, event.courier_id, event.cost)
        await self._log_applied(event, applied)

    @staticmethod
    async def _drop(event: Event, reason: str) -> None:
        await log_warning(
            f"Событие {event.event} отброшено: {reason}",
            extra={"event_id": event.event_id},
        )

    @staticmethod
    async def _log_applied(event: Event, applied: bool) -> None:
        if applied:
            await log_info(f"Событие {event.event} применено", extra={"event_id": event.event_id})
        else:
            await log_info(f"Событие {event.event} уже применялось, пропущено", extra={"event_id": event.event_id})

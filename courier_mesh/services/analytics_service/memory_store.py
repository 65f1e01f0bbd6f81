# courier_mesh/services/analytics_service/memory_store.py
"""
Хранилище агрегатов в памяти процесса.

Тестовый двойник PostgresStatsStore: те же правила обновления, одна
блокировка на всё хранилище. Не масштабируется на несколько процессов.
"""

from __future__ import annotations

import asyncio
from typing import Optional

from courier_mesh.services.analytics_service.store import StatsStore, incremental_mean
from courier_mesh.shared.models.stats import CourierStat, GeneralStats


class InMemoryStatsStore(StatsStore):
    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._general = GeneralStats()
        self._couriers: dict[str, CourierStat] = {}
        self._applied: set[str] = set()

    def _courier(self, courier_id: str) -> CourierStat:
        if courier_id not in self._couriers:
            self._couriers[courier_id] = CourierStat(courier_id=courier_id)
        return self._couriers[courier_id]

    async def record_order_created(self, event_id: str, is_new: bool) -> bool:
        async with self._lock:
            if event_id in self._applied:
                return False
            self._applied.add(event_id)
            self._general.total_orders += 1
            if is_new:
                self._general.active_orders += 1
        return True

    async def register_courier(self, event_id: str, courier_id: str, courier_name: str) -> bool:
        async with self._lock:
            if event_id in self._applied:
                return False
            self._applied.add(event_id)
            stat = self._courier(courier_id)
            if not stat.courier_name:
                stat.courier_name = courier_name
        return True

    async def record_order_completed(self, event_id: str, courier_id: str, duration_sec: float) -> bool:
        async with self._lock:
            if event_id in self._applied:
                return False
            self._applied.add(event_id)
            stat = self._courier(courier_id)
            stat.average_delivery_time_sec = incremental_mean(
                stat.average_delivery_time_sec, stat.completed_orders, duration_sec
            )
            stat.completed_orders += 1
            self._general.completed_orders += 1
            if self._general.active_orders > 0:
                self._general.active_orders -= 1
        return True

    async def add_revenue(self, event_id: str, courier_id: str, cost: float) -> bool:
        async with self._lock:
            if event_id in self._applied:
                return False
            self._applied.add(event_id)
            self._courier(courier_id).total_revenue += cost
        return True

    async def get_general_stats(self) -> GeneralStats:
        async with self._lock:
            return self._general.model_copy()

    async def get_courier_stats(self, courier_id: str) -> Optional[CourierStat]:
        async with self._lock:
            stat = self._couriers.get(courier_id)
            return stat.model_copy() if stat else None

    async def list_courier_stats(self) -> list[CourierStat]:
        async with self._lock:
            stats = [stat.model_copy() for stat in self._couriers.values()]
        return sorted(stats, key=lambda s: (-s.total_revenue, s.courier_id))

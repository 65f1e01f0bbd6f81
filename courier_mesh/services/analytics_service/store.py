# courier_mesh/services/analytics_service/store.py
"""
Хранилище агрегатов аналитики.

StatsStore — интерфейс, который реализуют PostgresStatsStore (основной)
и InMemoryStatsStore (тестовый двойник). Каждая мутация вместе с записью
event_id в журнал applied_events выполняется атомарно: повторная доставка
того же события ничего не меняет.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from asyncpg import Connection

from courier_mesh.common.constants import Queues
from courier_mesh.infra.database import DatabaseManager
from courier_mesh.shared.models.stats import CourierStat, GeneralStats


def incremental_mean(old_avg: float, old_count: int, value: float) -> float:
    """
    Обновляет среднее значение новым наблюдением.

    new_avg = (old_avg * old_count + value) / (old_count + 1)
    """
    return (old_avg * old_count + value) / (old_count + 1)


class StatsStore(ABC):
    """Интерфейс хранилища агрегатов."""

    @abstractmethod
    async def record_order_created(self, event_id: str, is_new: bool) -> bool:
        """
        total_orders += 1; active_orders += 1, если заказ в статусе «новый».

        Returns:
            False, если событие уже применялось
        """

    @abstractmethod
    async def register_courier(self, event_id: str, courier_id: str, courier_name: str) -> bool:
        """Создаёт строку CourierStats с нулевыми счётчиками, если её нет."""

    @abstractmethod
    async def record_order_completed(self, event_id: str, courier_id: str, duration_sec: float) -> bool:
        """
        Обновляет среднее время доставки курьера и глобальные счётчики:
        completed_orders += 1, active_orders -= 1 (не ниже нуля).
        """

    @abstractmethod
    async def add_revenue(self, event_id: str, courier_id: str, cost: float) -> bool:
        """total_revenue += cost; строка курьера создаётся при необходимости."""

    @abstractmethod
    async def get_general_stats(self) -> GeneralStats:
        ...

    @abstractmethod
    async def get_courier_stats(self, courier_id: str) -> Optional[CourierStat]:
        ...

    @abstractmethod
    async def list_courier_stats(self) -> list[CourierStat]:
        """Все курьеры по убыванию выручки."""


class PostgresStatsStore(StatsStore):
    """Агрегаты в PostgreSQL (таблицы general_stats, courier_stats, applied_events)."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    @staticmethod
    async def _claim(conn: Connection, event_id: str, event_type: str) -> bool:
        """Записывает event_id в журнал. False, если событие уже применено."""
        result = await conn.execute(
            """
            INSERT INTO applied_events (event_id, event_type)
            VALUES ($1, $2)
            ON CONFLICT (event_id) DO NOTHING
            """,
            event_id,
            event_type,
        )
        return result.split()[-1] == "1"

    async def record_order_created(self, event_id: str, is_new: bool) -> bool:
        async with self._db.transaction() as conn:
            if not await self._claim(conn, event_id, Queues.ORDER_CREATED):
                return False
            await conn.execute("UPDATE general_stats SET total_orders = total_orders + 1 WHERE id = 1")
            if is_new:
                await conn.execute("UPDATE general_stats SET active_orders = active_orders + 1 WHERE id = 1")
        return True

    async def register_courier(self, event_id: str, courier_id: str, courier_name: str) -> bool:
        async with self._db.transaction() as conn:
            if not await self._claim(conn, event_id, Queues.COURIER_CREATED):
                return False
            # Накопленные значения не перезаписываются; заполняется только пустое имя
            await conn.execute(
                """
                INSERT INTO courier_stats (courier_id, courier_name)
                VALUES ($1, $2)
                ON CONFLICT (courier_id) DO UPDATE
                SET courier_name = EXCLUDED.courier_name
                WHERE courier_stats.courier_name = ''
                """,
                courier_id,
                courier_name,
            )
        return True

    async def record_order_completed(self, event_id: str, courier_id: str, duration_sec: float) -> bool:
        async with self._db.transaction() as conn:
            if not await self._claim(conn, event_id, Queues.ORDER_COMPLETED):
                return False

            await conn.execute(
                "INSERT INTO courier_stats (courier_id) VALUES ($1) ON CONFLICT (courier_id) DO NOTHING",
                courier_id,
            )
            row = await conn.fetchrow(
                """
                SELECT completed_orders, average_delivery_time_sec
                FROM courier_stats
                WHERE courier_id = $1
                FOR UPDATE
                """,
                courier_id,
            )
            old_count = row["completed_orders"]
            new_avg = incremental_mean(row["average_delivery_time_sec"], old_count, duration_sec)

            await conn.execute(
                """
                UPDATE courier_stats
                SET completed_orders = $2, average_delivery_time_sec = $3
                WHERE courier_id = $1
                """,
                courier_id,
                old_count + 1,
                new_avg,
            )
            await conn.execute("UPDATE general_stats SET completed_orders = completed_orders + 1 WHERE id = 1")
            await conn.execute(
                "UPDATE general_stats SET active_orders = active_orders - 1 WHERE id = 1 AND active_orders > 0"
            )
        return True

    async def add_revenue(self, event_id: str, courier_id: str, cost: float) -> bool:
        async with self._db.transaction() as conn:
            if not await self._claim(conn, event_id, Queues.DELIVERY_CALCULATED):
                return False
            await conn.execute(
                """
                INSERT INTO courier_stats (courier_id, total_revenue)
                VALUES ($1, $2)
                ON CONFLICT (courier_id) DO UPDATE
                SET total_revenue = courier_stats.total_revenue + EXCLUDED.total_revenue
                """,
                courier_id,
                cost,
            )
        return True

    async def get_general_stats(self) -> GeneralStats:
        row = await self._db.fetchrow(
            "SELECT total_orders, active_orders, completed_orders FROM general_stats WHERE id = 1"
        )
        return GeneralStats(**dict(row)) if row else GeneralStats()

    async def get_courier_stats(self, courier_id: str) -> Optional[CourierStat]:
        row = await self._db.fetchrow(
            """
            SELECT courier_id, courier_name, completed_orders, total_revenue, average_delivery_time_sec
            FROM courier_stats
            WHERE courier_id = $1
            """,
            courier_id,
        )
        return CourierStat(**dict(row)) if row else None

    async def list_courier_stats(self) -> list[CourierStat]:
        rows = await self._db.fetch(
            """
            SELECT courier_id, courier_name, completed_orders, total_revenue, average_delivery_time_sec
            FROM courier_stats
            ORDER BY total_revenue DESC, courier_id
            """
        )
        return [CourierStat(**dict(row)) for row in rows]

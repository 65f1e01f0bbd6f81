# courier_mesh/services/orders_service/repository.py
"""
Репозитории заказов и курьеров.

Методы, изменяющие состояние, принимают соединение с открытой транзакцией,
чтобы сервис мог объединить несколько изменений и запись в outbox.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from asyncpg import Connection

from courier_mesh.common.constants import CourierStatus, OrderStatus
from courier_mesh.infra.database import DatabaseManager
from courier_mesh.shared.models.order import Courier, CreateCourierRequest, CreateOrderRequest, Order

ORDER_COLUMNS = """
    id, sender_name, recipient_name, recipient_email, address_from, address_to,
    weight, length, width, height, urgency, courier_id, status, created_at, completed_at
"""

COURIER_COLUMNS = "id, name, phone, vehicle_type, status, latitude, longitude, active_order_id"


class OrderRepository:
    """Репозиторий заказов."""

    def __init__(self, db: DatabaseManager) -> None:
        """
        Args:
            db: Менеджер базы данных (Dependency Injection)
        """
        self._db = db

    async def insert(self, conn: Connection, order_id: str, request: CreateOrderRequest) -> Order:
        row = await conn.fetchrow(
            f"""
            INSERT INTO orders (
                id, sender_name, recipient_name, recipient_email, address_from, address_to,
                weight, length, width, height, urgency, status
            )
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $12)
            RETURNING {ORDER_COLUMNS}
            """,
            order_id,
            request.sender_name,
            request.recipient_name,
            request.recipient_email,
            request.address_from,
            request.address_to,
            request.weight,
            request.length,
            request.width,
            request.height,
            int(request.urgency),
            OrderStatus.CREATED.value,
        )
        return Order.from_record(row)

    async def get_by_id(self, order_id: str) -> Optional[Order]:
        row = await self._db.fetchrow(
            f"SELECT {ORDER_COLUMNS} FROM orders WHERE id = $1",
            order_id,
        )
        return Order.from_record(row) if row else None

    async def lock_by_id(self, conn: Connection, order_id: str) -> Optional[Order]:
        """Читает заказ с блокировкой строки до конца транзакции."""
        row = await conn.fetchrow(
            f"SELECT {ORDER_COLUMNS} FROM orders WHERE id = $1 FOR UPDATE",
            order_id,
        )
        return Order.from_record(row) if row else None

    async def list_all(self, limit: int = 100, offset: int = 0) -> list[Order]:
        rows = await self._db.fetch(
            f"SELECT {ORDER_COLUMNS} FROM orders ORDER BY created_at DESC LIMIT $1 OFFSET $2",
            limit,
            offset,
        )
        return [Order.from_record(row) for row in rows]

    async def delete(self, order_id: str) -> bool:
        """
        Удаляет заказ.

        Returns:
            True, если строка была удалена
        """
        result = await self._db.execute("DELETE FROM orders WHERE id = $1", order_id)
        return result.split()[-1] != "0"

    async def set_courier(
        self,
        conn: Connection,
        order_id: str,
        courier_id: Optional[str],
        status: OrderStatus,
    ) -> None:
        await conn.execute(
            "UPDATE orders SET courier_id = $2, status = $3 WHERE id = $1",
            order_id,
            courier_id,
            status.value,
        )

    async def mark_completed(self, conn: Connection, order_id: str, completed_at: datetime) -> Order:
        row = await conn.fetchrow(
            f"""
            UPDATE orders
            SET status = $2, completed_at = $3
            WHERE id = $1
            RETURNING {ORDER_COLUMNS}
            """,
            order_id,
            OrderStatus.COMPLETED.value,
            completed_at,
        )
        return Order.from_record(row)


class CourierRepository:
    """Репозиторий курьеров."""

    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def insert(self, conn: Connection, courier_id: str, request: CreateCourierRequest) -> Courier:
        row = await conn.fetchrow(
            f"""
            INSERT INTO couriers (id, name, phone, vehicle_type, status, latitude, longitude)
            VALUES ($1, $2, $3, $4, $5, $6, $7)
            RETURNING {COURIER_COLUMNS}
            """,
            courier_id,
            request.name,
            request.phone,
            request.vehicle_type.value,
            CourierStatus.AVAILABLE.value,
            request.latitude,
            request.longitude,
        )
        return Courier.from_record(row)

    async def get_by_id(self, courier_id: str) -> Optional[Courier]:
        row = await self._db.fetchrow(
            f"SELECT {COURIER_COLUMNS} FROM couriers WHERE id = $1",
            courier_id,
        )
        return Courier.from_record(row) if row else None

    async def exists(self, conn: Connection, courier_id: str) -> bool:
        return bool(await conn.fetchval("SELECT EXISTS (SELECT 1 FROM couriers WHERE id = $1)", courier_id))

    async def list_all(self) -> list[Courier]:
        rows = await self._db.fetch(f"SELECT {COURIER_COLUMNS} FROM couriers ORDER BY created_at")
        return [Courier.from_record(row) for row in rows]

    async def bind_order(self, conn: Connection, courier_id: str, order_id: str) -> None:
        await conn.execute(
            "UPDATE couriers SET active_order_id = $2, status = $3 WHERE id = $1",
            courier_id,
            order_id,
            CourierStatus.BUSY.value,
        )

    async def release_order(self, conn: Connection, courier_id: str, order_id: str) -> None:
        """Снимает заказ с курьера, если он всё ещё за ним закреплён."""
        await conn.execute(
            """
            UPDATE couriers
            SET active_order_id = NULL, status = $3
            WHERE id = $1 AND active_order_id = $2
            """,
            courier_id,
            order_id,
            CourierStatus.AVAILABLE.value,
        )

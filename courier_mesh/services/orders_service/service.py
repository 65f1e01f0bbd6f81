# courier_mesh/services/orders_service/service.py
"""
Жизненный цикл заказа: создание, назначение курьера, завершение.

Каждое изменение состояния и соответствующее событие записываются
в одной транзакции (outbox), поэтому результат запроса не зависит
от доступности брокера.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from courier_mesh.common.constants import WIRE_STATUS_NEW, CourierStatus, OrderStatus, TypeMsg
from courier_mesh.common.exceptions import NotFoundError
from courier_mesh.common.logger import log_info, log_warning
from courier_mesh.infra.database import DatabaseManager
from courier_mesh.infra.outbox import enqueue_event
from courier_mesh.services.orders_service.repository import CourierRepository, OrderRepository
from courier_mesh.services.orders_service.state_machine import OrderStateMachine
from courier_mesh.services.orders_service.tracking_client import TrackingClient
from courier_mesh.services.utils.geo_utils import ensure_non_negative
from courier_mesh.shared.events import (
    CourierCreated,
    NotificationRequested,
    OrderCompleted,
    OrderCreated,
    to_rfc3339,
)
from courier_mesh.shared.models.order import (
    AssignCourierResponse,
    Courier,
    CreateCourierRequest,
    CreateOrderRequest,
    Order,
)


class OrderService:
    def __init__(
        self,
        db: DatabaseManager,
        orders: OrderRepository,
        couriers: CourierRepository,
        tracking: TrackingClient,
    ) -> None:
        self.db = db
        self.orders = orders
        self.couriers = couriers
        self.tracking = tracking

    async def create_order(self, request: CreateOrderRequest) -> Order:
        ensure_non_negative(
            weight=request.weight,
            length=request.length,
            width=request.width,
            height=request.height,
        )
        order_id = str(uuid4())

        async with self.db.transaction() as conn:
            order = await self.orders.insert(conn, order_id, request)
            await enqueue_event(conn, OrderCreated(order_id=order.id, status=WIRE_STATUS_NEW))

        await log_info(f"Заказ {order.id} создан", type_msg=TypeMsg.INFO, extra={"order_id": order.id})
        return order

    async def get_order(self, order_id: str) -> Order:
        order = await self.orders.get_by_id(order_id)
        if order is None:
            raise NotFoundError("order not found")
        return order

    async def list_orders(self, limit: int = 100, offset: int = 0) -> list[Order]:
        return await self.orders.list_all(limit=limit, offset=offset)

    async def delete_order(self, order_id: str) -> None:
        if not await self.orders.delete(order_id):
            raise NotFoundError("order not found")
        await log_info(f"Заказ {order_id} удалён", type_msg=TypeMsg.INFO, extra={"order_id": order_id})

    async def assign_courier(self, order_id: str, courier_id: Optional[str]) -> AssignCourierResponse:
        """
        Назначает курьера на заказ или снимает назначение (courier_id пустой).

        Заказ, прежний и новый курьер обновляются в одной транзакции.
        Уведомление Tracking Service отправляется после commit и на результат не влияет.

        Raises:
            NotFoundError: заказ или курьер не найдены
            InvalidTransitionError: заказ уже завершён
        """
        courier_id = (courier_id or "").strip() or None
        target = OrderStatus.ASSIGNED if courier_id else OrderStatus.CREATED

        async with self.db.transaction() as conn:
            order = await self.orders.lock_by_id(conn, order_id)
            if order is None:
                raise NotFoundError("order not found")

            OrderStateMachine.ensure_transition(order.status, target)

            if courier_id and not await self.couriers.exists(conn, courier_id):
                raise NotFoundError("courier not found")

            if order.courier_id and order.courier_id != courier_id:
                await self.couriers.release_order(conn, order.courier_id, order_id)

            await self.orders.set_courier(conn, order_id, courier_id, target)

            if courier_id:
                await self.couriers.bind_order(conn, courier_id, order_id)

        await log_info(
            f"Заказ {order_id}: курьер {'назначен' if courier_id else 'снят'}",
            type_msg=TypeMsg.INFO,
            extra={"order_id": order_id, "courier_id": courier_id},
        )

        if courier_id:
            await self.tracking.notify({"order_id": order_id, "courier_id": courier_id, "status": "assigned"})
            return AssignCourierResponse(status="courier assigned", courier_id=courier_id)
        return AssignCourierResponse(status="courier unassigned", courier_id=None)

    async def complete_order(self, order_id: str) -> Order:
        """
        Завершает заказ и ставит в outbox order_completed
        (и уведомление получателю, если указан email).

        Raises:
            NotFoundError: заказ не найден
            InvalidTransitionError: заказ уже завершён
        """
        async with self.db.transaction() as conn:
            order = await self.orders.lock_by_id(conn, order_id)
            if order is None:
                raise NotFoundError("order not found")

            OrderStateMachine.ensure_transition(order.status, OrderStatus.COMPLETED)

            completed_at = max(datetime.now(timezone.utc), order.created_at)
            completed = await self.orders.mark_completed(conn, order_id, completed_at)

            if completed.courier_id:
                await self.couriers.release_order(conn, completed.courier_id, order_id)
            else:
                await log_warning(
                    f"Заказ {order_id} завершён без курьера, аналитика его не учтёт",
                    extra={"order_id": order_id},
                )

            await enqueue_event(
                conn,
                OrderCompleted(
                    order_id=completed.id,
                    courier_id=completed.courier_id,
                    created_at=to_rfc3339(completed.created_at),
                    completed_at=to_rfc3339(completed.completed_at),
                ),
            )

            if completed.recipient_email:
                await enqueue_event(
                    conn,
                    NotificationRequested(
                        type="email",
                        recipient=completed.recipient_email,
                        subject=f"Заказ {completed.id} доставлен",
                        message=(
                            f"Здравствуйте, {completed.recipient_name}! "
                            f"Заказ {completed.id} от {completed.sender_name} доставлен."
                        ),
                    ),
                )

        await log_info(f"Заказ {order_id} завершён", type_msg=TypeMsg.INFO, extra={"order_id": order_id})
        return completed


class CourierService:
    def __init__(self, db: DatabaseManager, couriers: CourierRepository, tracking: TrackingClient) -> None:
        self.db = db
        self.couriers = couriers
        self.tracking = tracking

    async def create_courier(self, request: CreateCourierRequest) -> Courier:
        courier_id = str(uuid4())

        async with self.db.transaction() as conn:
            courier = await self.couriers.insert(conn, courier_id, request)
            await enqueue_event(conn, CourierCreated(courier_id=courier.id, courier_name=courier.name))

        await log_info(f"Курьер {courier.id} зарегистрирован", type_msg=TypeMsg.INFO, extra={"courier_id": courier.id})

        await self.tracking.notify({
            "courier_id": courier.id,
            "status": CourierStatus.AVAILABLE.value,
            "latitude": courier.latitude,
            "longitude": courier.longitude,
        })
        return courier

    async def get_courier(self, courier_id: str) -> Courier:
        courier = await self.couriers.get_by_id(courier_id)
        if courier is None:
            raise NotFoundError("courier not found")
        return courier

    async def list_couriers(self) -> list[Courier]:
        return await self.couriers.list_all()

# courier_mesh/shared/events/delivery_events.py
"""
События домена доставки.

Имя очереди совпадает с типом события, кроме уведомлений
(общая очередь ``notifications``).
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field

from courier_mesh.common.constants import WIRE_STATUS_COMPLETED
from courier_mesh.shared.events.base import DomainEvent


class OrderCreated(DomainEvent):
    """Событие: заказ создан."""

    event: Literal["order_created"] = "order_created"

    order_id: str
    status: str | None = None  # "новый" у только что созданного заказа


class OrderCompleted(DomainEvent):
    """Событие: заказ завершён."""

    event: Literal["order_completed"] = "order_completed"

    order_id: str
    courier_id: str | None = None
    created_at: str | None = None  # RFC3339
    completed_at: str | None = None  # RFC3339
    status: str = WIRE_STATUS_COMPLETED


class CourierCreated(DomainEvent):
    """Событие: курьер зарегистрирован."""

    event: Literal["courier_created"] = "courier_created"

    courier_id: str
    courier_name: str = ""


class DeliveryCalculated(DomainEvent):
    """Событие: рассчитана стоимость доставки по заказу."""

    event: Literal["delivery_calculated"] = "delivery_calculated"

    order_id: str
    courier_id: str | None = None
    cost: float = Field(ge=0)


class NotificationRequested(DomainEvent):
    """Событие: запрос на отправку уведомления."""

    event: Literal["notification"] = "notification"

    type: str = "email"
    recipient: str
    message: str
    subject: str | None = None

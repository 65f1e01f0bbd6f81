# courier_mesh/shared/models/order.py
"""
Модели заказов и курьеров.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field

from courier_mesh.common.constants import CourierStatus, OrderStatus, Urgency, VehicleType


class CreateOrderRequest(BaseModel):
    """Запрос на создание заказа."""

    sender_name: str = Field(..., min_length=1, description="Отправитель")
    recipient_name: str = Field(..., min_length=1, description="Получатель")
    recipient_email: Optional[str] = Field(None, description="Email получателя для уведомления о доставке")
    address_from: str = Field(..., min_length=1, description="Адрес забора")
    address_to: str = Field(..., min_length=1, description="Адрес доставки")

    weight: float = Field(0.0, description="Вес, кг")
    length: float = Field(0.0, description="Длина, м")
    width: float = Field(0.0, description="Ширина, м")
    height: float = Field(0.0, description="Высота, м")
    urgency: Urgency = Field(Urgency.STANDARD, description="1 — стандарт, 2 — экспресс")


class Order(BaseModel):
    """Модель заказа."""

    id: str = Field(..., description="Идентификатор заказа")
    sender_name: str
    recipient_name: str
    recipient_email: Optional[str] = None
    address_from: str
    address_to: str

    weight: float = 0.0
    length: float = 0.0
    width: float = 0.0
    height: float = 0.0
    urgency: Urgency = Urgency.STANDARD

    courier_id: Optional[str] = Field(None, description="Назначенный курьер")
    status: OrderStatus = Field(OrderStatus.CREATED, description="Статус заказа")
    created_at: datetime
    completed_at: Optional[datetime] = Field(None, description="Время завершения (только для completed)")

    @classmethod
    def from_record(cls, row: Any) -> "Order":
        """Создаёт модель из строки БД."""
        return cls(**dict(row))


class AssignCourierRequest(BaseModel):
    """Назначение курьера. Пустой courier_id снимает назначение."""

    courier_id: Optional[str] = None


class AssignCourierResponse(BaseModel):
    status: str
    courier_id: Optional[str] = None


class StatusResponse(BaseModel):
    status: str


class CreateCourierRequest(BaseModel):
    """Запрос на регистрацию курьера."""

    name: str = Field(..., min_length=1)
    phone: str = ""
    vehicle_type: VehicleType = VehicleType.FOOT
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)


class Courier(BaseModel):
    """Модель курьера."""

    id: str
    name: str
    phone: str = ""
    vehicle_type: VehicleType = VehicleType.FOOT
    status: CourierStatus = CourierStatus.AVAILABLE
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    active_order_id: Optional[str] = None

    @classmethod
    def from_record(cls, row: Any) -> "Courier":
        data = dict(row)
        data.pop("created_at", None)
        return cls(**data)

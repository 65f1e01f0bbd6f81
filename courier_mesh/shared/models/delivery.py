# courier_mesh/shared/models/delivery.py
"""
Модели расчёта стоимости доставки.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from courier_mesh.common.constants import Urgency


class DeliveryRequest(BaseModel):
    """Параметры расчёта: маршрут, габариты посылки, срочность."""

    from_lat: float = Field(..., ge=-90, le=90)
    from_lng: float = Field(..., ge=-180, le=180)
    to_lat: float = Field(..., ge=-90, le=90)
    to_lng: float = Field(..., ge=-180, le=180)

    weight: float = 0.0
    length: float = 0.0
    width: float = 0.0
    height: float = 0.0
    urgency: Urgency = Urgency.STANDARD

    order_id: Optional[str] = None
    courier_id: Optional[str] = None


class DeliveryResponse(BaseModel):
    estimated_cost: float
    currency: str

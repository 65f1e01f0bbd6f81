# courier_mesh/shared/models/tracking.py
"""
Модели трекинга курьеров.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class TrackingUpdate(BaseModel):
    """Обновление позиции/статуса курьера."""

    courier_id: str = Field(..., min_length=1)
    status: str = Field(..., min_length=1)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    order_id: Optional[str] = None


class TrackingRecord(TrackingUpdate):
    """Последнее известное состояние курьера."""

    updated_at: datetime

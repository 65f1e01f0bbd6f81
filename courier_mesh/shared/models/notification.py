# courier_mesh/shared/models/notification.py
"""
Модель сохранённого уведомления.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel

from courier_mesh.common.constants import NotificationStatus


class Notification(BaseModel):
    id: int
    event_id: Optional[str] = None
    type: str
    recipient: str
    subject: Optional[str] = None
    message: str
    status: NotificationStatus
    error: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_record(cls, row: Any) -> "Notification":
        return cls(**dict(row))

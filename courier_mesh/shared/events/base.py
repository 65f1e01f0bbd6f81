# courier_mesh/shared/events/base.py
"""
Базовый класс для событий и работа с временными метками RFC3339.
"""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from courier_mesh.common.constants import EVENT_SCHEMA_VERSION


def new_event_id() -> str:
    """Генерирует уникальный идентификатор события."""
    return uuid4().hex


class DomainEvent(BaseModel):
    """
    Базовый класс для всех событий шины.

    Все события:
    - иммутабельны
    - сериализуются в плоский JSON с тегом ``event``
    - несут ``event_id`` для дедупликации у потребителя
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    event: str
    event_id: str = Field(default_factory=new_event_id)
    schema_version: int = EVENT_SCHEMA_VERSION

    def to_json(self) -> str:
        """Сериализует событие в JSON."""
        return self.model_dump_json()


def to_rfc3339(value: datetime) -> str:
    """Форматирует datetime в RFC3339 (UTC, суффикс Z)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_rfc3339(value: str) -> datetime:
    """
    Разбирает строку RFC3339.

    Raises:
        ValueError: строка не является временной меткой с часовым поясом
    """
    if not isinstance(value, str) or not value:
        raise ValueError("empty timestamp")
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        raise ValueError(f"timestamp without timezone: {value}")
    return parsed

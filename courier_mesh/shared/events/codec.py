# courier_mesh/shared/events/codec.py
"""
Единый кодек событий.

Закрытое размеченное объединение по полю ``event``: неизвестный тег,
неподдерживаемая версия схемы или отсутствие обязательных полей
превращаются в EventDecodeError.
"""

from __future__ import annotations

from typing import Annotated, Union

from pydantic import Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from courier_mesh.common.constants import EVENT_SCHEMA_VERSION, Queues
from courier_mesh.common.exceptions import EventDecodeError
from courier_mesh.shared.events.delivery_events import (
    CourierCreated,
    DeliveryCalculated,
    NotificationRequested,
    OrderCompleted,
    OrderCreated,
)

Event = Annotated[
    Union[OrderCreated, OrderCompleted, CourierCreated, DeliveryCalculated, NotificationRequested],
    Field(discriminator="event"),
]

_adapter: TypeAdapter[Event] = TypeAdapter(Event)

_QUEUES: dict[type, str] = {
    OrderCreated: Queues.ORDER_CREATED,
    OrderCompleted: Queues.ORDER_COMPLETED,
    CourierCreated: Queues.COURIER_CREATED,
    DeliveryCalculated: Queues.DELIVERY_CALCULATED,
    NotificationRequested: Queues.NOTIFICATIONS,
}


def encode_event(event: Event) -> bytes:
    """Сериализует событие в тело сообщения."""
    return event.model_dump_json().encode("utf-8")


def decode_event(body: bytes | str) -> Event:
    """
    Десериализует тело сообщения в событие.

    Raises:
        EventDecodeError: тело не соответствует ни одному варианту
    """
    try:
        event = _adapter.validate_json(body)
    except PydanticValidationError as e:
        raise EventDecodeError(f"malformed event: {e.error_count()} error(s): {e.errors()[0]['msg']}") from e

    if event.schema_version > EVENT_SCHEMA_VERSION:
        raise EventDecodeError(
            f"unsupported schema_version {event.schema_version} for {event.event}"
        )
    return event


def queue_for(event: Event) -> str:
    """Возвращает имя очереди для события."""
    return _QUEUES[type(event)]

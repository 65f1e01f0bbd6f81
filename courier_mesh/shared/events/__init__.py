# courier_mesh/shared/events/__init__.py
"""
Схемы событий для RabbitMQ.

Все события несут event_id для дедупликации и schema_version.
"""

from courier_mesh.shared.events.base import DomainEvent, new_event_id, parse_rfc3339, to_rfc3339
from courier_mesh.shared.events.delivery_events import (
    CourierCreated,
    DeliveryCalculated,
    NotificationRequested,
    OrderCompleted,
    OrderCreated,
)
from courier_mesh.shared.events.codec import Event, decode_event, encode_event, queue_for

__all__ = [
    "DomainEvent",
    "new_event_id",
    "parse_rfc3339",
    "to_rfc3339",
    "OrderCreated",
    "OrderCompleted",
    "CourierCreated",
    "DeliveryCalculated",
    "NotificationRequested",
    "Event",
    "decode_event",
    "encode_event",
    "queue_for",
]

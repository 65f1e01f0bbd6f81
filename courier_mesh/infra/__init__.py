# courier_mesh/infra/__init__.py
"""
Инфраструктурный слой.
Работа с внешними сервисами: PostgreSQL, Redis, RabbitMQ.
"""

from courier_mesh.infra.database import DatabaseManager, create_database
from courier_mesh.infra.event_bus import EventBus, create_event_bus
from courier_mesh.infra.outbox import OutboxRelay, enqueue_event
from courier_mesh.infra.redis_client import RedisClient, create_redis

__all__ = [
    "DatabaseManager",
    "create_database",
    "EventBus",
    "create_event_bus",
    "OutboxRelay",
    "enqueue_event",
    "RedisClient",
    "create_redis",
]

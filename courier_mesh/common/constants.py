# courier_mesh/common/constants.py
"""
Общие константы и перечисления.
"""

from enum import Enum, IntEnum


class TypeMsg(str, Enum):
    """Типы сообщений для логирования."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class OrderStatus(str, Enum):
    """Статусы заказа."""
    CREATED = "created"
    ASSIGNED = "assigned"
    COMPLETED = "completed"

    def __str__(self) -> str:
        return self.value


class CourierStatus(str, Enum):
    """Статусы курьера."""
    AVAILABLE = "available"
    BUSY = "busy"
    OFFLINE = "offline"

    def __str__(self) -> str:
        return self.value


class VehicleType(str, Enum):
    """Тип транспорта курьера."""
    FOOT = "foot"
    BIKE = "bike"
    CAR = "car"


class Urgency(IntEnum):
    """Класс срочности доставки."""
    STANDARD = 1
    EXPRESS = 2


class NotificationStatus(str, Enum):
    """Статусы отправки уведомления."""
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"


class Queues:
    """Имена очередей RabbitMQ (имя очереди = тип события)."""
    ORDER_CREATED = "order_created"
    ORDER_COMPLETED = "order_completed"
    COURIER_CREATED = "courier_created"
    DELIVERY_CALCULATED = "delivery_calculated"
    NOTIFICATIONS = "notifications"


# Метки статусов в событиях (совместимы с существующими потребителями)
WIRE_STATUS_NEW = "новый"
WIRE_STATUS_COMPLETED = "завершён"

# Текущая версия схемы событий
EVENT_SCHEMA_VERSION = 1

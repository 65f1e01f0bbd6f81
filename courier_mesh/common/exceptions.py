# courier_mesh/common/exceptions.py
"""
Иерархия исключений платформы.

Каждое исключение несёт HTTP статус, в который оно превращается
на границе сервиса (см. courier_mesh.services.http).
"""

from __future__ import annotations


class CourierMeshError(Exception):
    """Базовое исключение платформы."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(CourierMeshError):
    """Некорректный запрос: плохой JSON, формат даты, отрицательные размеры."""

    status_code = 400


# Отрицательные физические параметры посылки
InvalidInput = ValidationError


class NotFoundError(CourierMeshError):
    """Заказ, курьер или уведомление не найдены."""

    status_code = 404


class InvalidTransitionError(CourierMeshError):
    """Недопустимый переход статуса заказа (выход из completed)."""

    status_code = 409

    def __init__(self, current: str, target: str) -> None:
        super().__init__(f"invalid status transition: {current} -> {target}")
        self.current = current
        self.target = target


class DependencyError(CourierMeshError):
    """Хранилище или брокер недоступны (или не ответили вовремя)."""

    status_code = 500


class EventDecodeError(CourierMeshError):
    """
    Некорректное или неполное событие.

    Событие логируется и отбрасывается без повторной доставки.
    """

    status_code = 422

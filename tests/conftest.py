# tests/conftest.py
"""
Общие фикстуры и настройки для тестов.
"""

from __future__ import annotations

import os
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

# Устанавливаем переменные окружения перед импортом модулей
os.environ.setdefault("DB_PASSWORD", "test_password")
os.environ.setdefault("REDIS_PASSWORD", "")
os.environ.setdefault("LOG_TO_FILE", "false")
os.environ.setdefault("LOG_LEVEL", "DEBUG")


# =============================================================================
# ФИКСТУРЫ КОНФИГУРАЦИИ
# =============================================================================

@pytest.fixture(scope="session")
def project_root() -> Path:
    """Корневая директория проекта."""
    return Path(__file__).parent.parent


@pytest.fixture(scope="session")
def config_path(project_root: Path) -> Path:
    """Путь к файлу конфигурации."""
    return project_root / "config" / "config.json"


# =============================================================================
# ФИКСТУРЫ ИНФРАСТРУКТУРЫ (МОКИ)
# =============================================================================

@pytest.fixture
def mock_conn() -> AsyncMock:
    """Мок соединения asyncpg внутри транзакции."""
    conn = AsyncMock()
    conn.fetchrow = AsyncMock(return_value=None)
    conn.fetch = AsyncMock(return_value=[])
    conn.execute = AsyncMock(return_value="INSERT 0 1")
    conn.fetchval = AsyncMock(return_value=None)
    return conn


@pytest.fixture
def mock_db(mock_conn: AsyncMock) -> AsyncMock:
    """Мок менеджера базы данных; transaction() отдаёт mock_conn."""
    db = AsyncMock()
    db.fetchrow = AsyncMock(return_value=None)
    db.fetch = AsyncMock(return_value=[])
    db.execute = AsyncMock(return_value="INSERT 0 1")
    db.fetchval = AsyncMock(return_value=None)
    db.health_check = AsyncMock(return_value=True)

    @asynccontextmanager
    async def transaction():
        yield mock_conn

    db.transaction = MagicMock(side_effect=transaction)
    return db


@pytest.fixture
def mock_event_bus() -> AsyncMock:
    """Мок шины событий."""
    event_bus = AsyncMock()
    event_bus.publish_to_queue = AsyncMock(return_value=None)
    event_bus.consume = AsyncMock(return_value=None)
    event_bus.health_check = AsyncMock(return_value=True)
    event_bus.is_connected = True
    return event_bus


@pytest.fixture
def mock_redis() -> AsyncMock:
    """Мок RedisClient со словарём вместо Redis."""
    storage: dict[str, dict[str, str]] = {}
    redis = AsyncMock()

    async def hset_mapping(name: str, mapping: dict[str, str]) -> int:
        storage.setdefault(name, {}).update(mapping)
        return len(mapping)

    async def hgetall(name: str) -> dict[str, str]:
        return dict(storage.get(name, {}))

    redis.hset_mapping = AsyncMock(side_effect=hset_mapping)
    redis.hgetall = AsyncMock(side_effect=hgetall)
    redis.publish = AsyncMock(return_value=1)
    redis.health_check = AsyncMock(return_value=True)
    redis.storage = storage
    return redis


# =============================================================================
# ФИКСТУРЫ ДАННЫХ
# =============================================================================

@pytest.fixture
def order_created_at() -> datetime:
    return datetime(2025, 5, 14, 13, 5, 51, tzinfo=timezone.utc)


@pytest.fixture
def sample_order_row(order_created_at: datetime) -> dict[str, Any]:
    """Пример строки заказа из БД."""
    return {
        "id": "9b2f4c1e-0000-4000-8000-000000000001",
        "sender_name": "Иван",
        "recipient_name": "Пётр",
        "recipient_email": "petr@example.com",
        "address_from": "Москва, Тверская 1",
        "address_to": "Москва, Арбат 10",
        "weight": 2.0,
        "length": 0.5,
        "width": 0.4,
        "height": 0.3,
        "urgency": 1,
        "courier_id": None,
        "status": "created",
        "created_at": order_created_at,
        "completed_at": None,
    }


@pytest.fixture
def sample_courier_row() -> dict[str, Any]:
    """Пример строки курьера из БД."""
    return {
        "id": "c1",
        "name": "Алексей",
        "phone": "+79990000000",
        "vehicle_type": "bike",
        "status": "available",
        "latitude": 55.7558,
        "longitude": 37.6173,
        "active_order_id": None,
    }


@pytest.fixture
def completed_order_row(sample_order_row: dict[str, Any], order_created_at: datetime) -> dict[str, Any]:
    return {
        **sample_order_row,
        "courier_id": "c1",
        "status": "completed",
        "completed_at": order_created_at + timedelta(seconds=600),
    }

# tests/infra/test_database.py
"""
Тесты для менеджера базы данных.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock

import pytest

from courier_mesh.common.exceptions import DependencyError
from courier_mesh.infra.database import DatabaseManager, retry_on_connection_error


class TestRetryOnConnectionError:
    """Тесты для декоратора retry_on_connection_error."""

    @pytest.mark.asyncio
    async def test_success_first_attempt(self) -> None:
        @retry_on_connection_error(max_attempts=3, delay=0.01)
        async def successful_func():
            return "success"

        assert await successful_func() == "success"

    @pytest.mark.asyncio
    async def test_retry_on_connection_error(self) -> None:
        call_count = 0

        @retry_on_connection_error(max_attempts=3, delay=0.01)
        async def failing_then_success():
            nonlocal call_count
            call_count += 1
            if call_count < 2:
                raise ConnectionRefusedError("Connection refused")
            return "success"

        assert await failing_then_success() == "success"
        assert call_count == 2

    @pytest.mark.asyncio
    async def test_max_attempts_exceeded_raises_dependency_error(self) -> None:
        @retry_on_connection_error(max_attempts=2, delay=0.01)
        async def always_failing():
            raise ConnectionRefusedError("Connection refused")

        with pytest.raises(DependencyError) as exc_info:
            await always_failing()
        assert exc_info.value.message == "database unavailable"

    @pytest.mark.asyncio
    async def test_timeout_is_not_retried(self) -> None:
        call_count = 0

        @retry_on_connection_error(max_attempts=3, delay=0.01)
        async def slow():
            nonlocal call_count
            call_count += 1
            raise asyncio.TimeoutError()

        with pytest.raises(DependencyError) as exc_info:
            await slow()
        assert exc_info.value.message == "database timeout"
        assert call_count == 1

    @pytest.mark.asyncio
    async def test_non_connection_error_not_retried(self) -> None:
        call_count = 0

        @retry_on_connection_error(max_attempts=3, delay=0.01)
        async def value_error():
            nonlocal call_count
            call_count += 1
            raise ValueError("bad query")

        with pytest.raises(ValueError):
            await value_error()
        assert call_count == 1


def _pool_with(conn: AsyncMock) -> MagicMock:
    pool = MagicMock()

    @asynccontextmanager
    async def acquire():
        yield conn

    pool.acquire = MagicMock(side_effect=acquire)
    return pool


class TestDatabaseManager:
    def test_pool_not_initialized(self) -> None:
        with pytest.raises(RuntimeError):
            DatabaseManager().pool

    @pytest.mark.asyncio
    async def test_fetchval_uses_pool(self) -> None:
        conn = AsyncMock()
        conn.fetchval = AsyncMock(return_value=1)
        db = DatabaseManager(pool=_pool_with(conn))

        assert await db.fetchval("SELECT 1") == 1
        conn.fetchval.assert_awaited_once_with("SELECT 1", column=0)

    @pytest.mark.asyncio
    async def test_health_check_false_on_error(self) -> None:
        conn = AsyncMock()
        conn.fetchval = AsyncMock(side_effect=ValueError("boom"))
        db = DatabaseManager(pool=_pool_with(conn))

        assert await db.health_check() is False

    @pytest.mark.asyncio
    async def test_acquire_converts_connection_errors(self) -> None:
        pool = MagicMock()

        @asynccontextmanager
        async def acquire():
            raise ConnectionRefusedError("refused")
            yield

        pool.acquire = MagicMock(side_effect=acquire)
        db = DatabaseManager(pool=pool)

        with pytest.raises(DependencyError):
            async with db.acquire():
                pass

    @pytest.mark.asyncio
    async def test_transaction_wraps_connection_transaction(self) -> None:
        conn = AsyncMock()
        tx = MagicMock()
        tx.__aenter__ = AsyncMock(return_value=None)
        tx.__aexit__ = AsyncMock(return_value=False)
        conn.transaction = MagicMock(return_value=tx)
        db = DatabaseManager(pool=_pool_with(conn))

        async with db.transaction() as c:
            assert c is conn

        tx.__aenter__.assert_awaited_once()
        tx.__aexit__.assert_awaited_once()

# courier_mesh/infra/database.py
"""
Менеджер базы данных PostgreSQL.
Реализует пул соединений, автоматический retry и транзакции.

Экземпляр создаётся явно в lifespan сервиса и передаётся компонентам,
глобального экземпляра нет.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from functools import wraps
from pathlib import Path
from typing import Any, AsyncGenerator, Callable, TypeVar

import asyncpg
from asyncpg import Connection, Pool, Record

from courier_mesh.common.constants import TypeMsg
from courier_mesh.common.exceptions import DependencyError
from courier_mesh.common.logger import log_error, log_info, log_warning

T = TypeVar("T")

# Ошибки, после которых имеет смысл повторить запрос
CONNECTION_ERRORS: tuple[type[BaseException], ...] = (
    asyncpg.PostgresConnectionError,
    asyncpg.InterfaceError,
    ConnectionRefusedError,
    OSError,
)

# ID advisory-лока для применения схемы
SCHEMA_LOCK_ID = 842_017_553


def retry_on_connection_error(
    max_attempts: int = 3,
    delay: float = 1.0,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Декоратор для автоматического ретрая при ошибках подключения.
    После исчерпания попыток поднимает DependencyError.

    Args:
        max_attempts: Максимальное количество попыток
        delay: Базовая задержка между попытками (секунды), растёт линейно
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            for attempt in range(1, max_attempts + 1):
                try:
                    return await func(*args, **kwargs)
                except asyncio.TimeoutError as e:
                    await log_error(f"Таймаут запроса к БД: {e}")
                    raise DependencyError("database timeout") from e
                except CONNECTION_ERRORS as e:
                    if attempt < max_attempts:
                        await log_warning(
                            f"Ошибка подключения к БД (попытка {attempt}/{max_attempts}): {e}",
                        )
                        await asyncio.sleep(delay * attempt)
                    else:
                        await log_error(f"Не удалось выполнить запрос к БД после {max_attempts} попыток: {e}")
                        raise DependencyError("database unavailable") from e
            raise DependencyError("database unavailable")

        return wrapper  # type: ignore

    return decorator


class DatabaseManager:
    """Владелец пула соединений к PostgreSQL."""

    def __init__(self, pool: Pool | None = None) -> None:
        self._pool = pool

    @property
    def pool(self) -> Pool:
        """Возвращает пул соединений."""
        if self._pool is None:
            raise RuntimeError("Пул соединений не инициализирован. Вызовите connect() сначала.")
        return self._pool

    @property
    def is_connected(self) -> bool:
        return self._pool is not None

    @retry_on_connection_error(max_attempts=3, delay=1.0)
    async def connect(
        self,
        dsn: str,
        min_size: int = 2,
        max_size: int = 10,
        command_timeout: float = 10.0,
    ) -> None:
        """
        Создаёт пул соединений к PostgreSQL.

        Args:
            dsn: DSN строка подключения
            min_size: Минимальный размер пула
            max_size: Максимальный размер пула
            command_timeout: Таймаут любой команды (секунды)
        """
        if self._pool is not None:
            return

        await log_info("Подключение к PostgreSQL...", type_msg=TypeMsg.INFO)
        self._pool = await asyncpg.create_pool(
            dsn=dsn,
            min_size=min_size,
            max_size=max_size,
            command_timeout=command_timeout,
        )
        await log_info("Подключение к PostgreSQL установлено", type_msg=TypeMsg.INFO)

    async def disconnect(self) -> None:
        """Закрывает пул соединений."""
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            await log_info("Соединение с PostgreSQL закрыто", type_msg=TypeMsg.INFO)

    @asynccontextmanager
    async def acquire(self) -> AsyncGenerator[Connection, None]:
        """
        Контекстный менеджер для получения соединения из пула.

        Example:
            async with db.acquire() as conn:
                rows = await conn.fetch("SELECT * FROM orders")
        """
        try:
            async with self.pool.acquire() as connection:
                yield connection
        except asyncio.TimeoutError as e:
            raise DependencyError("database timeout") from e
        except CONNECTION_ERRORS as e:
            raise DependencyError("database unavailable") from e

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[Connection, None]:
        """
        Контекстный менеджер для транзакции.
        Commit при успехе, rollback при любой ошибке внутри блока.

        Example:
            async with db.transaction() as conn:
                await conn.execute("UPDATE orders ...")
                await enqueue_event(conn, event)
        """
        async with self.acquire() as connection:
            async with connection.transaction():
                yield connection

    @retry_on_connection_error()
    async def execute(self, query: str, *args: Any) -> str:
        """Выполняет SQL запрос без возврата данных и возвращает статус."""
        async with self.pool.acquire() as conn:
            return await conn.execute(query, *args)

    @retry_on_connection_error()
    async def fetch(self, query: str, *args: Any) -> list[Record]:
        """Выполняет SQL запрос и возвращает все строки."""
        async with self.pool.acquire() as conn:
            return await conn.fetch(query, *args)

    @retry_on_connection_error()
    async def fetchrow(self, query: str, *args: Any) -> Record | None:
        """Выполняет SQL запрос и возвращает одну строку или None."""
        async with self.pool.acquire() as conn:
            return await conn.fetchrow(query, *args)

    @retry_on_connection_error()
    async def fetchval(self, query: str, *args: Any, column: int = 0) -> Any:
        """Выполняет SQL запрос и возвращает одно значение."""
        async with self.pool.acquire() as conn:
            return await conn.fetchval(query, *args, column=column)

    async def init_schema(self, schema_path: Path | None = None) -> None:
        """
        Применяет migrations/init.sql.
        Скрипт идемпотентен; одновременный старт нескольких сервисов
        сериализуется advisory-локом.
        """
        if schema_path is None:
            from courier_mesh.config.loader import get_project_root
            schema_path = get_project_root() / "migrations" / "init.sql"

        if not schema_path.exists():
            await log_error(f"Файл схемы БД не найден: {schema_path}")
            return

        schema_sql = schema_path.read_text(encoding="utf-8")

        await log_info("Применение схемы БД...", type_msg=TypeMsg.INFO)
        async with self.transaction() as conn:
            await conn.execute("SELECT pg_advisory_xact_lock($1)", SCHEMA_LOCK_ID)
            await conn.execute(schema_sql)
        await log_info("Схема БД применена", type_msg=TypeMsg.INFO)

    async def health_check(self) -> bool:
        """Проверяет, отвечает ли PostgreSQL."""
        try:
            result = await self.fetchval("SELECT 1")
            return result == 1
        except Exception as e:
            await log_error(f"Health check PostgreSQL failed: {e}")
            return False


async def create_database(settings: Any) -> DatabaseManager:
    """
    Создаёт и подключает DatabaseManager по секции настроек database.

    Args:
        settings: Объект Settings
    """
    db = DatabaseManager()
    await db.connect(
        dsn=settings.database.dsn,
        min_size=settings.database.DB_MIN_POOL_SIZE,
        max_size=settings.database.DB_MAX_POOL_SIZE,
        command_timeout=settings.database.DB_COMMAND_TIMEOUT,
    )
    await log_info(
        f"PostgreSQL подключён: {settings.database.DB_HOST}:{settings.database.DB_PORT}/{settings.database.DB_NAME}",
        type_msg=TypeMsg.INFO,
    )
    await db.init_schema()
    return db

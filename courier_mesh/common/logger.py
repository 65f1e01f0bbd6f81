# courier_mesh/common/logger.py
"""
Модуль структурированного логирования.
Поддерживает JSON и цветной текстовый формат, запись в файл с ротацией.
"""

from __future__ import annotations

import inspect
import json
import logging
import os
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

from courier_mesh.common.constants import TypeMsg


DEFAULT_LOGGER = "courier_mesh"

# Общие файловые хендлеры (один на процесс)
_FILE_HANDLER: logging.Handler | None = None
_ERROR_HANDLER: logging.Handler | None = None

_LOGGING_INITIALIZED: bool = False

_loggers: dict[str, logging.Logger] = {}


# =============================================================================
# ФОРМАТТЕРЫ
# =============================================================================

class JsonFormatter(logging.Formatter):
    """Форматтер для JSON логов."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": os.getenv("SERVICE_NAME", ""),
        }

        extra_data = getattr(record, "extra_data", None)
        if extra_data:
            log_data["extra"] = extra_data

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)


class ColoredFormatter(logging.Formatter):
    """Цветной форматтер для консоли (разработка)."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"
    GRAY = "\033[90m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, self.GRAY)
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")

        caller_info = ""
        extra_data = getattr(record, "extra_data", None) or {}
        if extra_data.get("caller_function"):
            caller_info = (
                f" {self.GRAY}[{extra_data.get('caller_module')}."
                f"{extra_data.get('caller_function')}() "
                f"{extra_data.get('caller_file')}:{extra_data.get('caller_line')}]{self.RESET}"
            )

        message = f"{timestamp} {color}[{record.levelname}]{self.RESET}{caller_info} {record.getMessage()}"

        if record.exc_info:
            message += "\n" + self.formatException(record.exc_info)

        return message


def _make_formatter(log_format: str) -> logging.Formatter:
    if log_format == "json":
        return JsonFormatter()
    return ColoredFormatter()


# =============================================================================
# ЛОГГЕР
# =============================================================================

def _read_logging_options() -> dict[str, Any]:
    """
    Читает параметры логирования из настроек.
    Если настройки недоступны (например, при импорте в тестах), возвращает значения по умолчанию.
    """
    options: dict[str, Any] = {
        "level": "DEBUG",
        "format": "colored",
        "to_file": False,
        "file_path": "logs/app.log",
        "max_bytes": 10485760,
        "backup_count": 5,
    }
    try:
        from courier_mesh.config import settings

        section = settings.logging
        if isinstance(section.LOG_LEVEL, str):
            options["level"] = section.LOG_LEVEL
        if isinstance(section.LOG_FORMAT, str):
            options["format"] = section.LOG_FORMAT
        if isinstance(section.LOG_FILE_PATH, str):
            options["file_path"] = section.LOG_FILE_PATH
        options["to_file"] = bool(section.LOG_TO_FILE)
        options["max_bytes"] = int(section.LOG_MAX_BYTES)
        options["backup_count"] = int(section.LOG_BACKUP_COUNT)
    except Exception:
        # Настройки ещё не загружены, остаёмся на значениях по умолчанию
        pass
    return options


def _file_handlers(options: dict[str, Any]) -> list[logging.Handler]:
    """Возвращает общие файловые хендлеры, создавая их при первом обращении."""
    global _FILE_HANDLER, _ERROR_HANDLER

    log_path = Path(options["file_path"])
    log_path.parent.mkdir(parents=True, exist_ok=True)

    if _FILE_HANDLER is None:
        name = log_path.stem
        service_name = os.getenv("SERVICE_NAME")
        if service_name:
            name = f"{name}_{service_name}"
        _FILE_HANDLER = RotatingFileHandler(
            log_path.parent / f"{name}.log",
            maxBytes=options["max_bytes"],
            backupCount=options["backup_count"],
            encoding="utf-8",
        )
        _FILE_HANDLER.setFormatter(_make_formatter(options["format"]))

    if _ERROR_HANDLER is None:
        _ERROR_HANDLER = RotatingFileHandler(
            log_path.parent / "error.log",
            maxBytes=options["max_bytes"],
            backupCount=options["backup_count"],
            encoding="utf-8",
        )
        _ERROR_HANDLER.setLevel(logging.ERROR)
        _ERROR_HANDLER.setFormatter(_make_formatter(options["format"]))

    return [_FILE_HANDLER, _ERROR_HANDLER]


def setup_logging() -> None:
    """
    Инициализирует систему логирования.
    Может безопасно вызываться многократно (идемпотентна).
    """
    global _LOGGING_INITIALIZED

    if _LOGGING_INITIALIZED:
        return
    _LOGGING_INITIALIZED = True

    get_logger(DEFAULT_LOGGER)

    for noisy in ("asyncpg", "aio_pika", "aiormq", "redis", "httpx", "uvicorn.access"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str = DEFAULT_LOGGER) -> logging.Logger:
    """
    Возвращает настроенный логгер.
    Использует кэширование для избежания дублирования хендлеров.
    """
    if name in _loggers:
        return _loggers[name]

    options = _read_logging_options()

    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, str(options["level"]).upper(), logging.DEBUG))

    if not logger.handlers:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(_make_formatter(options["format"]))
        logger.addHandler(console_handler)

        if options["to_file"]:
            for handler in _file_handlers(options):
                logger.addHandler(handler)

    logger.propagate = False

    _loggers[name] = logger
    return logger


# =============================================================================
# ВСПОМОГАТЕЛЬНЫЕ ФУНКЦИИ ЛОГИРОВАНИЯ
# =============================================================================

def _get_caller_info(depth: int = 2) -> dict[str, Any]:
    """
    Возвращает информацию о коде, вызвавшем функцию логирования.

    Args:
        depth: На сколько кадров подняться от текущего
    """
    frame = inspect.currentframe()
    try:
        caller_frame = frame
        for _ in range(depth):
            if caller_frame is None:
                return {}
            caller_frame = caller_frame.f_back
        if caller_frame is None:
            return {}

        module = inspect.getmodule(caller_frame)
        return {
            "caller_function": caller_frame.f_code.co_name,
            "caller_module": module.__name__ if module else "unknown",
            "caller_file": os.path.basename(caller_frame.f_code.co_filename),
            "caller_line": caller_frame.f_lineno,
        }
    finally:
        del frame


async def log_info(
    message: str,
    *,
    type_msg: TypeMsg = TypeMsg.INFO,
    logger_name: str = DEFAULT_LOGGER,
    extra: dict[str, Any] | None = None,
    _depth: int = 2,
) -> None:
    """
    Асинхронная функция логирования.

    Args:
        message: Сообщение для логирования
        type_msg: Уровень сообщения
        logger_name: Имя логгера
        extra: Дополнительные данные (идентификаторы заказа, события и т.п.)
    """
    logger = get_logger(logger_name)
    record_extra = {"extra_data": {**_get_caller_info(_depth), **(extra or {})}}

    match type_msg:
        case TypeMsg.DEBUG:
            logger.debug(message, extra=record_extra)
        case TypeMsg.WARNING:
            logger.warning(message, extra=record_extra)
        case TypeMsg.ERROR:
            logger.error(message, extra=record_extra)
        case TypeMsg.CRITICAL:
            logger.critical(message, extra=record_extra)
        case _:
            logger.info(message, extra=record_extra)


async def log_debug(
    message: str,
    logger_name: str = DEFAULT_LOGGER,
    extra: dict[str, Any] | None = None,
) -> None:
    """Логирование DEBUG уровня."""
    await log_info(message, type_msg=TypeMsg.DEBUG, logger_name=logger_name, extra=extra, _depth=3)


async def log_warning(
    message: str,
    logger_name: str = DEFAULT_LOGGER,
    extra: dict[str, Any] | None = None,
) -> None:
    """Логирование WARNING уровня."""
    await log_info(message, type_msg=TypeMsg.WARNING, logger_name=logger_name, extra=extra, _depth=3)


async def log_error(
    message: str,
    logger_name: str = DEFAULT_LOGGER,
    extra: dict[str, Any] | None = None,
    exc_info: bool = False,
) -> None:
    """
    Логирование ERROR уровня.

    Args:
        message: Сообщение об ошибке
        logger_name: Имя логгера
        extra: Дополнительные данные
        exc_info: Включать ли трейсбек исключения
    """
    logger = get_logger(logger_name)
    record_extra = {"extra_data": {**_get_caller_info(), **(extra or {})}}
    logger.error(message, extra=record_extra, exc_info=exc_info)

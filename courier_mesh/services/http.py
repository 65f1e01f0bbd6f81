# courier_mesh/services/http.py
"""
Общий HTTP-слой сервисов: преобразование исключений в ответы
вида {"error": message} и health-эндпоинт.
"""

from __future__ import annotations

from typing import Awaitable, Callable

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from courier_mesh.common.exceptions import CourierMeshError
from courier_mesh.common.logger import log_error, log_warning
from courier_mesh.shared.models.common import ErrorResponse, HealthStatus


async def courier_mesh_error_handler(request: Request, exc: CourierMeshError) -> JSONResponse:
    if exc.status_code >= 500:
        await log_error(
            f"{request.method} {request.url.path}: {exc.message}",
            extra={"status_code": exc.status_code},
        )
    return JSONResponse(status_code=exc.status_code, content=ErrorResponse(error=exc.message).model_dump())


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
    else:
        message = "invalid request"
    await log_warning(f"{request.method} {request.url.path}: некорректный запрос: {message}")
    return JSONResponse(status_code=400, content=ErrorResponse(error=message).model_dump())


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=ErrorResponse(error=str(exc.detail)).model_dump())


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    await log_error(f"{request.method} {request.url.path}: необработанная ошибка: {exc}", exc_info=True)
    return JSONResponse(status_code=500, content=ErrorResponse(error="internal error").model_dump())


def install_error_handlers(app: FastAPI) -> None:
    """Регистрирует обработчики ошибок на приложении."""
    app.add_exception_handler(CourierMeshError, courier_mesh_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)


HealthProbe = Callable[[], Awaitable[bool]]


def add_health_route(app: FastAPI, service: str, probes: Callable[[Request], dict[str, HealthProbe]]) -> None:
    """
    Добавляет GET /health.

    Args:
        app: Приложение
        service: Имя сервиса
        probes: Функция, возвращающая проверки зависимостей из app.state
    """
    from courier_mesh import __version__

    @app.get("/health", response_model=HealthStatus)
    async def health_check(request: Request) -> HealthStatus:
        dependencies: dict[str, str] = {}
        for name, probe in probes(request).items():
            dependencies[name] = "healthy" if await probe() else "unhealthy"
        status = "healthy" if all(v == "healthy" for v in dependencies.values()) else "degraded"
        return HealthStatus(service=service, status=status, version=__version__, dependencies=dependencies)

#!/usr/bin/env python3
# main.py
"""
Главная точка входа платформы доставки Courier Mesh.
Запускает один сервис, все сервисы сразу или симулятор курьера.
"""

from __future__ import annotations

import asyncio
import signal
import sys
from typing import Sequence

from courier_mesh.common.constants import TypeMsg
from courier_mesh.common.logger import log_error, log_info, setup_logging
from courier_mesh.config import settings

# mode -> (модуль приложения, атрибут порта в settings.deployment, название)
SERVICES: dict[str, tuple[str, str, str]] = {
    "orders_service": (
        "courier_mesh.services.orders_service.app:app",
        "ORDERS_SERVICE_PORT",
        "Orders Service",
    ),
    "delivery_service": (
        "courier_mesh.services.delivery_service.app:app",
        "DELIVERY_SERVICE_PORT",
        "Delivery Service",
    ),
    "analytics_service": (
        "courier_mesh.services.analytics_service.app:app",
        "ANALYTICS_SERVICE_PORT",
        "Analytics Service",
    ),
    "tracking_service": (
        "courier_mesh.services.tracking_service.app:app",
        "TRACKING_SERVICE_PORT",
        "Tracking Service",
    ),
    "notifications_service": (
        "courier_mesh.services.notifications_service.app:app",
        "NOTIFICATIONS_SERVICE_PORT",
        "Notifications Service",
    ),
}

VALID_MODES = (*SERVICES, "simulate", "all")

# Глобальный флаг для graceful shutdown
_shutdown_event: asyncio.Event | None = None
_running_tasks: list[asyncio.Task] = []


def setup_signal_handlers() -> None:
    """Настраивает обработчики сигналов для graceful shutdown."""
    global _shutdown_event
    _shutdown_event = asyncio.Event()

    def signal_handler(sig: int) -> None:
        """Обработчик сигналов SIGINT и SIGTERM."""
        if _shutdown_event and not _shutdown_event.is_set():
            print(f"\nПолучен сигнал остановки (sig={sig}), завершаем работу...")
            _shutdown_event.set()
            for task in _running_tasks:
                if not task.done():
                    task.cancel()

    try:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, lambda s=sig: signal_handler(s))
    except NotImplementedError:
        # Windows не поддерживает add_signal_handler
        signal.signal(signal.SIGINT, lambda s, f: signal_handler(s))
        signal.signal(signal.SIGTERM, lambda s, f: signal_handler(s))


async def run_service(mode: str) -> None:
    """Запускает HTTP сервис под uvicorn.Server."""
    import uvicorn

    app_path, port_attr, title = SERVICES[mode]
    port = getattr(settings.deployment, port_attr)

    await log_info(f"Запуск {title} на порту {port}...", type_msg=TypeMsg.INFO)

    config = uvicorn.Config(
        app_path,
        host=settings.deployment.SERVICE_HOST,
        port=port,
        log_level=settings.logging.LOG_LEVEL.lower(),
    )

    server = uvicorn.Server(config)
    try:
        await server.serve()
    except asyncio.CancelledError:
        await log_info(f"{title}: graceful shutdown", type_msg=TypeMsg.DEBUG)
        await server.shutdown()


async def run_simulation(args: Sequence[str]) -> None:
    """
    Проводит заказ через жизненный цикл силами симулятора курьера.

    Args:
        args: order_id courier_id from_lat from_lng to_lat to_lng
    """
    import httpx

    from courier_mesh.services.courier_simulator import CourierSimulator, Route

    if len(args) != 6:
        raise ValueError("simulate: ожидается order_id courier_id from_lat from_lng to_lat to_lng")

    order_id, courier_id = args[0], args[1]
    route = Route(*(float(value) for value in args[2:]))

    async with httpx.AsyncClient(timeout=settings.services.HTTP_TIMEOUT) as http_client:
        simulator = CourierSimulator(
            http_client,
            orders_url=settings.services.ORDERS_URL,
            delivery_url=settings.services.DELIVERY_URL,
            tracking_url=settings.services.TRACKING_URL,
            step_delay=1.0,
        )
        result = await simulator.run(order_id, courier_id, route)

    await log_info(
        f"Заказ {result.order_id} доставлен курьером {result.courier_id}: "
        f"{result.estimated_cost:.2f} {result.currency}, обновлений трекинга {result.tracking_updates}",
        type_msg=TypeMsg.INFO,
    )


async def main(mode: str | None = None, args: Sequence[str] = ()) -> None:
    """
    Главная функция запуска.

    Args:
        mode: Режим запуска. Если None, берётся из COMPONENT_MODE.
        args: Позиционные аргументы режима (для simulate)
    """
    global _running_tasks

    setup_logging()
    setup_signal_handlers()

    if mode is None:
        mode = settings.system.COMPONENT_MODE if settings.system.COMPONENT_MODE in VALID_MODES else "all"

    await log_info(
        f"Courier Mesh v{settings.system.VERSION} — запуск в режиме '{mode}'",
        type_msg=TypeMsg.INFO,
    )

    try:
        if mode in SERVICES:
            _running_tasks = [asyncio.create_task(run_service(mode))]
        elif mode == "simulate":
            _running_tasks = [asyncio.create_task(run_simulation(args))]
        elif mode == "all":
            await log_info(f"Запуск всех сервисов ({len(SERVICES)})...", type_msg=TypeMsg.INFO)
            _running_tasks = [asyncio.create_task(run_service(name)) for name in SERVICES]
        else:
            await log_error(f"Неизвестный режим: {mode}")
            return

        results = await asyncio.gather(*_running_tasks, return_exceptions=True)
        for result in results:
            if isinstance(result, Exception):
                raise result

    except asyncio.CancelledError:
        await log_info("Задача отменена, выполняется graceful shutdown", type_msg=TypeMsg.INFO)
    except Exception as e:
        await log_error(f"Критическая ошибка: {e}", exc_info=True)
        raise
    finally:
        if _running_tasks:
            await log_info("Отмена оставшихся задач...", type_msg=TypeMsg.DEBUG)
            for task in _running_tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*_running_tasks, return_exceptions=True)
            _running_tasks.clear()
        await log_info("Приложение остановлено", type_msg=TypeMsg.INFO)


def print_usage() -> None:
    """Выводит справку по использованию."""
    print("""
Courier Mesh — платформа доставки на микросервисах

Использование:
    python main.py [mode] [args...]

Сервисы:
    orders_service         — Orders Service (:8080)
    delivery_service       — Delivery Service (:8081)
    analytics_service      — Analytics Service (:8082)
    tracking_service       — Tracking Service (:8083)
    notifications_service  — Notifications Service (:8084)

Комплексный запуск:
    all                    — Все сервисы в одном процессе

Симулятор:
    simulate ORDER_ID COURIER_ID FROM_LAT FROM_LNG TO_LAT TO_LNG

Примеры:
    python main.py                       # Режим из COMPONENT_MODE
    python main.py orders_service        # Только Orders Service
    python main.py simulate 1f2e... c1 55.7558 37.6173 55.7601 37.6186
    """)


if __name__ == "__main__":
    mode = None
    mode_args: list[str] = []

    if len(sys.argv) > 1:
        arg = sys.argv[1].lower()
        if arg in ("--help", "-h"):
            print_usage()
            sys.exit(0)
        elif arg in VALID_MODES:
            mode = arg
            mode_args = sys.argv[2:]
        else:
            print(f"Неизвестный режим: {arg}")
            print_usage()
            sys.exit(1)

    try:
        asyncio.run(main(mode, mode_args))
    except KeyboardInterrupt:
        pass
    except Exception:
        sys.exit(1)

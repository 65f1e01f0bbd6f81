# courier_mesh/services/courier_simulator/client.py
"""
Симулятор курьера.

Сценарий:
1. Назначение курьера на заказ (Orders Service)
2. Расчёт стоимости доставки по заказу (Delivery Service)
3. Движение от точки отправления к точке назначения с обновлениями трекинга
4. Финальный статус delivered и завершение заказа
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any

import httpx

from courier_mesh.common.constants import TypeMsg
from courier_mesh.common.logger import log_info, log_warning
from courier_mesh.services.utils.geo_utils import calculate_distance, move_towards

STATUS_IN_TRANSIT = "in_transit"
STATUS_DELIVERED = "delivered"


@dataclass(frozen=True)
class Route:
    """Маршрут доставки в координатах (геокодинг не выполняется)."""
    from_lat: float
    from_lng: float
    to_lat: float
    to_lng: float

    @property
    def distance_km(self) -> float:
        return calculate_distance(self.from_lat, self.from_lng, self.to_lat, self.to_lng)


@dataclass
class SimulationResult:
    order_id: str
    courier_id: str
    estimated_cost: float
    currency: str
    tracking_updates: int


class CourierSimulator:
    def __init__(
        self,
        http_client: httpx.AsyncClient,
        orders_url: str,
        delivery_url: str,
        tracking_url: str,
        steps: int = 10,
        step_delay: float = 0.0,
    ) -> None:
        """
        Args:
            http_client: HTTP клиент (таймауты задаются при создании)
            orders_url: Базовый URL Orders Service
            delivery_url: Базовый URL Delivery Service
            tracking_url: Базовый URL Tracking Service
            steps: Количество шагов движения по маршруту
            step_delay: Пауза между шагами (секунды)
        """
        self._http = http_client
        self._orders_url = orders_url.rstrip("/")
        self._delivery_url = delivery_url.rstrip("/")
        self._tracking_url = tracking_url.rstrip("/")
        self._steps = max(1, steps)
        self._step_delay = step_delay

    async def run(self, order_id: str, courier_id: str, route: Route) -> SimulationResult:
        """
        Проводит заказ через весь жизненный цикл.

        Raises:
            httpx.HTTPError: Orders или Delivery Service недоступен либо вернул ошибку
        """
        await log_info(f"Симуляция: заказ {order_id}, курьер {courier_id}", type_msg=TypeMsg.INFO)

        response = await self._http.put(
            f"{self._orders_url}/orders/{order_id}/assign-courier",
            json={"courier_id": courier_id},
        )
        response.raise_for_status()

        order = await self._get_order(order_id)
        estimate = await self._calculate(order, courier_id, route)
        await log_info(f"Стоимость: {estimate['estimated_cost']:.2f} {estimate['currency']}")

        lat, lng = route.from_lat, route.from_lng
        step_km = route.distance_km / self._steps
        updates = 0
        for _ in range(self._steps):
            lat, lng = move_towards(lat, lng, route.to_lat, route.to_lng, step_km)
            if await self._track(courier_id, order_id, STATUS_IN_TRANSIT, lat, lng):
                updates += 1
            if self._step_delay:
                await asyncio.sleep(self._step_delay)

        if await self._track(courier_id, order_id, STATUS_DELIVERED, route.to_lat, route.to_lng):
            updates += 1

        response = await self._http.put(f"{self._orders_url}/orders/{order_id}/finish")
        response.raise_for_status()
        await log_info(f"Симуляция завершена: заказ {order_id} доставлен", type_msg=TypeMsg.INFO)

        return SimulationResult(
            order_id=order_id,
            courier_id=courier_id,
            estimated_cost=float(estimate["estimated_cost"]),
            currency=estimate["currency"],
            tracking_updates=updates,
        )

    async def _get_order(self, order_id: str) -> dict[str, Any]:
        response = await self._http.get(f"{self._orders_url}/orders/{order_id}")
        response.raise_for_status()
        return response.json()

    async def _calculate(self, order: dict[str, Any], courier_id: str, route: Route) -> dict[str, Any]:
        payload = {
            "from_lat": route.from_lat,
            "from_lng": route.from_lng,
            "to_lat": route.to_lat,
            "to_lng": route.to_lng,
            "weight": order.get("weight", 0),
            "length": order.get("length", 0),
            "width": order.get("width", 0),
            "height": order.get("height", 0),
            "urgency": order.get("urgency", 1),
            "order_id": order["id"],
            "courier_id": courier_id,
        }
        response = await self._http.post(f"{self._delivery_url}/calculate", json=payload)
        response.raise_for_status()
        return response.json()

    async def _track(self, courier_id: str, order_id: str, status: str, lat: float, lng: float) -> bool:
        """Обновление трекинга best-effort: ошибки только логируются."""
        try:
            response = await self._http.post(
                f"{self._tracking_url}/couriers/tracking",
                json={
                    "courier_id": courier_id,
                    "order_id": order_id,
                    "status": status,
                    "latitude": lat,
                    "longitude": lng,
                },
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            await log_warning(f"Трекинг курьера {courier_id} не обновлён: {e}")
            return False
        return True

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from courier_mesh.common.constants import TypeMsg, Urgency
from courier_mesh.common.exceptions import DependencyError
from courier_mesh.common.logger import log_error, log_info
from courier_mesh.infra.database import DatabaseManager
from courier_mesh.infra.outbox import enqueue_event
from courier_mesh.services.utils.geo_utils import calculate_distance, calculate_volume, ensure_non_negative
from courier_mesh.shared.events import DeliveryCalculated
from courier_mesh.shared.models.delivery import DeliveryRequest, DeliveryResponse


@dataclass(frozen=True)
class DeliveryRates:
    """Тарифы расчёта стоимости."""
    base_fee: float = 50.0
    distance_rate: float = 5.0
    weight_rate: float = 2.0
    volume_rate: float = 3.0
    urgency_factor: float = 1.5
    currency: str = "USD"

    @classmethod
    def from_settings(cls, section: Any) -> "DeliveryRates":
        return cls(
            base_fee=section.BASE_FEE,
            distance_rate=section.DISTANCE_RATE,
            weight_rate=section.WEIGHT_RATE,
            volume_rate=section.VOLUME_RATE,
            urgency_factor=section.URGENCY_FACTOR,
            currency=section.CURRENCY,
        )


class DeliveryCostEstimator:
    def __init__(self, rates: DeliveryRates) -> None:
        self.rates = rates

    @staticmethod
    def distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
        return calculate_distance(lat1, lon1, lat2, lon2)

    @staticmethod
    def volume(length: float, width: float, height: float) -> float:
        return calculate_volume(length, width, height)

    def estimate_cost(self, request: DeliveryRequest) -> float:
        """
        Расчет стоимости доставки.

        Логика:
        - BASE_FEE + DISTANCE_RATE за км + WEIGHT_RATE за кг + VOLUME_RATE за м³
        - Срочность выше стандартной умножает итог на URGENCY_FACTOR

        Raises:
            InvalidInput: отрицательный, бесконечный или нечисловой вес или габарит
        """
        ensure_non_negative(
            weight=request.weight,
            length=request.length,
            width=request.width,
            height=request.height,
        )

        distance_km = self.distance(request.from_lat, request.from_lng, request.to_lat, request.to_lng)
        volume_m3 = self.volume(request.length, request.width, request.height)

        cost = (
            self.rates.base_fee
            + distance_km * self.rates.distance_rate
            + request.weight * self.rates.weight_rate
            + volume_m3 * self.rates.volume_rate
        )
        if request.urgency > Urgency.STANDARD:
            cost *= self.rates.urgency_factor
        return cost


class DeliveryService:
    def __init__(self, estimator: DeliveryCostEstimator, db: Optional[DatabaseManager]) -> None:
        self.estimator = estimator
        self.db = db

    async def calculate(self, request: DeliveryRequest) -> DeliveryResponse:
        cost = self.estimator.estimate_cost(request)

        if request.order_id:
            await self._record_calculation(request, cost)

        return DeliveryResponse(estimated_cost=cost, currency=self.estimator.rates.currency)

    async def _record_calculation(self, request: DeliveryRequest, cost: float) -> None:
        # Ошибка записи события не влияет на ответ клиенту
        event = DeliveryCalculated(order_id=request.order_id, courier_id=request.courier_id, cost=cost)
        if self.db is None:
            await log_error(
                "Хранилище не подключено, событие delivery_calculated не записано",
                extra={"order_id": request.order_id},
            )
            return
        try:
            async with self.db.transaction() as conn:
                await enqueue_event(conn, event)
        except DependencyError as e:
            await log_error(
                f"Не удалось записать delivery_calculated: {e.message}",
                extra={"order_id": request.order_id, "event_id": event.event_id},
            )
            return
        await log_info(
            f"Стоимость доставки заказа {request.order_id}: {cost:.2f} {self.estimator.rates.currency}",
            type_msg=TypeMsg.INFO,
            extra={"order_id": request.order_id, "courier_id": request.courier_id},
        )

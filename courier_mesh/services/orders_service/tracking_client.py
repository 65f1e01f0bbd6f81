# courier_mesh/services/orders_service/tracking_client.py
"""
Клиент Tracking Service.

Уведомления best-effort: ошибка сети или ответ не 2xx только логируются.
"""

from __future__ import annotations

from typing import Any

import httpx

from courier_mesh.common.logger import log_warning


class TrackingClient:
    def __init__(self, http_client: httpx.AsyncClient, base_url: str) -> None:
        self._http = http_client
        self._url = f"{base_url.rstrip('/')}/couriers/tracking"

    async def notify(self, payload: dict[str, Any]) -> bool:
        """
        Отправляет обновление статуса курьера.

        Returns:
            True, если Tracking Service принял обновление
        """
        try:
            response = await self._http.post(self._url, json=payload)
        except httpx.HTTPError as e:
            await log_warning(
                f"Tracking Service недоступен: {e}",
                extra={"courier_id": payload.get("courier_id"), "order_id": payload.get("order_id")},
            )
            return False

        if response.status_code >= 300:
            await log_warning(
                f"Tracking Service ответил {response.status_code}: {response.text}",
                extra={"courier_id": payload.get("courier_id")},
            )
            return False
        return True

# courier_mesh/services/tracking_service/connection_manager.py
"""
Менеджер WebSocket соединений трекинга.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import WebSocket

from courier_mesh.common.logger import log_debug


@dataclass
class ConnectionInfo:
    """Информация о соединении."""
    websocket: WebSocket
    courier_id: Optional[str] = None  # None: все курьеры
    connected_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class ConnectionManager:
    """
    Менеджер WebSocket соединений.

    Клиент получает обновления всех курьеров или одного,
    если при подключении указан courier_id.
    """

    def __init__(self) -> None:
        self._connections: dict[int, ConnectionInfo] = {}
        self._total_connections = 0
        self._total_messages_sent = 0

    @property
    def active_connections(self) -> int:
        return len(self._connections)

    async def connect(self, websocket: WebSocket, courier_id: Optional[str] = None) -> None:
        await websocket.accept()
        self._connections[id(websocket)] = ConnectionInfo(websocket=websocket, courier_id=courier_id)
        self._total_connections += 1
        await log_debug(f"WebSocket подключён, активных: {self.active_connections}")

    async def disconnect(self, websocket: WebSocket) -> None:
        self._connections.pop(id(websocket), None)

    async def broadcast(self, message: dict[str, Any]) -> int:
        """
        Отправляет сообщение всем подходящим клиентам.

        Returns:
            Количество успешно отправленных сообщений
        """
        courier_id = message.get("courier_id")
        sent_count = 0
        failed: list[WebSocket] = []

        for conn in list(self._connections.values()):
            if conn.courier_id is not None and conn.courier_id != courier_id:
                continue
            try:
                await conn.websocket.send_json(message)
                sent_count += 1
                self._total_messages_sent += 1
            except Exception:
                # Соединение разорвано
                failed.append(conn.websocket)

        for websocket in failed:
            await self.disconnect(websocket)

        return sent_count

    def get_stats(self) -> dict[str, int]:
        return {
            "active_connections": self.active_connections,
            "total_connections_ever": self._total_connections,
            "total_messages_sent": self._total_messages_sent,
        }

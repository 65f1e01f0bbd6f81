# courier_mesh/services/tracking_service/store.py
"""
Хранилище последнего состояния курьеров в Redis.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from courier_mesh.common.logger import log_debug
from courier_mesh.infra.redis_client import RedisClient
from courier_mesh.shared.models.tracking import TrackingRecord, TrackingUpdate


class TrackingStore:
    """
    Последнее известное состояние курьера.

    Каждое обновление сливается с сохранённым хэшем: поля, не переданные
    в обновлении, сохраняют прежние значения.
    """

    KEY_PREFIX = "tracking:courier:"
    UPDATES_CHANNEL = "tracking:updates"

    def __init__(self, redis: RedisClient) -> None:
        self._redis = redis

    def _key(self, courier_id: str) -> str:
        return f"{self.KEY_PREFIX}{courier_id}"

    async def upsert(self, update: TrackingUpdate) -> TrackingRecord:
        now = datetime.now(timezone.utc)
        mapping = {
            k: str(v)
            for k, v in update.model_dump().items()
            if v is not None
        }
        mapping["updated_at"] = now.isoformat()

        await self._redis.hset_mapping(self._key(update.courier_id), mapping)
        record = await self.get(update.courier_id)
        if record is None:
            # Ключ удалён между записью и чтением
            record = TrackingRecord(**update.model_dump(), updated_at=now)

        await self._redis.publish(self.UPDATES_CHANNEL, record.model_dump_json())
        await log_debug(
            f"Трекинг курьера {update.courier_id}: {update.status}",
            extra={"courier_id": update.courier_id},
        )
        return record

    async def get(self, courier_id: str) -> Optional[TrackingRecord]:
        data = await self._redis.hgetall(self._key(courier_id))
        if not data:
            return None
        return self._from_hash(data)

    @staticmethod
    def _from_hash(data: dict[str, str]) -> TrackingRecord:
        def as_float(name: str) -> Optional[float]:
            value = data.get(name)
            return float(value) if value else None

        return TrackingRecord(
            courier_id=data["courier_id"],
            status=data.get("status") or "unknown",
            latitude=as_float("latitude"),
            longitude=as_float("longitude"),
            order_id=data.get("order_id") or None,
            updated_at=datetime.fromisoformat(data["updated_at"]),
        )

    @staticmethod
    def decode_update(raw: str) -> TrackingRecord:
        """Разбирает сообщение из канала обновлений."""
        return TrackingRecord.model_validate_json(raw)

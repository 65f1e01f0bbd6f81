# courier_mesh/services/notifications_service/repository.py
"""
Репозиторий уведомлений.
"""

from __future__ import annotations

from typing import Optional

from courier_mesh.common.constants import NotificationStatus
from courier_mesh.infra.database import DatabaseManager
from courier_mesh.shared.models.notification import Notification

NOTIFICATION_COLUMNS = "id, event_id, type, recipient, subject, message, status, error, created_at, updated_at"


class NotificationRepository:
    def __init__(self, db: DatabaseManager) -> None:
        self._db = db

    async def insert_pending(
        self,
        event_id: str,
        type_: str,
        recipient: str,
        subject: Optional[str],
        message: str,
    ) -> Optional[Notification]:
        """
        Сохраняет уведомление в статусе pending.

        При повторной доставке события возвращает уже сохранённую запись,
        если она так и осталась в pending (отправка прервалась).

        Returns:
            None, если уведомление по этому событию уже отправлено или отклонено
        """
        row = await self._db.fetchrow(
            f"""
            INSERT INTO notifications (event_id, type, recipient, subject, message, status)
            VALUES ($1, $2, $3, $4, $5, $6)
            ON CONFLICT (event_id) DO NOTHING
            RETURNING {NOTIFICATION_COLUMNS}
            """,
            event_id,
            type_,
            recipient,
            subject,
            message,
            NotificationStatus.PENDING.value,
        )
        if row is None:
            row = await self._db.fetchrow(
                f"SELECT {NOTIFICATION_COLUMNS} FROM notifications WHERE event_id = $1 AND status = $2",
                event_id,
                NotificationStatus.PENDING.value,
            )
        return Notification.from_record(row) if row else None

    async def set_status(
        self,
        notification_id: int,
        status: NotificationStatus,
        error: Optional[str] = None,
    ) -> None:
        await self._db.execute(
            "UPDATE notifications SET status = $2, error = $3, updated_at = NOW() WHERE id = $1",
            notification_id,
            status.value,
            error,
        )

    async def get_by_id(self, notification_id: int) -> Optional[Notification]:
        row = await self._db.fetchrow(
            f"SELECT {NOTIFICATION_COLUMNS} FROM notifications WHERE id = $1",
            notification_id,
        )
        return Notification.from_record(row) if row else None

    async def list_all(self, limit: int = 100, offset: int = 0) -> list[Notification]:
        rows = await self._db.fetch(
            f"SELECT {NOTIFICATION_COLUMNS} FROM notifications ORDER BY created_at DESC LIMIT $1 OFFSET $2",
            limit,
            offset,
        )
        return [Notification.from_record(row) for row in rows]

# courier_mesh/services/notifications_service/worker.py
"""
Воркер очереди notifications.
"""

from __future__ import annotations

from typing import List

from courier_mesh.common.constants import NotificationStatus, Queues
from courier_mesh.common.logger import log_error, log_info, log_warning
from courier_mesh.infra.event_bus import EventBus
from courier_mesh.services.notifications_service.repository import NotificationRepository
from courier_mesh.services.notifications_service.sender import SEND_ERRORS, EmailSender
from courier_mesh.shared.events import Event, NotificationRequested
from courier_mesh.worker.base import BaseWorker

SUPPORTED_TYPES = frozenset({"email"})


class NotificationWorker(BaseWorker):
    """
    Сохраняет уведомление (pending), отправляет его и фиксирует результат
    (sent или failed с текстом ошибки).
    """

    def __init__(
        self,
        repository: NotificationRepository,
        sender: EmailSender,
        event_bus: EventBus | None = None,
    ) -> None:
        super().__init__(event_bus)
        self.repository = repository
        self.sender = sender

    @property
    def name(self) -> str:
        return "notifications"

    @property
    def subscriptions(self) -> List[str]:
        return [Queues.NOTIFICATIONS]

    async def handle_event(self, event: Event) -> None:
        if not isinstance(event, NotificationRequested):
            await log_warning(f"Очередь уведомлений: неожиданное событие {event.event}, пропущено")
            return

        notification = await self.repository.insert_pending(
            event.event_id,
            event.type,
            event.recipient,
            event.subject,
            event.message,
        )
        if notification is None:
            await log_info(f"Уведомление по событию {event.event_id} уже обработано")
            return

        if event.type not in SUPPORTED_TYPES:
            await self.repository.set_status(
                notification.id,
                NotificationStatus.FAILED,
                f"unsupported notification type: {event.type}",
            )
            await log_warning(f"Уведомление {notification.id}: неподдерживаемый тип {event.type}")
            return

        try:
            await self.sender.send(event.recipient, event.subject, event.message)
        except SEND_ERRORS as e:
            await self.repository.set_status(notification.id, NotificationStatus.FAILED, str(e) or type(e).__name__)
            await log_error(
                f"Ошибка отправки уведомления {notification.id}: {e}",
                extra={"notification_id": notification.id, "recipient": event.recipient},
            )
            return

        await self.repository.set_status(notification.id, NotificationStatus.SENT)
        await log_info(
            f"Уведомление {notification.id} отправлено",
            extra={"notification_id": notification.id},
        )

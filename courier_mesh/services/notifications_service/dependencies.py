from fastapi import Request

from courier_mesh.services.notifications_service.repository import NotificationRepository


def get_notification_repository(request: Request) -> NotificationRepository:
    return NotificationRepository(request.app.state.db)

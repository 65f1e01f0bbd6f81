from fastapi import APIRouter, Depends, Query

from courier_mesh.common.exceptions import NotFoundError
from courier_mesh.services.notifications_service.dependencies import get_notification_repository
from courier_mesh.services.notifications_service.repository import NotificationRepository
from courier_mesh.shared.models.notification import Notification

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("", response_model=list[Notification])
async def list_notifications(
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    repository: NotificationRepository = Depends(get_notification_repository),
):
    return await repository.list_all(limit=limit, offset=offset)


@router.get("/{notification_id}", response_model=Notification)
async def get_notification(
    notification_id: int,
    repository: NotificationRepository = Depends(get_notification_repository),
):
    notification = await repository.get_by_id(notification_id)
    if notification is None:
        raise NotFoundError("notification not found")
    return notification

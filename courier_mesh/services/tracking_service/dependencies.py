from fastapi import Request

from courier_mesh.services.tracking_service.store import TrackingStore


def get_tracking_store(request: Request) -> TrackingStore:
    return TrackingStore(request.app.state.redis)

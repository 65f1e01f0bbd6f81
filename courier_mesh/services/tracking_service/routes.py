from typing import Optional

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect

from courier_mesh.common.exceptions import NotFoundError
from courier_mesh.services.tracking_service.dependencies import get_tracking_store
from courier_mesh.services.tracking_service.store import TrackingStore
from courier_mesh.shared.models.tracking import TrackingRecord, TrackingUpdate

router = APIRouter(tags=["Tracking"])


@router.post("/couriers/tracking", response_model=TrackingRecord)
async def update_tracking(
    update: TrackingUpdate,
    store: TrackingStore = Depends(get_tracking_store),
):
    return await store.upsert(update)


@router.get("/couriers/tracking/{courier_id}", response_model=TrackingRecord)
async def get_tracking(courier_id: str, store: TrackingStore = Depends(get_tracking_store)):
    record = await store.get(courier_id)
    if record is None:
        raise NotFoundError("courier tracking not found")
    return record


@router.websocket("/tracking/ws")
async def tracking_ws(websocket: WebSocket, courier_id: Optional[str] = Query(default=None)):
    """
    Поток обновлений трекинга.

    Клиент может ограничить поток одним курьером параметром courier_id.
    Входящие сообщения игнорируются, кроме {"action": "ping"}.
    """
    manager = websocket.app.state.connection_manager
    await manager.connect(websocket, courier_id)
    try:
        while True:
            data = await websocket.receive_json()
            if isinstance(data, dict) and data.get("action") == "ping":
                await websocket.send_json({"type": "pong"})
    except WebSocketDisconnect:
        pass
    finally:
        await manager.disconnect(websocket)

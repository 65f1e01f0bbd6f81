from fastapi import Request

from courier_mesh.services.orders_service.repository import CourierRepository, OrderRepository
from courier_mesh.services.orders_service.service import CourierService, OrderService
from courier_mesh.services.orders_service.tracking_client import TrackingClient


def get_tracking_client(request: Request) -> TrackingClient:
    return TrackingClient(request.app.state.http_client, request.app.state.settings.services.TRACKING_URL)


def get_order_service(request: Request) -> OrderService:
    db = request.app.state.db
    return OrderService(db, OrderRepository(db), CourierRepository(db), get_tracking_client(request))


def get_courier_service(request: Request) -> CourierService:
    db = request.app.state.db
    return CourierService(db, CourierRepository(db), get_tracking_client(request))

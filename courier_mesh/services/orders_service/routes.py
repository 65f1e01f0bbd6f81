from fastapi import APIRouter, Depends, Query, Response

from courier_mesh.services.orders_service.dependencies import get_courier_service, get_order_service
from courier_mesh.services.orders_service.service import CourierService, OrderService
from courier_mesh.shared.models.order import (
    AssignCourierRequest,
    AssignCourierResponse,
    Courier,
    CreateCourierRequest,
    CreateOrderRequest,
    Order,
    StatusResponse,
)

orders_router = APIRouter(prefix="/orders", tags=["Orders"])
couriers_router = APIRouter(prefix="/couriers", tags=["Couriers"])


@orders_router.post("", response_model=Order, status_code=201)
async def create_order(
    request: CreateOrderRequest,
    service: OrderService = Depends(get_order_service),
):
    return await service.create_order(request)


@orders_router.get("", response_model=list[Order])
async def list_orders(
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    service: OrderService = Depends(get_order_service),
):
    return await service.list_orders(limit=limit, offset=offset)


@orders_router.get("/{order_id}", response_model=Order)
async def get_order(order_id: str, service: OrderService = Depends(get_order_service)):
    return await service.get_order(order_id)


@orders_router.delete("/{order_id}", status_code=204)
async def delete_order(order_id: str, service: OrderService = Depends(get_order_service)):
    await service.delete_order(order_id)
    return Response(status_code=204)


@orders_router.put("/{order_id}/assign-courier", response_model=AssignCourierResponse)
async def assign_courier(
    order_id: str,
    request: AssignCourierRequest,
    service: OrderService = Depends(get_order_service),
):
    return await service.assign_courier(order_id, request.courier_id)


@orders_router.put("/{order_id}/finish", response_model=StatusResponse)
async def finish_order(order_id: str, service: OrderService = Depends(get_order_service)):
    await service.complete_order(order_id)
    return StatusResponse(status="order completed")


@couriers_router.post("", response_model=Courier, status_code=201)
async def create_courier(
    request: CreateCourierRequest,
    service: CourierService = Depends(get_courier_service),
):
    return await service.create_courier(request)


@couriers_router.get("", response_model=list[Courier])
async def list_couriers(service: CourierService = Depends(get_courier_service)):
    return await service.list_couriers()


@couriers_router.get("/{courier_id}", response_model=Courier)
async def get_courier(courier_id: str, service: CourierService = Depends(get_courier_service)):
    return await service.get_courier(courier_id)

from fastapi import APIRouter, Depends

from courier_mesh.services.delivery_service.dependencies import get_delivery_service
from courier_mesh.services.delivery_service.service import DeliveryService
from courier_mesh.shared.models.delivery import DeliveryRequest, DeliveryResponse

router = APIRouter(tags=["Delivery"])


@router.post("/calculate", response_model=DeliveryResponse)
async def calculate(
    request: DeliveryRequest,
    service: DeliveryService = Depends(get_delivery_service),
):
    return await service.calculate(request)

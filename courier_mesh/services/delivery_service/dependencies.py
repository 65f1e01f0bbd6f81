from fastapi import Request

from courier_mesh.services.delivery_service.service import DeliveryCostEstimator, DeliveryRates, DeliveryService


def get_estimator(request: Request) -> DeliveryCostEstimator:
    return DeliveryCostEstimator(DeliveryRates.from_settings(request.app.state.settings.delivery))


def get_delivery_service(request: Request) -> DeliveryService:
    return DeliveryService(get_estimator(request), getattr(request.app.state, "db", None))

import json
from unittest.mock import MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from courier_mesh.common.constants import Urgency
from courier_mesh.common.exceptions import DependencyError, InvalidInput
from courier_mesh.config import settings
from courier_mesh.services.delivery_service.routes import router
from courier_mesh.services.delivery_service.service import DeliveryCostEstimator, DeliveryRates, DeliveryService
from courier_mesh.services.http import install_error_handlers
from courier_mesh.services.utils.geo_utils import calculate_distance, move_towards
from courier_mesh.shared.models.delivery import DeliveryRequest

MOSCOW = (55.7558, 37.6173)
SAINT_PETERSBURG = (59.9311, 30.3609)


@pytest.fixture
def estimator():
    return DeliveryCostEstimator(DeliveryRates())


def make_request(**overrides) -> DeliveryRequest:
    data = {
        "from_lat": MOSCOW[0],
        "from_lng": MOSCOW[1],
        "to_lat": MOSCOW[0],
        "to_lng": MOSCOW[1],
        "weight": 2.0,
        "length": 1.0,
        "width": 1.0,
        "height": 1.0,
    }
    data.update(overrides)
    return DeliveryRequest(**data)


# =============================================================================
# Distance
# =============================================================================

def test_distance_moscow_saint_petersburg():
    assert calculate_distance(*MOSCOW, *SAINT_PETERSBURG) == pytest.approx(634, abs=6)


def test_distance_is_symmetric():
    assert calculate_distance(*MOSCOW, *SAINT_PETERSBURG) == pytest.approx(
        calculate_distance(*SAINT_PETERSBURG, *MOSCOW)
    )


def test_distance_same_point_is_zero():
    assert calculate_distance(*MOSCOW, *MOSCOW) == 0


def test_distance_antipodes_is_finite():
    assert calculate_distance(0, 0, 0, 180) == pytest.approx(20015, abs=1)


def test_move_towards_reaches_target():
    lat, lon = move_towards(*MOSCOW, *SAINT_PETERSBURG, step_km=100)
    assert calculate_distance(lat, lon, *SAINT_PETERSBURG) < calculate_distance(*MOSCOW, *SAINT_PETERSBURG)

    assert move_towards(*MOSCOW, *SAINT_PETERSBURG, step_km=10_000) == SAINT_PETERSBURG


# =============================================================================
# Cost
# =============================================================================

def test_cost_without_distance(estimator):
    # 50 + 0 км + 2 кг * 2 + 1 м³ * 3
    assert estimator.estimate_cost(make_request()) == pytest.approx(57.0)


def test_cost_grows_with_distance(estimator):
    near = estimator.estimate_cost(make_request())
    far = estimator.estimate_cost(make_request(to_lat=SAINT_PETERSBURG[0], to_lng=SAINT_PETERSBURG[1]))

    distance = calculate_distance(*MOSCOW, *SAINT_PETERSBURG)
    assert far == pytest.approx(near + distance * 5.0)


def test_express_multiplies_cost(estimator):
    standard = estimator.estimate_cost(make_request(urgency=Urgency.STANDARD))
    express = estimator.estimate_cost(make_request(urgency=Urgency.EXPRESS))

    assert express == pytest.approx(standard * 1.5)


def test_zero_parcel_costs_base_fee(estimator):
    request = make_request(weight=0, length=0, width=0, height=0)
    assert estimator.estimate_cost(request) == pytest.approx(50.0)


@pytest.mark.parametrize("field", ["weight", "length", "width", "height"])
def test_negative_parameters_rejected(estimator, field):
    with pytest.raises(InvalidInput) as exc_info:
        estimator.estimate_cost(make_request(**{field: -0.1}))
    assert exc_info.value.message == f"{field} must be a non-negative number"


@pytest.mark.parametrize("value", [float("inf"), float("-inf"), float("nan")], ids=["inf", "minus-inf", "nan"])
@pytest.mark.parametrize("field", ["weight", "length"])
def test_non_finite_parameters_rejected(estimator, field, value):
    with pytest.raises(InvalidInput) as exc_info:
        estimator.estimate_cost(make_request(**{field: value}))
    assert exc_info.value.message == f"{field} must be a non-negative number"


def test_rates_from_settings():
    rates = DeliveryRates.from_settings(settings.delivery)
    assert rates.base_fee == settings.delivery.BASE_FEE
    assert rates.currency == settings.delivery.CURRENCY


# =============================================================================
# Service
# =============================================================================

@pytest.mark.asyncio
async def test_calculate_without_order_does_not_record(estimator, mock_db, mock_conn):
    service = DeliveryService(estimator, mock_db)

    response = await service.calculate(make_request())

    assert response.estimated_cost == pytest.approx(57.0)
    assert response.currency == "USD"
    mock_db.transaction.assert_not_called()


@pytest.mark.asyncio
async def test_calculate_with_order_enqueues_event(estimator, mock_db, mock_conn):
    service = DeliveryService(estimator, mock_db)

    await service.calculate(make_request(order_id="o1", courier_id="c1"))

    sql, _, queue, payload = mock_conn.execute.call_args.args
    assert "INSERT INTO outbox" in sql
    assert queue == "delivery_calculated"
    event = json.loads(payload)
    assert event["order_id"] == "o1"
    assert event["courier_id"] == "c1"
    assert event["cost"] == pytest.approx(57.0)


@pytest.mark.asyncio
async def test_calculate_survives_storage_failure(estimator, mock_db):
    mock_db.transaction = MagicMock(side_effect=DependencyError("database unavailable"))
    service = DeliveryService(estimator, mock_db)

    response = await service.calculate(make_request(order_id="o1"))

    assert response.estimated_cost == pytest.approx(57.0)


@pytest.mark.asyncio
async def test_calculate_without_database(estimator):
    response = await DeliveryService(estimator, None).calculate(make_request(order_id="o1"))
    assert response.estimated_cost == pytest.approx(57.0)


# =============================================================================
# HTTP
# =============================================================================

@pytest.fixture
def client(mock_db):
    app = FastAPI()
    install_error_handlers(app)
    app.include_router(router)
    app.state.settings = settings
    app.state.db = mock_db
    return TestClient(app)


def test_calculate_endpoint(client):
    response = client.post(
        "/calculate",
        json={"from_lat": 55.7558, "from_lng": 37.6173, "to_lat": 55.7558, "to_lng": 37.6173, "weight": 1},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["currency"] == settings.delivery.CURRENCY
    assert body["estimated_cost"] == pytest.approx(settings.delivery.BASE_FEE + settings.delivery.WEIGHT_RATE)


def test_calculate_endpoint_negative_weight(client):
    response = client.post(
        "/calculate",
        json={"from_lat": 0, "from_lng": 0, "to_lat": 1, "to_lng": 1, "weight": -5},
    )

    assert response.status_code == 400
    assert response.json() == {"error": "weight must be a non-negative number"}


def test_calculate_endpoint_overflowing_weight(client):
    body = b'{"from_lat": 0, "from_lng": 0, "to_lat": 1, "to_lng": 1, "weight": 1e309}'

    response = client.post("/calculate", content=body, headers={"Content-Type": "application/json"})

    assert response.status_code == 400
    assert response.json() == {"error": "weight must be a non-negative number"}


def test_calculate_endpoint_overflowing_length_not_recorded(client, mock_db, mock_conn):
    body = b'{"from_lat": 0, "from_lng": 0, "to_lat": 1, "to_lng": 1, "length": 1e309, "order_id": "o1"}'

    response = client.post("/calculate", content=body, headers={"Content-Type": "application/json"})

    assert response.status_code == 400
    assert response.json() == {"error": "length must be a non-negative number"}
    mock_db.transaction.assert_not_called()
    mock_conn.execute.assert_not_called()


def test_calculate_endpoint_latitude_out_of_range(client):
    response = client.post("/calculate", json={"from_lat": 91, "from_lng": 0, "to_lat": 0, "to_lng": 0})

    assert response.status_code == 400
    assert response.json()["error"].startswith("from_lat")

import asyncio
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from courier_mesh.common.exceptions import ValidationError
from courier_mesh.services.analytics_service.consumer import AnalyticsConsumer
from courier_mesh.services.analytics_service.memory_store import InMemoryStatsStore
from courier_mesh.services.analytics_service.reports import EPOCH_START, ReportRepository, parse_date_range
from courier_mesh.services.analytics_service.routes import router
from courier_mesh.services.analytics_service.store import PostgresStatsStore, incremental_mean
from courier_mesh.services.http import install_error_handlers
from courier_mesh.shared.events import CourierCreated, DeliveryCalculated, OrderCompleted, OrderCreated, decode_event

CREATED_AT = "2025-05-14T13:05:51Z"
COMPLETED_AT = "2025-05-14T13:15:51Z"


@pytest.fixture
def store():
    return InMemoryStatsStore()


@pytest.fixture
def consumer(store):
    return AnalyticsConsumer(store)


def completed(courier_id="c1", created_at=CREATED_AT, completed_at=COMPLETED_AT, **kwargs):
    return OrderCompleted(
        order_id="o1",
        courier_id=courier_id,
        created_at=created_at,
        completed_at=completed_at,
        **kwargs,
    )


# =============================================================================
# Consumer + InMemoryStatsStore
# =============================================================================

def test_incremental_mean():
    assert incremental_mean(0.0, 0, 600.0) == 600.0
    assert incremental_mean(600.0, 1, 300.0) == 450.0


@pytest.mark.asyncio
async def test_order_created_counts_new_orders(consumer, store):
    await consumer.handle(OrderCreated(order_id="o1", status="новый"))
    await consumer.handle(OrderCreated(order_id="o2", status="created"))
    await consumer.handle(OrderCreated(order_id="o3", status="архив"))

    stats = await store.get_general_stats()
    assert stats.total_orders == 3
    assert stats.active_orders == 2
    assert stats.completed_orders == 0


@pytest.mark.asyncio
async def test_order_created_without_status_is_not_active(consumer, store):
    await consumer.handle(decode_event(b'{"event": "order_created", "order_id": "o1"}'))

    stats = await store.get_general_stats()
    assert stats.total_orders == 1
    assert stats.active_orders == 0


@pytest.mark.asyncio
async def test_order_lifecycle_updates_courier_average(consumer, store):
    await consumer.handle(CourierCreated(courier_id="c1", courier_name="Алексей"))
    await consumer.handle(OrderCreated(order_id="o1", status="новый"))
    await consumer.handle(completed())

    stat = await store.get_courier_stats("c1")
    assert stat.courier_name == "Алексей"
    assert stat.completed_orders == 1
    assert stat.average_delivery_time_sec == pytest.approx(600.0)

    general = await store.get_general_stats()
    assert general.total_orders == 1
    assert general.active_orders == 0
    assert general.completed_orders == 1


@pytest.mark.asyncio
async def test_average_over_several_orders(consumer, store):
    durations = [600, 300, 900, 1200]
    for seconds in durations:
        end = datetime(2025, 5, 14, 13, 5, 51, tzinfo=timezone.utc).timestamp() + seconds
        completed_at = datetime.fromtimestamp(end, tz=timezone.utc).isoformat().replace("+00:00", "Z")
        await consumer.handle(completed(completed_at=completed_at))

    stat = await store.get_courier_stats("c1")
    assert stat.completed_orders == len(durations)
    assert stat.average_delivery_time_sec == pytest.approx(sum(durations) / len(durations))


@pytest.mark.asyncio
async def test_revenue_accumulates(consumer, store):
    await consumer.handle(DeliveryCalculated(order_id="o1", courier_id="c1", cost=10.0))
    await consumer.handle(DeliveryCalculated(order_id="o2", courier_id="c1", cost=20.0))

    stat = await store.get_courier_stats("c1")
    assert stat.total_revenue == pytest.approx(30.0)
    assert stat.completed_orders == 0
    assert stat.average_delivery_time_sec == 0.0
    assert stat.courier_name == ""


@pytest.mark.asyncio
async def test_revenue_interleaved_with_completions(consumer, store):
    events = [
        DeliveryCalculated(order_id="o1", courier_id="c1", cost=10.0),
        completed(),
        DeliveryCalculated(order_id="o2", courier_id="c1", cost=20.0),
        completed(),
        DeliveryCalculated(order_id="o3", courier_id="c1", cost=5.5),
    ]

    await asyncio.gather(*(consumer.handle(e) for e in events))

    stat = await store.get_courier_stats("c1")
    assert stat.total_revenue == pytest.approx(35.5)
    assert stat.completed_orders == 2
    assert stat.average_delivery_time_sec == pytest.approx(600.0)


@pytest.mark.asyncio
async def test_duplicate_event_is_ignored(consumer, store):
    event = DeliveryCalculated(order_id="o1", courier_id="c1", cost=10.0)

    await consumer.handle(event)
    await consumer.handle(event)

    assert (await store.get_courier_stats("c1")).total_revenue == pytest.approx(10.0)


@pytest.mark.asyncio
async def test_redelivered_completion_counts_once(consumer, store):
    await consumer.handle(OrderCreated(order_id="o1", status="новый"))
    event = completed()

    await consumer.handle(event)
    await consumer.handle(event)

    assert (await store.get_courier_stats("c1")).completed_orders == 1
    assert (await store.get_general_stats()).completed_orders == 1


@pytest.mark.asyncio
async def test_active_orders_never_negative(consumer, store):
    await consumer.handle(completed())

    general = await store.get_general_stats()
    assert general.active_orders == 0
    assert general.completed_orders == 1


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "event",
    [
        completed(created_at="14.05.2025 13:05"),
        completed(completed_at=""),
        completed(created_at=COMPLETED_AT, completed_at=CREATED_AT),
        completed(courier_id=None),
        completed(courier_id="   "),
    ],
    ids=["bad-created-at", "missing-completed-at", "negative-duration", "no-courier", "blank-courier"],
)
async def test_invalid_completion_is_dropped(consumer, store, event):
    await consumer.handle(event)

    assert await store.get_courier_stats("c1") is None
    assert await store.list_courier_stats() == []
    assert (await store.get_general_stats()).completed_orders == 0


@pytest.mark.asyncio
async def test_revenue_without_courier_is_dropped(consumer, store):
    await consumer.handle(DeliveryCalculated(order_id="o1", cost=10.0))
    assert await store.list_courier_stats() == []


@pytest.mark.asyncio
async def test_courier_created_keeps_accumulated_stats(consumer, store):
    await consumer.handle(DeliveryCalculated(order_id="o1", courier_id="c1", cost=15.0))
    await consumer.handle(CourierCreated(courier_id="c1", courier_name="Алексей"))
    await consumer.handle(CourierCreated(courier_id="c1", courier_name="Другое имя"))

    stat = await store.get_courier_stats("c1")
    assert stat.courier_name == "Алексей"
    assert stat.total_revenue == pytest.approx(15.0)


@pytest.mark.asyncio
async def test_leaderboard_sorted_by_revenue(consumer, store):
    await consumer.handle(DeliveryCalculated(order_id="o1", courier_id="c1", cost=5.0))
    await consumer.handle(DeliveryCalculated(order_id="o2", courier_id="c2", cost=50.0))
    await consumer.handle(DeliveryCalculated(order_id="o3", courier_id="c0", cost=5.0))

    leaderboard = await store.list_courier_stats()
    assert [s.courier_id for s in leaderboard] == ["c2", "c0", "c1"]


@pytest.mark.asyncio
async def test_concurrent_events_are_serialised(consumer, store):
    events = [DeliveryCalculated(order_id=f"o{i}", courier_id="c1", cost=1.0) for i in range(50)]

    await asyncio.gather(*(consumer.handle(e) for e in events))

    assert (await store.get_courier_stats("c1")).total_revenue == pytest.approx(50.0)


@pytest.mark.asyncio
async def test_consumer_subscriptions():
    consumer = AnalyticsConsumer(InMemoryStatsStore())
    assert consumer.name == "analytics"
    assert set(consumer.subscriptions) == {
        "order_created",
        "order_completed",
        "courier_created",
        "delivery_calculated",
    }


# =============================================================================
# PostgresStatsStore
# =============================================================================

@pytest.mark.asyncio
async def test_postgres_store_skips_applied_event(mock_db, mock_conn):
    mock_conn.execute.return_value = "INSERT 0 0"

    applied = await PostgresStatsStore(mock_db).add_revenue("e1", "c1", 10.0)

    assert applied is False
    assert mock_conn.execute.await_count == 1
    assert "applied_events" in mock_conn.execute.call_args.args[0]


@pytest.mark.asyncio
async def test_postgres_store_order_completed(mock_db, mock_conn):
    mock_conn.fetchrow.return_value = {"completed_orders": 1, "average_delivery_time_sec": 600.0}

    applied = await PostgresStatsStore(mock_db).record_order_completed("e1", "c1", 300.0)

    assert applied is True
    assert "FOR UPDATE" in mock_conn.fetchrow.call_args.args[0]
    update = next(c for c in mock_conn.execute.call_args_list if "UPDATE courier_stats" in c.args[0])
    assert update.args[1:] == ("c1", 2, 450.0)
    sql = [c.args[0] for c in mock_conn.execute.call_args_list]
    assert any("active_orders > 0" in s for s in sql)


@pytest.mark.asyncio
async def test_postgres_store_order_created(mock_db, mock_conn):
    await PostgresStatsStore(mock_db).record_order_created("e1", is_new=False)

    sql = [c.args[0] for c in mock_conn.execute.call_args_list]
    assert any("total_orders = total_orders + 1" in s for s in sql)
    assert not any("active_orders = active_orders + 1" in s for s in sql)


@pytest.mark.asyncio
async def test_postgres_store_reads(mock_db):
    mock_db.fetchrow.return_value = {"total_orders": 3, "active_orders": 1, "completed_orders": 2}
    mock_db.fetch.return_value = [
        {
            "courier_id": "c1",
            "courier_name": "Алексей",
            "completed_orders": 2,
            "total_revenue": 30.0,
            "average_delivery_time_sec": 450.0,
        }
    ]
    store = PostgresStatsStore(mock_db)

    general = await store.get_general_stats()
    leaderboard = await store.list_courier_stats()

    assert general.completed_orders == 2
    assert leaderboard[0].total_revenue == 30.0


# =============================================================================
# Reports
# =============================================================================

def test_parse_date_range_defaults():
    now = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)

    start, end = parse_date_range(None, None, now=now)

    assert start == EPOCH_START
    assert end == now


def test_parse_date_range_inclusive_end():
    start, end = parse_date_range("2025-05-01", "2025-05-14")

    assert start == datetime(2025, 5, 1, tzinfo=timezone.utc)
    assert end.date() == datetime(2025, 5, 14).date()
    assert (end.hour, end.minute, end.second) == (23, 59, 59)


@pytest.mark.parametrize("date_from, date_to, name", [("14.05.2025", None, "from"), (None, "2025-13-01", "to")])
def test_parse_date_range_rejects_bad_format(date_from, date_to, name):
    with pytest.raises(ValidationError) as exc_info:
        parse_date_range(date_from, date_to)
    assert exc_info.value.message == f"invalid {name} date format, use YYYY-MM-DD"


@pytest.mark.asyncio
async def test_general_report(mock_db):
    mock_db.fetchval.side_effect = [5, 2, 3, 600.0]
    start, end = parse_date_range("2025-05-01", "2025-05-31")

    report = await ReportRepository(mock_db).general_report(start, end)

    assert report.total_orders == 5
    assert report.active_orders == 2
    assert report.completed_orders == 3
    assert report.average_completion_time_seconds == 600.0
    assert mock_db.fetchval.call_args_list[0].args[1:] == (start, end)


@pytest.mark.asyncio
async def test_general_report_empty_period(mock_db):
    mock_db.fetchval.side_effect = [0, 0, 0, None]

    report = await ReportRepository(mock_db).general_report(*parse_date_range(None, None))

    assert report.average_completion_time_seconds == 0.0


# =============================================================================
# HTTP
# =============================================================================

@pytest.fixture
def client(store, mock_db):
    app = FastAPI()
    install_error_handlers(app)
    app.include_router(router)
    app.state.stats_store = store
    app.state.db = mock_db
    return TestClient(app)


def test_general_endpoint(client, mock_db):
    mock_db.fetchval.side_effect = [1, 0, 1, 600.0]

    response = client.get("/analytics/general", params={"from": "2025-05-01", "to": "2025-05-31"})

    assert response.status_code == 200
    assert response.json() == {
        "total_orders": 1,
        "active_orders": 0,
        "completed_orders": 1,
        "average_completion_time_seconds": 600.0,
    }


def test_general_endpoint_bad_date(client):
    response = client.get("/analytics/general", params={"from": "yesterday"})

    assert response.status_code == 400
    assert response.json() == {"error": "invalid from date format, use YYYY-MM-DD"}


@pytest.mark.asyncio
async def test_courier_endpoints(client, consumer):
    await consumer.handle(CourierCreated(courier_id="c1", courier_name="Алексей"))
    await consumer.handle(DeliveryCalculated(order_id="o1", courier_id="c1", cost=12.5))

    leaderboard = client.get("/analytics/couriers").json()
    assert leaderboard[0]["courier_id"] == "c1"
    assert leaderboard[0]["total_revenue"] == 12.5

    assert client.get("/analytics/couriers/c1").json()["courier_name"] == "Алексей"

    missing = client.get("/analytics/couriers/ghost")
    assert missing.status_code == 404
    assert missing.json() == {"error": "courier stats not found"}


def test_summary_endpoint(client):
    response = client.get("/analytics/summary")

    assert response.status_code == 200
    assert response.json() == {"total_orders": 0, "active_orders": 0, "completed_orders": 0}

from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from courier_mesh import __version__
from courier_mesh.config import settings
from courier_mesh.infra.database import create_database
from courier_mesh.infra.event_bus import create_event_bus
from courier_mesh.infra.outbox import OutboxRelay
from courier_mesh.services.http import add_health_route, install_error_handlers
from courier_mesh.services.orders_service.routes import couriers_router, orders_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.settings = settings
    app.state.db = await create_database(settings)
    app.state.event_bus = await create_event_bus(settings)
    app.state.http_client = httpx.AsyncClient(timeout=settings.services.HTTP_TIMEOUT)
    app.state.relay = OutboxRelay(
        app.state.db,
        app.state.event_bus,
        batch_size=settings.outbox.OUTBOX_BATCH_SIZE,
        poll_interval=settings.outbox.OUTBOX_POLL_INTERVAL,
        max_attempts=settings.outbox.OUTBOX_MAX_ATTEMPTS,
    )
    await app.state.relay.start()
    yield
    await app.state.relay.stop()
    await app.state.http_client.aclose()
    await app.state.event_bus.disconnect()
    await app.state.db.disconnect()


app = FastAPI(
    title="Orders Service",
    version=__version__,
    lifespan=lifespan,
)

install_error_handlers(app)
app.include_router(orders_router)
app.include_router(couriers_router)
add_health_route(
    app,
    "orders_service",
    lambda request: {
        "postgres": request.app.state.db.health_check,
        "rabbitmq": request.app.state.event_bus.health_check,
    },
)

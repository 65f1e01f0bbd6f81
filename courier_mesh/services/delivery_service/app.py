from contextlib import asynccontextmanager

from fastapi import FastAPI

from courier_mesh import __version__
from courier_mesh.config import settings
from courier_mesh.infra.database import create_database
from courier_mesh.infra.event_bus import create_event_bus
from courier_mesh.infra.outbox import OutboxRelay
from courier_mesh.services.delivery_service.routes import router
from courier_mesh.services.http import add_health_route, install_error_handlers


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.settings = settings
    app.state.db = await create_database(settings)
    app.state.event_bus = await create_event_bus(settings)
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
    await app.state.event_bus.disconnect()
    await app.state.db.disconnect()


app = FastAPI(
    title="Delivery Service",
    version=__version__,
    lifespan=lifespan,
)

install_error_handlers(app)
app.include_router(router)
add_health_route(
    app,
    "delivery_service",
    lambda request: {
        "postgres": request.app.state.db.health_check,
        "rabbitmq": request.app.state.event_bus.health_check,
    },
)

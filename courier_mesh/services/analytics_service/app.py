from contextlib import asynccontextmanager

from fastapi import FastAPI

from courier_mesh import __version__
from courier_mesh.config import settings
from courier_mesh.infra.database import create_database
from courier_mesh.infra.event_bus import create_event_bus
from courier_mesh.services.analytics_service.consumer import AnalyticsConsumer
from courier_mesh.services.analytics_service.routes import router
from courier_mesh.services.analytics_service.store import PostgresStatsStore
from courier_mesh.services.http import add_health_route, install_error_handlers


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.settings = settings
    app.state.db = await create_database(settings)
    app.state.event_bus = await create_event_bus(settings)
    app.state.stats_store = PostgresStatsStore(app.state.db)
    app.state.consumer = AnalyticsConsumer(app.state.stats_store, app.state.event_bus)
    await app.state.consumer.start()
    yield
    await app.state.consumer.stop()
    await app.state.event_bus.disconnect()
    await app.state.db.disconnect()


app = FastAPI(
    title="Analytics Service",
    version=__version__,
    lifespan=lifespan,
)

install_error_handlers(app)
app.include_router(router)
add_health_route(
    app,
    "analytics_service",
    lambda request: {
        "postgres": request.app.state.db.health_check,
        "rabbitmq": request.app.state.event_bus.health_check,
    },
)

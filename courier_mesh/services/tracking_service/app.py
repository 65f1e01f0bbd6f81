from contextlib import asynccontextmanager

from fastapi import FastAPI

from courier_mesh import __version__
from courier_mesh.config import settings
from courier_mesh.infra.redis_client import create_redis
from courier_mesh.services.http import add_health_route, install_error_handlers
from courier_mesh.services.tracking_service.broadcaster import TrackingBroadcaster
from courier_mesh.services.tracking_service.connection_manager import ConnectionManager
from courier_mesh.services.tracking_service.routes import router


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.settings = settings
    app.state.redis = await create_redis(settings)
    app.state.connection_manager = ConnectionManager()
    app.state.broadcaster = TrackingBroadcaster(app.state.redis, app.state.connection_manager)
    await app.state.broadcaster.start()
    yield
    await app.state.broadcaster.stop()
    await app.state.redis.disconnect()


app = FastAPI(
    title="Tracking Service",
    version=__version__,
    lifespan=lifespan,
)

install_error_handlers(app)
app.include_router(router)
add_health_route(
    app,
    "tracking_service",
    lambda request: {"redis": request.app.state.redis.health_check},
)

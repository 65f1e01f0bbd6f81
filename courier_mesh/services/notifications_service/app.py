from contextlib import asynccontextmanager

from fastapi import FastAPI

from courier_mesh import __version__
from courier_mesh.config import settings
from courier_mesh.infra.database import create_database
from courier_mesh.infra.event_bus import create_event_bus
from courier_mesh.services.http import add_health_route, install_error_handlers
from courier_mesh.services.notifications_service.repository import NotificationRepository
from courier_mesh.services.notifications_service.routes import router
from courier_mesh.services.notifications_service.sender import EmailSender
from courier_mesh.services.notifications_service.worker import NotificationWorker


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.settings = settings
    app.state.db = await create_database(settings)
    app.state.event_bus = await create_event_bus(settings)
    app.state.worker = NotificationWorker(
        NotificationRepository(app.state.db),
        EmailSender.from_settings(settings.smtp),
        app.state.event_bus,
    )
    await app.state.worker.start()
    yield
    await app.state.worker.stop()
    await app.state.event_bus.disconnect()
    await app.state.db.disconnect()


app = FastAPI(
    title="Notifications Service",
    version=__version__,
    lifespan=lifespan,
)

install_error_handlers(app)
app.include_router(router)
add_health_route(
    app,
    "notifications_service",
    lambda request: {
        "postgres": request.app.state.db.health_check,
        "rabbitmq": request.app.state.event_bus.health_check,
    },
)

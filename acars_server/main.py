"""FastAPI application factory for the ACARS ingestion service."""

import logging
import threading
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from .config import AppSettings, get_settings
from .errors import StorageError
from .messages import router as messages_router
from .router import MessageRouter
from .server import UdpServer
from .status import router as status_router
from .storage import SqlStorage, StoragePort

logger = logging.getLogger(__name__)


def open_storage(settings: AppSettings) -> Optional[StoragePort]:
    """Connect to the configured database, or return None to run display-only."""

    if not settings.database_url:
        logger.warning("No database configured: messages will only be logged")
        return None
    try:
        storage = SqlStorage(settings.database_url)
        storage.setup()
    except StorageError as exc:
        logger.error("Failed to connect to database: %s", exc)
        return None
    return storage


def build_udp_server(settings: AppSettings, router: MessageRouter) -> UdpServer:
    return UdpServer(
        settings.udp_port,
        router,
        host=settings.udp_host,
        max_packet_size=settings.max_packet_size,
        stop_on_decode_error=settings.stop_on_decode_error,
    )


def run_listener(app: FastAPI) -> None:
    """Serve the UDP socket; a listener failure stops the whole process."""

    try:
        app.state.udp_server.serve_forever()
    except Exception as exc:
        app.state.listener_error = exc
        logger.error("UDP listener stopped (%s): shutting down", exc)
        http_server = app.state.http_server
        if http_server is not None:
            http_server.should_exit = True


@asynccontextmanager
async def lifespan(app: FastAPI):
    server: UdpServer = app.state.udp_server
    server.bind()
    app.state.listener_error = None
    worker = threading.Thread(target=run_listener, args=(app,), name="acars-udp", daemon=True)
    worker.start()
    try:
        yield
    finally:
        server.shutdown()
        worker.join(timeout=5)


def create_app(
    settings: Optional[AppSettings] = None,
    storage: Optional[StoragePort] = None,
) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(title="ACARS Server", version="0.1.0", lifespan=lifespan)

    router = MessageRouter(
        storage,
        skip_labels=settings.skip_labels,
        once_labels=settings.once_labels,
        channels=settings.channels,
    )

    app.state.settings = settings
    app.state.storage = storage
    app.state.router = router
    app.state.udp_server = build_udp_server(settings, router)
    app.state.listener_error = None
    app.state.http_server = None

    app.include_router(status_router)
    app.include_router(messages_router, prefix="/v1")

    return app

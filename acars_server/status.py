"""Health and stats endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from .config import AppSettings
from .deps import get_app_settings, get_listener_error, get_router, get_udp_server
from .models import StatsResponse
from .router import MessageRouter
from .server import UdpServer

router = APIRouter()


@router.get("/healthz", tags=["status"])
async def healthz(listener_error: Optional[BaseException] = Depends(get_listener_error)):
    """Health check for uptime monitoring; fails once the UDP listener has died."""

    if listener_error is not None:
        return JSONResponse(status_code=503, content={"status": "error", "detail": str(listener_error)})
    return {"status": "ok"}


@router.get("/stats", response_model=StatsResponse, tags=["status"])
async def stats(
    message_router: MessageRouter = Depends(get_router),
    udp_server: Optional[UdpServer] = Depends(get_udp_server),
    settings: AppSettings = Depends(get_app_settings),
) -> StatsResponse:
    """Return routing outcome counts and the active label policy."""

    address = udp_server.address if udp_server is not None else None
    return StatsResponse(
        outcomes=message_router.counter.snapshot(),
        udp_port=address[1] if address else None,
        skip_labels=sorted(settings.skip_labels),
        once_labels=sorted(settings.once_labels),
        persistence_enabled=message_router.persistence_enabled,
    )

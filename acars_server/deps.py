"""FastAPI dependency helpers."""

from typing import Optional

from fastapi import Request

from .config import AppSettings
from .router import MessageRouter
from .server import UdpServer
from .storage import StoragePort


def get_storage(request: Request) -> Optional[StoragePort]:
    """Return the shared storage, or None when running display-only."""

    return request.app.state.storage


def get_router(request: Request) -> MessageRouter:
    """Return the message router fed by the UDP listener."""

    return request.app.state.router


def get_udp_server(request: Request) -> Optional[UdpServer]:
    return request.app.state.udp_server


def get_app_settings(request: Request) -> AppSettings:
    """Expose the settings the application was built with."""

    return request.app.state.settings


def get_listener_error(request: Request) -> Optional[BaseException]:
    """Return the exception that stopped the UDP listener, if any."""

    return request.app.state.listener_error

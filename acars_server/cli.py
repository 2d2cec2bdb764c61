"""Command-line entry point for the ACARS server."""

from __future__ import annotations

import argparse
import logging
from typing import Iterable, Optional

import uvicorn

from .config import get_settings
from .errors import DecodeError
from .main import build_udp_server, create_app, open_storage
from .router import MessageRouter


def parse_args(argv: Optional[Iterable[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Receive acarsdec UDP records and store them.")
    parser.add_argument("--port", type=int, help="UDP port to listen on (overrides ACARS_UDP_PORT).")
    parser.add_argument(
        "--no-api",
        action="store_true",
        help="Run only the UDP listener in the foreground, without the HTTP status API.",
    )
    parser.add_argument(
        "--log-level",
        help="Logging level (DEBUG, INFO, WARNING, ERROR).",
    )
    return parser.parse_args(argv)


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )


def main(argv: Optional[Iterable[str]] = None) -> int:
    args = parse_args(argv)
    settings = get_settings()
    overrides = {}
    if args.port is not None:
        overrides["udp_port"] = args.port
    if args.log_level:
        overrides["log_level"] = args.log_level
    if args.no_api:
        overrides["api_enabled"] = False
    if overrides:
        settings = settings.model_copy(update=overrides)

    setup_logging(settings.log_level)
    logger = logging.getLogger("acars_server")

    storage = open_storage(settings)

    try:
        if settings.api_enabled:
            app = create_app(settings, storage)
            # Bind before uvicorn starts so a taken port is reported here.
            app.state.udp_server.bind()
            config = uvicorn.Config(
                app,
                host=settings.api_host,
                port=settings.api_port,
                log_level=settings.log_level.lower(),
            )
            http_server = uvicorn.Server(config)
            app.state.http_server = http_server
            http_server.run()
            if app.state.listener_error is not None:
                return 1
            if not http_server.started:
                logger.error("HTTP status API failed to start")
                return 1
        else:
            router = MessageRouter(
                storage,
                skip_labels=settings.skip_labels,
                once_labels=settings.once_labels,
                channels=settings.channels,
            )
            build_udp_server(settings, router).serve_forever()
    except KeyboardInterrupt:
        return 130
    except DecodeError as exc:
        logger.error("Stopping on undecodable datagram (%s)", exc)
        return 1
    except OSError as exc:
        logger.error("Fail to open server socket (%s)", exc)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

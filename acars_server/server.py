"""UDP listener receiving acarsdec records."""

from __future__ import annotations

import logging
import socket
import threading
from typing import Callable, Optional, Tuple

from .decoder import decode_message
from .errors import DecodeError
from .models import DecodedMessage

logger = logging.getLogger(__name__)

MessageHandler = Callable[[DecodedMessage], object]


class UdpServer:
    """Sequential receive, decode and dispatch loop over a single UDP socket."""

    def __init__(
        self,
        port: int,
        handler: MessageHandler,
        *,
        host: str = "0.0.0.0",
        max_packet_size: int = 512,
        poll_interval: float = 0.5,
        stop_on_decode_error: bool = False,
    ) -> None:
        self._host = host
        self._port = port
        self._handler = handler
        self._max_packet_size = max_packet_size
        self._poll_interval = poll_interval
        self._stop_on_decode_error = stop_on_decode_error
        self._stop = threading.Event()
        self._socket: Optional[socket.socket] = None
        self.decode_errors = 0

    @property
    def address(self) -> Optional[Tuple[str, int]]:
        if self._socket is None:
            return None
        return self._socket.getsockname()[:2]

    @property
    def running(self) -> bool:
        return self._socket is not None and not self._stop.is_set()

    def bind(self) -> Tuple[str, int]:
        """Open and bind the socket, returning the bound address."""

        if self._socket is None:
            sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
            try:
                sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
                sock.bind((self._host, self._port))
                sock.settimeout(self._poll_interval)
            except OSError:
                sock.close()
                raise
            self._socket = sock
            self._stop.clear()
            logger.info("Listening on port %d...", sock.getsockname()[1])
        return self.address

    def serve_forever(self) -> None:
        """Handle datagrams until :meth:`shutdown` is called.

        Socket failures are logged and re-raised. Undecodable datagrams are
        logged and dropped unless ``stop_on_decode_error`` is set.
        """

        self.bind()
        sock = self._socket
        try:
            while not self._stop.is_set():
                try:
                    payload, peer = sock.recvfrom(self._max_packet_size)
                except socket.timeout:
                    continue
                except OSError as exc:
                    if self._stop.is_set():
                        break
                    logger.error("Fail to receive UDP packet (%s)", exc)
                    raise
                self._dispatch(payload, peer)
        finally:
            self.close()

    def _dispatch(self, payload: bytes, peer: Tuple[str, int]) -> None:
        try:
            message = decode_message(payload)
        except DecodeError as exc:
            self.decode_errors += 1
            logger.warning("Dropping undecodable datagram from %s:%d: %s (%r)", peer[0], peer[1], exc, payload)
            if self._stop_on_decode_error:
                raise
            return
        self._handler(message)

    def shutdown(self) -> None:
        """Ask the loop to stop; it exits within one poll interval."""

        self._stop.set()

    def close(self) -> None:
        if self._socket is not None:
            self._socket.close()
            self._socket = None

    def __enter__(self) -> "UdpServer":
        self.bind()
        return self

    def __exit__(self, *exc_info) -> None:
        self.shutdown()
        self.close()

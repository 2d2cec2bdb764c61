from __future__ import annotations

import socket
import threading
import time
from typing import List

import pytest

from acars_server.errors import DecodeError
from acars_server.models import DecodedMessage
from acars_server.server import UdpServer


class Collector:
    def __init__(self, expected: int) -> None:
        self.messages: List[DecodedMessage] = []
        self._expected = expected
        self.done = threading.Event()

    def __call__(self, message: DecodedMessage) -> None:
        self.messages.append(message)
        if len(self.messages) >= self._expected:
            self.done.set()


def send(address, *payloads: bytes) -> None:
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
        for payload in payloads:
            sock.sendto(payload, address)


def start(server: UdpServer) -> threading.Thread:
    server.bind()
    worker = threading.Thread(target=server.serve_forever, daemon=True)
    worker.start()
    return worker


def test_datagrams_are_decoded_in_order(make_record):
    collector = Collector(expected=3)
    server = UdpServer(0, collector, host="127.0.0.1", poll_interval=0.05)
    worker = start(server)
    try:
        send(
            server.address,
            make_record(msg_id="M01A").encode(),
            make_record(msg_id="M02A").encode(),
            make_record(msg_id="M03A").encode(),
        )
        assert collector.done.wait(timeout=5)
    finally:
        server.shutdown()
        worker.join(timeout=5)

    assert [message.msg_id for message in collector.messages] == ["M01A", "M02A", "M03A"]
    assert not worker.is_alive()
    assert server.address is None


def test_malformed_datagram_does_not_stop_the_loop(make_record, caplog):
    collector = Collector(expected=1)
    server = UdpServer(0, collector, host="127.0.0.1", poll_interval=0.05)
    worker = start(server)
    try:
        send(server.address, b"garbage", make_record(timestamp="99/99/9999 99:99:99").encode())
        send(server.address, make_record().encode())
        assert collector.done.wait(timeout=5)
    finally:
        server.shutdown()
        worker.join(timeout=5)

    assert server.decode_errors == 2
    assert len(collector.messages) == 1
    assert "undecodable" in caplog.text


def test_stop_on_decode_error_ends_the_loop():
    errors: List[BaseException] = []
    server = UdpServer(0, lambda message: None, host="127.0.0.1", poll_interval=0.05, stop_on_decode_error=True)
    server.bind()
    address = server.address

    def run() -> None:
        try:
            server.serve_forever()
        except DecodeError as exc:
            errors.append(exc)

    worker = threading.Thread(target=run, daemon=True)
    worker.start()
    send(address, b"too short")
    worker.join(timeout=5)

    assert not worker.is_alive()
    assert len(errors) == 1
    assert errors[0].raw == b"too short"


def test_shutdown_without_traffic_returns_promptly():
    server = UdpServer(0, lambda message: None, host="127.0.0.1", poll_interval=0.05)
    worker = start(server)
    assert server.running

    started = time.monotonic()
    server.shutdown()
    worker.join(timeout=5)

    assert not worker.is_alive()
    assert time.monotonic() - started < 2


def test_bind_logs_port(caplog):
    with caplog.at_level("INFO", logger="acars_server.server"):
        with UdpServer(0, lambda message: None, host="127.0.0.1") as server:
            port = server.address[1]
    assert f"Listening on port {port}" in caplog.text


def test_bind_failure_raises_os_error():
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as taken:
        taken.bind(("127.0.0.1", 0))
        port = taken.getsockname()[1]
        server = UdpServer(port, lambda message: None, host="127.0.0.1")
        with pytest.raises(OSError):
            server.bind()


def test_receive_failure_is_logged_and_raised(caplog):
    errors: List[BaseException] = []
    server = UdpServer(0, lambda message: None, host="127.0.0.1", poll_interval=0.05)
    server.bind()

    def run() -> None:
        try:
            server.serve_forever()
        except OSError as exc:
            errors.append(exc)

    worker = threading.Thread(target=run, daemon=True)
    with caplog.at_level("ERROR", logger="acars_server.server"):
        worker.start()
        # Closing the socket under the loop makes the next recvfrom fail.
        server._socket.close()
        worker.join(timeout=5)

    assert not worker.is_alive()
    assert len(errors) == 1
    assert "Fail to receive UDP packet" in caplog.text


def test_server_can_serve_again_after_shutdown(make_record):
    collector = Collector(expected=1)
    server = UdpServer(0, collector, host="127.0.0.1", poll_interval=0.05)
    worker = start(server)
    server.shutdown()
    worker.join(timeout=5)
    assert not worker.is_alive()

    worker = start(server)
    try:
        assert server.running
        send(server.address, make_record().encode())
        assert collector.done.wait(timeout=5)
    finally:
        server.shutdown()
        worker.join(timeout=5)

    assert len(collector.messages) == 1

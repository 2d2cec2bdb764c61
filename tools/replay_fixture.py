"""Replay acarsdec log lines to the ACARS server over UDP."""

from __future__ import annotations

import argparse
import socket
import time
from pathlib import Path
from typing import Iterable, List, Optional

LOG_ENCODINGS: tuple[str, ...] = ("utf-8", "latin-1")


def detect_encoding(path: Path) -> str:
    """Return the first encoding able to read the provided file."""
    for encoding in LOG_ENCODINGS:
        try:
            with path.open("r", encoding=encoding, newline="") as handle:
                handle.read()
            return encoding
        except UnicodeDecodeError:
            continue
    return "latin-1"


def read_records(path: Path) -> List[str]:
    """Return one record per non-blank, non-comment line."""

    encoding = detect_encoding(path)
    with path.open("r", encoding=encoding, newline="") as handle:
        lines = [line.rstrip("\r\n") for line in handle]
    return [line for line in lines if line.strip() and not line.startswith("#")]


def send_records(
    records: Iterable[str],
    host: str,
    port: int,
    *,
    delay: float = 0.0,
    sock: Optional[socket.socket] = None,
) -> int:
    owned = sock is None
    if sock is None:
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    sent = 0
    try:
        for record in records:
            sock.sendto(record.encode("latin-1", errors="replace"), (host, port))
            sent += 1
            if delay:
                time.sleep(delay)
    finally:
        if owned:
            sock.close()
    return sent


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Replay acarsdec records into the ACARS server.")
    parser.add_argument("log", type=Path, help="Path to a file holding one acarsdec record per line.")
    parser.add_argument("--host", default="127.0.0.1", help="Server address (default: 127.0.0.1).")
    parser.add_argument("--port", type=int, default=9876, help="Server UDP port (default: 9876).")
    parser.add_argument(
        "--delay",
        type=float,
        default=0.0,
        help="Seconds to wait between datagrams.",
    )
    return parser.parse_args(argv)


def main(argv: Iterable[str] | None = None) -> int:
    args = parse_args(argv)
    records = read_records(args.log)
    if not records:
        print("No records found in fixture.")
        return 0
    sent = send_records(records, args.host, args.port, delay=args.delay)
    print(f"Replayed {sent} records to udp://{args.host}:{args.port}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

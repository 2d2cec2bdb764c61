"""Decoder for the fixed-column text records emitted by acarsdec.

Each UDP datagram carries exactly one record. Fields are located purely by
column (0-indexed)::

    [9]        channel
    [11:30]    dd/mm/yyyy HH:MM:SS (UTC)
    [31]       error count
    [33:36]    level
    [37]       mode
    [39:46]    registration, left-padded with '.'
    [47]       ack
    [49:51]    label
    [52]       block id
    [54:58]    message id
    [59:65]    flight id
    [67:]      text

Decoding is a pure function: there is no module level parser state, so
datagrams may be decoded from any number of threads.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Union

from pydantic import ValidationError

from .errors import DecodeError
from .models import DecodedMessage

DATE_FORMAT = "%d/%m/%Y %H:%M:%S"
WIRE_ENCODING = "latin-1"

CHANNEL = slice(9, 10)
DATE_TIME = slice(11, 30)
ERROR_COUNT = slice(31, 32)
LEVEL = slice(33, 36)
MODE = 37
REGISTRATION = slice(39, 46)
ACK = 47
LABEL = slice(49, 51)
BLOCK_ID = 52
MSG_ID = slice(54, 58)
FLIGHT_ID = slice(59, 65)
TEXT_OFFSET = 67

MIN_RECORD_LENGTH = FLIGHT_ID.stop

INT_RE = re.compile(r"[+-]?[0-9]+")


def strip_registration(value: str) -> str:
    """Remove the leading '.' padding from a registration."""

    for index, char in enumerate(value):
        if char != ".":
            return value[index:]
    return ""


def _parse_int(record: str, columns: slice, name: str, raw: Union[bytes, str]) -> int:
    value = record[columns]
    if not INT_RE.fullmatch(value):
        raise DecodeError(f"{name} is not an integer: {value!r}", raw)
    return int(value)


def _parse_timestamp(record: str, raw: Union[bytes, str]) -> datetime:
    value = record[DATE_TIME]
    try:
        parsed = datetime.strptime(value, DATE_FORMAT)
    except ValueError as exc:
        raise DecodeError(f"invalid date/time {value!r}", raw) from exc
    return parsed.replace(tzinfo=timezone.utc)


def decode_message(raw: Union[bytes, bytearray, str]) -> DecodedMessage:
    """Decode one acarsdec record.

    ``raw`` is the payload of a single datagram, either as received from the
    socket or already decoded to text. Raises :class:`DecodeError` when the
    record is truncated or a date/numeric column cannot be parsed.
    """

    if isinstance(raw, (bytes, bytearray)):
        raw = bytes(raw)
        record = raw.decode(WIRE_ENCODING)
    else:
        record = raw

    if len(record) < MIN_RECORD_LENGTH:
        raise DecodeError(
            f"record truncated: {len(record)} characters, need at least {MIN_RECORD_LENGTH}",
            raw,
        )

    timestamp = _parse_timestamp(record, raw)
    channel = _parse_int(record, CHANNEL, "channel", raw)
    error_count = _parse_int(record, ERROR_COUNT, "error count", raw)
    level = _parse_int(record, LEVEL, "level", raw)

    try:
        return DecodedMessage(
            timestamp=timestamp,
            channel=channel,
            error_count=error_count,
            level=level,
            mode=record[MODE],
            registration=strip_registration(record[REGISTRATION]),
            ack=record[ACK],
            label=record[LABEL],
            block_id=record[BLOCK_ID],
            msg_id=record[MSG_ID],
            flight_id=record[FLIGHT_ID],
            text=record[TEXT_OFFSET:],
        )
    except ValidationError as exc:
        raise DecodeError(f"invalid record: {exc}", raw) from exc


def render_message(message: DecodedMessage) -> str:
    """Return the multi-line console representation of a message."""

    header = f"{message.timestamp.strftime(DATE_FORMAT)}    channel: {message.channel}"
    if message.frequency is not None:
        header += f"   frequency: {message.frequency} MHz"
    header += f"   err: {message.error_count}   level: {message.level}"
    lines = [
        "-" * 67,
        header,
        f"Registration: {message.registration}   FlightID: {message.flight_id}",
        f"Mode: {message.mode}   label: {message.label}   ack: {message.ack}"
        f"   BlockID: {message.block_id}   MsgID: {message.msg_id}",
        "Message:",
        message.text,
    ]
    return "\n".join(lines)

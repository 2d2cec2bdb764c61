"""Pydantic models for decoded ACARS messages and API payloads."""

from __future__ import annotations

import datetime as dt
from datetime import datetime, timezone
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _ensure_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class DecodedMessage(BaseModel):
    """One ACARS transmission as forwarded by acarsdec.

    Only ``frequency`` may be assigned after construction; it is filled in
    from the channel table once the message has been decoded.
    """

    timestamp: datetime = Field(frozen=True)
    channel: int = Field(frozen=True, ge=0)
    error_count: int = Field(frozen=True, ge=0)
    level: int = Field(frozen=True)
    mode: str = Field(frozen=True, min_length=1, max_length=1)
    registration: str = Field(frozen=True, max_length=7)
    ack: str = Field(frozen=True, min_length=1, max_length=1)
    label: str = Field(frozen=True, min_length=2, max_length=2)
    block_id: str = Field(frozen=True, min_length=1, max_length=1)
    msg_id: str = Field(frozen=True, min_length=4, max_length=4)
    flight_id: str = Field(frozen=True, min_length=6, max_length=6)
    text: str = Field(default="", frozen=True)
    frequency: Optional[str] = None

    model_config = ConfigDict(validate_assignment=True)

    @field_validator("timestamp")
    @classmethod
    def _timestamp_utc(cls, value: datetime) -> datetime:
        return _ensure_utc(value)

    @field_validator("registration")
    @classmethod
    def _registration_unpadded(cls, value: str) -> str:
        if value.startswith("."):
            raise ValueError("registration must not carry '.' padding")
        return value


class StoredMessage(BaseModel):
    """A row of the ``acars`` table."""

    date: dt.date
    time: dt.time
    frequency: Optional[str] = None
    registration: str
    flight: str
    mode: str
    label: str
    block_id: str
    msg_id: str
    text: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class StatsResponse(BaseModel):
    outcomes: Dict[str, int]
    udp_port: Optional[int] = None
    skip_labels: List[str]
    once_labels: List[str]
    persistence_enabled: bool

"""Exceptions raised by the ACARS server."""

from __future__ import annotations

from typing import Union


class AcarsServerError(Exception):
    """Base class for all service errors."""


class DecodeError(AcarsServerError):
    """A datagram does not follow the fixed-column acarsdec format."""

    def __init__(self, reason: str, raw: Union[bytes, str] = "") -> None:
        super().__init__(reason)
        self.reason = reason
        self.raw = raw


class StorageError(AcarsServerError):
    """The persistence backend failed to store or read a message."""


class DuplicateMessageError(StorageError):
    """The message collides with an already stored primary key."""

"""Retransmission detection for decoded ACARS messages."""

from __future__ import annotations

from datetime import timedelta

from .models import DecodedMessage

RETRANSMISSION_WINDOW = timedelta(hours=1)


def same_message(a: DecodedMessage, b: DecodedMessage) -> bool:
    """Return True when ``b`` is a retransmission of ``a`` (or vice versa).

    The time window is evaluated per pair, so the relation is not transitive.
    Use it as a pairwise check only, never to group or hash messages.
    """

    if abs(a.timestamp - b.timestamp) > RETRANSMISSION_WINDOW:
        return False

    return (
        a.channel == b.channel
        and a.mode == b.mode
        and a.block_id == b.block_id
        and a.registration == b.registration
        and a.label == b.label
        and a.msg_id == b.msg_id
        and a.flight_id == b.flight_id
    )

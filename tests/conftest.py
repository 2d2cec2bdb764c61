from __future__ import annotations

import pytest


def build_record(
    *,
    channel: str = "2",
    timestamp: str = "28/07/2016 14:05:00",
    error_count: str = "0",
    level: str = "180",
    mode: str = "2",
    registration: str = ".N12345",
    ack: str = "!",
    label: str = "H1",
    block_id: str = "4",
    msg_id: str = "M01A",
    flight_id: str = "AF0123",
    text: str = "POS N48123E002456,,140500,350,,,M45",
    prefix: str = "acarsdec ",
) -> str:
    """Return an acarsdec record with every field in its fixed column."""

    fixed = " ".join(
        [
            prefix[:9].ljust(9) + channel,
            timestamp,
            error_count,
            level,
            mode,
            registration,
            ack,
            label,
            block_id,
            msg_id,
            flight_id,
        ]
    )
    return f"{fixed}  {text}"


@pytest.fixture
def make_record():
    return build_record

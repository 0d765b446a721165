"""
Posting gate: open only when it is Thursday in New York or in Los Angeles.

October 2026 is still daylight-saving time in both zones (EDT = UTC-4,
PDT = UTC-7). 2026-10-15 is a Thursday.
"""
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from hottake.gate import PostingGate


@pytest.mark.parametrize(
    "now, expected",
    [
        (datetime(2026, 10, 15, 12, 0), True),    # Thursday everywhere
        (datetime(2026, 10, 15, 3, 0), False),    # still Wednesday in both zones
        (datetime(2026, 10, 15, 4, 30), True),    # 00:30 Thursday in New York
        (datetime(2026, 10, 16, 5, 0), True),     # Friday in NY, 22:00 Thursday in LA
        (datetime(2026, 10, 16, 6, 59), True),    # 23:59 Thursday in LA
        (datetime(2026, 10, 16, 7, 30), False),   # Friday in both zones
        (datetime(2026, 10, 19, 12, 0), False),   # Monday
    ],
)
def test_allowed_on_thursday_in_either_zone(gate, now, expected):
    assert gate.allowed(now, False) is expected


def test_aware_datetimes_are_converted(gate):
    thursday_in_ny = datetime(2026, 10, 15, 0, 30, tzinfo=ZoneInfo("America/New_York"))
    assert gate.allowed(thursday_in_ny) is True
    monday_utc = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)
    assert gate.allowed(monday_utc) is False


def test_override_always_opens_the_gate(gate):
    for day in range(12, 19):
        assert gate.allowed(datetime(2026, 10, day, 12, 0), True) is True


def test_gate_is_not_cached(gate):
    assert gate.allowed(datetime(2026, 10, 15, 12, 0)) is True
    assert gate.allowed(datetime(2026, 10, 16, 12, 0)) is False
    assert gate.allowed(datetime(2026, 10, 15, 13, 0)) is True


def test_weekday_name(gate):
    assert gate.weekday_name == "Thursday"


def test_rejects_bad_configuration():
    with pytest.raises(ValueError):
        PostingGate(7, ["UTC"])
    with pytest.raises(ValueError):
        PostingGate(3, [])

"""
Posting gate — takes may only be created on one day of the week.

The day is judged in several civil time zones at once: if it is the posting
day in *any* of them, the gate is open. With the default configuration that
means Thursday in US Eastern or US Pacific time, so the window opens at
midnight in New York and closes at midnight in Los Angeles.

The gate holds configuration only. It is evaluated on every creation
attempt and its answer is never cached.
"""
from datetime import datetime, timezone
from typing import Iterable
from zoneinfo import ZoneInfo

from hottake.config import settings

WEEKDAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


class PostingGate:
    def __init__(self, weekday: int, time_zones: Iterable[str]) -> None:
        if not 0 <= weekday <= 6:
            raise ValueError(f"weekday must be 0..6, got {weekday}")
        self.weekday = weekday
        self.zones = [ZoneInfo(name) for name in time_zones]
        if not self.zones:
            raise ValueError("posting gate needs at least one time zone")

    @property
    def weekday_name(self) -> str:
        return WEEKDAY_NAMES[self.weekday]

    def allowed(self, now: datetime, override: bool = False) -> bool:
        """
        True when `now` falls on the posting weekday in at least one zone.
        Naive datetimes are taken to be UTC. `override` opens the gate
        unconditionally.
        """
        if override:
            return True
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        return any(now.astimezone(zone).weekday() == self.weekday for zone in self.zones)


def default_gate() -> PostingGate:
    return PostingGate(settings.posting_weekday, settings.posting_time_zones)

"""Clock, observation windows and dedup windows."""

from __future__ import annotations

import datetime
from collections.abc import Callable
from dataclasses import dataclass
from zoneinfo import ZoneInfo

from src.monitor.types import ObservationWindow

Clock = Callable[[], datetime.datetime]


def zoned_clock(tz_name: str = "UTC") -> Clock:
    """Return a clock producing aware datetimes in *tz_name*."""
    tz: datetime.tzinfo = (
        datetime.UTC if tz_name.upper() == "UTC" else ZoneInfo(tz_name)
    )

    def _now() -> datetime.datetime:
        return datetime.datetime.now(tz)

    return _now


def start_of_day(now: datetime.datetime) -> datetime.datetime:
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def end_of_day(now: datetime.datetime) -> datetime.datetime:
    return now.replace(hour=23, minute=59, second=59, microsecond=999999)


def month_bounds(now: datetime.datetime) -> tuple[datetime.datetime, datetime.datetime]:
    """First and last instant of *now*'s calendar month, both inclusive."""
    start = start_of_day(now.replace(day=1))
    # Day 28 + 4 always lands in the following month.
    next_month = (start.replace(day=28) + datetime.timedelta(days=4)).replace(day=1)
    end = next_month - datetime.timedelta(microseconds=1)
    return start, end


def month_window(now: datetime.datetime) -> ObservationWindow:
    start, end = month_bounds(now)
    return ObservationWindow(start=start, end=end, reference=now)


def day_range_window(
    now: datetime.datetime, lookback_days: int, lookahead_days: int,
) -> ObservationWindow:
    """Whole days from ``today - lookback`` through ``today + lookahead``."""
    return ObservationWindow(
        start=start_of_day(now - datetime.timedelta(days=lookback_days)),
        end=end_of_day(now + datetime.timedelta(days=lookahead_days)),
        reference=now,
    )


@dataclass(frozen=True)
class DedupWindow:
    """Lookback used to suppress repeat alerts.

    ``start`` gives the earliest ``created_at`` that still counts as
    "already notified"; ``bucket`` names the period a new notification
    belongs to for the store's unique index.
    """

    label: str
    start: Callable[[datetime.datetime], datetime.datetime]
    bucket: Callable[[datetime.datetime], str]


def calendar_month() -> DedupWindow:
    return DedupWindow(
        label="calendar_month",
        start=lambda now: month_bounds(now)[0],
        bucket=lambda now: now.strftime("%Y-%m"),
    )


def trailing_hours(hours: int) -> DedupWindow:
    return DedupWindow(
        label=f"trailing_{hours}h",
        start=lambda now: now - datetime.timedelta(hours=hours),
        bucket=lambda now: now.strftime("%Y-%m-%d"),
    )

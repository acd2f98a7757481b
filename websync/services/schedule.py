"""Minute arithmetic that decides when backups and uptime sweeps are due.

All times are UTC. Weekly offsets count from Monday 00:00 (Monday = 0).
Monthly offsets use ``day_of_month * 1440`` with a 31-day period; this is a
coarse approximation that existing schedules depend on, so day 1 starts at
minute 1440 and offsets below that never fire.
"""

from dataclasses import dataclass
from datetime import datetime, timezone

MINUTES_PER_HOUR = 60
MINUTES_PER_DAY = 24 * 60
MINUTES_PER_WEEK = 7 * MINUTES_PER_DAY
MINUTES_PER_MONTH = 31 * MINUTES_PER_DAY

PERIODS = {
    "h": MINUTES_PER_HOUR,
    "d": MINUTES_PER_DAY,
    "w": MINUTES_PER_WEEK,
    "m": MINUTES_PER_MONTH,
}


@dataclass(frozen=True)
class TickTime:
    minute: int
    hour_minutes: int
    day_minutes: int
    month_minutes: int

    @classmethod
    def from_datetime(cls, dt: datetime) -> "TickTime":
        dt = dt.astimezone(timezone.utc)
        return cls(
            minute=dt.minute,
            hour_minutes=dt.hour * MINUTES_PER_HOUR,
            day_minutes=dt.weekday() * MINUTES_PER_DAY,
            month_minutes=dt.day * MINUTES_PER_DAY,
        )

    def position(self, interval: str) -> int:
        """Minutes elapsed in the current period of ``interval``."""
        if interval == "h":
            return self.minute
        if interval == "d":
            return self.hour_minutes + self.minute
        if interval == "w":
            return self.day_minutes + self.hour_minutes + self.minute
        if interval == "m":
            return self.month_minutes + self.hour_minutes + self.minute
        raise ValueError(f"Unknown interval: {interval!r}")


def is_backup_due(time_offset: int, interval: str, now: datetime) -> bool:
    period = PERIODS.get(interval)
    if period is None:
        return False
    return TickTime.from_datetime(now).position(interval) == time_offset % period


def is_uptime_due(interval_minutes: int, now: datetime) -> bool:
    tick = TickTime.from_datetime(now)
    return (tick.hour_minutes + tick.minute) % interval_minutes == 0


def minutes_until_due(time_offset: int, interval: str, now: datetime) -> int:
    """Minutes until ``is_backup_due`` next holds; 0 means due this minute."""
    period = PERIODS[interval]
    position = TickTime.from_datetime(now).position(interval)
    return (time_offset % period - position) % period


def describe_wait(minutes: int) -> str:
    if minutes < MINUTES_PER_HOUR:
        return f"{minutes} minutes."
    if minutes < MINUTES_PER_DAY:
        return f"{minutes // MINUTES_PER_HOUR} hours."
    if minutes < MINUTES_PER_WEEK:
        return f"{minutes // MINUTES_PER_DAY} days."
    return f"{minutes // MINUTES_PER_WEEK} weeks."

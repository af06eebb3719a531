from datetime import date, datetime, time, timedelta, tzinfo
from typing import Optional

PRESETS: tuple[str, ...] = ("today", "last7", "last30", "this-month", "prev-month", "all-time")


def day_start_ts(d: Optional[date], tz: Optional[tzinfo] = None) -> Optional[int]:
    """Unix seconds of 00:00:00 on `d` (local time unless `tz` is given)."""
    if d is None:
        return None
    return int(datetime.combine(d, time(0, 0, 0), tzinfo=tz).timestamp())


def day_end_ts(d: Optional[date], tz: Optional[tzinfo] = None) -> Optional[int]:
    """Unix seconds of 23:59:59 on `d` (local time unless `tz` is given)."""
    if d is None:
        return None
    return int(datetime.combine(d, time(23, 59, 59), tzinfo=tz).timestamp())


def preset_range(kind: str, today: Optional[date] = None) -> tuple[Optional[date], Optional[date]]:
    today = today or date.today()
    if kind == "today":
        return today, today
    if kind == "last7":
        return today - timedelta(days=6), today
    if kind == "last30":
        return today - timedelta(days=29), today
    if kind == "this-month":
        return today.replace(day=1), today
    if kind == "prev-month":
        end_prev = today.replace(day=1) - timedelta(days=1)
        return end_prev.replace(day=1), end_prev
    if kind == "all-time":
        return None, None
    raise ValueError(f"Unknown preset: {kind!r} (expected one of {', '.join(PRESETS)})")

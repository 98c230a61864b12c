"""
Wall-clock time helpers shared by the schedule, time-off and slot code.

Slot arithmetic is done in minutes since local midnight. An interval is a
half-open (start, end) pair of such minutes.
"""

from datetime import date, datetime, time, timedelta

Interval = tuple[int, int]


def time_str_to_minutes(value: str) -> int:
    """
    "HH:MM" → minutes since midnight.

    "24:00" is accepted as end-of-day.
    """
    try:
        hours_str, minutes_str = value.strip().split(":")
        hours, minutes = int(hours_str), int(minutes_str)
    except (AttributeError, ValueError):
        raise ValueError(f"Invalid time {value!r}, expected HH:MM")

    if not (0 <= minutes < 60) or not (0 <= hours <= 24) or (hours == 24 and minutes):
        raise ValueError(f"Invalid time {value!r}, expected HH:MM")
    return hours * 60 + minutes


def minutes_to_time_str(minutes: int) -> str:
    """Minutes since midnight → "HH:MM"."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def normalize_time_str(value: str) -> str:
    """"9:5" style input → "09:05"; raises ValueError when invalid."""
    return minutes_to_time_str(time_str_to_minutes(value))


def local_datetime(target_date: date, time_str: str) -> datetime:
    """Naive local datetime for a date and "HH:MM" (24:00 rolls to next day)."""
    return datetime.combine(target_date, time.min) + timedelta(minutes=time_str_to_minutes(time_str))


def overlaps(a: Interval, b: Interval) -> bool:
    """Half-open intervals overlap."""
    return a[0] < b[1] and b[0] < a[1]


def subtract_interval(windows: list[Interval], block: Interval) -> list[Interval]:
    """
    Remove block from every window.

    A window straddling the block is split in two; empty pieces are dropped.
    """
    result: list[Interval] = []
    block_start, block_end = block
    for start, end in windows:
        if not overlaps((start, end), block):
            result.append((start, end))
            continue
        if start < block_start:
            result.append((start, block_start))
        if block_end < end:
            result.append((block_end, end))
    return result


def date_range(date_start: date, date_end: date) -> list[date]:
    """Dates in [date_start, date_end], inclusive."""
    dates = []
    current = date_start
    while current <= date_end:
        dates.append(current)
        current += timedelta(days=1)
    return dates

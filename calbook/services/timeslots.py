"""Time-of-day helpers shared by validation, storage and booking."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta

SLOT_MINUTES = 30
OPENING_TIME = time(9, 0)
CLOSING_TIME = time(17, 0)
RESERVED_WINDOW_START = time(16, 0)
RESERVED_WINDOW_END = time(17, 0)


def add_minutes(value: time, minutes: int) -> time:
    """Shift a time of day; results past midnight saturate at ``time.max``."""

    shifted = datetime.combine(date.min, value) + timedelta(minutes=minutes)
    if shifted.date() != date.min:
        return time.max
    return shifted.time()


def slot_end(start: time) -> time:
    return add_minutes(start, SLOT_MINUTES)


def round_up_to_slot(value: time) -> time:
    """Round up to the next 30-minute boundary; exact boundaries are kept.

    Seconds count, so 10:30:15 becomes 11:00. Past 23:30 the result saturates
    at 23:59, which lies beyond closing time anyway.
    """

    if value.minute % SLOT_MINUTES == 0 and value.second == 0 and value.microsecond == 0:
        return value.replace(second=0, microsecond=0)
    minutes = value.hour * 60 + value.minute
    rounded = (minutes // SLOT_MINUTES + 1) * SLOT_MINUTES
    if rounded >= 24 * 60:
        return time(23, 59)
    return time(rounded // 60, rounded % 60)


def format_date(value: date) -> str:
    return value.strftime("%d/%m/%Y")


def format_time(value: time) -> str:
    return value.strftime("%H:%M")

"""Rules deciding whether a (date, start, end) slot may be booked."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time, timedelta
from typing import Optional

from calbook.clock import Clock
from calbook.services.timeslots import (
    CLOSING_TIME,
    OPENING_TIME,
    RESERVED_WINDOW_END,
    RESERVED_WINDOW_START,
)

MONDAY = 0


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    message: Optional[str] = None

    @classmethod
    def valid(cls) -> "ValidationResult":
        return cls(True)

    @classmethod
    def invalid(cls, message: str) -> "ValidationResult":
        return cls(False, message)


def reserved_date_for_month(year: int, month: int) -> date:
    """Second day of the third week, weeks counted from the month's first Monday."""

    first_day = date(year, month, 1)
    days_until_monday = (MONDAY - first_day.weekday()) % 7
    first_monday = first_day + timedelta(days=days_until_monday)
    return first_monday + timedelta(days=15)


def is_reserved_date(day: date) -> bool:
    return day == reserved_date_for_month(day.year, day.month)


class TimeSlotValidator:
    def __init__(self, clock: Clock) -> None:
        self._clock = clock

    def validate(self, day: date, start: time, end: time) -> ValidationResult:
        now = self._clock.now()
        today = now.date()

        if day < today:
            return ValidationResult.invalid("The date is in the past.")

        if day == today and now.time() > start:
            return ValidationResult.invalid("The time is in the past.")

        if start < OPENING_TIME or end > CLOSING_TIME:
            return ValidationResult.invalid("The time slot is outside of business hours.")

        if is_reserved_date(day) and RESERVED_WINDOW_START <= start < RESERVED_WINDOW_END:
            return ValidationResult.invalid("This time slot is reserved and unavailable.")

        return ValidationResult.valid()

import datetime as dt
import re
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

_DATE_PATTERN = re.compile(r"([0-9]{2})/([0-9]{2})(?:/([0-9]{4}))?")
_TIME_PATTERN = re.compile(r"([0-9]{2}):([0-9]{2})")
# Leap year used to check a bare dd/MM before its year is known.
_ANY_YEAR = 2000


def parse_date(value: str, *, year: int) -> dt.date:
    """Parse a ``dd/MM`` (or ``dd/MM/yyyy``) string; a bare ``dd/MM`` falls in ``year``."""

    match = _DATE_PATTERN.fullmatch(value.strip())
    if match is None:
        raise ValueError(f"Invalid date {value!r}. Please use 'dd/MM' format.")
    day, month, explicit_year = match.groups()
    try:
        return dt.date(int(explicit_year) if explicit_year else year, int(month), int(day))
    except ValueError as exc:
        raise ValueError(f"Invalid date {value!r}. Please use 'dd/MM' format.") from exc


def parse_time(value: str) -> dt.time:
    """Parse a 24-hour ``HH:mm`` string."""

    match = _TIME_PATTERN.fullmatch(value.strip())
    if match is None:
        raise ValueError(f"Invalid time {value!r}. Please use 'HH:mm' format.")
    try:
        return dt.time(int(match.group(1)), int(match.group(2)))
    except ValueError as exc:
        raise ValueError(f"Invalid time {value!r}. Please use 'HH:mm' format.") from exc


class Appointment(BaseModel):
    model_config = ConfigDict(frozen=True)

    appointment_id: Optional[str] = None
    appointment_date: dt.date
    start_time: dt.time
    end_time: dt.time

    @model_validator(mode="after")
    def _check_order(self) -> "Appointment":
        if self.start_time >= self.end_time:
            raise ValueError("start_time must be earlier than end_time")
        return self


class ServiceResult(BaseModel):
    success: bool
    message: str

    @classmethod
    def ok(cls, message: str) -> "ServiceResult":
        return cls(success=True, message=message)

    @classmethod
    def fail(cls, message: str) -> "ServiceResult":
        return cls(success=False, message=message)


class _DateField(BaseModel):
    date: str = Field(
        ...,
        description="Date as 'dd/MM' (current year) or 'dd/MM/yyyy', e.g. '21/10'",
    )

    @field_validator("date", mode="before")
    def _check_date(cls, value):
        if isinstance(value, dt.date):
            return value.strftime("%d/%m/%Y")
        if not isinstance(value, str):
            return value
        value = value.strip()
        if "-" in value:
            try:
                return dt.date.fromisoformat(value).strftime("%d/%m/%Y")
            except ValueError as exc:
                raise ValueError(f"Invalid date {value!r}. Please use 'dd/MM' format.") from exc
        parse_date(value, year=_ANY_YEAR)
        return value

    def resolve_date(self, today: dt.date) -> dt.date:
        """Return the requested date; a bare ``dd/MM`` falls in ``today``'s year."""
        return parse_date(self.date, year=today.year)


class SlotRequest(_DateField):
    time: dt.time = Field(..., description="Start time as 'HH:mm' (24-hour), e.g. '10:00'")

    @field_validator("time", mode="before")
    def _parse_time(cls, value):
        if isinstance(value, str):
            return parse_time(value)
        return value


class FindSlotRequest(_DateField):
    pass


class KeepTimeslotRequest(BaseModel):
    time: dt.time = Field(..., description="Time of day as 'HH:mm' (24-hour)")

    @field_validator("time", mode="before")
    def _parse_time(cls, value):
        if isinstance(value, str):
            return parse_time(value)
        return value

"""Appointment store contract and the slot arithmetic every store shares."""

from __future__ import annotations

from datetime import date, datetime, time
from typing import Iterable, List, Optional, Protocol

from calbook.schemas.booking import Appointment
from calbook.services.exceptions import StorageFault
from calbook.services.timeslots import CLOSING_TIME, OPENING_TIME, round_up_to_slot


class AppointmentStore(Protocol):
    """Persistence port used by :class:`calbook.services.booking.BookingService`.

    ``add`` and ``delete`` report persistence errors by returning the fault
    (``None`` means success). Queries raise :class:`StorageFault` when the
    store cannot be read. ``find_next_available_slot`` takes the caller's
    current instant so the store never reads a clock of its own.
    """

    async def is_slot_available(self, day: date, start: time, end: time) -> bool: ...

    async def add(self, appointment: Appointment) -> Optional[StorageFault]: ...

    async def delete(self, appointment: Appointment) -> Optional[StorageFault]: ...

    async def find_by_date_and_start(self, day: date, start: time) -> Optional[Appointment]: ...

    async def find_next_available_slot(
        self, day: date, start: time, now: datetime
    ) -> Optional[time]: ...

    async def list_for_date(self, day: date) -> List[Appointment]: ...


def slots_overlap(existing_start: time, existing_end: time, start: time, end: time) -> bool:
    # Half-open intervals: back-to-back slots do not conflict.
    return (existing_start <= start < existing_end) or (existing_start < end <= existing_end)


def has_conflict(appointments: Iterable[Appointment], start: time, end: time) -> bool:
    return any(
        slots_overlap(appointment.start_time, appointment.end_time, start, end)
        for appointment in appointments
    )


def find_next_free_slot(
    appointments: Iterable[Appointment],
    day: date,
    start: time,
    now: datetime,
) -> Optional[time]:
    """Return the first free start time on ``day`` at or after ``start``.

    Algorithm:
        1. On today, if ``now`` is past ``start``, move to ``now`` rounded up
           to the next 30-minute boundary.
        2. Never start before opening time.
        3. Walk the appointments ordered by start; the first one starting
           after the cursor leaves a gap at the cursor. Otherwise push the
           cursor to the end of the appointment when it ends later.
        4. Whatever is left before closing time is free.
    """

    cursor = start
    if day == now.date() and now.time() > cursor:
        cursor = round_up_to_slot(now.time())

    if cursor < OPENING_TIME:
        cursor = OPENING_TIME

    for appointment in sorted(appointments, key=lambda item: item.start_time):
        if cursor < appointment.start_time:
            return cursor
        if appointment.end_time > cursor:
            cursor = appointment.end_time

    if cursor < CLOSING_TIME:
        return cursor
    return None

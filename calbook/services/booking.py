from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta

from calbook.clock import Clock
from calbook.schemas.booking import Appointment, ServiceResult
from calbook.services.exceptions import StorageFault
from calbook.services.storage import AppointmentStore
from calbook.services.timeslots import (
    OPENING_TIME,
    format_date,
    format_time,
    round_up_to_slot,
    slot_end,
)
from calbook.services.validator import TimeSlotValidator

logger = logging.getLogger(__name__)

KEEP_SEARCH_HORIZON_YEARS = 1


def _one_year_after(day: date) -> date:
    try:
        return day.replace(year=day.year + KEEP_SEARCH_HORIZON_YEARS)
    except ValueError:
        # 29 February
        return day.replace(year=day.year + KEEP_SEARCH_HORIZON_YEARS, day=28)


class BookingService:
    """Books, cancels and searches 30-minute slots on a single calendar."""

    def __init__(
        self,
        store: AppointmentStore,
        validator: TimeSlotValidator,
        clock: Clock,
    ) -> None:
        self._store = store
        self._validator = validator
        self._clock = clock

    async def add_appointment(self, day: date, start: time) -> ServiceResult:
        logger.info("Adding appointment on %s at %s", day, start)
        end = slot_end(start)
        validation = self._validator.validate(day, start, end)
        if not validation.is_valid:
            logger.info("Rejected %s %s: %s", day, start, validation.message)
            return ServiceResult.fail(validation.message or "Invalid time slot.")

        try:
            available = await self._store.is_slot_available(day, start, end)
        except StorageFault:
            logger.exception("Availability check failed for %s %s", day, start)
            return ServiceResult.fail("Could not create appointment.")
        if not available:
            return ServiceResult.fail("Time slot is not available.")

        fault = await self._store.add(
            Appointment(appointment_date=day, start_time=start, end_time=end)
        )
        if fault is not None:
            logger.warning("Could not store appointment on %s at %s: %s", day, start, fault)
            return ServiceResult.fail("Could not create appointment.")

        return ServiceResult.ok(
            f"Appointment added on {format_date(day)} from {format_time(start)} to {format_time(end)}."
        )

    async def delete_appointment(self, day: date, start: time) -> ServiceResult:
        logger.info("Deleting appointment on %s at %s", day, start)
        if datetime.combine(day, start) < self._clock.now():
            return ServiceResult.fail("Cannot delete past appointments.")

        try:
            appointment = await self._store.find_by_date_and_start(day, start)
        except StorageFault:
            logger.exception("Lookup failed for %s %s", day, start)
            return ServiceResult.fail("Could not delete the appointment.")
        if appointment is None:
            return ServiceResult.fail(
                f"Appointment not found on {format_date(day)} at {format_time(start)}."
            )

        fault = await self._store.delete(appointment)
        if fault is not None:
            logger.warning("Could not delete appointment %s: %s", appointment.appointment_id, fault)
            return ServiceResult.fail("Could not delete the appointment.")

        return ServiceResult.ok(
            f"Appointment deleted on {format_date(day)} at {format_time(start)}."
        )

    async def find_appointment(self, day: date) -> ServiceResult:
        logger.info("Finding next free slot on %s", day)
        now = self._clock.now()
        if day < now.date():
            return ServiceResult.fail("Cannot find appointments for past dates.")

        start = round_up_to_slot(now.time()) if day == now.date() else OPENING_TIME
        try:
            free_slot = await self._store.find_next_available_slot(day, start, now)
        except StorageFault:
            logger.exception("Slot search failed for %s", day)
            return ServiceResult.fail("An error occurred while trying to find an appointment.")

        if free_slot is None:
            return ServiceResult.fail("No available slots for the day.")
        return ServiceResult.ok(
            f"Next available slot is on {format_date(day)} at {format_time(free_slot)}."
        )

    async def keep_timeslot(self, start: time) -> ServiceResult:
        logger.info("Keeping the first free %s timeslot", start)
        now = self._clock.now()
        today = now.date()
        end = slot_end(start)
        horizon = _one_year_after(today)

        candidate = today
        if now.time() > start:
            candidate = today + timedelta(days=1)

        while True:
            validation = self._validator.validate(candidate, start, end)
            if not validation.is_valid:
                # An invalid slot is not retried on later days.
                return ServiceResult.fail(validation.message or "Invalid time slot.")

            try:
                available = await self._store.is_slot_available(candidate, start, end)
            except StorageFault:
                logger.exception("Availability check failed for %s %s", candidate, start)
                return ServiceResult.fail("An error occurred while trying to keep the timeslot.")

            if available:
                fault = await self._store.add(
                    Appointment(appointment_date=candidate, start_time=start, end_time=end)
                )
                if fault is not None:
                    logger.warning("Could not keep timeslot on %s at %s: %s", candidate, start, fault)
                    return ServiceResult.fail("An error occurred while trying to keep the timeslot.")
                return ServiceResult.ok(
                    f"Reserved timeslot at {format_time(start)} on {format_date(candidate)}."
                )

            candidate += timedelta(days=1)
            if candidate > horizon:
                return ServiceResult.fail("Could not find an available slot within a year.")

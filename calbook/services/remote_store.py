from __future__ import annotations

import logging
from datetime import date, datetime, time
from typing import List, Optional

from pydantic import ValidationError

from calbook.clients.backend import BookingBackendClient
from calbook.schemas.booking import Appointment
from calbook.services.exceptions import StorageFault
from calbook.services.storage import find_next_free_slot, has_conflict

logger = logging.getLogger(__name__)


class RemoteAppointmentStore:
    """Appointment store persisted by the booking backend.

    The backend only lists, creates and deletes appointments; overlap checks
    and the free-slot sweep run locally on the listed day.
    """

    def __init__(self, client: BookingBackendClient) -> None:
        self._client = client

    async def list_for_date(self, day: date) -> List[Appointment]:
        data = await self._client.get("/appointments", params={"date": day.isoformat()})
        if data is None:
            items = []
        elif isinstance(data, dict):
            items = data.get("items", [])
        else:
            items = data
        if not isinstance(items, list):
            logger.warning(
                "Booking backend returned %s instead of an appointment list for %s",
                type(items).__name__,
                day,
            )
            raise StorageFault("Unexpected appointment payload from booking backend")
        try:
            appointments = [Appointment.model_validate(item) for item in items]
        except ValidationError as exc:
            logger.exception("Booking backend returned malformed appointments for %s", day)
            raise StorageFault("Malformed appointment data from booking backend", cause=exc) from exc
        return sorted(appointments, key=lambda item: item.start_time)

    async def is_slot_available(self, day: date, start: time, end: time) -> bool:
        return not has_conflict(await self.list_for_date(day), start, end)

    async def add(self, appointment: Appointment) -> Optional[StorageFault]:
        payload = appointment.model_dump(mode="json", exclude_none=True)
        try:
            await self._client.post("/appointments", payload)
        except StorageFault as exc:
            return exc
        return None

    async def delete(self, appointment: Appointment) -> Optional[StorageFault]:
        if appointment.appointment_id is None:
            return StorageFault("Cannot delete an appointment without an id")
        try:
            await self._client.delete(f"/appointments/{appointment.appointment_id}")
        except StorageFault as exc:
            return exc
        return None

    async def find_by_date_and_start(self, day: date, start: time) -> Optional[Appointment]:
        for appointment in await self.list_for_date(day):
            if appointment.start_time == start:
                return appointment
        return None

    async def find_next_available_slot(
        self, day: date, start: time, now: datetime
    ) -> Optional[time]:
        appointments = await self.list_for_date(day)
        return find_next_free_slot(appointments, day, start, now)

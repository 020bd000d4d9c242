from __future__ import annotations

import itertools
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Dict, Iterable, List, Optional

from calbook.schemas.booking import Appointment
from calbook.services.exceptions import StorageFault
from calbook.services.storage import find_next_free_slot, has_conflict


class _BaseRepository:
    def __init__(self, prefix: str) -> None:
        self._prefix = prefix
        self._counter = itertools.count(1)

    def _next_id(self) -> str:
        return f"{self._prefix}-{next(self._counter):05d}"


class AppointmentRepository(_BaseRepository):
    """In-memory appointment store keyed by appointment id."""

    def __init__(
        self,
        *,
        seed: Iterable[Appointment] = (),
    ) -> None:
        super().__init__("APT")
        self._appointments: Dict[str, Appointment] = {}
        for appointment in seed:
            self._store(appointment)

    def _store(self, appointment: Appointment) -> Appointment:
        appointment_id = appointment.appointment_id or self._next_id()
        stored = appointment.model_copy(update={"appointment_id": appointment_id})
        self._appointments[appointment_id] = stored
        return stored

    async def list_for_date(self, day: date) -> List[Appointment]:
        return sorted(
            (item for item in self._appointments.values() if item.appointment_date == day),
            key=lambda item: item.start_time,
        )

    async def list_all(self) -> List[Appointment]:
        return sorted(
            self._appointments.values(),
            key=lambda item: (item.appointment_date, item.start_time),
        )

    async def is_slot_available(self, day: date, start: time, end: time) -> bool:
        return not has_conflict(await self.list_for_date(day), start, end)

    async def add(self, appointment: Appointment) -> Optional[StorageFault]:
        if appointment.appointment_id and appointment.appointment_id in self._appointments:
            return StorageFault(f"Appointment {appointment.appointment_id} already exists")
        self._store(appointment)
        return None

    async def delete(self, appointment: Appointment) -> Optional[StorageFault]:
        if appointment.appointment_id is None:
            return StorageFault("Cannot delete an appointment without an id")
        if self._appointments.pop(appointment.appointment_id, None) is None:
            return StorageFault(f"Appointment {appointment.appointment_id} does not exist")
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


@dataclass
class MockDataStore:
    appointments: AppointmentRepository


_mock_store: Optional[MockDataStore] = None


def get_mock_store() -> MockDataStore:
    global _mock_store
    if _mock_store is None:
        _mock_store = MockDataStore(appointments=AppointmentRepository())
    return _mock_store


def reset_mock_store() -> None:
    global _mock_store
    _mock_store = None

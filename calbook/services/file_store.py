from __future__ import annotations

import itertools
import logging
from datetime import date
from pathlib import Path
from typing import List, Optional

from pydantic import TypeAdapter, ValidationError

from calbook.schemas.booking import Appointment
from calbook.services.exceptions import StorageFault
from calbook.services.mock_store import AppointmentRepository

logger = logging.getLogger(__name__)

_APPOINTMENT_LIST = TypeAdapter(List[Appointment])


class FileAppointmentStore(AppointmentRepository):
    """Appointment store kept in a JSON file so bookings outlive the process.

    The file is read on first use and rewritten after every successful
    mutation. A mutation whose write fails is rolled back in memory and
    returned as a fault.
    """

    def __init__(self, path: Path) -> None:
        super().__init__()
        self._path = Path(path)
        self._loaded = False

    def _ensure_loaded(self) -> None:
        if self._loaded:
            return
        if self._path.exists():
            try:
                records = _APPOINTMENT_LIST.validate_json(self._path.read_bytes())
            except (OSError, ValidationError) as exc:
                logger.exception("Cannot read appointments from %s", self._path)
                raise StorageFault(f"Cannot read appointments from {self._path}", cause=exc) from exc
            for record in records:
                self._store(record)
            self._counter = itertools.count(self._highest_id_number() + 1)
            logger.debug("Loaded %d appointments from %s", len(records), self._path)
        self._loaded = True

    def _highest_id_number(self) -> int:
        numbers = [
            int(suffix)
            for suffix in (key.rsplit("-", 1)[-1] for key in self._appointments)
            if suffix.isdigit()
        ]
        return max(numbers, default=0)

    def _save(self) -> Optional[StorageFault]:
        records = sorted(
            self._appointments.values(),
            key=lambda item: (item.appointment_date, item.start_time),
        )
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            scratch = self._path.with_name(self._path.name + ".tmp")
            scratch.write_bytes(_APPOINTMENT_LIST.dump_json(records, indent=2))
            scratch.replace(self._path)
        except OSError as exc:
            logger.exception("Cannot write appointments to %s", self._path)
            return StorageFault(f"Cannot write appointments to {self._path}", cause=exc)
        return None

    async def list_for_date(self, day: date) -> List[Appointment]:
        self._ensure_loaded()
        return await super().list_for_date(day)

    async def list_all(self) -> List[Appointment]:
        self._ensure_loaded()
        return await super().list_all()

    async def add(self, appointment: Appointment) -> Optional[StorageFault]:
        try:
            self._ensure_loaded()
        except StorageFault as exc:
            return exc
        before = dict(self._appointments)
        fault = await super().add(appointment)
        if fault is None:
            fault = self._save()
            if fault is not None:
                self._appointments = before
        return fault

    async def delete(self, appointment: Appointment) -> Optional[StorageFault]:
        try:
            self._ensure_loaded()
        except StorageFault as exc:
            return exc
        before = dict(self._appointments)
        fault = await super().delete(appointment)
        if fault is None:
            fault = self._save()
            if fault is not None:
                self._appointments = before
        return fault

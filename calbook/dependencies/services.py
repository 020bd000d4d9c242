from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from fastapi import Depends

from calbook.clients.backend import BookingBackendClient
from calbook.clock import Clock, SystemClock
from calbook.config import Settings, get_settings
from calbook.services import BookingService, TimeSlotValidator
from calbook.services.file_store import FileAppointmentStore
from calbook.services.mock_store import get_mock_store
from calbook.services.remote_store import RemoteAppointmentStore
from calbook.services.storage import AppointmentStore


@lru_cache(maxsize=1)
def get_backend_client_cached() -> BookingBackendClient:
    settings = get_settings()
    return BookingBackendClient(
        settings.backend_base_url,
        timeout=settings.backend_timeout,
        use_mock_data=settings.use_mock_data,
        token=settings.backend_token,
    )


def get_backend_client(settings: Settings = Depends(get_settings)) -> BookingBackendClient:
    return get_backend_client_cached()


def get_clock() -> Clock:
    return SystemClock()


def build_store(
    client: BookingBackendClient, *, data_file: Optional[Path] = None
) -> AppointmentStore:
    """Remote store when a backend is configured, otherwise a local one.

    Without a backend, ``data_file`` selects a JSON file store; long-running
    servers leave it unset and share the in-memory store.
    """
    if not client.use_mock_data:
        return RemoteAppointmentStore(client)
    if data_file is not None:
        return FileAppointmentStore(data_file)
    return get_mock_store().appointments


def build_booking_service(
    client: BookingBackendClient, clock: Clock, *, data_file: Optional[Path] = None
) -> BookingService:
    store = build_store(client, data_file=data_file)
    return BookingService(store, TimeSlotValidator(clock), clock)


def get_booking_service(
    client: BookingBackendClient = Depends(get_backend_client),
    clock: Clock = Depends(get_clock),
) -> BookingService:
    return build_booking_service(client, clock)

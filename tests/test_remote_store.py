import asyncio
import json
from datetime import date, datetime, time
from typing import Callable, Dict, List

import httpx
import pytest

from calbook.clients.backend import BookingBackendClient
from calbook.clock import FixedClock
from calbook.schemas.booking import Appointment
from calbook.services.booking import BookingService
from calbook.services.exceptions import DownstreamServiceError, StorageFault
from calbook.services.remote_store import RemoteAppointmentStore
from calbook.services.validator import TimeSlotValidator

DAY = date(2026, 10, 21)
NOW = datetime(2026, 10, 19, 8, 0)


class FakeBackend:
    """Minimal booking backend served through ``httpx.MockTransport``."""

    def __init__(self, appointments: List[Dict[str, str]] | None = None) -> None:
        self.appointments = list(appointments or [])
        self.requests: List[httpx.Request] = []
        self.fail_with: int | None = None
        self.reply: Callable[[], httpx.Response] | None = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_with is not None:
            return httpx.Response(self.fail_with, json={"detail": "backend failure"})
        if self.reply is not None:
            return self.reply()

        if request.method == "GET" and request.url.path == "/appointments":
            day = request.url.params["date"]
            items = [item for item in self.appointments if item["appointment_date"] == day]
            return httpx.Response(200, json={"items": items})

        if request.method == "POST" and request.url.path == "/appointments":
            payload = json.loads(request.content)
            payload["appointment_id"] = f"remote-{len(self.appointments) + 1}"
            self.appointments.append(payload)
            return httpx.Response(201, json=payload)

        if request.method == "DELETE" and request.url.path.startswith("/appointments/"):
            appointment_id = request.url.path.rsplit("/", 1)[-1]
            self.appointments = [
                item for item in self.appointments if item["appointment_id"] != appointment_id
            ]
            return httpx.Response(204)

        return httpx.Response(404)


def _store(backend: FakeBackend) -> RemoteAppointmentStore:
    client = BookingBackendClient(
        "http://backend.test",
        use_mock_data=False,
        token="secret",
        transport=httpx.MockTransport(backend),
    )
    return RemoteAppointmentStore(client)


def _record(appointment_id: str, start: str, end: str, day: date = DAY) -> Dict[str, str]:
    return {
        "appointment_id": appointment_id,
        "appointment_date": day.isoformat(),
        "start_time": start,
        "end_time": end,
    }


def test_remote_store_lists_and_checks_availability() -> None:
    backend = FakeBackend([_record("a1", "10:00:00", "10:30:00"), _record("a0", "09:00:00", "09:30:00")])
    store = _store(backend)

    listed = asyncio.run(store.list_for_date(DAY))

    assert [item.appointment_id for item in listed] == ["a0", "a1"]
    assert asyncio.run(store.is_slot_available(DAY, time(10, 0), time(10, 30))) is False
    assert asyncio.run(store.is_slot_available(DAY, time(9, 30), time(10, 0))) is True
    assert backend.requests[0].headers["Authorization"] == "Bearer secret"
    assert backend.requests[0].url.params["date"] == "2026-10-21"


def test_remote_store_finds_next_slot_locally() -> None:
    backend = FakeBackend([_record("a0", "09:00:00", "09:30:00")])
    store = _store(backend)

    assert asyncio.run(store.find_next_available_slot(DAY, time(9, 0), NOW)) == time(9, 30)
    assert asyncio.run(store.find_by_date_and_start(DAY, time(9, 0))).appointment_id == "a0"
    assert asyncio.run(store.find_by_date_and_start(DAY, time(9, 30))) is None


def test_remote_store_add_and_delete_round_trip_through_backend() -> None:
    backend = FakeBackend()
    store = _store(backend)
    appointment = Appointment(appointment_date=DAY, start_time=time(11, 0), end_time=time(11, 30))

    assert asyncio.run(store.add(appointment)) is None
    post = backend.requests[-1]
    assert post.method == "POST"
    assert json.loads(post.content) == {
        "appointment_date": "2026-10-21",
        "start_time": "11:00:00",
        "end_time": "11:30:00",
    }

    stored = asyncio.run(store.find_by_date_and_start(DAY, time(11, 0)))
    assert stored is not None
    assert asyncio.run(store.delete(stored)) is None
    assert backend.requests[-1].method == "DELETE"
    assert backend.appointments == []


def test_remote_store_returns_mutation_faults() -> None:
    backend = FakeBackend()
    backend.fail_with = 500
    store = _store(backend)
    appointment = Appointment(
        appointment_id="a9", appointment_date=DAY, start_time=time(11, 0), end_time=time(11, 30)
    )

    fault = asyncio.run(store.add(appointment))
    assert isinstance(fault, DownstreamServiceError)
    assert fault.status_code == 500

    assert isinstance(asyncio.run(store.delete(appointment)), DownstreamServiceError)


def test_remote_store_raises_on_unreadable_day() -> None:
    backend = FakeBackend()
    backend.fail_with = 503
    store = _store(backend)

    with pytest.raises(StorageFault):
        asyncio.run(store.list_for_date(DAY))


def test_remote_store_rejects_malformed_records() -> None:
    backend = FakeBackend([_record("bad", "10:30:00", "10:00:00")])
    store = _store(backend)

    with pytest.raises(StorageFault):
        asyncio.run(store.list_for_date(DAY))


def test_booking_service_converts_backend_outage() -> None:
    backend = FakeBackend()
    backend.fail_with = 502
    clock = FixedClock(NOW)
    service = BookingService(_store(backend), TimeSlotValidator(clock), clock)

    find_result = asyncio.run(service.find_appointment(DAY))
    add_result = asyncio.run(service.add_appointment(DAY, time(10, 0)))

    assert find_result.message == "An error occurred while trying to find an appointment."
    assert add_result.message == "Could not create appointment."


def test_backend_client_refuses_requests_in_mock_mode() -> None:
    client = BookingBackendClient(None)

    assert client.use_mock_data is True
    with pytest.raises(RuntimeError):
        asyncio.run(client.get("/appointments"))


def test_backend_client_wraps_non_json_bodies() -> None:
    backend = FakeBackend()
    backend.reply = lambda: httpx.Response(200, text="<html>maintenance</html>")
    store = _store(backend)

    with pytest.raises(DownstreamServiceError) as excinfo:
        asyncio.run(store.list_for_date(DAY))
    assert excinfo.value.status_code == 200

    appointment = Appointment(appointment_date=DAY, start_time=time(11, 0), end_time=time(11, 30))
    assert isinstance(asyncio.run(store.add(appointment)), DownstreamServiceError)


@pytest.mark.parametrize("body", [{"items": None}, {"items": {"id": "a1"}}, "appointments", 42])
def test_remote_store_rejects_payloads_without_a_list(body) -> None:
    backend = FakeBackend()
    backend.reply = lambda: httpx.Response(200, json=body)
    store = _store(backend)

    with pytest.raises(StorageFault):
        asyncio.run(store.list_for_date(DAY))


def test_remote_store_treats_empty_body_as_empty_day() -> None:
    backend = FakeBackend()
    backend.reply = lambda: httpx.Response(200)
    store = _store(backend)

    assert asyncio.run(store.list_for_date(DAY)) == []


@pytest.mark.parametrize(
    "reply",
    [
        lambda: httpx.Response(200, text="<html>maintenance</html>"),
        lambda: httpx.Response(200, json={"items": None}),
    ],
)
def test_booking_service_converts_unreadable_backend_replies(
    reply: Callable[[], httpx.Response],
) -> None:
    backend = FakeBackend()
    backend.reply = reply
    clock = FixedClock(NOW)
    service = BookingService(_store(backend), TimeSlotValidator(clock), clock)

    find_result = asyncio.run(service.find_appointment(DAY))
    add_result = asyncio.run(service.add_appointment(DAY, time(10, 0)))
    keep_result = asyncio.run(service.keep_timeslot(time(10, 0)))

    assert find_result.message == "An error occurred while trying to find an appointment."
    assert add_result.message == "Could not create appointment."
    assert keep_result.message == "An error occurred while trying to keep the timeslot."
    assert not (find_result.success or add_result.success or keep_result.success)


def test_remote_add_returns_fault_for_non_json_created_reply() -> None:
    backend = FakeBackend()
    backend.reply = lambda: httpx.Response(201, text="created")
    store = _store(backend)
    appointment = Appointment(appointment_date=DAY, start_time=time(11, 0), end_time=time(11, 30))

    fault = asyncio.run(store.add(appointment))

    assert isinstance(fault, DownstreamServiceError)
    assert fault.status_code == 201

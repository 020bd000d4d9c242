import asyncio
from datetime import datetime

import pytest

from calbook.cli import run
from calbook.clock import FixedClock
from calbook.config import get_settings
from calbook.services.booking import BookingService
from calbook.services.mock_store import AppointmentRepository
from calbook.services.validator import TimeSlotValidator

NOW = datetime(2026, 10, 19, 8, 0)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def store() -> AppointmentRepository:
    return AppointmentRepository()


@pytest.fixture
def service(store: AppointmentRepository, clock: FixedClock) -> BookingService:
    return BookingService(store, TimeSlotValidator(clock), clock)


def _run(argv, service, clock) -> int:
    return asyncio.run(run(argv, service=service, clock=clock))


def test_add_command_books_slot(service, clock, store, capsys) -> None:
    exit_code = _run(["ADD", "21/10", "10:00"], service, clock)

    assert exit_code == 0
    assert capsys.readouterr().out.strip() == "Appointment added on 21/10/2026 from 10:00 to 10:30."
    assert len(asyncio.run(store.list_all())) == 1


def test_commands_are_case_insensitive_and_share_state(service, clock, capsys) -> None:
    _run(["add", "21/10", "09:00"], service, clock)
    capsys.readouterr()

    assert _run(["find", "21/10"], service, clock) == 0
    assert capsys.readouterr().out.strip() == "Next available slot is on 21/10/2026 at 09:30."

    assert _run(["DELETE", "21/10", "09:00"], service, clock) == 0
    assert capsys.readouterr().out.strip() == "Appointment deleted on 21/10/2026 at 09:00."


def test_keep_command(service, clock, capsys) -> None:
    assert _run(["KEEP", "15:00"], service, clock) == 0
    assert capsys.readouterr().out.strip() == "Reserved timeslot at 15:00 on 19/10/2026."


def test_declined_operation_exits_with_failure(service, clock, capsys) -> None:
    assert _run(["DELETE", "18/10", "10:00"], service, clock) == 1
    assert capsys.readouterr().out.strip() == "Cannot delete past appointments."


@pytest.mark.parametrize(
    ("argv", "expected"),
    [
        (["ADD", "21/10"], "Incorrect number of arguments for ADD command."),
        (["FIND"], "Incorrect number of arguments for FIND command."),
        (["KEEP", "10:00", "11:00"], "Incorrect number of arguments for KEEP command."),
        (["ADD", "21-10", "10:00"], "Please use 'dd/MM' format."),
        (["FIND", "1/2"], "Please use 'dd/MM' format."),
        (["KEEP", "10h"], "Please use 'HH:mm' format."),
        (["MOVE", "21/10"], "Invalid command."),
    ],
)
def test_bad_input_never_reaches_the_service(service, clock, store, capsys, argv, expected) -> None:
    assert _run(argv, service, clock) == 2
    assert expected in capsys.readouterr().out
    assert asyncio.run(store.list_all()) == []


@pytest.fixture
def data_file(tmp_path, monkeypatch):
    path = tmp_path / "appointments.json"
    monkeypatch.setenv("CALBOOK_DATA_FILE", str(path))
    monkeypatch.setenv("CALBOOK_USE_MOCK_DATA", "true")
    monkeypatch.delenv("CALBOOK_BACKEND_BASE_URL", raising=False)
    get_settings.cache_clear()
    yield path
    get_settings.cache_clear()


def test_separate_runs_share_bookings_through_the_data_file(data_file, clock, capsys) -> None:
    assert asyncio.run(run(["ADD", "21/10", "10:00"], clock=clock)) == 0
    assert data_file.exists()

    assert asyncio.run(run(["ADD", "21/10", "10:00"], clock=clock)) == 1
    assert asyncio.run(run(["FIND", "21/10"], clock=clock)) == 0
    assert asyncio.run(run(["DELETE", "21/10", "10:00"], clock=clock)) == 0

    lines = capsys.readouterr().out.strip().splitlines()
    assert lines == [
        "Appointment added on 21/10/2026 from 10:00 to 10:30.",
        "Time slot is not available.",
        "Next available slot is on 21/10/2026 at 09:00.",
        "Appointment deleted on 21/10/2026 at 10:00.",
    ]

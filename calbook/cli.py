#!/usr/bin/env python3
"""Command line entry point: ADD, DELETE, FIND and KEEP appointment slots."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Awaitable, Callable, List, Optional

from calbook.clients.backend import BookingBackendClient
from calbook.clock import Clock, SystemClock
from calbook.config import get_settings
from calbook.dependencies.services import build_booking_service
from calbook.schemas.booking import ServiceResult, parse_date, parse_time
from calbook.services import BookingService

logger = logging.getLogger(__name__)

COMMAND_HELP = {
    "ADD": "Expecting date (dd/MM) and time (HH:mm).",
    "DELETE": "Expecting date (dd/MM) and time (HH:mm).",
    "FIND": "Expecting date (dd/MM).",
    "KEEP": "Expecting time (HH:mm).",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="calbook",
        description="Book 30-minute appointment slots between 09:00 and 17:00.",
    )
    parser.add_argument("command", help="ADD, DELETE, FIND or KEEP")
    parser.add_argument("arguments", nargs="*", help="dd/MM date and/or HH:mm time")
    return parser


def _dispatch(
    command: str,
    arguments: List[str],
    service: BookingService,
    clock: Clock,
) -> Callable[[], Awaitable[ServiceResult]]:
    """Parse the arguments for ``command`` and return the bound service call.

    Raises ``ValueError`` with a user-facing message for bad input.
    """

    expected = 1 if command in ("FIND", "KEEP") else 2
    if len(arguments) != expected:
        raise ValueError(
            f"Incorrect number of arguments for {command} command. {COMMAND_HELP[command]}"
        )

    if command == "KEEP":
        time_value = parse_time(arguments[0])
        return lambda: service.keep_timeslot(time_value)

    day = parse_date(arguments[0], year=clock.today().year)
    if command == "FIND":
        return lambda: service.find_appointment(day)

    time_value = parse_time(arguments[1])
    if command == "ADD":
        return lambda: service.add_appointment(day, time_value)
    return lambda: service.delete_appointment(day, time_value)


async def run(
    argv: List[str],
    *,
    service: Optional[BookingService] = None,
    clock: Optional[Clock] = None,
) -> int:
    args = build_parser().parse_args(argv)
    command = args.command.upper()
    if command not in COMMAND_HELP:
        print("Invalid command.")
        return 2

    clock = clock or SystemClock()
    client: Optional[BookingBackendClient] = None
    if service is None:
        settings = get_settings()
        client = BookingBackendClient(
            settings.backend_base_url,
            timeout=settings.backend_timeout,
            use_mock_data=settings.use_mock_data,
            token=settings.backend_token,
        )
        service = build_booking_service(client, clock, data_file=settings.data_file)

    try:
        try:
            call = _dispatch(command, args.arguments, service, clock)
        except ValueError as exc:
            print(exc)
            return 2
        result = await call()
    finally:
        if client is not None:
            await client.close()

    print(result.message)
    return 0 if result.success else 1


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(
        level=get_settings().log_level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    return asyncio.run(run(sys.argv[1:] if argv is None else argv))


if __name__ == "__main__":
    sys.exit(main())

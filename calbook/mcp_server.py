# calbook/mcp_server.py
from __future__ import annotations

import logging

from mcp.server.fastmcp import FastMCP

from calbook.clock import Clock, SystemClock
from calbook.dependencies.services import build_booking_service, get_backend_client_cached
from calbook.schemas.booking import (
    FindSlotRequest,
    KeepTimeslotRequest,
    ServiceResult,
    SlotRequest,
)
from calbook.services import BookingService

log = logging.getLogger("calbook.mcp")

# Name shown to clients
SERVER_NAME = "calbook_mcp"
mcp = FastMCP(SERVER_NAME)


def _clock() -> Clock:
    return SystemClock()


def _booking_service(clock: Clock) -> BookingService:
    return build_booking_service(get_backend_client_cached(), clock)


# --------------------------
# Tools
# --------------------------
@mcp.tool(name="booking_add", description="Book the 30-minute slot starting at a date ('dd/MM') and time ('HH:mm')")
async def booking_add(input: SlotRequest) -> ServiceResult:
    log.debug("booking_add input=%s", input.model_dump())
    clock = _clock()
    out = await _booking_service(clock).add_appointment(input.resolve_date(clock.today()), input.time)
    log.debug("booking_add output=%s", out.model_dump())
    return out


@mcp.tool(name="booking_delete", description="Cancel the appointment starting at a date ('dd/MM') and time ('HH:mm')")
async def booking_delete(input: SlotRequest) -> ServiceResult:
    log.debug("booking_delete input=%s", input.model_dump())
    clock = _clock()
    out = await _booking_service(clock).delete_appointment(input.resolve_date(clock.today()), input.time)
    log.debug("booking_delete output=%s", out.model_dump())
    return out


@mcp.tool(name="booking_find", description="Find the next free slot on a date ('dd/MM')")
async def booking_find(input: FindSlotRequest) -> ServiceResult:
    log.debug("booking_find input=%s", input.model_dump())
    clock = _clock()
    out = await _booking_service(clock).find_appointment(input.resolve_date(clock.today()))
    log.debug("booking_find output=%s", out.model_dump())
    return out


@mcp.tool(name="booking_keep", description="Reserve the first day on which a time ('HH:mm') is free")
async def booking_keep(input: KeepTimeslotRequest) -> ServiceResult:
    log.debug("booking_keep input=%s", input.model_dump())
    out = await _booking_service(_clock()).keep_timeslot(input.time)
    log.debug("booking_keep output=%s", out.model_dump())
    return out


@mcp.tool(name="ping", description="Health check")
async def ping(message: str) -> str:
    log.debug("ping %s", message)
    return f"pong: {message}"

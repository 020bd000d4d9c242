import datetime as dt

from fastapi import APIRouter, Depends, HTTPException

from calbook.clock import Clock
from calbook.schemas.booking import (
    FindSlotRequest,
    KeepTimeslotRequest,
    ServiceResult,
    SlotRequest,
)
from calbook.dependencies.services import get_booking_service, get_clock
from calbook.services import BookingService

router = APIRouter()


def _requested_date(req: FindSlotRequest | SlotRequest, clock: Clock) -> dt.date:
    try:
        return req.resolve_date(clock.today())
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@router.post("/add", response_model=ServiceResult)
async def add_appointment(
    req: SlotRequest,
    service: BookingService = Depends(get_booking_service),
    clock: Clock = Depends(get_clock),
):
    return await service.add_appointment(_requested_date(req, clock), req.time)


@router.post("/delete", response_model=ServiceResult)
async def delete_appointment(
    req: SlotRequest,
    service: BookingService = Depends(get_booking_service),
    clock: Clock = Depends(get_clock),
):
    return await service.delete_appointment(_requested_date(req, clock), req.time)


@router.post("/find", response_model=ServiceResult)
async def find_appointment(
    req: FindSlotRequest,
    service: BookingService = Depends(get_booking_service),
    clock: Clock = Depends(get_clock),
):
    return await service.find_appointment(_requested_date(req, clock))


@router.post("/keep", response_model=ServiceResult)
async def keep_timeslot(
    req: KeepTimeslotRequest,
    service: BookingService = Depends(get_booking_service),
):
    return await service.keep_timeslot(req.time)

from datetime import date

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from swastyasetu.auth.dependencies import CurrentUser, get_current_user, get_db
from swastyasetu.core import config
from swastyasetu.models.appointment import Appointment
from swastyasetu.models.doctor import Doctor
from swastyasetu.services.availability import (
    bookable_dates,
    format_time_of_day,
    is_date_bookable,
    slots_for_date,
)
from swastyasetu.services.errors import ServiceError, to_http_exception
from swastyasetu.services.lifecycle import AppointmentLifecycle
from swastyasetu.services.store import RecordStore

router = APIRouter(tags=['availability'])


class BookableDatesResponse(BaseModel):
    doctor_id: int
    start: date
    days: int
    dates: list[date]


class DaySlotsResponse(BaseModel):
    doctor_id: int
    date: date
    is_bookable: bool
    slots: list[str]


@router.get('/{doctor_id}/dates', response_model=BookableDatesResponse)
def list_bookable_dates(
    doctor_id: int,
    start: date | None = Query(default=None),
    days: int = Query(default=config.BOOKING_RANGE_DAYS, ge=1, le=90),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    del current_user
    try:
        doctor = RecordStore(db, Doctor).get(doctor_id)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc

    range_start = start or date.today()
    return BookableDatesResponse(
        doctor_id=doctor_id,
        start=range_start,
        days=days,
        dates=bookable_dates(doctor.availability, range_start, days),
    )


@router.get('/{doctor_id}/slots', response_model=DaySlotsResponse)
def list_day_slots(
    doctor_id: int,
    slot_date: date = Query(..., alias='date'),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    """Open slots for one date, leaving out those already held by a live booking."""
    del current_user
    try:
        doctor = RecordStore(db, Doctor).get(doctor_id)
        if not is_date_bookable(doctor.availability, slot_date):
            return DaySlotsResponse(doctor_id=doctor_id, date=slot_date, is_bookable=False, slots=[])

        booked = AppointmentLifecycle(RecordStore(db, Appointment)).booked_slots(doctor_id, slot_date)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc

    slots = slots_for_date(doctor.availability, slot_date, booked=booked)
    return DaySlotsResponse(
        doctor_id=doctor_id,
        date=slot_date,
        is_bookable=True,
        slots=[format_time_of_day(slot) for slot in slots],
    )

from datetime import date, time, timedelta

import pytest
from fastapi import HTTPException

from swastyasetu.routes.availability_routes import list_bookable_dates, list_day_slots


def _next_monday() -> date:
    today = date.today()
    return today + timedelta(days=(7 - today.weekday()) % 7 or 7)


def test_bookable_dates_follow_weekly_windows(db, clinic) -> None:
    monday = _next_monday()

    response = list_bookable_dates(
        clinic['doctor_profile'].id,
        start=monday,
        days=7,
        db=db,
        current_user=clinic['patient'],
    )

    assert response.start == monday
    assert response.days == 7
    assert response.dates == [monday, monday + timedelta(days=2)]


def test_bookable_dates_skip_the_past(db, clinic) -> None:
    start = date.today() - timedelta(days=14)

    response = list_bookable_dates(
        clinic['doctor_profile'].id,
        start=start,
        days=14,
        db=db,
        current_user=clinic['patient'],
    )

    assert response.dates == []


def test_bookable_dates_default_to_today(db, clinic) -> None:
    response = list_bookable_dates(
        clinic['doctor_profile'].id,
        start=None,
        days=7,
        db=db,
        current_user=clinic['patient'],
    )

    assert response.start == date.today()
    assert len(response.dates) == 2


def test_bookable_dates_for_unknown_doctor(db, clinic) -> None:
    with pytest.raises(HTTPException) as exception_info:
        list_bookable_dates(999, start=None, days=7, db=db, current_user=clinic['patient'])

    assert exception_info.value.status_code == 404
    assert exception_info.value.detail == 'Doctor not found.'


def test_day_slots_are_half_hourly_and_end_before_window_end(db, clinic) -> None:
    response = list_day_slots(
        clinic['doctor_profile'].id,
        slot_date=_next_monday(),
        db=db,
        current_user=clinic['patient'],
    )

    assert response.is_bookable is True
    assert response.slots == ['09:00', '09:30', '10:00', '10:30']


def test_day_slots_leave_out_live_bookings(db, clinic, make_appointment) -> None:
    monday = _next_monday()
    doctor_id = clinic['doctor_profile'].id
    make_appointment(clinic['patient'].id, doctor_id, appointment_date=monday, appointment_time=time(9, 0))
    make_appointment(
        clinic['patient'].id,
        doctor_id,
        appointment_date=monday,
        appointment_time=time(10, 0),
        status='cancelled',
    )

    response = list_day_slots(doctor_id, slot_date=monday, db=db, current_user=clinic['patient'])

    assert response.slots == ['09:30', '10:00', '10:30']


def test_day_slots_on_an_unavailable_day(db, clinic) -> None:
    response = list_day_slots(
        clinic['doctor_profile'].id,
        slot_date=_next_monday() + timedelta(days=1),
        db=db,
        current_user=clinic['patient'],
    )

    assert response.is_bookable is False
    assert response.slots == []


def test_day_slots_merge_overlapping_windows(db, clinic, make_doctor) -> None:
    doctor = make_doctor(
        name='Dr. Vikram Shah',
        user_email='vikram@clinic.in',
        availability=[
            {'day': 'Monday', 'start_time': '09:00', 'end_time': '10:00'},
            {'day': 'Monday', 'start_time': '09:30', 'end_time': '10:30'},
        ],
    )

    response = list_day_slots(doctor.id, slot_date=_next_monday(), db=db, current_user=clinic['patient'])

    assert response.slots == ['09:00', '09:30', '10:00']

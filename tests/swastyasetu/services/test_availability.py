from datetime import date, time, timedelta

import pytest

from swastyasetu.services.availability import (
    SlotSequence,
    bookable_dates,
    format_time_of_day,
    is_date_bookable,
    iterate_window_slots,
    slots_for_date,
    weekday_name,
    windows_for_day,
)

MONDAY = date(2026, 1, 5)
TUESDAY = date(2026, 1, 6)


def _labels(slots) -> list[str]:
    return [format_time_of_day(slot) for slot in slots]


def test_weekday_name_does_not_depend_on_locale() -> None:
    assert weekday_name(MONDAY) == 'Monday'
    assert weekday_name(date(2026, 1, 11)) == 'Sunday'


def test_slots_for_matching_weekday_step_every_thirty_minutes() -> None:
    availability = [{'day': 'Monday', 'start_time': '09:00', 'end_time': '11:00'}]

    assert _labels(slots_for_date(availability, MONDAY)) == ['09:00', '09:30', '10:00', '10:30']


def test_slots_for_weekday_without_window_are_empty() -> None:
    availability = [{'day': 'Monday', 'start_time': '09:00', 'end_time': '11:00'}]

    slots = slots_for_date(availability, TUESDAY)

    assert list(slots) == []
    assert not slots


@pytest.mark.parametrize(
    ('start', 'end', 'expected'),
    [
        ('09:00', '10:00', ['09:00', '09:30']),
        ('09:00', '09:45', ['09:00', '09:30']),
        ('09:00', '09:20', []),
        ('09:00', '09:29', []),
        ('09:00', '09:30', ['09:00']),
        ('09:15', '10:15', ['09:15', '09:45']),
        ('23:00', '23:59', ['23:00', '23:30']),
    ],
)
def test_slots_stop_strictly_before_window_end(start: str, end: str, expected: list[str]) -> None:
    availability = [{'day': 'Monday', 'start_time': start, 'end_time': end}]

    assert _labels(slots_for_date(availability, MONDAY)) == expected


def test_window_shorter_than_one_slot_offers_nothing() -> None:
    assert list(iterate_window_slots(time(14, 0), time(14, 15))) == []
    assert list(slots_for_date([{'day': 'Monday', 'start_time': '14:00', 'end_time': '14:15'}], MONDAY)) == []


@pytest.mark.parametrize(
    ('start', 'end'),
    [(time(8, 0), time(12, 0)), (time(9, 10), time(13, 5)), (time(17, 30), time(20, 0))],
)
def test_slots_stay_inside_window_and_are_evenly_spaced(start: time, end: time) -> None:
    availability = [{'day': 'Monday', 'start_time': start, 'end_time': end}]

    slots = list(slots_for_date(availability, MONDAY))

    assert slots[0] == start
    assert all(start <= slot < end for slot in slots)
    minutes = [slot.hour * 60 + slot.minute for slot in slots]
    assert all(later - earlier == 30 for earlier, later in zip(minutes, minutes[1:]))


def test_slot_sequence_can_be_iterated_more_than_once() -> None:
    availability = [{'day': 'Monday', 'start_time': '09:00', 'end_time': '10:30'}]

    slots = slots_for_date(availability, MONDAY)

    assert list(slots) == list(slots)
    assert len(list(slots)) == 3


def test_booked_slots_are_left_out() -> None:
    availability = [{'day': 'Monday', 'start_time': '09:00', 'end_time': '11:00'}]

    slots = slots_for_date(availability, MONDAY, booked={time(9, 30), time(10, 30)})

    assert _labels(slots) == ['09:00', '10:00']
    assert time(9, 30) not in slots
    assert time(10, 0) in slots


def test_duplicate_windows_for_one_day_are_merged() -> None:
    availability = [
        {'day': 'Monday', 'start_time': '09:00', 'end_time': '10:00'},
        {'day': 'Monday', 'start_time': '09:30', 'end_time': '11:00'},
        {'day': 'Monday', 'start_time': '16:00', 'end_time': '16:30'},
    ]

    assert len(windows_for_day(availability, MONDAY)) == 3
    assert _labels(slots_for_date(availability, MONDAY)) == ['09:00', '09:30', '10:00', '10:30', '16:00']


def test_slot_sequence_membership_accepts_strings() -> None:
    slots = SlotSequence([(time(9, 0), time(10, 0))])

    assert '09:30' in slots
    assert '09:45' not in slots
    assert 'not-a-time' not in slots
    assert 930 not in slots


def test_windows_can_be_objects_with_attributes() -> None:
    class Window:
        day = 'Monday'
        start_time = time(9, 0)
        end_time = time(10, 0)

    assert _labels(slots_for_date([Window()], MONDAY)) == ['09:00', '09:30']


def test_missing_availability_gives_no_slots() -> None:
    assert list(slots_for_date(None, MONDAY)) == []


def test_past_dates_are_never_bookable() -> None:
    availability = [{'day': 'Monday', 'start_time': '09:00', 'end_time': '11:00'}]

    assert is_date_bookable(availability, MONDAY, today=MONDAY + timedelta(days=1)) is False
    assert is_date_bookable(availability, MONDAY - timedelta(days=7), today=MONDAY) is False


def test_today_and_future_dates_follow_weekly_availability() -> None:
    availability = [{'day': 'Monday', 'start_time': '09:00', 'end_time': '11:00'}]

    assert is_date_bookable(availability, MONDAY, today=MONDAY) is True
    assert is_date_bookable(availability, MONDAY + timedelta(days=7), today=MONDAY) is True
    assert is_date_bookable(availability, TUESDAY, today=MONDAY) is False


def test_is_date_bookable_defaults_to_the_current_date() -> None:
    availability = [{'day': weekday_name(date.today()), 'start_time': '09:00', 'end_time': '10:00'}]

    assert is_date_bookable(availability, date.today()) is True
    assert is_date_bookable(availability, date.today() - timedelta(days=7)) is False


def test_bookable_dates_lists_matching_weekdays_in_range() -> None:
    availability = [
        {'day': 'Monday', 'start_time': '09:00', 'end_time': '11:00'},
        {'day': 'Thursday', 'start_time': '09:00', 'end_time': '11:00'},
    ]

    dates = bookable_dates(availability, MONDAY, 14, today=MONDAY)

    assert dates == [
        date(2026, 1, 5),
        date(2026, 1, 8),
        date(2026, 1, 12),
        date(2026, 1, 15),
    ]


def test_bookable_dates_skip_days_before_today() -> None:
    availability = [{'day': 'Monday', 'start_time': '09:00', 'end_time': '11:00'}]

    assert bookable_dates(availability, MONDAY, 8, today=TUESDAY) == [date(2026, 1, 12)]

"""Turn a doctor's weekly availability windows into bookable dates and slots.

Everything here is pure: the same windows and date always give the same
answer. The only clock read is the default ``today`` of ``is_date_bookable``.
"""

import heapq
from collections.abc import Iterable, Iterator, Mapping
from datetime import date, datetime, time, timedelta
from typing import Any

SLOT_INCREMENT_MINUTES = 30
WEEKDAYS = ('Monday', 'Tuesday', 'Wednesday', 'Thursday', 'Friday', 'Saturday', 'Sunday')

# Any fixed date works; slots only ever compare time-of-day values.
_ANCHOR_DAY = date(2000, 1, 1)


def weekday_name(day: date) -> str:
    # date.strftime('%A') follows the process locale; the stored names do not.
    return WEEKDAYS[day.weekday()]


def parse_time_of_day(value: time | str) -> time:
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0)
    return time.fromisoformat(value.strip()).replace(second=0, microsecond=0)


def format_time_of_day(value: time) -> str:
    return value.strftime('%H:%M')


def _field(window: Mapping[str, Any] | Any, name: str) -> Any:
    if isinstance(window, Mapping):
        return window.get(name)
    return getattr(window, name, None)


def windows_for_day(availability: Iterable[Any] | None, day: date) -> list[tuple[time, time]]:
    """Return every ``(start, end)`` window whose weekday matches ``day``.

    Several windows for one weekday are all returned so callers can merge
    them rather than silently keeping the first.
    """
    name = weekday_name(day)
    windows = []
    for window in availability or ():
        if _field(window, 'day') != name:
            continue
        windows.append((parse_time_of_day(_field(window, 'start_time')), parse_time_of_day(_field(window, 'end_time'))))
    return windows


def iterate_window_slots(start_time: time, end_time: time) -> Iterator[time]:
    current = datetime.combine(_ANCHOR_DAY, start_time)
    end = datetime.combine(_ANCHOR_DAY, end_time)
    step = timedelta(minutes=SLOT_INCREMENT_MINUTES)

    # A window must fit at least one full slot to offer any.
    if end - current < step:
        return

    while current < end:
        yield current.time()
        current += step


class SlotSequence:
    """Lazy, restartable, ascending sequence of bookable slots for one date.

    Iterating walks the windows again each time; nothing is cached.
    """

    def __init__(self, windows: Iterable[tuple[time, time]], excluded: Iterable[time] = ()):
        self.windows = tuple(windows)
        self.excluded = frozenset(parse_time_of_day(slot) for slot in excluded)

    def __iter__(self) -> Iterator[time]:
        previous = None
        for slot in heapq.merge(*(iterate_window_slots(start, end) for start, end in self.windows)):
            if slot == previous:
                continue
            previous = slot
            if slot not in self.excluded:
                yield slot

    def __contains__(self, slot: object) -> bool:
        if not isinstance(slot, (time, str)):
            return False
        try:
            candidate = parse_time_of_day(slot)
        except ValueError:
            return False
        return any(candidate == value for value in self)

    def __bool__(self) -> bool:
        return next(iter(self), None) is not None

    def __repr__(self) -> str:
        return f'SlotSequence({[format_time_of_day(slot) for slot in self]})'


def is_date_bookable(availability: Iterable[Any] | None, day: date, today: date | None = None) -> bool:
    """Return whether ``day`` can be picked on a booking calendar.

    Dates before ``today`` are never bookable; today itself is. Otherwise a
    date is bookable when some window falls on its weekday.
    """
    today = today or date.today()
    if day < today:
        return False

    name = weekday_name(day)
    return any(_field(window, 'day') == name for window in availability or ())


def slots_for_date(
    availability: Iterable[Any] | None,
    day: date,
    booked: Iterable[time] = (),
) -> SlotSequence:
    return SlotSequence(windows_for_day(availability, day), excluded=booked)


def bookable_dates(
    availability: Iterable[Any] | None,
    start: date,
    days: int,
    today: date | None = None,
) -> list[date]:
    windows = list(availability or ())
    return [
        start + timedelta(days=offset)
        for offset in range(days)
        if is_date_bookable(windows, start + timedelta(days=offset), today=today)
    ]

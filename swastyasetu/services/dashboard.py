"""Split appointment lists into the sections each dashboard shows."""

from collections.abc import Iterable
from datetime import date
from typing import Any

from swastyasetu.services.lifecycle import APPROVED, CANCELLED, COMPLETED, PENDING


def group_patient_appointments(appointments: Iterable[Any], today: date | None = None) -> dict[str, list[Any]]:
    today = today or date.today()
    upcoming: list[Any] = []
    past: list[Any] = []

    for appointment in appointments:
        if appointment.status in (PENDING, APPROVED) and appointment.appointment_date >= today:
            upcoming.append(appointment)
        else:
            past.append(appointment)

    return {'upcoming': upcoming, 'past': past}


def group_doctor_appointments(appointments: Iterable[Any], today: date | None = None) -> dict[str, list[Any]]:
    """Pending requests, approved consultations still ahead, and the rest.

    A pending request dated in the past stays in ``pending`` so the doctor
    can still decline it.
    """
    today = today or date.today()
    pending: list[Any] = []
    upcoming: list[Any] = []
    past: list[Any] = []

    for appointment in appointments:
        if appointment.status == PENDING:
            pending.append(appointment)
        elif appointment.status in (COMPLETED, CANCELLED) or appointment.appointment_date < today:
            past.append(appointment)
        elif appointment.status == APPROVED:
            upcoming.append(appointment)
        else:
            past.append(appointment)

    return {'pending': pending, 'upcoming': upcoming, 'past': past}

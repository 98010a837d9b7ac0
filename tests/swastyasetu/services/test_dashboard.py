from datetime import date, time
from types import SimpleNamespace

from swastyasetu.services.dashboard import group_doctor_appointments, group_patient_appointments

TODAY = date(2026, 3, 10)


def _appointment(name: str, status: str, appointment_date: date) -> SimpleNamespace:
    return SimpleNamespace(
        name=name,
        status=status,
        appointment_date=appointment_date,
        appointment_time=time(9, 0),
    )


APPOINTMENTS = [
    _appointment('pending-future', 'pending', date(2026, 3, 12)),
    _appointment('approved-today', 'approved', TODAY),
    _appointment('approved-past', 'approved', date(2026, 3, 1)),
    _appointment('pending-past', 'pending', date(2026, 3, 2)),
    _appointment('completed', 'completed', date(2026, 3, 9)),
    _appointment('cancelled-future', 'cancelled', date(2026, 3, 20)),
]


def _names(appointments) -> list[str]:
    return [appointment.name for appointment in appointments]


def test_patient_dashboard_splits_upcoming_from_past() -> None:
    groups = group_patient_appointments(APPOINTMENTS, today=TODAY)

    assert _names(groups['upcoming']) == ['pending-future', 'approved-today']
    assert _names(groups['past']) == ['approved-past', 'pending-past', 'completed', 'cancelled-future']


def test_doctor_dashboard_keeps_every_pending_request_actionable() -> None:
    groups = group_doctor_appointments(APPOINTMENTS, today=TODAY)

    assert _names(groups['pending']) == ['pending-future', 'pending-past']
    assert _names(groups['upcoming']) == ['approved-today']
    assert _names(groups['past']) == ['approved-past', 'completed', 'cancelled-future']


def test_empty_lists_give_empty_sections() -> None:
    assert group_patient_appointments([], today=TODAY) == {'upcoming': [], 'past': []}
    assert group_doctor_appointments([], today=TODAY) == {'pending': [], 'upcoming': [], 'past': []}

"""Appointment states, role-guarded transitions and booking defaults.

::

    pending ──> approved ──> completed
       │            │
       └──> cancelled <──┘

``cancelled`` and ``completed`` are terminal. Roles are always passed in
by the caller; nothing here works out who the actor is.
"""

import logging
from datetime import date, time
from typing import Any

from swastyasetu.models.appointment import Appointment
from swastyasetu.services.errors import (
    InvalidState,
    SlotUnavailable,
    StoreConflict,
    UnauthorizedTransition,
    ValidationError,
)
from swastyasetu.services.store import RecordStore

logger = logging.getLogger(__name__)

PENDING = 'pending'
APPROVED = 'approved'
CANCELLED = 'cancelled'
COMPLETED = 'completed'
STATUSES = (PENDING, APPROVED, CANCELLED, COMPLETED)
TERMINAL_STATUSES = frozenset({CANCELLED, COMPLETED})

PATIENT = 'patient'
DOCTOR = 'doctor'
ADMIN = 'admin'
ROLES = (PATIENT, DOCTOR, ADMIN)

DEFAULT_CONSULTATION_TYPE = 'video_call'
DEFAULT_PAYMENT_STATUS = 'pending'

ALLOWED_TRANSITIONS = {
    PENDING: frozenset({APPROVED, CANCELLED}),
    APPROVED: frozenset({COMPLETED, CANCELLED}),
    CANCELLED: frozenset(),
    COMPLETED: frozenset(),
}

ROLE_TRANSITIONS = {
    PATIENT: frozenset({(PENDING, CANCELLED), (APPROVED, CANCELLED)}),
    DOCTOR: frozenset({(PENDING, APPROVED), (PENDING, CANCELLED), (APPROVED, COMPLETED)}),
    ADMIN: frozenset(
        (current, target) for current, targets in ALLOWED_TRANSITIONS.items() for target in targets
    ),
}


def requestable_statuses(role: str) -> frozenset[str]:
    if role == ADMIN:
        return frozenset(STATUSES)
    return frozenset(target for _, target in ROLE_TRANSITIONS.get(role, ()))


def check_transition(current_status: str, new_status: str, actor_role: str) -> None:
    """Raise unless ``actor_role`` may move an appointment between the two states.

    A role asking for a status it can never set is unauthorized whatever the
    current state; an edge missing from the state diagram is an invalid state;
    a valid edge the role does not hold is unauthorized again.
    """
    if new_status not in STATUSES:
        raise ValidationError(f'Unknown appointment status: {new_status}.')
    if actor_role not in ROLE_TRANSITIONS:
        raise UnauthorizedTransition(f'Unknown role: {actor_role}.')

    if new_status not in requestable_statuses(actor_role):
        raise UnauthorizedTransition(f'A {actor_role} cannot mark an appointment as {new_status}.')

    if new_status not in ALLOWED_TRANSITIONS.get(current_status, ()):
        raise InvalidState(f'Cannot move an appointment from {current_status} to {new_status}.')

    if (current_status, new_status) not in ROLE_TRANSITIONS[actor_role]:
        raise UnauthorizedTransition(
            f'A {actor_role} cannot move an appointment from {current_status} to {new_status}.'
        )


class AppointmentLifecycle:
    def __init__(self, appointments: RecordStore):
        self.appointments = appointments

    def get_appointment(self, appointment_id: int) -> Appointment:
        return self.appointments.get(appointment_id)

    def find_live_booking(self, doctor_id: int, appointment_date: date, appointment_time: time) -> Appointment | None:
        for appointment in self.appointments.filter(
            {
                'doctor_id': doctor_id,
                'appointment_date': appointment_date,
                'appointment_time': appointment_time,
            }
        ):
            if appointment.status != CANCELLED:
                return appointment
        return None

    def booked_slots(self, doctor_id: int, appointment_date: date) -> set[time]:
        return {
            appointment.appointment_time
            for appointment in self.appointments.filter(
                {'doctor_id': doctor_id, 'appointment_date': appointment_date}
            )
            if appointment.status != CANCELLED
        }

    def create_appointment(
        self,
        patient_id: int,
        doctor_id: int,
        appointment_date: date | None,
        slot: time | None,
        symptoms: str | None,
        fee: Any,
    ) -> Appointment:
        """Record a new booking request; it always starts pending and unpaid."""
        if not appointment_date:
            raise ValidationError('An appointment date is required.')
        if slot is None or slot == '':
            raise ValidationError('An appointment time is required.')
        if symptoms is None or not symptoms.strip():
            raise ValidationError('Please describe your symptoms.')

        if self.find_live_booking(doctor_id, appointment_date, slot) is not None:
            raise SlotUnavailable('This time is already booked.')

        try:
            appointment = self.appointments.create(
                {
                    'patient_id': patient_id,
                    'doctor_id': doctor_id,
                    'appointment_date': appointment_date,
                    'appointment_time': slot,
                    'symptoms': symptoms.strip(),
                    'status': PENDING,
                    'consultation_type': DEFAULT_CONSULTATION_TYPE,
                    'amount': fee,
                    'payment_status': DEFAULT_PAYMENT_STATUS,
                }
            )
        except StoreConflict as exc:
            raise SlotUnavailable('This time is already booked.') from exc

        logger.info(
            'Appointment %s requested by patient %s with doctor %s on %s at %s',
            appointment.id,
            patient_id,
            doctor_id,
            appointment_date,
            slot,
        )
        return appointment

    def transition(
        self,
        appointment_id: int,
        new_status: str,
        actor_role: str,
        actor_id: int | None = None,
    ) -> Appointment:
        """Move an appointment to ``new_status`` on behalf of ``actor_role``.

        When ``actor_id`` is given it must be the appointment's patient id
        for a patient and its doctor id for a doctor.
        """
        appointment = self.appointments.get(appointment_id)
        current_status = appointment.status or PENDING

        if actor_id is not None:
            if actor_role == PATIENT and appointment.patient_id != actor_id:
                raise UnauthorizedTransition('Only the patient who booked this appointment can cancel it.')
            if actor_role == DOCTOR and appointment.doctor_id != actor_id:
                raise UnauthorizedTransition('Only the assigned doctor can update this appointment.')

        check_transition(current_status, new_status, actor_role)

        try:
            appointment = self.appointments.update(appointment_id, {'status': new_status})
        except StoreConflict as exc:
            raise SlotUnavailable('Another appointment already holds this time.') from exc

        logger.info(
            'Appointment %s moved from %s to %s by %s',
            appointment_id,
            current_status,
            new_status,
            actor_role,
        )
        return appointment

    def delete_appointment(self, appointment_id: int, actor_role: str) -> None:
        if actor_role != ADMIN:
            raise UnauthorizedTransition('Only admins can delete appointments.')

        self.appointments.delete(appointment_id)
        logger.info('Appointment %s deleted by admin', appointment_id)

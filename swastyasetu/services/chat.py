"""Messages exchanged between the patient and doctor of an appointment."""

import logging
from datetime import datetime

from swastyasetu.models.appointment import Appointment
from swastyasetu.models.chat_message import ChatMessage
from swastyasetu.services.errors import InvalidState, NotFound, UnauthorizedTransition, ValidationError
from swastyasetu.services.lifecycle import APPROVED
from swastyasetu.services.store import RecordStore

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 2000
NOT_A_PARTY_DETAIL = 'Only the patient and doctor of this appointment can chat.'


def as_local_naive(moment: datetime) -> datetime:
    """Message timestamps are stored as naive local time; convert aware values to match."""
    if moment.tzinfo is None:
        return moment
    return moment.astimezone().replace(tzinfo=None)


class ChatService:
    def __init__(
        self,
        messages: RecordStore,
        appointments: RecordStore,
        doctors: RecordStore,
        users: RecordStore,
    ):
        self.messages = messages
        self.appointments = appointments
        self.doctors = doctors
        self.users = users

    def doctor_user_id(self, appointment: Appointment) -> int:
        doctor = self.doctors.get(appointment.doctor_id)
        accounts = self.users.filter({'email': (doctor.user_email or '').strip().lower()}, limit=1)
        if not accounts:
            raise NotFound('The doctor has not signed in yet.')
        return accounts[0].id

    def other_party(self, appointment: Appointment, user_id: int) -> int:
        # Callers have already passed ensure_party.
        if user_id == appointment.patient_id:
            return self.doctor_user_id(appointment)
        return appointment.patient_id

    def ensure_party(self, appointment_id: int, user_id: int) -> Appointment:
        """Return the appointment when ``user_id`` is its patient or its doctor.

        The patient never needs the doctor's account to read, so only other
        callers look it up.
        """
        appointment = self.appointments.get(appointment_id)
        if user_id == appointment.patient_id:
            return appointment

        doctor = self.doctors.get(appointment.doctor_id)
        email = (doctor.user_email or '').strip().lower()
        if not email or not self.users.filter({'id': user_id, 'email': email}, limit=1):
            raise UnauthorizedTransition(NOT_A_PARTY_DETAIL)
        return appointment

    def list_messages(self, appointment_id: int, user_id: int, since: datetime | None = None) -> list[ChatMessage]:
        """Return the conversation oldest first, or only what came after ``since``."""
        self.ensure_party(appointment_id, user_id)

        criteria = {'appointment_id': appointment_id}
        if since is not None:
            criteria['created_date'] = {'$gt': as_local_naive(since)}
        return self.messages.filter(criteria, sort='created_date')

    def send_message(self, appointment_id: int, sender_id: int, text: str | None) -> ChatMessage:
        appointment = self.ensure_party(appointment_id, sender_id)
        receiver_id = self.other_party(appointment, sender_id)

        if appointment.status != APPROVED:
            raise InvalidState('Chat opens once the appointment is approved.')

        normalized = (text or '').strip()
        if not normalized:
            raise ValidationError('Message cannot be empty.')
        if len(normalized) > MAX_MESSAGE_LENGTH:
            raise ValidationError(f'Messages must be {MAX_MESSAGE_LENGTH} characters or fewer.')

        message = self.messages.create(
            {
                'appointment_id': appointment_id,
                'sender_id': sender_id,
                'receiver_id': receiver_id,
                'message': normalized,
            }
        )
        logger.debug('Message %s sent on appointment %s', message.id, appointment_id)
        return message

from datetime import date, datetime, time

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, field_serializer, field_validator
from sqlalchemy.orm import Session

from swastyasetu.auth.dependencies import CurrentUser, get_current_user, get_db, require_admin
from swastyasetu.models.appointment import Appointment
from swastyasetu.models.doctor import Doctor
from swastyasetu.services.availability import format_time_of_day, is_date_bookable, slots_for_date
from swastyasetu.services.dashboard import group_doctor_appointments, group_patient_appointments
from swastyasetu.services.errors import ServiceError, to_http_exception
from swastyasetu.services.lifecycle import ADMIN, DOCTOR, PATIENT, AppointmentLifecycle
from swastyasetu.services.store import RecordStore

router = APIRouter(tags=['appointments'])

MAX_SYMPTOMS_LENGTH = 1000


class CreateAppointmentRequest(BaseModel):
    doctor_id: int
    appointment_date: date | None = None
    appointment_time: time | None = None
    symptoms: str | None = None

    @field_validator('appointment_time')
    @classmethod
    def validate_appointment_time(cls, value: time | None) -> time | None:
        if value is None:
            return None
        return value.replace(second=0, microsecond=0)

    @field_validator('symptoms')
    @classmethod
    def validate_symptoms(cls, value: str | None) -> str | None:
        if value is None:
            return None

        normalized = value.strip()
        if len(normalized) > MAX_SYMPTOMS_LENGTH:
            raise ValueError(f'Symptoms must be {MAX_SYMPTOMS_LENGTH} characters or fewer.')

        return normalized


class UpdateStatusRequest(BaseModel):
    status: str

    @field_validator('status')
    @classmethod
    def validate_status(cls, value: str) -> str:
        return value.strip().lower()


class AppointmentResponse(BaseModel):
    id: int
    patient_id: int
    doctor_id: int
    appointment_date: date
    appointment_time: time
    symptoms: str | None = None
    status: str
    consultation_type: str | None = None
    amount: float | None = None
    payment_status: str | None = None
    created_date: datetime | None = None

    class Config:
        from_attributes = True

    @field_serializer('appointment_time')
    def serialize_appointment_time(self, value: time) -> str:
        return format_time_of_day(value)


class MyAppointmentsResponse(BaseModel):
    role: str
    pending: list[AppointmentResponse] = []
    upcoming: list[AppointmentResponse] = []
    past: list[AppointmentResponse] = []


def as_responses(groups: dict[str, list[Appointment]]) -> dict[str, list[AppointmentResponse]]:
    return {
        section: [AppointmentResponse.model_validate(appointment) for appointment in appointments]
        for section, appointments in groups.items()
    }


def lifecycle_for(db: Session) -> AppointmentLifecycle:
    return AppointmentLifecycle(RecordStore(db, Appointment))


def actor_id_for(current_user: CurrentUser) -> int | None:
    if current_user.role == PATIENT:
        return current_user.id
    if current_user.role == DOCTOR:
        return current_user.doctor_id
    return None


def ensure_can_view(appointment: Appointment, current_user: CurrentUser) -> None:
    if current_user.role == ADMIN:
        return
    if current_user.role == PATIENT and appointment.patient_id == current_user.id:
        return
    if current_user.role == DOCTOR and appointment.doctor_id == current_user.doctor_id:
        return
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail='You do not have access to this appointment.',
    )


@router.post('', response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
def create_appointment(
    data: CreateAppointmentRequest,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    if current_user.role != PATIENT:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail='Only patients can book appointments.',
        )

    try:
        doctor = RecordStore(db, Doctor).get(data.doctor_id)

        if data.appointment_date and data.appointment_time:
            if not is_date_bookable(doctor.availability, data.appointment_date):
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail='The doctor is not available on this date.',
                )
            if data.appointment_time not in slots_for_date(doctor.availability, data.appointment_date):
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail='This time is not one of the doctor\'s slots.',
                )

        return lifecycle_for(db).create_appointment(
            patient_id=current_user.id,
            doctor_id=doctor.id,
            appointment_date=data.appointment_date,
            slot=data.appointment_time,
            symptoms=data.symptoms,
            fee=doctor.consultation_fee,
        )
    except ServiceError as exc:
        raise to_http_exception(exc) from exc


@router.get('/mine', response_model=MyAppointmentsResponse)
def list_my_appointments(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    store = RecordStore(db, Appointment)
    try:
        if current_user.role == PATIENT:
            appointments = store.filter({'patient_id': current_user.id}, sort='-appointment_date')
            return MyAppointmentsResponse(role=PATIENT, **as_responses(group_patient_appointments(appointments)))
        if current_user.role == DOCTOR:
            appointments = store.filter({'doctor_id': current_user.doctor_id}, sort='-created_date')
            return MyAppointmentsResponse(role=DOCTOR, **as_responses(group_doctor_appointments(appointments)))
    except ServiceError as exc:
        raise to_http_exception(exc) from exc

    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail='Admins see every appointment under /appointments.',
    )


@router.get('', response_model=list[AppointmentResponse])
def list_appointments(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
):
    del current_user
    try:
        return RecordStore(db, Appointment).list(sort='-created_date')
    except ServiceError as exc:
        raise to_http_exception(exc) from exc


@router.get('/{appointment_id}', response_model=AppointmentResponse)
def get_appointment(
    appointment_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    try:
        appointment = lifecycle_for(db).get_appointment(appointment_id)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc

    ensure_can_view(appointment, current_user)
    return appointment


@router.patch('/{appointment_id}/status', response_model=AppointmentResponse)
def update_appointment_status(
    appointment_id: int,
    data: UpdateStatusRequest,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    try:
        return lifecycle_for(db).transition(
            appointment_id,
            data.status,
            actor_role=current_user.role,
            actor_id=actor_id_for(current_user),
        )
    except ServiceError as exc:
        raise to_http_exception(exc) from exc


@router.delete('/{appointment_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_appointment(
    appointment_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    try:
        lifecycle_for(db).delete_appointment(appointment_id, actor_role=current_user.role)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc

from datetime import datetime, time

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, field_validator, model_validator
from sqlalchemy.orm import Session

from swastyasetu.auth.dependencies import CurrentUser, get_current_user, get_db, require_admin
from swastyasetu.models.doctor import Doctor
from swastyasetu.services.availability import WEEKDAYS, format_time_of_day
from swastyasetu.services.errors import ServiceError, to_http_exception
from swastyasetu.services.store import RecordStore

router = APIRouter(tags=['doctors'])

SPECIALIZATIONS = (
    'general_physician',
    'cardiologist',
    'dermatologist',
    'pediatrician',
    'orthopedic',
    'neurologist',
    'psychiatrist',
    'gynecologist',
    'ent_specialist',
    'ophthalmologist',
)


class AvailabilityWindow(BaseModel):
    day: str
    start_time: time
    end_time: time

    @field_validator('day')
    @classmethod
    def validate_day(cls, value: str) -> str:
        normalized = value.strip().capitalize()
        if normalized not in WEEKDAYS:
            raise ValueError('Day must be a weekday name such as Monday.')
        return normalized

    @model_validator(mode='after')
    def validate_window(self) -> 'AvailabilityWindow':
        if self.start_time >= self.end_time:
            raise ValueError('Availability must start before it ends.')
        return self

    def to_record(self) -> dict[str, str]:
        return {
            'day': self.day,
            'start_time': format_time_of_day(self.start_time),
            'end_time': format_time_of_day(self.end_time),
        }


def _validate_unique_days(windows: list[AvailabilityWindow] | None) -> list[AvailabilityWindow] | None:
    if windows is None:
        return None
    days = [window.day for window in windows]
    duplicates = sorted({day for day in days if days.count(day) > 1}, key=WEEKDAYS.index)
    if duplicates:
        raise ValueError(f'Only one availability window per day is allowed: {", ".join(duplicates)}.')
    return sorted(windows, key=lambda window: WEEKDAYS.index(window.day))


def _validate_specialization(value: str | None) -> str | None:
    if value is None:
        return None
    normalized = value.strip().lower().replace(' ', '_')
    if normalized not in SPECIALIZATIONS:
        raise ValueError('Invalid specialization.')
    return normalized


class CreateDoctorRequest(BaseModel):
    name: str
    user_email: str
    specialization: str
    qualification: str | None = None
    consultation_fee: float = 0
    rating: float | None = None
    total_consultations: int = 0
    profile_image: str | None = None
    availability: list[AvailabilityWindow] = []

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Doctor name is required.')
        return normalized

    @field_validator('user_email')
    @classmethod
    def validate_user_email(cls, value: str) -> str:
        normalized = value.strip().lower()
        if '@' not in normalized:
            raise ValueError('A valid email is required.')
        return normalized

    @field_validator('consultation_fee')
    @classmethod
    def validate_fee(cls, value: float) -> float:
        if value < 0:
            raise ValueError('Consultation fee cannot be negative.')
        return value

    @field_validator('specialization')
    @classmethod
    def validate_specialization(cls, value: str | None) -> str | None:
        return _validate_specialization(value)

    @field_validator('availability')
    @classmethod
    def validate_availability(cls, value: list[AvailabilityWindow] | None) -> list[AvailabilityWindow] | None:
        return _validate_unique_days(value)

    def to_record(self) -> dict:
        fields = self.model_dump(exclude={'availability'})
        fields['availability'] = [window.to_record() for window in self.availability]
        return fields


class UpdateDoctorRequest(BaseModel):
    name: str | None = None
    user_email: str | None = None
    specialization: str | None = None
    qualification: str | None = None
    consultation_fee: float | None = None
    rating: float | None = None
    total_consultations: int | None = None
    profile_image: str | None = None
    availability: list[AvailabilityWindow] | None = None

    @field_validator('user_email')
    @classmethod
    def validate_user_email(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip().lower()
        if '@' not in normalized:
            raise ValueError('A valid email is required.')
        return normalized

    @field_validator('consultation_fee')
    @classmethod
    def validate_fee(cls, value: float | None) -> float | None:
        if value is not None and value < 0:
            raise ValueError('Consultation fee cannot be negative.')
        return value

    @field_validator('specialization')
    @classmethod
    def validate_specialization(cls, value: str | None) -> str | None:
        return _validate_specialization(value)

    @field_validator('availability')
    @classmethod
    def validate_availability(cls, value: list[AvailabilityWindow] | None) -> list[AvailabilityWindow] | None:
        return _validate_unique_days(value)

    def to_record(self) -> dict:
        fields = self.model_dump(exclude_unset=True, exclude={'availability'})
        if self.availability is not None:
            fields['availability'] = [window.to_record() for window in self.availability]
        return fields


class AvailabilityWindowResponse(BaseModel):
    day: str
    start_time: str
    end_time: str


class DoctorResponse(BaseModel):
    id: int
    name: str
    user_email: str | None = None
    specialization: str | None = None
    qualification: str | None = None
    consultation_fee: float | None = None
    rating: float | None = None
    total_consultations: int | None = None
    profile_image: str | None = None
    availability: list[AvailabilityWindowResponse] = []
    created_date: datetime | None = None

    class Config:
        from_attributes = True


def doctor_store(db: Session) -> RecordStore:
    return RecordStore(db, Doctor)


@router.get('/specializations', response_model=list[str])
def list_specializations():
    return list(SPECIALIZATIONS)


@router.get('', response_model=list[DoctorResponse])
def list_doctors(
    search: str | None = Query(default=None),
    specialization: str | None = Query(default=None),
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    del current_user
    criteria = {}
    if specialization and specialization != 'all':
        criteria['specialization'] = specialization.strip().lower()

    try:
        doctors = doctor_store(db).filter(criteria, sort='-rating')
    except ServiceError as exc:
        raise to_http_exception(exc) from exc

    if search and search.strip():
        needle = search.strip().lower()
        doctors = [doctor for doctor in doctors if needle in (doctor.name or '').lower()]

    return doctors


@router.get('/{doctor_id}', response_model=DoctorResponse)
def get_doctor(
    doctor_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    del current_user
    try:
        return doctor_store(db).get(doctor_id)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc


@router.post('', response_model=DoctorResponse, status_code=status.HTTP_201_CREATED)
def create_doctor(
    data: CreateDoctorRequest,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
):
    del current_user
    store = doctor_store(db)
    try:
        if store.filter({'user_email': data.user_email}, limit=1):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail='A doctor profile already exists for this email.',
            )
        return store.create(data.to_record())
    except ServiceError as exc:
        raise to_http_exception(exc) from exc


@router.patch('/{doctor_id}', response_model=DoctorResponse)
def update_doctor(
    doctor_id: int,
    data: UpdateDoctorRequest,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
):
    del current_user
    try:
        return doctor_store(db).update(doctor_id, data.to_record())
    except ServiceError as exc:
        raise to_http_exception(exc) from exc


@router.delete('/{doctor_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_doctor(
    doctor_id: int,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
):
    del current_user
    try:
        doctor_store(db).delete(doctor_id)
    except ServiceError as exc:
        raise to_http_exception(exc) from exc

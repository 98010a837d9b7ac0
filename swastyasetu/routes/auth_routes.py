import logging
import re

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from swastyasetu.auth import jwt_handler
from swastyasetu.auth.dependencies import CurrentUser, get_current_user, get_db, require_admin
from swastyasetu.auth.roles import is_reserved_email, normalize_email, resolve_role
from swastyasetu.models.user import User
from swastyasetu.services.errors import ServiceError, to_http_exception
from swastyasetu.services.store import UNAVAILABLE_DETAIL, RecordStore

router = APIRouter(tags=['auth'])

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8
INVALID_CREDENTIALS_DETAIL = 'Invalid email or password.'

GENDERS = ('male', 'female', 'other')
LANGUAGES = (
    'english',
    'hindi',
    'bengali',
    'tamil',
    'marathi',
    'gujarati',
    'kannada',
    'telugu',
    'malayalam',
    'punjabi',
)
INDIAN_STATES = (
    'Andhra Pradesh', 'Arunachal Pradesh', 'Assam', 'Bihar', 'Chhattisgarh', 'Goa', 'Gujarat',
    'Haryana', 'Himachal Pradesh', 'Jharkhand', 'Karnataka', 'Kerala', 'Madhya Pradesh',
    'Maharashtra', 'Manipur', 'Meghalaya', 'Mizoram', 'Nagaland', 'Odisha', 'Punjab',
    'Rajasthan', 'Sikkim', 'Tamil Nadu', 'Telangana', 'Tripura', 'Uttar Pradesh',
    'Uttarakhand', 'West Bengal', 'Delhi', 'Jammu and Kashmir', 'Ladakh',
)

PHONE_PATTERN = re.compile(r'^\+?[\d\s-]+$')


def _validate_email(value: str) -> str:
    normalized = normalize_email(value)
    if not normalized or '@' not in normalized:
        raise ValueError('A valid email is required.')
    return normalized


def _validate_optional_text(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip() or None


class LoginRequest(BaseModel):
    email: str
    password: str

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        return _validate_email(value)


class RegisterRequest(BaseModel):
    email: str
    password: str
    full_name: str | None = None

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        return _validate_email(value)

    @field_validator('password')
    @classmethod
    def validate_password(cls, value: str) -> str:
        if len(value) < MIN_PASSWORD_LENGTH:
            raise ValueError(f'Password must be at least {MIN_PASSWORD_LENGTH} characters.')
        return value

    @field_validator('full_name')
    @classmethod
    def validate_full_name(cls, value: str | None) -> str | None:
        return _validate_optional_text(value)


class UpdateProfileRequest(BaseModel):
    full_name: str | None = None
    phone: str | None = None
    age: int | None = None
    gender: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    preferred_language: str | None = None

    @field_validator('full_name', 'address', 'city')
    @classmethod
    def validate_text(cls, value: str | None) -> str | None:
        return _validate_optional_text(value)

    @field_validator('phone')
    @classmethod
    def validate_phone(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip()
        digits = re.sub(r'\D', '', normalized)
        if not PHONE_PATTERN.match(normalized) or not 10 <= len(digits) <= 15:
            raise ValueError('Phone number must have 10 to 15 digits.')
        return normalized

    @field_validator('age')
    @classmethod
    def validate_age(cls, value: int | None) -> int | None:
        if value is not None and not 1 <= value <= 120:
            raise ValueError('Age must be between 1 and 120.')
        return value

    @field_validator('gender')
    @classmethod
    def validate_gender(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip().lower()
        if normalized not in GENDERS:
            raise ValueError('Gender must be male, female or other.')
        return normalized

    @field_validator('state')
    @classmethod
    def validate_state(cls, value: str | None) -> str | None:
        if value is None:
            return None
        states = {state.lower(): state for state in INDIAN_STATES}
        normalized = states.get(value.strip().lower())
        if normalized is None:
            raise ValueError('State must be an Indian state or union territory.')
        return normalized

    @field_validator('preferred_language')
    @classmethod
    def validate_preferred_language(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip().lower()
        if normalized not in LANGUAGES:
            raise ValueError('Unsupported language.')
        return normalized


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = 'bearer'
    role: str


class AccountResponse(BaseModel):
    id: int
    email: str
    full_name: str | None = None
    role: str

    class Config:
        from_attributes = True


class MeResponse(BaseModel):
    id: int
    email: str
    full_name: str | None = None
    role: str
    doctor_id: int | None = None
    phone: str | None = None
    age: int | None = None
    gender: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    preferred_language: str | None = None
    profile_complete: bool = False


def me_response(user: User, role: str, doctor_id: int | None = None) -> MeResponse:
    return MeResponse(
        id=user.id,
        email=user.email,
        full_name=user.full_name,
        role=role,
        doctor_id=doctor_id,
        phone=user.phone,
        age=user.age,
        gender=user.gender,
        address=user.address,
        city=user.city,
        state=user.state,
        preferred_language=user.preferred_language,
        profile_complete=user.profile_complete,
    )


def create_account(db: Session, data: RegisterRequest, role: str) -> User:
    if db.query(User).filter(User.email == data.email).first() is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail='An account already exists for this email.',
        )

    user = User(email=data.email, full_name=data.full_name, role=role)
    user.set_password(data.password)
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail='An account already exists for this email.',
        ) from exc
    db.refresh(user)
    return user


@router.post('/register', response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def register(data: RegisterRequest, db: Session = Depends(get_db)):
    """Patients sign themselves up; admin and doctor emails are reserved."""
    try:
        if is_reserved_email(db, data.email):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail='This email is reserved. Ask an admin to create the account.',
            )
        user = create_account(db, data, role=resolve_role(db, data.email))
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=UNAVAILABLE_DETAIL) from exc

    logger.info('Registered patient account %s', user.email)
    token = jwt_handler.create_access_token(subject=user.email, role=user.role)
    return TokenResponse(access_token=token, role=user.role)


@router.post('/login', response_model=TokenResponse)
def login(data: LoginRequest, db: Session = Depends(get_db)):
    """Check the password, then issue a bearer token carrying the role resolved now."""
    try:
        user = db.query(User).filter(User.email == data.email).first()
        if user is None or not user.check_password(data.password):
            logger.info('Rejected sign-in for %s', data.email)
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=INVALID_CREDENTIALS_DETAIL)

        role = resolve_role(db, data.email)
        user.role = role
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=UNAVAILABLE_DETAIL) from exc

    logger.info('Issued %s token for %s', role, data.email)
    token = jwt_handler.create_access_token(subject=data.email, role=role)
    return TokenResponse(access_token=token, role=role)


@router.post('/accounts', response_model=AccountResponse, status_code=status.HTTP_201_CREATED)
def create_account_for(
    data: RegisterRequest,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_admin),
):
    """Admins open accounts for doctors, whose emails are reserved."""
    try:
        user = create_account(db, data, role=resolve_role(db, data.email))
    except SQLAlchemyError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=UNAVAILABLE_DETAIL) from exc

    logger.info('Admin %s opened a %s account for %s', current_user.email, user.role, user.email)
    return user


@router.get('/me', response_model=MeResponse)
def me(current_user: CurrentUser = Depends(get_current_user)):
    return me_response(current_user.user, current_user.role, current_user.doctor_id)


@router.patch('/me', response_model=MeResponse)
def update_me(
    data: UpdateProfileRequest,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    try:
        user = RecordStore(db, User).update(current_user.id, data.model_dump(exclude_unset=True))
    except ServiceError as exc:
        raise to_http_exception(exc) from exc

    return me_response(user, current_user.role, current_user.doctor_id)

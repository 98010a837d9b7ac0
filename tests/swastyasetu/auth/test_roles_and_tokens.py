import jwt
import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials

from swastyasetu.auth import jwt_handler
from swastyasetu.auth.dependencies import get_current_user, require_admin
from swastyasetu.auth.roles import resolve_role
from swastyasetu.core import config


def _signed(claims: dict) -> str:
    return jwt.encode(claims, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)


def _credentials(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme='Bearer', credentials=token)


def test_configured_admin_email_resolves_to_admin(db) -> None:
    assert resolve_role(db, ' ADMIN@SwastyaSetu.com ') == 'admin'


def test_email_with_doctor_profile_resolves_to_doctor(db, make_doctor) -> None:
    make_doctor(user_email='asha@clinic.in')

    assert resolve_role(db, 'Asha@Clinic.in') == 'doctor'


def test_everyone_else_is_a_patient(db) -> None:
    assert resolve_role(db, 'someone@example.com') == 'patient'


def test_admin_email_follows_configuration(db, monkeypatch) -> None:
    monkeypatch.setattr(config, 'ADMIN_EMAIL', 'ops@clinic.in')

    assert resolve_role(db, 'ops@clinic.in') == 'admin'
    assert resolve_role(db, 'admin@swastyasetu.com') == 'patient'


def test_access_token_carries_subject_and_role() -> None:
    token = jwt_handler.create_access_token(subject='patient@example.com', role='patient')

    payload = jwt_handler.decode_access_token(token)

    assert payload['sub'] == 'patient@example.com'
    assert payload['role'] == 'patient'


def test_current_user_uses_role_from_token(db, make_user) -> None:
    make_user('patient@example.com')
    token = jwt_handler.create_access_token(subject='patient@example.com', role='patient')

    current_user = get_current_user(credentials=_credentials(token), db=db)

    assert current_user.email == 'patient@example.com'
    assert current_user.role == 'patient'
    assert current_user.doctor_id is None


def test_current_doctor_is_linked_to_profile(db, make_user, make_doctor) -> None:
    make_user('asha@clinic.in', role='doctor')
    doctor = make_doctor(user_email='asha@clinic.in')
    token = jwt_handler.create_access_token(subject='asha@clinic.in', role='doctor')

    current_user = get_current_user(credentials=_credentials(token), db=db)

    assert current_user.doctor_id == doctor.id


@pytest.mark.parametrize(
    ('token', 'detail'),
    [
        ('not-a-jwt', 'Invalid token'),
        (_signed({'role': 'patient'}), 'Invalid token subject'),
        (_signed({'sub': 'patient@example.com', 'role': 'nurse'}), 'Invalid token role'),
        (_signed({'sub': 'ghost@example.com', 'role': 'patient'}), 'User not found'),
    ],
)
def test_current_user_rejects_bad_tokens(db, make_user, token: str, detail: str) -> None:
    make_user('patient@example.com')

    with pytest.raises(HTTPException) as exception_info:
        get_current_user(credentials=_credentials(token), db=db)

    assert exception_info.value.status_code == 401
    assert exception_info.value.detail == detail


def test_require_admin_rejects_other_roles(clinic) -> None:
    assert require_admin(current_user=clinic['admin']) is clinic['admin']

    with pytest.raises(HTTPException) as exception_info:
        require_admin(current_user=clinic['doctor'])

    assert exception_info.value.status_code == 403


def test_doctor_token_without_profile_is_rejected(db, make_user) -> None:
    make_user('former@clinic.in', role='doctor')
    token = jwt_handler.create_access_token(subject='former@clinic.in', role='doctor')

    with pytest.raises(HTTPException) as exception_info:
        get_current_user(credentials=_credentials(token), db=db)

    assert exception_info.value.status_code == 401
    assert exception_info.value.detail == 'Doctor profile no longer exists'

import os
from datetime import date, time

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

os.environ.setdefault('DATABASE_URL', 'sqlite://')
os.environ.setdefault('ADMIN_EMAIL', 'admin@swastyasetu.com')

from swastyasetu.auth.dependencies import CurrentUser  # noqa: E402
from swastyasetu.database import Base  # noqa: E402
from swastyasetu.models.appointment import Appointment  # noqa: E402
from swastyasetu.models.chat_message import ChatMessage  # noqa: E402
from swastyasetu.models.doctor import Doctor  # noqa: E402
from swastyasetu.models.user import User  # noqa: E402

MONDAY = date(2026, 1, 5)
TUESDAY = date(2026, 1, 6)

WEEKDAY_MORNINGS = [
    {'day': 'Monday', 'start_time': '09:00', 'end_time': '11:00'},
    {'day': 'Wednesday', 'start_time': '14:00', 'end_time': '15:30'},
]


@pytest.fixture
def db():
    engine = create_engine('sqlite:///:memory:')
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    tables = [User.__table__, Doctor.__table__, Appointment.__table__, ChatMessage.__table__]
    Base.metadata.create_all(bind=engine, tables=tables)

    session = testing_session_local()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine, tables=list(reversed(tables)))
        engine.dispose()


@pytest.fixture
def make_user(db):
    def _make_user(
        email: str,
        role: str = 'patient',
        full_name: str | None = None,
        password: str | None = None,
    ) -> User:
        user = User(email=email, role=role, full_name=full_name)
        if password is not None:
            user.set_password(password)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_doctor(db):
    def _make_doctor(
        name: str = 'Dr. Asha Rao',
        user_email: str = 'asha@clinic.in',
        availability: list[dict] | None = None,
        consultation_fee: float = 500,
        specialization: str = 'general_physician',
        rating: float | None = 4.5,
    ) -> Doctor:
        doctor = Doctor(
            name=name,
            user_email=user_email,
            specialization=specialization,
            consultation_fee=consultation_fee,
            rating=rating,
            availability=WEEKDAY_MORNINGS if availability is None else availability,
        )
        db.add(doctor)
        db.commit()
        db.refresh(doctor)
        return doctor

    return _make_doctor


@pytest.fixture
def make_appointment(db):
    def _make_appointment(
        patient_id: int,
        doctor_id: int,
        appointment_date: date = MONDAY,
        appointment_time: time = time(9, 0),
        status: str = 'pending',
    ) -> Appointment:
        appointment = Appointment(
            patient_id=patient_id,
            doctor_id=doctor_id,
            appointment_date=appointment_date,
            appointment_time=appointment_time,
            symptoms='fever and headache',
            status=status,
            consultation_type='video_call',
            amount=500,
            payment_status='pending',
        )
        db.add(appointment)
        db.commit()
        db.refresh(appointment)
        return appointment

    return _make_appointment


@pytest.fixture
def clinic(make_user, make_doctor):
    """A patient, a doctor with a user account, and the admin."""
    patient = make_user('patient@example.com')
    doctor_user = make_user('asha@clinic.in', role='doctor')
    admin = make_user('admin@swastyasetu.com', role='admin')
    doctor = make_doctor(user_email=doctor_user.email)

    return {
        'patient': CurrentUser(user=patient, role='patient'),
        'doctor': CurrentUser(user=doctor_user, role='doctor', doctor_id=doctor.id),
        'admin': CurrentUser(user=admin, role='admin'),
        'doctor_profile': doctor,
    }

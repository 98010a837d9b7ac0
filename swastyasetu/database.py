from threading import Lock

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from swastyasetu.core import config


engine = create_engine(config.DATABASE_URL, echo=config.SQL_ECHO)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_appointment_schema_checked = False


def ensure_appointment_schema(bind: Engine | None = None) -> None:
    """Add columns and indexes that older appointment tables may lack.

    The partial unique index is what keeps two live appointments from
    holding the same doctor, date and slot when bookings race.
    """
    global _appointment_schema_checked

    # An explicit bind is always checked; only the default engine is cached.
    target = bind or engine
    cache = bind is None

    if cache and _appointment_schema_checked:
        return

    with _schema_lock:
        if cache and _appointment_schema_checked:
            return

        inspector = inspect(target)

        if 'appointments' not in inspector.get_table_names():
            if cache:
                _appointment_schema_checked = True
            return

        existing_columns = {column['name'] for column in inspector.get_columns('appointments')}
        migration_steps = [
            ('consultation_type', "ALTER TABLE appointments ADD COLUMN consultation_type VARCHAR DEFAULT 'video_call'"),
            ('amount', 'ALTER TABLE appointments ADD COLUMN amount FLOAT'),
            ('payment_status', "ALTER TABLE appointments ADD COLUMN payment_status VARCHAR DEFAULT 'pending'"),
        ]

        with target.begin() as connection:
            for column_name, statement in migration_steps:
                if column_name not in existing_columns:
                    connection.execute(text(statement))
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_appointments_doctor_date ON appointments(doctor_id, appointment_date)')
            )
            connection.execute(
                text('CREATE INDEX IF NOT EXISTS idx_appointments_patient_date ON appointments(patient_id, appointment_date)')
            )
            connection.execute(
                text(
                    'CREATE UNIQUE INDEX IF NOT EXISTS uq_appointments_live_slot '
                    'ON appointments(doctor_id, appointment_date, appointment_time) '
                    "WHERE status <> 'cancelled'"
                )
            )

        if cache:
            _appointment_schema_checked = True


def ensure_chat_schema(bind: Engine | None = None) -> None:
    target = bind or engine

    with _schema_lock:
        inspector = inspect(target)
        if 'chat_messages' not in inspector.get_table_names():
            return

        with target.begin() as connection:
            connection.execute(
                text(
                    'CREATE INDEX IF NOT EXISTS idx_chat_messages_appointment_created '
                    'ON chat_messages(appointment_id, created_date)'
                )
            )


def ensure_user_schema(bind: Engine | None = None) -> None:
    """Add the password and profile columns to user tables created before them."""
    target = bind or engine

    with _schema_lock:
        inspector = inspect(target)
        if 'users' not in inspector.get_table_names():
            return

        existing_columns = {column['name'] for column in inspector.get_columns('users')}
        migration_steps = [
            ('hashed_password', 'ALTER TABLE users ADD COLUMN hashed_password VARCHAR'),
            ('phone', 'ALTER TABLE users ADD COLUMN phone VARCHAR'),
            ('age', 'ALTER TABLE users ADD COLUMN age INTEGER'),
            ('gender', 'ALTER TABLE users ADD COLUMN gender VARCHAR'),
            ('address', 'ALTER TABLE users ADD COLUMN address VARCHAR'),
            ('city', 'ALTER TABLE users ADD COLUMN city VARCHAR'),
            ('state', 'ALTER TABLE users ADD COLUMN state VARCHAR'),
            ('preferred_language', "ALTER TABLE users ADD COLUMN preferred_language VARCHAR DEFAULT 'english'"),
        ]

        with target.begin() as connection:
            for column_name, statement in migration_steps:
                if column_name not in existing_columns:
                    connection.execute(text(statement))

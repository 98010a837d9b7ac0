"""Work out a user's role once, when they sign in.

The role then travels in the access token and is handed explicitly to
every lifecycle operation.
"""

import logging

from sqlalchemy.orm import Session

from swastyasetu.core import config
from swastyasetu.models.doctor import Doctor
from swastyasetu.models.user import User
from swastyasetu.services.lifecycle import ADMIN, DOCTOR, PATIENT

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return (email or '').strip().lower()


def find_doctor_profile(db: Session, email: str) -> Doctor | None:
    return db.query(Doctor).filter(Doctor.user_email == normalize_email(email)).first()


def resolve_role(db: Session, email: str) -> str:
    normalized = normalize_email(email)
    if normalized and normalized == config.ADMIN_EMAIL:
        return ADMIN
    if find_doctor_profile(db, normalized) is not None:
        return DOCTOR
    return PATIENT


def is_reserved_email(db: Session, email: str) -> bool:
    """Admin and doctor accounts are only ever created by an admin."""
    return resolve_role(db, email) != PATIENT


def ensure_admin_account(db: Session) -> User | None:
    """Create the admin account from ``ADMIN_PASSWORD``, or refresh its password."""
    if not config.ADMIN_PASSWORD or not config.ADMIN_EMAIL:
        logger.warning('ADMIN_PASSWORD is not set; the admin account cannot sign in.')
        return None

    admin = db.query(User).filter(User.email == config.ADMIN_EMAIL).first()
    if admin is None:
        admin = User(email=config.ADMIN_EMAIL, full_name='Administrator')
        db.add(admin)
    admin.role = ADMIN
    if not admin.check_password(config.ADMIN_PASSWORD):
        admin.set_password(config.ADMIN_PASSWORD)
    db.commit()
    db.refresh(admin)
    return admin

from dataclasses import dataclass

import jwt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from swastyasetu.auth import jwt_handler
from swastyasetu.auth.roles import find_doctor_profile
from swastyasetu.database import SessionLocal
from swastyasetu.models.user import User
from swastyasetu.services.lifecycle import ADMIN, DOCTOR, ROLES

security = HTTPBearer()


@dataclass
class CurrentUser:
    """The signed-in user plus the role resolved when their token was issued."""

    user: User
    role: str
    doctor_id: int | None = None

    @property
    def id(self) -> int:
        return self.user.id

    @property
    def email(self) -> str:
        return self.user.email


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db),
) -> CurrentUser:
    token = credentials.credentials
    try:
        payload = jwt_handler.decode_access_token(token)
    except jwt.PyJWTError as exc:
        raise HTTPException(status_code=401, detail="Invalid token") from exc

    email = payload.get("sub")
    if not email:
        raise HTTPException(status_code=401, detail="Invalid token subject")

    role = payload.get("role")
    if role not in ROLES:
        raise HTTPException(status_code=401, detail="Invalid token role")

    user = db.query(User).filter(User.email == email).first()
    if user is None:
        raise HTTPException(status_code=401, detail="User not found")

    doctor_id = None
    if role == DOCTOR:
        doctor = find_doctor_profile(db, email)
        if doctor is None:
            raise HTTPException(status_code=401, detail="Doctor profile no longer exists")
        doctor_id = doctor.id

    return CurrentUser(user=user, role=role, doctor_id=doctor_id)


def require_admin(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if current_user.role != ADMIN:
        raise HTTPException(status_code=403, detail="Only admins can do this.")
    return current_user

"""User model definitions."""

from datetime import datetime

from sqlalchemy import Column, Integer, DateTime, String
from werkzeug.security import check_password_hash, generate_password_hash

from swastyasetu.database import Base


class User(Base):
    """Represents an application user and their contact profile."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String)
    full_name = Column(String)
    role = Column(String, default="patient")  # patient/doctor/admin
    phone = Column(String)
    age = Column(Integer)
    gender = Column(String)
    address = Column(String)
    city = Column(String)
    state = Column(String)
    preferred_language = Column(String, default="english")
    created_date = Column(DateTime, default=datetime.now)

    def set_password(self, raw_password: str) -> None:
        self.hashed_password = generate_password_hash(raw_password)

    def check_password(self, raw_password: str) -> bool:
        if not self.hashed_password:
            return False
        return check_password_hash(self.hashed_password, raw_password)

    @property
    def profile_complete(self) -> bool:
        return bool(self.phone)

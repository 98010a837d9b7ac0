"""Doctor model definitions."""

from datetime import datetime

from sqlalchemy import Column, Integer, DateTime, Float, JSON, String
from swastyasetu.database import Base


class Doctor(Base):
    """Represents a doctor profile and its weekly availability windows.

    ``availability`` holds a list of ``{"day", "start_time", "end_time"}``
    mappings with ``HH:MM`` times.
    """
    __tablename__ = "doctors"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    user_email = Column(String, index=True)
    specialization = Column(String, index=True)
    qualification = Column(String)
    consultation_fee = Column(Float, default=0)
    rating = Column(Float)
    total_consultations = Column(Integer, default=0)
    profile_image = Column(String)
    availability = Column(JSON, default=list)
    created_date = Column(DateTime, default=datetime.now)

"""Appointment model definitions."""

from datetime import datetime

from sqlalchemy import Column, Integer, Date, DateTime, Float, ForeignKey, Index, String, Text, Time, text
from swastyasetu.database import Base


class Appointment(Base):
    """Represents a consultation requested by a patient."""
    __tablename__ = "appointments"
    __table_args__ = (
        Index(
            "uq_appointments_live_slot",
            "doctor_id",
            "appointment_date",
            "appointment_time",
            unique=True,
            sqlite_where=text("status <> 'cancelled'"),
            postgresql_where=text("status <> 'cancelled'"),
        ),
    )

    id = Column(Integer, primary_key=True)
    patient_id = Column(Integer, ForeignKey("users.id"), index=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id"), index=True)
    appointment_date = Column(Date, nullable=False)
    appointment_time = Column(Time, nullable=False)
    symptoms = Column(Text)
    status = Column(String, default="pending")
    consultation_type = Column(String, default="video_call")
    amount = Column(Float)
    payment_status = Column(String, default="pending")
    created_date = Column(DateTime, default=datetime.now)

"""Chat message model definitions."""

from datetime import datetime

from sqlalchemy import Column, Integer, DateTime, ForeignKey, Text
from swastyasetu.database import Base


class ChatMessage(Base):
    """Represents one message exchanged about an approved appointment."""
    __tablename__ = "chat_messages"

    id = Column(Integer, primary_key=True)
    appointment_id = Column(Integer, ForeignKey("appointments.id"), index=True)
    sender_id = Column(Integer, ForeignKey("users.id"))
    receiver_id = Column(Integer, ForeignKey("users.id"))
    message = Column(Text, nullable=False)
    created_date = Column(DateTime, default=datetime.now)

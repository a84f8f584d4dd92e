from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, func, Enum, Index, CheckConstraint
from sqlalchemy.orm import relationship
from app.db.session import Base
import enum


class EventStatusEnum(str, enum.Enum):
    """Event lifecycle; only active events are listed or accept RSVPs."""
    active = "active"
    cancelled = "cancelled"
    completed = "completed"


class Event(Base):
    __tablename__ = "events"
    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    event_date = Column(DateTime(timezone=True), nullable=False)
    location = Column(String(255), nullable=False)
    max_attendees = Column(Integer, nullable=True)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    status = Column(Enum(EventStatusEnum), default=EventStatusEnum.active, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    creator = relationship("User", back_populates="events")
    rsvps = relationship("RSVP", back_populates="event", passive_deletes=True)

    __table_args__ = (
        CheckConstraint("max_attendees IS NULL OR max_attendees > 0", name="ck_event_max_attendees_positive"),
        Index("idx_events_date", "event_date"),
        Index("idx_events_creator", "created_by"),
    )

from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey, func, Enum, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from app.db.session import Base
import enum


class RSVPStatusEnum(str, enum.Enum):
    attending = "attending"
    maybe = "maybe"
    not_attending = "not_attending"


class RSVP(Base):
    __tablename__ = "rsvps"
    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False)
    status = Column(Enum(RSVPStatusEnum), default=RSVPStatusEnum.attending, nullable=False)
    notes = Column(Text, nullable=True)
    # Time of the latest response, rewritten on every update
    rsvp_date = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    user = relationship("User", back_populates="rsvps")
    event = relationship("Event", back_populates="rsvps")

    # One response per (user, event), enforced by the store
    __table_args__ = (
        UniqueConstraint("user_id", "event_id", name="uq_user_event_rsvp"),
        Index("idx_rsvps_user", "user_id"),
        Index("idx_rsvps_event", "event_id"),
        Index("idx_rsvps_status", "status"),
    )

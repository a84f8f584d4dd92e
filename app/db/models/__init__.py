"""Database models package."""
from app.db.models.user import User, RoleEnum
from app.db.models.event import Event, EventStatusEnum
from app.db.models.rsvp import RSVP, RSVPStatusEnum

__all__ = ["User", "RoleEnum", "Event", "EventStatusEnum", "RSVP", "RSVPStatusEnum"]

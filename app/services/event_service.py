from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from app.schemas import EventCreate, EventUpdate
from app.db.models.user import User
from app.db.repositories import (
    create_event as db_create_event,
    get_event as db_get_event,
    list_events as db_list_events,
    update_event as db_update_event,
    delete_event as db_delete_event,
    list_rsvps_for_event,
    get_rsvp_details,
)
from app.core.exceptions import NotFoundError
from app.core.logging import logger


class EventService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_events(self, search: Optional[str] = None, upcoming: bool = False) -> List[dict]:
        return await db_list_events(self.session, search=search or None, upcoming=upcoming)

    async def get_event_detail(self, event_id: int, viewer: Optional[User] = None) -> dict:
        """Event with its RSVPs, plus the viewer's own RSVP when signed in."""
        event = await db_get_event(self.session, event_id)
        if not event:
            raise NotFoundError("Event not found")
        detail = {
            "event": event,
            "rsvps": await list_rsvps_for_event(self.session, event_id),
            "my_rsvp": None,
        }
        if viewer is not None:
            detail["my_rsvp"] = await get_rsvp_details(self.session, viewer.id, event_id)
        return detail

    async def create_event(self, payload: EventCreate, user: User) -> dict:
        user_id = user.id
        event = await db_create_event(self.session, payload, user_id)
        logger.info(f"User {user_id} created event {event['id']}")
        return event

    async def update_event(self, event_id: int, payload: EventUpdate, user: User) -> dict:
        user_id = user.id
        event = await db_update_event(self.session, event_id, payload.model_dump(exclude_unset=True), user)
        logger.info(f"User {user_id} updated event {event_id}")
        return event

    async def delete_event(self, event_id: int, user: User) -> None:
        user_id = user.id
        await db_delete_event(self.session, event_id, user)
        logger.info(f"User {user_id} deleted event {event_id}")

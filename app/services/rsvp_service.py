"""RSVP service: the capacity-checked create-or-update of a user's response."""
from datetime import datetime, timezone
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from app.schemas import RSVPCreate, as_utc
from app.db.models.user import User
from app.db.models.rsvp import RSVPStatusEnum
from app.db.repositories import (
    lock_active_event,
    count_attending,
    upsert_rsvp,
    get_rsvp_details,
    delete_rsvp as db_delete_rsvp,
    list_rsvps_for_user,
    list_rsvps_for_event,
    group_by_status,
    invalidate_event_cache,
)
from app.core.exceptions import CapacityExceededError, ConflictError, NotFoundError, PastEventError
from app.core.logging import logger


class RSVPService:
    """
    Service layer for RSVPs.

    ``save_rsvp`` runs its checks and the write in one transaction, after
    taking the event's row lock, so serialized or concurrent "attending"
    responses cannot push an event past its cap.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _release(self):
        # Nothing written yet: end the transaction and drop the event lock
        await self.session.commit()

    async def save_rsvp(self, payload: RSVPCreate, user: User) -> dict:
        """
        Create or overwrite the user's RSVP for an event.

        Steps run strictly in order: active event, future date, capacity,
        upsert, re-read.

        Returns:
            The stored RSVP with the event's title, date and location

        Raises:
            NotFoundError: event missing or not active
            PastEventError: event date is not in the future
            CapacityExceededError: attending would exceed max_attendees
            ConflictError: a concurrent request created the same RSVP first
        """
        user_id = user.id
        event = await lock_active_event(self.session, payload.event_id)
        if event is None:
            await self._release()
            raise NotFoundError("Event not found or inactive")

        if as_utc(event.event_date) <= datetime.now(timezone.utc):
            await self._release()
            raise PastEventError()

        if payload.status == RSVPStatusEnum.attending and event.max_attendees:
            # The user's own row is being overwritten, so it does not hold a seat
            taken = await count_attending(self.session, event.id, exclude_user_id=user_id)
            if taken >= event.max_attendees:
                await self._release()
                logger.info(f"RSVP refused for user {user_id}: event {event.id} is full ({taken}/{event.max_attendees})")
                raise CapacityExceededError()

        try:
            await upsert_rsvp(self.session, user_id, event.id, payload.status, payload.notes)
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            logger.warning(f"Concurrent RSVP insert for user {user_id} on event {payload.event_id}")
            raise ConflictError()

        await invalidate_event_cache()
        logger.info(f"User {user_id} RSVP'd '{payload.status.value}' to event {payload.event_id}")
        return await get_rsvp_details(self.session, user_id, payload.event_id)

    async def delete_rsvp(self, event_id: int, user: User) -> None:
        """
        Remove the user's RSVP for an event.

        Raises:
            NotFoundError: there was no RSVP to remove
        """
        removed = await db_delete_rsvp(self.session, user.id, event_id)
        if not removed:
            raise NotFoundError("RSVP not found")
        await invalidate_event_cache()
        logger.info(f"User {user.id} withdrew RSVP for event {event_id}")

    async def list_my_rsvps(self, user: User) -> list:
        return await list_rsvps_for_user(self.session, user.id)

    async def list_event_rsvps(self, event_id: int) -> dict:
        rsvps = await list_rsvps_for_event(self.session, event_id)
        grouped = group_by_status(rsvps)
        return {
            "rsvps": rsvps,
            "grouped": grouped,
            "total": len(rsvps),
            "attending_count": len(grouped[RSVPStatusEnum.attending.value]),
        }

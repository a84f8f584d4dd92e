from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from app.schemas import (
    EventCreate,
    EventUpdate,
    EventOut,
    EventListResponse,
    EventDetailResponse,
    MessageResponse,
)
from app.db.session import get_session
from app.db.models.user import User
from app.services.event_service import EventService
from app.auth import get_current_user, get_optional_user

router = APIRouter(prefix="/events", tags=["events"])


def get_event_service(session: AsyncSession = Depends(get_session)) -> EventService:
    return EventService(session)


@router.get("", response_model=EventListResponse)
async def list_events(
    search: Optional[str] = Query(None, description="Substring of title, description or location"),
    upcoming: bool = Query(False, description="Only events dated in the future"),
    event_service: EventService = Depends(get_event_service)
):
    """
    List active events, soonest first.
    - search: case-insensitive substring match
    - upcoming: drop events whose date has passed
    Each event carries its live attending count and remaining spots.
    """
    events = await event_service.list_events(search=search, upcoming=upcoming)
    return {"events": events}


@router.get("/{event_id}", response_model=EventDetailResponse)
async def get_event_detail(
    event_id: int,
    viewer: Optional[User] = Depends(get_optional_user),
    event_service: EventService = Depends(get_event_service)
):
    return await event_service.get_event_detail(event_id, viewer)


@router.post("", response_model=EventOut, status_code=status.HTTP_201_CREATED)
async def create_event_endpoint(
    payload: EventCreate,
    user: User = Depends(get_current_user),
    event_service: EventService = Depends(get_event_service)
):
    return await event_service.create_event(payload, user)


@router.put("/{event_id}", response_model=EventOut)
async def update_event_endpoint(
    event_id: int,
    payload: EventUpdate,
    user: User = Depends(get_current_user),
    event_service: EventService = Depends(get_event_service)
):
    """Update an event. Only its creator or an admin may do so."""
    return await event_service.update_event(event_id, payload, user)


@router.delete("/{event_id}", response_model=MessageResponse)
async def delete_event_endpoint(
    event_id: int,
    user: User = Depends(get_current_user),
    event_service: EventService = Depends(get_event_service)
):
    """Delete an event and, by cascade, all of its RSVPs."""
    await event_service.delete_event(event_id, user)
    return {"message": "Event deleted successfully"}

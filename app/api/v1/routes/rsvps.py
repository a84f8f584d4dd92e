from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from app.schemas import RSVPCreate, RSVPSaved, MyRSVPList, EventRSVPList, MessageResponse
from app.db.session import get_session
from app.db.models.user import User
from app.services.rsvp_service import RSVPService
from app.auth import get_current_user

router = APIRouter(prefix="/rsvps", tags=["rsvps"])


def get_rsvp_service(session: AsyncSession = Depends(get_session)) -> RSVPService:
    return RSVPService(session)


@router.get("/my-rsvps", response_model=MyRSVPList)
async def my_rsvps(
    user: User = Depends(get_current_user),
    rsvp_service: RSVPService = Depends(get_rsvp_service)
):
    return {"rsvps": await rsvp_service.list_my_rsvps(user)}


@router.get("/event/{event_id}", response_model=EventRSVPList)
async def event_rsvps(
    event_id: int,
    rsvp_service: RSVPService = Depends(get_rsvp_service)
):
    """RSVPs for an event, newest first, also bucketed by status."""
    return await rsvp_service.list_event_rsvps(event_id)


@router.post("", response_model=RSVPSaved)
async def save_rsvp_endpoint(
    payload: RSVPCreate,
    user: User = Depends(get_current_user),
    rsvp_service: RSVPService = Depends(get_rsvp_service)
):
    """Create the caller's RSVP for an event, or overwrite the existing one."""
    rsvp = await rsvp_service.save_rsvp(payload, user)
    return {"message": "RSVP saved successfully", "rsvp": rsvp}


@router.delete("/{event_id}", response_model=MessageResponse)
async def delete_rsvp_endpoint(
    event_id: int,
    user: User = Depends(get_current_user),
    rsvp_service: RSVPService = Depends(get_rsvp_service)
):
    await rsvp_service.delete_rsvp(event_id, user)
    return {"message": "RSVP deleted successfully"}

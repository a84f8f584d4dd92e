from pydantic import AfterValidator, BaseModel, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Annotated, Optional, List
from datetime import datetime, timezone
from app.db.models.user import RoleEnum
from app.db.models.event import EventStatusEnum
from app.db.models.rsvp import RSVPStatusEnum


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalise to an aware UTC datetime; naive values are taken as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _require_future(value: Optional[datetime]) -> Optional[datetime]:
    value = as_utc(value)
    if value is not None and value <= datetime.now(timezone.utc):
        raise ValueError("Event date must be in the future")
    return value


FutureDatetime = Annotated[datetime, AfterValidator(_require_future)]


class APIModel(BaseModel):
    """camelCase on the wire, snake_case in Python; both accepted as input."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class MessageResponse(APIModel):
    message: str


# --- identity -------------------------------------------------------------

class UserCreate(APIModel):
    username: str = Field(min_length=3, max_length=50, pattern=r"^[a-zA-Z0-9_]+$")
    email: EmailStr
    password: str = Field(min_length=1)
    first_name: str = Field(min_length=1, max_length=50)
    last_name: str = Field(min_length=1, max_length=50)


class LoginRequest(APIModel):
    """Username or email, plus password."""
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class RefreshTokenRequest(APIModel):
    refresh_token: str


class UserOut(APIModel):
    id: int
    username: str
    email: EmailStr
    role: RoleEnum
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    created_at: Optional[datetime] = None


class Token(APIModel):
    access_token: str
    token_type: str = "bearer"


class LoginResponse(APIModel):
    message: str = "Login successful"
    user: UserOut
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class AuthStatus(APIModel):
    authenticated: bool
    user: Optional[UserOut] = None


# --- events ---------------------------------------------------------------

class EventCreate(APIModel):
    title: str = Field(min_length=3, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    event_date: FutureDatetime
    location: str = Field(min_length=1, max_length=255)
    max_attendees: Optional[int] = Field(None, ge=1)


class EventUpdate(APIModel):
    """Partial update; only fields present in the request are written."""
    title: Optional[str] = Field(None, min_length=3, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    event_date: Optional[FutureDatetime] = None
    location: Optional[str] = Field(None, min_length=1, max_length=255)
    max_attendees: Optional[int] = Field(None, ge=1)
    status: Optional[EventStatusEnum] = None

    @field_validator("title", "event_date", "location", "status")
    @classmethod
    def _not_null(cls, value):
        if value is None:
            raise ValueError("Field cannot be null")
        return value


class EventOut(APIModel):
    id: int
    title: str
    description: Optional[str] = None
    event_date: datetime
    location: str
    max_attendees: Optional[int] = None
    status: EventStatusEnum
    created_by: int
    creator_name: Optional[str] = None
    creator_first_name: Optional[str] = None
    creator_last_name: Optional[str] = None
    attending_count: int = 0
    available_spots: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class EventListResponse(APIModel):
    events: List[EventOut]


# --- rsvps ----------------------------------------------------------------

class RSVPCreate(APIModel):
    event_id: int = Field(gt=0)
    status: RSVPStatusEnum
    notes: Optional[str] = Field(None, max_length=500)


class RSVPOut(APIModel):
    id: int
    user_id: int
    event_id: int
    status: RSVPStatusEnum
    notes: Optional[str] = None
    rsvp_date: Optional[datetime] = None
    title: Optional[str] = None
    event_date: Optional[datetime] = None
    location: Optional[str] = None


class RSVPSaved(APIModel):
    message: str = "RSVP saved successfully"
    rsvp: RSVPOut


class MyRSVPOut(RSVPOut):
    description: Optional[str] = None
    max_attendees: Optional[int] = None
    creator_name: Optional[str] = None
    creator_first_name: Optional[str] = None
    creator_last_name: Optional[str] = None


class MyRSVPList(APIModel):
    rsvps: List[MyRSVPOut]


class EventRSVPOut(APIModel):
    """An RSVP as shown on an event page: the responder, not the event."""
    user_id: int
    status: RSVPStatusEnum
    notes: Optional[str] = None
    rsvp_date: Optional[datetime] = None
    username: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class GroupedRSVPs(APIModel):
    """Buckets keyed by the RSVP status value itself."""
    attending: List[EventRSVPOut] = []
    maybe: List[EventRSVPOut] = []
    not_attending: List[EventRSVPOut] = Field(default_factory=list, alias="not_attending")


class EventRSVPList(APIModel):
    rsvps: List[EventRSVPOut]
    grouped: GroupedRSVPs
    total: int
    attending_count: int


class EventDetailResponse(APIModel):
    event: EventOut
    rsvps: List[EventRSVPOut]
    my_rsvp: Optional[RSVPOut] = None

"""
Repository layer for database operations.

Async query helpers for users, events and RSVPs. Event reads that feed the
public catalogue are cached in Redis and invalidated by any event or RSVP
write.
"""
from datetime import datetime, timezone
from typing import Optional, List, Iterable
from sqlalchemy import select, update, delete, or_, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from app.db.models.user import User, RoleEnum
from app.db.models.event import Event, EventStatusEnum
from app.db.models.rsvp import RSVP, RSVPStatusEnum
from app.schemas import UserCreate, EventCreate, as_utc
from app.cache.cache_decorators import cached
from app.cache.redis_client import cache
from app.core.exceptions import DuplicateError, ForbiddenError, NotFoundError
from app.core.security import hash_password


def _iso(value: Optional[datetime]) -> Optional[str]:
    value = as_utc(value)
    return value.isoformat() if value else None


def _enum_value(value):
    return getattr(value, "value", value)


# --- users ----------------------------------------------------------------

async def create_user(db: AsyncSession, user_in: UserCreate, role: RoleEnum = RoleEnum.user) -> User:
    """
    Insert a user with a hashed password.

    The unique username/email constraints are the final word on
    duplicates: a violation here means another request registered the
    same identity first.

    Raises:
        DuplicateError: username or email already taken
    """
    user = User(
        username=user_in.username,
        email=user_in.email,
        password_hash=hash_password(user_in.password),
        first_name=user_in.first_name,
        last_name=user_in.last_name,
        role=role,
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise DuplicateError()
    await db.refresh(user)
    return user


async def get_user(db: AsyncSession, user_id) -> Optional[User]:
    res = await db.execute(select(User).where(User.id == user_id))
    return res.scalars().first()


async def get_user_by_login(db: AsyncSession, login: str) -> Optional[User]:
    """Find a user whose username or email equals ``login``."""
    q = select(User).where(or_(User.username == login, User.email == login))
    res = await db.execute(q)
    return res.scalars().first()


async def find_conflicting_user(db: AsyncSession, username: str, email: str) -> Optional[User]:
    q = select(User).where(or_(User.username == username, User.email == email))
    res = await db.execute(q)
    return res.scalars().first()


async def list_users(db: AsyncSession) -> List[User]:
    res = await db.execute(select(User).order_by(User.created_at.desc(), User.id.desc()))
    return list(res.scalars().all())


# --- events ---------------------------------------------------------------

def _attending_count():
    return (
        select(func.count(RSVP.id))
        .where(RSVP.event_id == Event.id, RSVP.status == RSVPStatusEnum.attending)
        .correlate(Event)
        .scalar_subquery()
    )


def _event_rows():
    """Events joined with their creator and the live attending count."""
    return (
        select(
            Event,
            User.username,
            User.first_name,
            User.last_name,
            _attending_count().label("attending_count"),
        )
        .join(User, Event.created_by == User.id)
        .execution_options(populate_existing=True)
    )


def _event_to_dict(ev: Event, username, first_name, last_name, attending_count) -> dict:
    attending_count = attending_count or 0
    available_spots = None
    if ev.max_attendees:
        available_spots = max(0, ev.max_attendees - attending_count)
    return {
        "id": ev.id,
        "title": ev.title,
        "description": ev.description,
        "event_date": _iso(ev.event_date),
        "location": ev.location,
        "max_attendees": ev.max_attendees,
        "status": _enum_value(ev.status),
        "created_by": ev.created_by,
        "creator_name": username,
        "creator_first_name": first_name,
        "creator_last_name": last_name,
        "attending_count": attending_count,
        "available_spots": available_spots,
        "created_at": _iso(ev.created_at),
        "updated_at": _iso(ev.updated_at),
    }


async def invalidate_event_cache() -> None:
    await cache.delete_pattern("events:*")


async def fetch_event(db: AsyncSession, event_id) -> Optional[dict]:
    """Uncached event read, used right after a write."""
    res = await db.execute(_event_rows().where(Event.id == event_id))
    row = res.first()
    return _event_to_dict(*row) if row else None


@cached("events:detail")
async def get_event(db: AsyncSession, event_id) -> Optional[dict]:
    return await fetch_event(db, event_id)


async def _query_events(db: AsyncSession, search: Optional[str], upcoming: bool) -> List[dict]:
    q = _event_rows().where(Event.status == EventStatusEnum.active)

    if search:
        term = search.lower()
        q = q.where(or_(
            func.lower(Event.title).contains(term, autoescape=True),
            func.lower(Event.description).contains(term, autoescape=True),
            func.lower(Event.location).contains(term, autoescape=True),
        ))
    if upcoming:
        q = q.where(Event.event_date > datetime.now(timezone.utc))

    q = q.order_by(Event.event_date.asc(), Event.id.asc())
    res = await db.execute(q)
    return [_event_to_dict(*row) for row in res.all()]


@cached("events:list")
async def _list_all_events(db: AsyncSession, search: Optional[str] = None) -> List[dict]:
    return await _query_events(db, search, upcoming=False)


async def list_events(db: AsyncSession, search: Optional[str] = None, upcoming: bool = False) -> List[dict]:
    """
    Active events ordered by date, optionally filtered.

    Args:
        search: case-insensitive substring of title, description or location
        upcoming: keep only events dated after now

    Upcoming lists bypass the cache; their cut-off is the time of the call.
    """
    if upcoming:
        return await _query_events(db, search, upcoming=True)
    return await _list_all_events(db, search=search)


async def create_event(db: AsyncSession, payload: EventCreate, creator_id) -> dict:
    ev = Event(**payload.model_dump(), created_by=creator_id)
    db.add(ev)
    await db.commit()
    await invalidate_event_cache()
    return await fetch_event(db, ev.id)


def _owned_by(q, event_id, actor: User):
    q = q.where(Event.id == event_id)
    if not actor.is_admin:
        q = q.where(Event.created_by == actor.id)
    return q


async def _explain_missed_write(db: AsyncSession, event_id, action: str):
    """A guarded write touched nothing: the event is gone or not the actor's."""
    res = await db.execute(select(Event.id).where(Event.id == event_id))
    if res.first() is None:
        raise NotFoundError("Event not found")
    raise ForbiddenError(f"Access denied. You can only {action} your own events.")


async def update_event(db: AsyncSession, event_id, values: dict, actor: User) -> dict:
    """
    Apply ``values`` to an event the actor owns (or any event for admins).

    Ownership is part of the UPDATE's WHERE clause, so there is no window
    between checking and writing.
    """
    if values:
        stmt = _owned_by(update(Event), event_id, actor).values(**values)
        res = await db.execute(stmt.execution_options(synchronize_session=False))
        if res.rowcount == 0:
            await db.commit()
            await _explain_missed_write(db, event_id, "edit")
        await db.commit()
        await invalidate_event_cache()
    else:
        res = await db.execute(_owned_by(select(Event.id), event_id, actor))
        if res.first() is None:
            await _explain_missed_write(db, event_id, "edit")
    return await fetch_event(db, event_id)


async def delete_event(db: AsyncSession, event_id, actor: User) -> None:
    """Delete an owned event; its RSVPs follow through ON DELETE CASCADE."""
    stmt = _owned_by(delete(Event), event_id, actor)
    res = await db.execute(stmt.execution_options(synchronize_session=False))
    if res.rowcount == 0:
        await db.commit()
        await _explain_missed_write(db, event_id, "delete")
    await db.commit()
    await invalidate_event_cache()


# --- rsvps ----------------------------------------------------------------

async def lock_active_event(db: AsyncSession, event_id) -> Optional[Event]:
    """
    Load an active event and hold its row lock until the transaction ends.

    Serialises concurrent RSVP writes for the same event on PostgreSQL.
    SQLite ignores FOR UPDATE; there the transaction already holds the
    database write lock from BEGIN IMMEDIATE (see ``configure_sqlite``).
    """
    q = (
        select(Event)
        .where(Event.id == event_id, Event.status == EventStatusEnum.active)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    res = await db.execute(q)
    return res.scalars().first()


async def count_attending(db: AsyncSession, event_id, exclude_user_id=None) -> int:
    """
    Count 'attending' RSVPs for an event, optionally ignoring one user's.

    The RSVP upsert passes the acting user as ``exclude_user_id``: their own
    row is about to be overwritten, so re-sending "attending" at a full
    event succeeds instead of refusing the seat they already hold.
    """
    q = select(func.count(RSVP.id)).where(
        RSVP.event_id == event_id,
        RSVP.status == RSVPStatusEnum.attending,
    )
    if exclude_user_id is not None:
        q = q.where(RSVP.user_id != exclude_user_id)
    res = await db.execute(q)
    return res.scalar() or 0


async def get_user_rsvp_for_event(db: AsyncSession, user_id, event_id) -> Optional[RSVP]:
    q = select(RSVP).where(RSVP.user_id == user_id, RSVP.event_id == event_id)
    res = await db.execute(q)
    return res.scalars().first()


async def upsert_rsvp(db: AsyncSession, user_id, event_id, status: RSVPStatusEnum, notes: Optional[str]) -> RSVP:
    """
    Overwrite the user's RSVP for the event, or stage a new one.

    Flushes but does not commit; the caller owns the transaction.
    """
    now = datetime.now(timezone.utc)
    rsvp = await get_user_rsvp_for_event(db, user_id, event_id)
    if rsvp is None:
        rsvp = RSVP(user_id=user_id, event_id=event_id)
        db.add(rsvp)
    rsvp.status = status
    rsvp.notes = notes
    rsvp.rsvp_date = now
    await db.flush()
    return rsvp


def _rsvp_to_dict(r: RSVP) -> dict:
    return {
        "id": r.id,
        "user_id": r.user_id,
        "event_id": r.event_id,
        "status": _enum_value(r.status),
        "notes": r.notes,
        "rsvp_date": _iso(r.rsvp_date),
    }


async def get_rsvp_details(db: AsyncSession, user_id, event_id) -> Optional[dict]:
    """The (user, event) RSVP with the event's title, date and location."""
    q = (
        select(RSVP, Event.title, Event.event_date, Event.location)
        .join(Event, RSVP.event_id == Event.id)
        .where(RSVP.user_id == user_id, RSVP.event_id == event_id)
        .execution_options(populate_existing=True)
    )
    res = await db.execute(q)
    row = res.first()
    if row is None:
        return None
    r, title, event_date, location = row
    return {**_rsvp_to_dict(r), "title": title, "event_date": _iso(event_date), "location": location}


async def delete_rsvp(db: AsyncSession, user_id, event_id) -> int:
    """Delete the (user, event) RSVP; returns the number of rows removed."""
    stmt = delete(RSVP).where(RSVP.user_id == user_id, RSVP.event_id == event_id)
    res = await db.execute(stmt.execution_options(synchronize_session=False))
    await db.commit()
    return res.rowcount


async def list_rsvps_for_user(db: AsyncSession, user_id) -> List[dict]:
    """A user's RSVPs with event and event-creator details, soonest event first."""
    q = (
        select(RSVP, Event, User.username, User.first_name, User.last_name)
        .join(Event, RSVP.event_id == Event.id)
        .join(User, Event.created_by == User.id)
        .where(RSVP.user_id == user_id)
        .order_by(Event.event_date.asc(), RSVP.id.asc())
    )
    res = await db.execute(q)
    rsvps = []
    for r, ev, username, first_name, last_name in res.all():
        rsvps.append({
            **_rsvp_to_dict(r),
            "title": ev.title,
            "description": ev.description,
            "event_date": _iso(ev.event_date),
            "location": ev.location,
            "max_attendees": ev.max_attendees,
            "creator_name": username,
            "creator_first_name": first_name,
            "creator_last_name": last_name,
        })
    return rsvps


async def list_rsvps_for_event(db: AsyncSession, event_id) -> List[dict]:
    """An event's RSVPs with responder details, most recent response first."""
    q = (
        select(RSVP, User.username, User.first_name, User.last_name)
        .join(User, RSVP.user_id == User.id)
        .where(RSVP.event_id == event_id)
        .order_by(RSVP.rsvp_date.desc(), RSVP.id.desc())
    )
    res = await db.execute(q)
    return [
        {
            "user_id": r.user_id,
            "status": _enum_value(r.status),
            "notes": r.notes,
            "rsvp_date": _iso(r.rsvp_date),
            "username": username,
            "first_name": first_name,
            "last_name": last_name,
        }
        for r, username, first_name, last_name in res.all()
    ]


def group_by_status(rsvps: Iterable[dict]) -> dict:
    grouped = {s.value: [] for s in RSVPStatusEnum}
    for r in rsvps:
        grouped[r["status"]].append(r)
    return grouped

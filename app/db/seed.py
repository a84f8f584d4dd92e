"""
Populate the configured database with demo users, events and RSVPs.

Run with: python -m app.db.seed [--reset]
"""
import argparse
import asyncio
from datetime import datetime, timedelta, timezone
from sqlalchemy import select
from app.db.session import engine, AsyncSessionLocal, Base
from app.db.models import User, RoleEnum, Event, RSVP, RSVPStatusEnum
from app.core.security import hash_password
from app.core.logging import logger

DEMO_PASSWORD = "Demo123!"

USERS = [
    # username, email, role, first name, last name
    ("admin", "admin@eventplanner.com", RoleEnum.admin, "Admin", "User"),
    ("john_doe", "john@example.com", RoleEnum.user, "John", "Doe"),
    ("jane_smith", "jane@example.com", RoleEnum.user, "Jane", "Smith"),
    ("bob_wilson", "bob@example.com", RoleEnum.user, "Bob", "Wilson"),
    ("demo", "demo@eventplanner.com", RoleEnum.user, "Demo", "User"),
]

EVENTS = [
    # title, description, days from now, location, max attendees, creator
    ("Tech Conference", "Talks and workshops on AI, web development and tooling.", 7, "Convention Center, Downtown", 100, "admin"),
    ("Team Building Workshop", "Collaboration exercises followed by lunch.", 14, "Corporate Training Center", 25, "admin"),
    ("Holiday Party", "Dinner, entertainment and the annual awards.", 21, "Grand Ballroom Hotel", 75, "john_doe"),
    ("Coding Bootcamp Graduation", "Celebrating the latest cohort. Family and friends welcome!", 30, "University Auditorium", 150, "john_doe"),
]

RSVPS = [
    # username, event title, status, notes
    ("john_doe", "Tech Conference", RSVPStatusEnum.attending, "Looking forward to the AI sessions!"),
    ("jane_smith", "Tech Conference", RSVPStatusEnum.attending, None),
    ("bob_wilson", "Tech Conference", RSVPStatusEnum.maybe, "Will confirm by Friday"),
    ("demo", "Tech Conference", RSVPStatusEnum.attending, None),
    ("john_doe", "Team Building Workshop", RSVPStatusEnum.attending, None),
    ("demo", "Team Building Workshop", RSVPStatusEnum.not_attending, "Family commitment that day"),
    ("jane_smith", "Holiday Party", RSVPStatusEnum.attending, None),
]


async def seed(reset: bool = False) -> None:
    async with engine.begin() as conn:
        if reset:
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as session:
        if (await session.execute(select(User.id).limit(1))).first():
            logger.warning("Database already has users; pass --reset to reseed")
            return

        users = {}
        for username, email, role, first_name, last_name in USERS:
            users[username] = User(
                username=username,
                email=email,
                password_hash=hash_password(DEMO_PASSWORD),
                role=role,
                first_name=first_name,
                last_name=last_name,
            )
        session.add_all(users.values())
        await session.flush()

        now = datetime.now(timezone.utc)
        events = {}
        for title, description, days, location, max_attendees, creator in EVENTS:
            events[title] = Event(
                title=title,
                description=description,
                event_date=now + timedelta(days=days),
                location=location,
                max_attendees=max_attendees,
                created_by=users[creator].id,
            )
        session.add_all(events.values())
        await session.flush()

        session.add_all(
            RSVP(
                user_id=users[username].id,
                event_id=events[title].id,
                status=status,
                notes=notes,
                rsvp_date=now,
            )
            for username, title, status, notes in RSVPS
        )
        await session.commit()

    logger.info(f"Seeded {len(USERS)} users, {len(EVENTS)} events and {len(RSVPS)} RSVPs")
    logger.info(f"Every demo account uses the password {DEMO_PASSWORD}")


async def _run(reset: bool) -> None:
    try:
        await seed(reset=reset)
    finally:
        await engine.dispose()


def main():
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("--reset", action="store_true", help="drop and recreate all tables first")
    args = parser.parse_args()
    asyncio.run(_run(args.reset))


if __name__ == "__main__":
    main()

from typing import AsyncGenerator
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession, AsyncEngine
from sqlalchemy.orm import declarative_base
from app.core.config import settings


def configure_sqlite(async_engine: AsyncEngine) -> None:
    """
    Make a SQLite engine enforce foreign keys and take the write lock up front.

    The driver normally defers BEGIN until the first INSERT/UPDATE, leaving
    the reads before it (such as the RSVP capacity count) unlocked. With
    its transaction handling off, every transaction opens with
    BEGIN IMMEDIATE instead, so concurrent writers queue on the database
    lock before reading anything.
    """
    @event.listens_for(async_engine.sync_engine, "connect")
    def _on_connect(dbapi_conn, connection_record):
        dbapi_conn.isolation_level = None
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(async_engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def _engine_options() -> dict:
    if settings.is_sqlite:
        return {}
    return {
        "pool_size": 20,          # Permanent connections to maintain
        "max_overflow": 10,       # Extra connections allowed beyond pool_size
        "pool_pre_ping": True,    # Verify connections before using them
        "pool_recycle": 3600,     # Recycle connections after an hour
    }


engine = create_async_engine(settings.DATABASE_URL, echo=settings.DATABASE_ECHO, **_engine_options())
if settings.is_sqlite:
    configure_sqlite(engine)

AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
Base = declarative_base()


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session

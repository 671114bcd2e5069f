"""Database engine, sessions and schema setup."""

from collections.abc import AsyncGenerator

from sqlalchemy import MetaData
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from app.config import get_settings


class Base(DeclarativeBase):
    """Base declarative model class."""

    metadata = MetaData()


settings = get_settings()
engine = create_async_engine(settings.database_url, future=True)
SessionLocal = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


async def create_schema(bind: AsyncEngine) -> None:
    """Create the users and audit log tables when missing.

    Parameters
    ----------
    bind : AsyncEngine
        Engine to create the tables on.
    """
    import app.models  # noqa: F401

    async with bind.begin() as connection:
        await connection.run_sync(Base.metadata.create_all)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield the request-scoped session used by queries and restores."""
    async with SessionLocal() as session:
        yield session


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Return the session factory used for independent audit writes.

    Returns
    -------
    async_sessionmaker[AsyncSession]
        Factory bound to the application engine.
    """
    return SessionLocal

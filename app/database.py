"""
Async SQLAlchemy setup for the comparison stores (PostgreSQL via asyncpg).

Nothing outside ``app.services.persistence`` opens sessions: the gateway
takes ``async_session`` as its default factory, and Celery tasks dispose
``engine`` before their event loop closes.
"""

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from app.config import settings

engine = create_async_engine(
    settings.DATABASE_URL,
    pool_size=settings.DATABASE_POOL_SIZE,
    pool_pre_ping=True,
    echo=settings.DEBUG,
)

async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


class Base(DeclarativeBase):
    """Declarative base for the RemiTip tables."""
    pass

"""Async engine, session factory and declarative base for document storage"""

from typing import AsyncGenerator, Optional

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from docpricing.config import settings

Base = declarative_base()

engine = create_async_engine(settings.DATABASE_URL, echo=settings.DEBUG)

# Snapshots are rebuilt from rows after commit, so rows must not expire
AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def create_tables(bind: Optional[AsyncEngine] = None) -> None:
    """
    Create the document tables that do not exist yet

    Alembic migrations own the schema in deployed databases; this covers local
    SQLite files and test engines.

    Args:
        bind: Engine to create the tables on (defaults to the configured engine)
    """
    # Registers the ORM tables on Base.metadata
    from docpricing.models import db_models  # noqa: F401

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session for ``Depends(get_db)``"""
    async with AsyncSessionLocal() as session:
        yield session

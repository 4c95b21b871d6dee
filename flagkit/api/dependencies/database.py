"""
Database dependencies.
"""

from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncSession

from flagkit.models.database import async_session_factory


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get a database session, committed when the request succeeds."""
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise

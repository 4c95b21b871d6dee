"""
FastAPI dependencies for feature flags.

Usage:
    from flagkit.core.features import Flags

    @router.get("/dashboard")
    async def dashboard(flags: Flags, user_id: str):
        if await flags.is_enabled("new_dashboard", user_id, ["beta_testers"]):
            return new_dashboard()
        return old_dashboard()
"""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from flagkit.core.config import settings
from flagkit.api.dependencies.database import get_db

from .interfaces import FeatureStore
from .service import FeatureService
from .backends.database import DatabaseFeatureStore
from .backends.memory import MemoryFeatureStore


# ============================================================
# STORE FACTORY
# ============================================================

# In-memory store singleton (for development)
_memory_store: MemoryFeatureStore | None = None


def get_memory_store() -> MemoryFeatureStore:
    """Get or create memory store singleton."""
    global _memory_store
    if _memory_store is None:
        _memory_store = MemoryFeatureStore()
    return _memory_store


async def get_feature_store(
    db: AsyncSession = Depends(get_db),
) -> FeatureStore:
    """
    Get feature store based on configuration.

    Uses FEATURE_BACKEND setting:
    - "database": SQLAlchemy session per request (default, production)
    - "memory": Process-wide in-memory store (development/testing)
    """
    if settings.features.backend == "memory":
        return get_memory_store()
    return DatabaseFeatureStore(db)


# ============================================================
# FEATURE SERVICE DEPENDENCY
# ============================================================

async def get_feature_service(
    store: FeatureStore = Depends(get_feature_store),
) -> FeatureService:
    """Get feature service instance."""
    return FeatureService(store)


# Type alias for cleaner injection
Flags = Annotated[FeatureService, Depends(get_feature_service)]

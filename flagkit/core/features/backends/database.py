"""
Database store for feature flags.

Uses PostgreSQL (or SQLite in tests) for persistent storage.
"""

from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any

import structlog
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import ConflictError, FeatureNotFoundError, StoreUnavailableError
from ..interfaces import Feature, FeatureOverride, FeatureStore, TargetType
from ..models import FeatureModel, FeatureOverrideModel
from ..validation import validate_feature, validate_feature_updates, validate_override

logger = structlog.get_logger()


class DatabaseFeatureStore(FeatureStore):
    """
    SQLAlchemy-backed feature flag storage.

    The unique constraints on `features.key` and on
    `feature_overrides (feature_id, target_type, target_identifier)` are
    the final word on conflicts; the pre-insert lookups only give a
    friendlier error in the common case.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    @contextmanager
    def _guard(self, operation: str) -> Iterator[None]:
        """
        Surface connection failures as StoreUnavailableError.

        Only failures to reach or talk to the database are mapped; anything
        else the driver rejects is a bug and propagates unchanged.
        """
        try:
            yield
        except (OperationalError, InterfaceError, OSError) as e:
            logger.error("Feature store failure", operation=operation, error=str(e))
            raise StoreUnavailableError(f"Feature store unavailable during {operation}") from e

    # ============================================================
    # LOOKUPS
    # ============================================================

    async def find_feature(self, key: str) -> Feature | None:
        """Get a feature by key."""
        with self._guard("find_feature"):
            model = await self._get_feature_model(key)
        return self._model_to_feature(model) if model else None

    async def find_override(
        self,
        feature: Feature,
        target_type: TargetType,
        target_identifier: str,
    ) -> FeatureOverride | None:
        """Get the override for a single target."""
        query = select(FeatureOverrideModel).where(
            FeatureOverrideModel.feature_id == feature.id,
            FeatureOverrideModel.target_type == TargetType(target_type).value,
            FeatureOverrideModel.target_identifier == target_identifier,
        )
        with self._guard("find_override"):
            result = await self.db.execute(query)
            model = result.scalar_one_or_none()

        return self._model_to_override(model, feature.key) if model else None

    async def find_latest_override(
        self,
        feature: Feature,
        target_type: TargetType,
        identifiers: Iterable[str],
    ) -> FeatureOverride | None:
        """Get the most recently created override among several targets."""
        identifiers = sorted(set(identifiers))
        if not identifiers:
            return None

        query = (
            select(FeatureOverrideModel)
            .where(
                FeatureOverrideModel.feature_id == feature.id,
                FeatureOverrideModel.target_type == TargetType(target_type).value,
                FeatureOverrideModel.target_identifier.in_(identifiers),
            )
            .order_by(
                FeatureOverrideModel.created_at.desc(),
                FeatureOverrideModel.id.desc(),
            )
            .limit(1)
        )
        with self._guard("find_latest_override"):
            result = await self.db.execute(query)
            model = result.scalars().first()

        return self._model_to_override(model, feature.key) if model else None

    # ============================================================
    # FEATURE OPERATIONS
    # ============================================================

    async def list_features(self) -> list[Feature]:
        """List all features."""
        query = select(FeatureModel).order_by(FeatureModel.key)
        with self._guard("list_features"):
            result = await self.db.execute(query)
            models = result.scalars().all()

        return [self._model_to_feature(m) for m in models]

    async def create_feature(
        self,
        key: str,
        default_enabled: bool = False,
        description: str | None = None,
    ) -> Feature:
        """Create a new feature."""
        validate_feature(key, default_enabled, description)

        with self._guard("create_feature"):
            if await self._get_feature_model(key):
                raise ConflictError(f"Feature '{key}' already exists")

            model = FeatureModel(
                key=key,
                default_enabled=default_enabled,
                description=description,
            )
            try:
                async with self.db.begin_nested():
                    self.db.add(model)
            except IntegrityError as e:
                raise ConflictError(f"Feature '{key}' already exists") from e
            await self.db.refresh(model)

        return self._model_to_feature(model)

    async def update_feature(self, key: str, updates: dict[str, Any]) -> Feature | None:
        """Update a feature."""
        validate_feature_updates(updates)

        with self._guard("update_feature"):
            model = await self._get_feature_model(key)
            if not model:
                return None

            for field, value in updates.items():
                setattr(model, field, value)

            await self.db.flush()
            await self.db.refresh(model)

        return self._model_to_feature(model)

    async def delete_feature(self, key: str) -> bool:
        """Delete a feature and its overrides."""
        with self._guard("delete_feature"):
            model = await self._get_feature_model(key)
            if not model:
                return False

            await self.db.execute(
                delete(FeatureOverrideModel).where(FeatureOverrideModel.feature_id == model.id)
            )
            await self.db.delete(model)
            await self.db.flush()

        return True

    # ============================================================
    # OVERRIDE OPERATIONS
    # ============================================================

    async def list_overrides(self, feature: Feature) -> list[FeatureOverride]:
        """List overrides for a feature."""
        query = (
            select(FeatureOverrideModel)
            .where(FeatureOverrideModel.feature_id == feature.id)
            .order_by(FeatureOverrideModel.created_at, FeatureOverrideModel.id)
        )
        with self._guard("list_overrides"):
            result = await self.db.execute(query)
            models = result.scalars().all()

        return [self._model_to_override(m, feature.key) for m in models]

    async def create_override(
        self,
        feature_key: str,
        target_type: TargetType | str,
        target_identifier: str,
        enabled: bool,
    ) -> FeatureOverride:
        """Create an override for one target."""
        target_type = validate_override(target_type, target_identifier, enabled)
        conflict = (
            f"Override for {target_type.value} '{target_identifier}' "
            f"already exists on '{feature_key}'"
        )

        with self._guard("create_override"):
            feature = await self._get_feature_model(feature_key)
            if not feature:
                raise FeatureNotFoundError(feature_key)

            if await self._find_override_id(feature.id, target_type, target_identifier) is not None:
                raise ConflictError(conflict)

            model = FeatureOverrideModel(
                feature_id=feature.id,
                target_type=target_type.value,
                target_identifier=target_identifier,
                enabled=enabled,
            )
            try:
                # Lost a race with a concurrent insert of the same target:
                # only this insert is rolled back, not the caller's transaction
                async with self.db.begin_nested():
                    self.db.add(model)
            except IntegrityError as e:
                raise ConflictError(conflict) from e
            await self.db.refresh(model)

        return self._model_to_override(model, feature_key)

    async def delete_override(self, override_id: int) -> bool:
        """Remove an override."""
        query = delete(FeatureOverrideModel).where(FeatureOverrideModel.id == override_id)
        with self._guard("delete_override"):
            result = await self.db.execute(query)
            await self.db.flush()

        return result.rowcount > 0

    # ============================================================
    # HELPERS
    # ============================================================

    async def _get_feature_model(self, key: str) -> FeatureModel | None:
        result = await self.db.execute(select(FeatureModel).where(FeatureModel.key == key))
        return result.scalar_one_or_none()

    async def _find_override_id(
        self, feature_id: int, target_type: TargetType, target_identifier: str
    ) -> int | None:
        result = await self.db.execute(
            select(FeatureOverrideModel.id).where(
                FeatureOverrideModel.feature_id == feature_id,
                FeatureOverrideModel.target_type == target_type.value,
                FeatureOverrideModel.target_identifier == target_identifier,
            )
        )
        return result.scalar_one_or_none()

    def _model_to_feature(self, model: FeatureModel) -> Feature:
        """Convert SQLAlchemy model to dataclass."""
        return Feature(
            key=model.key,
            default_enabled=model.default_enabled,
            description=model.description,
            id=model.id,
            created_at=_as_utc(model.created_at),
            updated_at=_as_utc(model.updated_at),
        )

    def _model_to_override(self, model: FeatureOverrideModel, feature_key: str) -> FeatureOverride:
        return FeatureOverride(
            id=model.id,
            feature_id=model.feature_id,
            feature_key=feature_key,
            target_type=TargetType(model.target_type),
            target_identifier=model.target_identifier,
            enabled=model.enabled,
            created_at=_as_utc(model.created_at),
        )


def _as_utc(value: datetime | None) -> datetime | None:
    """SQLite drops the offset of timezone-aware columns; stored values are UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value

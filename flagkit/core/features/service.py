"""
Feature Flag Service - entry point for checks and management.

Wraps a FeatureStore with a FeatureEvaluator for checks and passes
administrative operations through to the store.
"""

from collections.abc import Iterable

import structlog

from .errors import FeatureNotFoundError
from .evaluator import FeatureEvaluator
from .interfaces import (
    EvaluationContext,
    EvaluationResult,
    Feature,
    FeatureOverride,
    FeatureStore,
    TargetType,
)

logger = structlog.get_logger()


class FeatureService:
    """Feature flag service."""

    def __init__(self, store: FeatureStore):
        self.store = store
        self.evaluator = FeatureEvaluator(store)

    # ============================================================
    # EVALUATION
    # ============================================================

    async def is_enabled(
        self,
        key: str,
        user_id: str | None = None,
        groups: Iterable[str] | None = None,
    ) -> bool:
        """
        Check if a feature is enabled.

        Args:
            key: Feature key
            user_id: Caller's user id (optional)
            groups: Groups the caller belongs to (optional)

        Returns:
            True if feature is enabled
        """
        return await self.evaluator.is_enabled(key, user_id, groups)

    async def evaluate(
        self,
        key: str,
        user_id: str | None = None,
        groups: Iterable[str] | None = None,
    ) -> EvaluationResult:
        """Evaluate a feature with detailed result."""
        return await self.evaluator.evaluate(key, EvaluationContext.build(user_id, groups))

    # ============================================================
    # MANAGEMENT METHODS (passthrough to store)
    # ============================================================

    async def get_feature(self, key: str) -> Feature | None:
        """Get a feature."""
        return await self.store.find_feature(key)

    async def require_feature(self, key: str) -> Feature:
        """Get a feature, raising FeatureNotFoundError if it is missing."""
        feature = await self.store.find_feature(key)
        if not feature:
            raise FeatureNotFoundError(key)
        return feature

    async def list_features(self) -> list[Feature]:
        """List all features."""
        return await self.store.list_features()

    async def create_feature(
        self,
        key: str,
        default_enabled: bool = False,
        description: str | None = None,
    ) -> Feature:
        """Create a new feature."""
        feature = await self.store.create_feature(key, default_enabled, description)
        logger.info("Feature created", feature_key=key, default_enabled=default_enabled)
        return feature

    async def update_feature(self, key: str, **updates) -> Feature | None:
        """Update a feature."""
        return await self.store.update_feature(key, updates)

    async def delete_feature(self, key: str) -> bool:
        """Delete a feature and its overrides."""
        deleted = await self.store.delete_feature(key)
        if deleted:
            logger.info("Feature deleted", feature_key=key)
        return deleted

    async def list_overrides(self, key: str) -> list[FeatureOverride]:
        """List overrides for a feature."""
        feature = await self.require_feature(key)
        return await self.store.list_overrides(feature)

    async def create_override(
        self,
        key: str,
        target_type: TargetType | str,
        target_identifier: str,
        enabled: bool,
    ) -> FeatureOverride:
        """Create an override for one user or group."""
        override = await self.store.create_override(key, target_type, target_identifier, enabled)
        logger.info(
            "Override created",
            feature_key=key,
            target_type=override.target_type.value,
            target_identifier=target_identifier,
            enabled=enabled,
        )
        return override

    async def delete_override(self, key: str, override_id: int) -> bool:
        """
        Remove one of a feature's overrides.

        Returns False when the id does not belong to this feature.
        """
        overrides = await self.list_overrides(key)
        if not any(o.id == override_id for o in overrides):
            return False
        return await self.store.delete_override(override_id)

"""
Feature Evaluator - override precedence.

Resolution order (first match wins):
1. Feature missing -> disabled
2. User override for the caller's user id
3. Most recently created Group override among the caller's groups
4. Feature default
"""

from collections.abc import Iterable

import structlog

from .interfaces import (
    EvaluationContext,
    EvaluationResult,
    FeatureStore,
    TargetType,
)

logger = structlog.get_logger()


class FeatureEvaluator:
    """
    Read-only decision function over a FeatureStore.

    Holds no state besides the store handle, so one instance can serve
    any number of concurrent calls. Store errors propagate unchanged;
    only a missing feature collapses to False.
    """

    def __init__(self, store: FeatureStore):
        self.store = store

    async def evaluate(self, feature_key: str, context: EvaluationContext) -> EvaluationResult:
        """Evaluate a feature for a context, with the reason for the decision."""
        user_id = context.user_id or None

        feature = await self.store.find_feature(feature_key)
        if not feature:
            logger.debug("Feature not found", feature_key=feature_key)
            return EvaluationResult.not_found(feature_key, user_id)

        if context.user_id:
            override = await self.store.find_override(feature, TargetType.USER, context.user_id)
            if override:
                return EvaluationResult.from_override(override, user_id)

        if context.groups:
            override = await self.store.find_latest_override(feature, TargetType.GROUP, context.groups)
            if override:
                return EvaluationResult.from_override(override, user_id)

        return EvaluationResult(
            enabled=feature.default_enabled,
            reason="Feature default",
            feature_key=feature.key,
            user_id=user_id,
        )

    async def is_enabled(
        self,
        feature_key: str,
        user_id: str | None = None,
        groups: Iterable[str] | None = None,
    ) -> bool:
        """Check if a feature is enabled for a user and their groups."""
        context = EvaluationContext.build(user_id, groups)
        result = await self.evaluate(feature_key, context)
        return result.enabled

"""
Feature Flag System.

Decides whether a feature is on for a user and their groups:

    User override  >  Group override (most recent wins)  >  Feature default

Unknown features are off.

Checking a flag:
    from flagkit.core.features import FeatureEvaluator, MemoryFeatureStore

    evaluator = FeatureEvaluator(store)
    if await evaluator.is_enabled("dark_mode", user_id="123", groups=["beta_testers"]):
        ...

Inside a route:
    from flagkit.core.features import Flags

    @router.get("/dashboard")
    async def dashboard(flags: Flags):
        if await flags.is_enabled("new_dashboard", user_id, groups):
            return new_data()
        return old_data()

Management:
    await flags.create_feature("dark_mode", default_enabled=False)
    await flags.create_override("dark_mode", TargetType.GROUP, "beta_testers", True)
"""

from .interfaces import (
    Feature,
    FeatureOverride,
    TargetType,
    EvaluationContext,
    EvaluationResult,
    FeatureStore,
)

from .errors import (
    FeatureFlagError,
    ValidationError,
    ConflictError,
    FeatureNotFoundError,
    StoreUnavailableError,
)

from .evaluator import FeatureEvaluator
from .service import FeatureService

from .dependencies import (
    Flags,
    get_feature_service,
    get_feature_store,
)

from .backends import (
    DatabaseFeatureStore,
    MemoryFeatureStore,
)

__all__ = [
    # Interfaces
    "Feature",
    "FeatureOverride",
    "TargetType",
    "EvaluationContext",
    "EvaluationResult",
    "FeatureStore",
    # Errors
    "FeatureFlagError",
    "ValidationError",
    "ConflictError",
    "FeatureNotFoundError",
    "StoreUnavailableError",
    # Evaluation
    "FeatureEvaluator",
    "FeatureService",
    # Dependencies
    "Flags",
    "get_feature_service",
    "get_feature_store",
    # Stores
    "DatabaseFeatureStore",
    "MemoryFeatureStore",
]

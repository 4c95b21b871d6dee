"""
Feature Flag Interfaces - Core abstractions.

These define the records the store persists and the contract every
store implementation must honor.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class TargetType(str, Enum):
    """Scope of an override. Closed set."""

    USER = "User"
    GROUP = "Group"


@dataclass(frozen=True)
class Feature:
    """
    Feature flag definition.

    Attributes:
        key: Unique, immutable identifier (e.g., "dark_mode")
        default_enabled: Result when no override applies
        description: What this flag controls (informational only)
    """
    key: str
    default_enabled: bool = False
    description: str | None = None
    id: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class FeatureOverride:
    """
    Targeted exception to a feature default for one user or one group.

    Overrides are never updated in place; `created_at` is the tie-break
    ordering key among group overrides.
    """
    id: int
    feature_id: int
    feature_key: str
    target_type: TargetType
    target_identifier: str
    enabled: bool
    created_at: datetime


@dataclass(frozen=True)
class EvaluationContext:
    """Who is asking: a user id plus the groups they belong to."""
    user_id: str = ""
    groups: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def build(cls, user_id: str | None = None, groups: Iterable[str] | None = None) -> "EvaluationContext":
        return cls(
            user_id=user_id or "",
            groups=frozenset(g for g in (groups or ()) if g),
        )


@dataclass
class EvaluationResult:
    """
    Result of feature flag evaluation.

    Includes the decision and reason for debugging/logging.
    """
    enabled: bool
    reason: str
    feature_key: str
    user_id: str | None = None
    override: FeatureOverride | None = None

    @classmethod
    def not_found(cls, feature_key: str, user_id: str | None = None) -> "EvaluationResult":
        return cls(enabled=False, reason="Feature not found", feature_key=feature_key, user_id=user_id)

    @classmethod
    def from_override(cls, override: FeatureOverride, user_id: str | None = None) -> "EvaluationResult":
        if override.target_type is TargetType.USER:
            reason = "User override"
        else:
            reason = f"Group override: {override.target_identifier}"
        return cls(
            enabled=override.enabled,
            reason=reason,
            feature_key=override.feature_key,
            user_id=user_id,
            override=override,
        )


class FeatureStore(ABC):
    """
    Abstract store for features and their overrides.

    Implementations:
    - MemoryFeatureStore: In-memory (dev/testing)
    - DatabaseFeatureStore: SQLAlchemy (PostgreSQL/SQLite)

    Writes validate their input before touching storage and enforce
    uniqueness of feature keys and of (feature, target_type,
    target_identifier). Transport failures raise StoreUnavailableError,
    never a "not found" value.
    """

    # ------------------------------------------------------------
    # Lookups used by the evaluator
    # ------------------------------------------------------------

    @abstractmethod
    async def find_feature(self, key: str) -> Feature | None:
        """Get a feature by its unique key."""
        pass

    @abstractmethod
    async def find_override(
        self,
        feature: Feature,
        target_type: TargetType,
        target_identifier: str,
    ) -> FeatureOverride | None:
        """Exact match on (feature, target_type, target_identifier)."""
        pass

    @abstractmethod
    async def find_latest_override(
        self,
        feature: Feature,
        target_type: TargetType,
        identifiers: Iterable[str],
    ) -> FeatureOverride | None:
        """
        Most recently created override whose identifier is in `identifiers`.

        Equal `created_at` values are broken by the highest `id`.
        Returns None for an empty identifier set.
        """
        pass

    # ------------------------------------------------------------
    # Administrative operations
    # ------------------------------------------------------------

    @abstractmethod
    async def list_features(self) -> list[Feature]:
        """List all features ordered by key."""
        pass

    @abstractmethod
    async def create_feature(
        self,
        key: str,
        default_enabled: bool = False,
        description: str | None = None,
    ) -> Feature:
        """Create a feature. Raises ConflictError on a duplicate key."""
        pass

    @abstractmethod
    async def update_feature(self, key: str, updates: dict[str, Any]) -> Feature | None:
        """Update `default_enabled` and/or `description`."""
        pass

    @abstractmethod
    async def delete_feature(self, key: str) -> bool:
        """Delete a feature together with all of its overrides."""
        pass

    @abstractmethod
    async def list_overrides(self, feature: Feature) -> list[FeatureOverride]:
        """List a feature's overrides, oldest first."""
        pass

    @abstractmethod
    async def create_override(
        self,
        feature_key: str,
        target_type: TargetType | str,
        target_identifier: str,
        enabled: bool,
    ) -> FeatureOverride:
        """Create an override. Raises ConflictError if the target already has one."""
        pass

    @abstractmethod
    async def delete_override(self, override_id: int) -> bool:
        """Remove an override. Missing ids are not an error."""
        pass

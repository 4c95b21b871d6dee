"""
In-memory store for feature flags.

For development and testing. Data is lost on restart.
"""

import itertools
import threading
from collections.abc import Callable, Iterable
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any

from ..errors import ConflictError, FeatureNotFoundError
from ..interfaces import Feature, FeatureOverride, FeatureStore, TargetType
from ..validation import validate_feature, validate_feature_updates, validate_override


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class MemoryFeatureStore(FeatureStore):
    """
    In-memory feature flag storage.

    Useful for:
    - Development without database
    - Unit testing
    - Quick prototyping

    Records are immutable dataclasses; updates swap in a new instance, so
    objects handed to callers never change underneath them.
    """

    def __init__(self, clock: Callable[[], datetime] = utc_now):
        self._clock = clock
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._features: dict[str, Feature] = {}
        # (feature_id, target_type, target_identifier) -> override
        self._overrides: dict[tuple[int, TargetType, str], FeatureOverride] = {}

    # ============================================================
    # LOOKUPS
    # ============================================================

    async def find_feature(self, key: str) -> Feature | None:
        """Get a feature by key."""
        return self._features.get(key)

    async def find_override(
        self,
        feature: Feature,
        target_type: TargetType,
        target_identifier: str,
    ) -> FeatureOverride | None:
        """Get the override for a single target."""
        return self._overrides.get((feature.id, TargetType(target_type), target_identifier))

    async def find_latest_override(
        self,
        feature: Feature,
        target_type: TargetType,
        identifiers: Iterable[str],
    ) -> FeatureOverride | None:
        """Get the most recently created override among several targets."""
        target_type = TargetType(target_type)
        candidates = [
            override
            for identifier in set(identifiers)
            if (override := self._overrides.get((feature.id, target_type, identifier)))
        ]
        if not candidates:
            return None
        return max(candidates, key=lambda o: (o.created_at, o.id))

    # ============================================================
    # FEATURE OPERATIONS
    # ============================================================

    async def list_features(self) -> list[Feature]:
        """List all features."""
        return sorted(self._features.values(), key=lambda f: f.key)

    async def create_feature(
        self,
        key: str,
        default_enabled: bool = False,
        description: str | None = None,
    ) -> Feature:
        """Create a new feature."""
        validate_feature(key, default_enabled, description)

        with self._lock:
            if key in self._features:
                raise ConflictError(f"Feature '{key}' already exists")

            now = self._clock()
            feature = Feature(
                key=key,
                default_enabled=default_enabled,
                description=description,
                id=next(self._ids),
                created_at=now,
                updated_at=now,
            )
            self._features[key] = feature
            return feature

    async def update_feature(self, key: str, updates: dict[str, Any]) -> Feature | None:
        """Update a feature."""
        validate_feature_updates(updates)

        with self._lock:
            feature = self._features.get(key)
            if not feature:
                return None

            feature = replace(feature, **updates, updated_at=self._clock())
            self._features[key] = feature
            return feature

    async def delete_feature(self, key: str) -> bool:
        """Delete a feature and its overrides."""
        with self._lock:
            feature = self._features.pop(key, None)
            if not feature:
                return False

            for slot in [s for s in self._overrides if s[0] == feature.id]:
                del self._overrides[slot]
            return True

    # ============================================================
    # OVERRIDE OPERATIONS
    # ============================================================

    async def list_overrides(self, feature: Feature) -> list[FeatureOverride]:
        """List overrides for a feature."""
        overrides = [o for o in self._overrides.values() if o.feature_id == feature.id]
        return sorted(overrides, key=lambda o: (o.created_at, o.id))

    async def create_override(
        self,
        feature_key: str,
        target_type: TargetType | str,
        target_identifier: str,
        enabled: bool,
    ) -> FeatureOverride:
        """Create an override for one target."""
        target_type = validate_override(target_type, target_identifier, enabled)

        with self._lock:
            feature = self._features.get(feature_key)
            if not feature:
                raise FeatureNotFoundError(feature_key)

            slot = (feature.id, target_type, target_identifier)
            if slot in self._overrides:
                raise ConflictError(
                    f"Override for {target_type.value} '{target_identifier}' "
                    f"already exists on '{feature_key}'"
                )

            override = FeatureOverride(
                id=next(self._ids),
                feature_id=feature.id,
                feature_key=feature.key,
                target_type=target_type,
                target_identifier=target_identifier,
                enabled=enabled,
                created_at=self._clock(),
            )
            self._overrides[slot] = override
            return override

    async def delete_override(self, override_id: int) -> bool:
        """Remove an override."""
        with self._lock:
            for slot, override in self._overrides.items():
                if override.id == override_id:
                    del self._overrides[slot]
                    return True
            return False

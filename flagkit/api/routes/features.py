"""
Feature administration routes.

These only create, update and delete records; evaluation lives in
the evaluate route.
"""

from fastapi import APIRouter, HTTPException, Response, status

from flagkit.core.features import Flags
from flagkit.schemas.feature import (
    FeatureCreate,
    FeatureDetailResponse,
    FeatureResponse,
    FeatureUpdate,
    OverrideCreate,
    OverrideResponse,
)

router = APIRouter()


def _not_found(key: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Feature '{key}' not found",
    )


# ============================================================
# FEATURES
# ============================================================

@router.get("", response_model=list[FeatureResponse])
async def list_features(flags: Flags):
    """List all features ordered by key."""
    return await flags.list_features()


@router.post("", response_model=FeatureResponse, status_code=status.HTTP_201_CREATED)
async def create_feature(data: FeatureCreate, flags: Flags):
    """Create a new feature."""
    return await flags.create_feature(
        key=data.key,
        default_enabled=data.default_enabled,
        description=data.description,
    )


@router.get("/{key}", response_model=FeatureDetailResponse)
async def get_feature(key: str, flags: Flags):
    """Get a feature together with its overrides."""
    feature = await flags.get_feature(key)
    if not feature:
        raise _not_found(key)

    overrides = await flags.list_overrides(key)
    return FeatureDetailResponse(
        **FeatureResponse.model_validate(feature).model_dump(),
        overrides=[OverrideResponse.model_validate(o) for o in overrides],
    )


@router.patch("/{key}", response_model=FeatureResponse)
async def update_feature(key: str, data: FeatureUpdate, flags: Flags):
    """Update a feature's default and/or description."""
    updates = data.model_dump(exclude_unset=True)
    if not updates:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No fields to update",
        )

    feature = await flags.update_feature(key, **updates)
    if not feature:
        raise _not_found(key)
    return feature


@router.delete("/{key}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_feature(key: str, flags: Flags) -> Response:
    """Delete a feature and all of its overrides."""
    if not await flags.delete_feature(key):
        raise _not_found(key)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ============================================================
# OVERRIDES
# ============================================================

@router.post(
    "/{key}/overrides",
    response_model=OverrideResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_override(key: str, data: OverrideCreate, flags: Flags):
    """Add a user or group override to a feature."""
    return await flags.create_override(
        key,
        target_type=data.target_type,
        target_identifier=data.target_identifier,
        enabled=data.enabled,
    )


@router.delete("/{key}/overrides/{override_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_override(key: str, override_id: int, flags: Flags) -> Response:
    """Remove one of a feature's overrides."""
    if not await flags.delete_override(key, override_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Override {override_id} not found on '{key}'",
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)

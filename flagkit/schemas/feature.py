"""
Feature flag schemas.

Request bodies only check JSON types; content rules (blank keys,
unknown target types) are enforced by the store's validation so the
same messages come back whichever client performs the write.
"""

from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field

from flagkit.core.features.interfaces import TargetType


class FeatureCreate(BaseModel):
    """Feature creation schema."""
    key: str
    default_enabled: bool = False
    description: str | None = None


class FeatureUpdate(BaseModel):
    """Feature update schema."""
    default_enabled: bool | None = None
    description: str | None = None


class OverrideCreate(BaseModel):
    """Override creation schema."""
    target_type: str
    target_identifier: str
    enabled: bool


class OverrideResponse(BaseModel):
    """Override response schema."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    target_type: TargetType
    target_identifier: str
    enabled: bool
    created_at: datetime


class FeatureResponse(BaseModel):
    """Feature response schema."""
    model_config = ConfigDict(from_attributes=True)

    key: str
    default_enabled: bool
    description: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class FeatureDetailResponse(FeatureResponse):
    """Feature with its overrides."""
    overrides: list[OverrideResponse] = Field(default_factory=list)


class EvaluateRequest(BaseModel):
    """Evaluation request."""
    feature_key: str
    user_id: str = ""
    groups: list[str] = Field(default_factory=list)


class EvaluateResponse(BaseModel):
    """Evaluation response."""
    feature_key: str
    enabled: bool
    reason: str

"""
Feature Flag Models - SQLAlchemy models for feature flags.

Tables:
- features: Flag definitions with their default
- feature_overrides: Per-user and per-group exceptions
"""

from datetime import datetime, timezone
from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from flagkit.models.base import Base, TimestampMixin

from .validation import IDENTIFIER_MAX_LENGTH, KEY_MAX_LENGTH


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class FeatureModel(Base, TimestampMixin):
    """
    Feature flag definition.

    Deleting a row removes its overrides (ON DELETE CASCADE); the store
    also deletes them explicitly inside the same transaction.
    """

    __tablename__ = "features"
    # Ids are never reused, so the highest id is always the newest row
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    key: Mapped[str] = mapped_column(
        String(KEY_MAX_LENGTH),
        unique=True,
        nullable=False,
        index=True,
    )
    default_enabled: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        status = "ON" if self.default_enabled else "OFF"
        return f"<Feature {self.key} [{status}]>"


class FeatureOverrideModel(Base):
    """
    Override of a feature's default for one user or one group.

    At most one row per (feature_id, target_type, target_identifier).
    Rows are inserted and deleted, never updated, so created_at is a
    stable ordering key.
    """

    __tablename__ = "feature_overrides"
    __table_args__ = (
        UniqueConstraint(
            "feature_id",
            "target_type",
            "target_identifier",
            name="uq_feature_overrides_target",
        ),
        CheckConstraint(
            "target_type IN ('User', 'Group')",
            name="ck_feature_overrides_target_type",
        ),
        Index("ix_feature_overrides_feature_id", "feature_id"),
        {"sqlite_autoincrement": True},
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    feature_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("features.id", ondelete="CASCADE"),
        nullable=False,
    )
    target_type: Mapped[str] = mapped_column(String(20), nullable=False)
    target_identifier: Mapped[str] = mapped_column(String(IDENTIFIER_MAX_LENGTH), nullable=False)
    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=_utc_now,
        nullable=False,
    )

    def __repr__(self) -> str:
        status = "ON" if self.enabled else "OFF"
        return f"<FeatureOverride {self.target_type}:{self.target_identifier}={status}>"

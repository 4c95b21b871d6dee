"""
Pre-write validation for features and overrides.

Every store calls these before attempting a write. Each check collects
all problems and raises a single ValidationError with one message per
problem.
"""

from typing import Any

from .errors import ValidationError
from .interfaces import TargetType

MUTABLE_FEATURE_FIELDS = frozenset({"default_enabled", "description"})

# Column widths of features.key and feature_overrides.target_identifier
KEY_MAX_LENGTH = 100
IDENTIFIER_MAX_LENGTH = 255


def _blank(value: Any) -> bool:
    return not isinstance(value, str) or not value.strip()


def validate_feature(key: Any, default_enabled: Any = False, description: Any = None) -> None:
    """Validate a new feature."""
    errors = []
    if _blank(key):
        errors.append("Key can't be blank")
    elif len(key) > KEY_MAX_LENGTH:
        errors.append(f"Key is too long (maximum is {KEY_MAX_LENGTH} characters)")
    if not isinstance(default_enabled, bool):
        errors.append("Default enabled is not included in the list")
    if description is not None and not isinstance(description, str):
        errors.append("Description must be text")
    if errors:
        raise ValidationError(errors)


def validate_feature_updates(updates: dict[str, Any]) -> None:
    """Validate an update to an existing feature. The key is immutable."""
    errors = [
        f"{name.replace('_', ' ').capitalize()} cannot be changed"
        for name in sorted(updates)
        if name not in MUTABLE_FEATURE_FIELDS
    ]
    if "default_enabled" in updates and not isinstance(updates["default_enabled"], bool):
        errors.append("Default enabled is not included in the list")
    description = updates.get("description")
    if description is not None and not isinstance(description, str):
        errors.append("Description must be text")
    if errors:
        raise ValidationError(errors)


def validate_override(target_type: Any, target_identifier: Any, enabled: Any) -> TargetType:
    """
    Validate a new override and return its normalized target type.

    Accepts a TargetType or its string value ("User" / "Group").
    """
    errors = []
    normalized = None

    if target_type is None or target_type == "":
        errors.append("Target type can't be blank")
    else:
        try:
            normalized = TargetType(target_type)
        except ValueError:
            errors.append("Target type is not included in the list")

    if _blank(target_identifier):
        errors.append("Target identifier can't be blank")
    elif len(target_identifier) > IDENTIFIER_MAX_LENGTH:
        errors.append(
            f"Target identifier is too long (maximum is {IDENTIFIER_MAX_LENGTH} characters)"
        )
    if not isinstance(enabled, bool):
        errors.append("Enabled is not included in the list")

    if errors:
        raise ValidationError(errors)
    return normalized

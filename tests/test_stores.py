"""
Store contract tests, run against the memory and database stores.
"""

from datetime import timedelta

import pytest

from flagkit.core.features import (
    ConflictError,
    FeatureNotFoundError,
    TargetType,
    ValidationError,
)
from flagkit.core.features.validation import IDENTIFIER_MAX_LENGTH, KEY_MAX_LENGTH


# ============================================================
# FEATURES
# ============================================================

@pytest.mark.asyncio
async def test_create_and_find_feature(store):
    created = await store.create_feature("dark_mode", default_enabled=True, description="Dark UI")

    found = await store.find_feature("dark_mode")

    assert found is not None
    assert found.key == "dark_mode"
    assert found.default_enabled is True
    assert found.description == "Dark UI"
    assert found.id == created.id
    assert found.created_at is not None


@pytest.mark.asyncio
async def test_find_feature_missing(store):
    assert await store.find_feature("nope") is None


@pytest.mark.asyncio
async def test_duplicate_feature_key_conflicts(store):
    await store.create_feature("dark_mode", default_enabled=True)

    with pytest.raises(ConflictError):
        await store.create_feature("dark_mode", default_enabled=False)

    assert (await store.find_feature("dark_mode")).default_enabled is True


@pytest.mark.asyncio
async def test_blank_feature_key_rejected(store):
    with pytest.raises(ValidationError) as exc_info:
        await store.create_feature("  ")

    assert exc_info.value.messages == ["Key can't be blank"]
    assert await store.list_features() == []


@pytest.mark.asyncio
async def test_over_long_feature_key_rejected(store):
    await store.create_feature("k" * KEY_MAX_LENGTH)

    with pytest.raises(ValidationError) as exc_info:
        await store.create_feature("k" * (KEY_MAX_LENGTH + 1))

    assert exc_info.value.messages == ["Key is too long (maximum is 100 characters)"]
    assert len(await store.list_features()) == 1


@pytest.mark.asyncio
async def test_list_features_ordered_by_key(store):
    for key in ["zeta", "alpha", "mid"]:
        await store.create_feature(key)

    features = await store.list_features()

    assert [f.key for f in features] == ["alpha", "mid", "zeta"]


@pytest.mark.asyncio
async def test_update_feature(store):
    await store.create_feature("dark_mode", default_enabled=False)

    updated = await store.update_feature(
        "dark_mode",
        {"default_enabled": True, "description": "Now on"},
    )

    assert updated.default_enabled is True
    assert updated.description == "Now on"
    assert (await store.find_feature("dark_mode")).default_enabled is True


@pytest.mark.asyncio
async def test_update_missing_feature_returns_none(store):
    assert await store.update_feature("nope", {"default_enabled": True}) is None


@pytest.mark.asyncio
async def test_feature_key_is_immutable(store):
    await store.create_feature("dark_mode")

    with pytest.raises(ValidationError) as exc_info:
        await store.update_feature("dark_mode", {"key": "light_mode"})

    assert exc_info.value.messages == ["Key cannot be changed"]
    assert await store.find_feature("light_mode") is None


@pytest.mark.asyncio
async def test_update_keeps_override_timestamps(store):
    await store.create_feature("dark_mode")
    override = await store.create_override("dark_mode", TargetType.GROUP, "beta", True)

    feature = await store.update_feature("dark_mode", {"default_enabled": True})

    [after] = await store.list_overrides(feature)
    assert after.created_at == override.created_at


@pytest.mark.asyncio
async def test_delete_feature_cascades_to_overrides(store):
    feature = await store.create_feature("dark_mode")
    user = await store.create_override("dark_mode", TargetType.USER, "123", True)
    await store.create_override("dark_mode", TargetType.GROUP, "beta", True)
    other = await store.create_feature("new_nav")
    await store.create_override("new_nav", TargetType.USER, "123", False)

    assert await store.delete_feature("dark_mode") is True

    assert await store.find_feature("dark_mode") is None
    assert await store.list_overrides(feature) == []
    assert await store.delete_override(user.id) is False
    assert len(await store.list_overrides(other)) == 1


@pytest.mark.asyncio
async def test_delete_missing_feature(store):
    assert await store.delete_feature("nope") is False


@pytest.mark.asyncio
async def test_recreated_feature_starts_without_overrides(store):
    await store.create_feature("dark_mode")
    await store.create_override("dark_mode", TargetType.USER, "123", True)
    await store.delete_feature("dark_mode")

    feature = await store.create_feature("dark_mode")

    assert await store.find_override(feature, TargetType.USER, "123") is None
    await store.create_override("dark_mode", TargetType.USER, "123", False)


# ============================================================
# OVERRIDES
# ============================================================

@pytest.mark.asyncio
async def test_create_and_find_override(store):
    feature = await store.create_feature("dark_mode")

    created = await store.create_override("dark_mode", "User", "123", True)
    found = await store.find_override(feature, TargetType.USER, "123")

    assert found == created
    assert found.target_type is TargetType.USER
    assert found.feature_key == "dark_mode"
    assert found.enabled is True


@pytest.mark.asyncio
async def test_find_override_is_exact(store):
    feature = await store.create_feature("dark_mode")
    await store.create_override("dark_mode", TargetType.USER, "123", True)

    assert await store.find_override(feature, TargetType.GROUP, "123") is None
    assert await store.find_override(feature, TargetType.USER, "1234") is None


@pytest.mark.asyncio
async def test_duplicate_override_conflicts_and_keeps_original(store):
    feature = await store.create_feature("dark_mode")
    original = await store.create_override("dark_mode", TargetType.GROUP, "beta", True)

    with pytest.raises(ConflictError):
        await store.create_override("dark_mode", TargetType.GROUP, "beta", False)

    assert await store.find_override(feature, TargetType.GROUP, "beta") == original
    assert len(await store.list_overrides(feature)) == 1


@pytest.mark.asyncio
async def test_same_identifier_allowed_across_types_and_features(store):
    await store.create_feature("dark_mode")
    await store.create_feature("new_nav")

    await store.create_override("dark_mode", TargetType.USER, "x", True)
    await store.create_override("dark_mode", TargetType.GROUP, "x", True)
    await store.create_override("new_nav", TargetType.USER, "x", True)


@pytest.mark.asyncio
async def test_override_requires_existing_feature(store):
    with pytest.raises(FeatureNotFoundError):
        await store.create_override("nope", TargetType.USER, "123", True)


@pytest.mark.asyncio
async def test_invalid_override_rejected(store):
    feature = await store.create_feature("dark_mode")

    with pytest.raises(ValidationError) as exc_info:
        await store.create_override("dark_mode", "Region", "", True)

    assert exc_info.value.messages == [
        "Target type is not included in the list",
        "Target identifier can't be blank",
    ]
    assert await store.list_overrides(feature) == []


@pytest.mark.asyncio
async def test_find_latest_override(store):
    feature = await store.create_feature("dark_mode")
    await store.create_override("dark_mode", TargetType.GROUP, "beta", True)
    latest = await store.create_override("dark_mode", TargetType.GROUP, "admins", False)
    await store.create_override("dark_mode", TargetType.GROUP, "staff", True)

    found = await store.find_latest_override(feature, TargetType.GROUP, {"beta", "admins"})

    assert found == latest


@pytest.mark.asyncio
async def test_find_latest_override_no_match(store):
    feature = await store.create_feature("dark_mode")
    await store.create_override("dark_mode", TargetType.GROUP, "beta", True)

    assert await store.find_latest_override(feature, TargetType.GROUP, set()) is None
    assert await store.find_latest_override(feature, TargetType.GROUP, ["other"]) is None
    assert await store.find_latest_override(feature, TargetType.USER, ["beta"]) is None


@pytest.mark.asyncio
async def test_list_overrides_oldest_first(store):
    feature = await store.create_feature("dark_mode")
    first = await store.create_override("dark_mode", TargetType.GROUP, "b", True)
    second = await store.create_override("dark_mode", TargetType.USER, "a", False)

    assert await store.list_overrides(feature) == [first, second]


@pytest.mark.asyncio
async def test_delete_override_is_idempotent(store):
    feature = await store.create_feature("dark_mode")
    override = await store.create_override("dark_mode", TargetType.USER, "123", True)

    assert await store.delete_override(override.id) is True
    assert await store.delete_override(override.id) is False
    assert await store.delete_override(987654) is False
    assert await store.find_override(feature, TargetType.USER, "123") is None


@pytest.mark.asyncio
async def test_verdict_change_is_delete_and_recreate(store):
    feature = await store.create_feature("dark_mode")
    old = await store.create_override("dark_mode", TargetType.USER, "123", True)

    await store.delete_override(old.id)
    new = await store.create_override("dark_mode", TargetType.USER, "123", False)

    assert new.id > old.id
    assert (await store.find_override(feature, TargetType.USER, "123")).enabled is False


@pytest.mark.asyncio
async def test_over_long_target_identifier_rejected(store):
    feature = await store.create_feature("dark_mode")
    await store.create_override("dark_mode", TargetType.USER, "u" * IDENTIFIER_MAX_LENGTH, True)

    with pytest.raises(ValidationError) as exc_info:
        await store.create_override("dark_mode", TargetType.GROUP, "g" * (IDENTIFIER_MAX_LENGTH + 1), True)

    assert exc_info.value.messages == [
        "Target identifier is too long (maximum is 255 characters)"
    ]
    assert len(await store.list_overrides(feature)) == 1


@pytest.mark.asyncio
async def test_ids_are_not_reused_after_delete(store):
    first = await store.create_feature("dark_mode")
    await store.delete_feature("dark_mode")
    second = await store.create_feature("dark_mode")

    old = await store.create_override("dark_mode", TargetType.GROUP, "beta", True)
    await store.delete_override(old.id)
    new = await store.create_override("dark_mode", TargetType.GROUP, "staff", True)

    assert second.id > first.id
    assert new.id > old.id
    assert await store.delete_override(old.id) is False
    assert await store.find_override(second, TargetType.GROUP, "staff") == new


@pytest.mark.asyncio
async def test_timestamps_are_timezone_aware(store):
    feature = await store.create_feature("dark_mode")
    created = await store.create_override("dark_mode", TargetType.GROUP, "beta", True)
    await store.create_override("dark_mode", TargetType.GROUP, "staff", True)

    found = await store.find_feature("dark_mode")
    overrides = await store.list_overrides(feature)

    assert found.created_at.utcoffset() == timedelta(0)
    assert found.updated_at.utcoffset() == timedelta(0)
    assert created.created_at.utcoffset() == timedelta(0)
    assert overrides[0] == created
    assert all(o.created_at.utcoffset() == timedelta(0) for o in overrides)
    assert created.created_at <= overrides[1].created_at

"""System settings service tests."""

import pytest

from src.modules.billing.exceptions import InvalidAmountException
from src.modules.billing.settings import SettingsSnapshot, SystemSettingsService


@pytest.mark.asyncio
async def test_snapshot_defaults_without_row(db_session):
    snapshot = await SystemSettingsService(db_session).get_snapshot()

    assert snapshot == SettingsSnapshot()
    assert snapshot.default_multiplier == 1.5
    assert snapshot.new_account_bonus == 10_000


@pytest.mark.asyncio
async def test_initialize_defaults_is_idempotent(db_session):
    service = SystemSettingsService(db_session)

    first = await service.initialize_defaults()
    second = await service.initialize_defaults()

    assert first.id == second.id


@pytest.mark.asyncio
async def test_partial_update_merges_image_costs(db_session):
    service = SystemSettingsService(db_session)

    snapshot = await service.update_settings(
        {"default_multiplier": 2.0, "image_costs": {"openai/gpt-image-1": 8000}}
    )

    assert snapshot.default_multiplier == 2.0
    assert snapshot.image_costs["openai/gpt-image-1"] == 8000
    assert snapshot.image_costs["openai/dall-e-3"] == 6000
    assert snapshot.low_balance_threshold == 1000

    reloaded = await service.get_snapshot()
    assert reloaded.default_multiplier == 2.0


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "updates",
    [
        {"default_multiplier": 0},
        {"tokens_per_usd": 0},
        {"new_account_bonus": -1},
        {"image_costs": {"openai/dall-e-3": 0}},
    ],
)
async def test_invalid_updates_are_rejected(db_session, updates):
    with pytest.raises(InvalidAmountException):
        await SystemSettingsService(db_session).update_settings(updates)


def test_snapshot_is_read_only():
    snapshot = SettingsSnapshot()

    with pytest.raises(TypeError):
        snapshot.image_costs["openai/dall-e-3"] = 1

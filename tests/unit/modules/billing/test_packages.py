"""Pricing package catalogue tests."""

from uuid import uuid4

import pytest

from src.modules.billing.constants import DEFAULT_PACKAGES
from src.modules.billing.exceptions import (
    InvalidAmountException,
    PackageNotFoundException,
)
from src.modules.billing.packages import PricingPackageService
from tests.factories import PricingPackageFactory


@pytest.mark.asyncio
async def test_lists_only_active_packages_in_order(db_session):
    await PricingPackageFactory.create_async(db_session, name="Pro", sort_order=2)
    await PricingPackageFactory.create_async(db_session, name="Starter", sort_order=1)
    await PricingPackageFactory.create_async(
        db_session, name="Legacy", sort_order=0, is_active=False
    )
    await db_session.commit()

    packages = await PricingPackageService(db_session).list_active_packages()

    assert [p.name for p in packages] == ["Starter", "Pro"]


@pytest.mark.asyncio
async def test_seed_default_packages_once(db_session):
    service = PricingPackageService(db_session)

    created = await service.seed_default_packages()
    again = await service.seed_default_packages()

    assert created == len(DEFAULT_PACKAGES)
    assert again == 0
    packages = await service.list_active_packages()
    assert [p.name for p in packages] == [seed.name for seed in DEFAULT_PACKAGES]


@pytest.mark.asyncio
async def test_update_package_invalidates_cache(db_session, test_package, monkeypatch):
    invalidated = []

    async def _record_invalidation(tag):
        invalidated.append(tag)
        return 1

    monkeypatch.setattr(
        "src.cache.decorator._invalidate_by_tag", _record_invalidation
    )

    package = await PricingPackageService(db_session).update_package(
        test_package.id, is_active=False
    )

    assert package.is_active is False
    assert invalidated == ["pricing_packages"]


@pytest.mark.asyncio
async def test_update_package_rejects_unknown_fields(db_session, test_package):
    with pytest.raises(ValueError):
        await PricingPackageService(db_session).update_package(
            test_package.id, balance=1
        )


@pytest.mark.asyncio
async def test_create_package_validates_amounts(db_session):
    with pytest.raises(InvalidAmountException):
        await PricingPackageService(db_session).create_package(
            name="Broken", token_amount=0, price_minor_units=100
        )


@pytest.mark.asyncio
async def test_missing_package_raises(db_session):
    with pytest.raises(PackageNotFoundException):
        await PricingPackageService(db_session).get_package(uuid4())

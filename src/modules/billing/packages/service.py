"""Purchasable token packages."""

from uuid import UUID

from sqlalchemy import func, select

from src.api.pricing.schemas import PricingPackageModel
from src.cache import cached, invalidate_tag
from src.core.base import BaseService
from src.database.models import PricingPackage
from src.modules.billing.constants import DEFAULT_PACKAGES
from src.modules.billing.exceptions import (
    InvalidAmountException,
    PackageNotFoundException,
)

PACKAGES_CACHE_TAG = "pricing_packages"
_MUTABLE_FIELDS = frozenset(
    {
        "name",
        "token_amount",
        "price_minor_units",
        "is_popular",
        "sort_order",
        "payment_price_ref",
        "is_active",
    }
)


class PricingPackageService(BaseService):
    @cached(ttl=300, tags=(PACKAGES_CACHE_TAG,))
    async def list_active_packages(self) -> list[PricingPackageModel]:
        """Active packages in display order."""
        stmt = (
            select(PricingPackage)
            .where(PricingPackage.is_active.is_(True))
            .order_by(PricingPackage.sort_order, PricingPackage.name)
        )
        result = await self.db.execute(stmt)
        return [
            PricingPackageModel.model_validate(package)
            for package in result.scalars().all()
        ]

    async def get_package(self, package_id: UUID) -> PricingPackage:
        package = await self.db.get(PricingPackage, package_id)
        if package is None:
            raise PackageNotFoundException(package_id)
        return package

    async def create_package(self, **fields) -> PricingPackage:
        self._validate(fields)
        package = PricingPackage(**fields)
        self.db.add(package)
        await self.db.commit()
        await invalidate_tag(PACKAGES_CACHE_TAG)
        self.logger.info(
            "Pricing package created",
            package_id=str(package.id),
            name=package.name,
            token_amount=package.token_amount,
        )
        return package

    async def update_package(self, package_id: UUID, **updates) -> PricingPackage:
        unknown = set(updates) - _MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown package fields: {sorted(unknown)}")
        self._validate(updates)

        package = await self.get_package(package_id)
        for field_name, value in updates.items():
            setattr(package, field_name, value)
        await self.db.commit()
        await invalidate_tag(PACKAGES_CACHE_TAG)
        self.logger.info(
            "Pricing package updated",
            package_id=str(package_id),
            fields=sorted(updates.keys()),
        )
        return package

    async def seed_default_packages(self) -> int:
        """Insert the default catalogue when no package exists yet.

        Returns the number of packages created.
        """
        existing = (
            await self.db.execute(select(func.count(PricingPackage.id)))
        ).scalar() or 0
        if existing:
            return 0

        for seed in DEFAULT_PACKAGES:
            self.db.add(
                PricingPackage(
                    name=seed.name,
                    token_amount=seed.token_amount,
                    price_minor_units=seed.price_minor_units,
                    sort_order=seed.sort_order,
                    is_popular=seed.is_popular,
                )
            )
        await self.db.commit()
        await invalidate_tag(PACKAGES_CACHE_TAG)
        self.logger.info("Seeded default pricing packages", count=len(DEFAULT_PACKAGES))
        return len(DEFAULT_PACKAGES)

    @staticmethod
    def _validate(fields: dict) -> None:
        for field_name in ("token_amount", "price_minor_units"):
            value = fields.get(field_name)
            if value is not None and value <= 0:
                raise InvalidAmountException(value, field=field_name)
